"""Hub event source implementations."""

from .replay import ReplayEventSource
from .udp_bridge import UdpHubEventSource

__all__ = [
    "ReplayEventSource",
    "UdpHubEventSource",
]
