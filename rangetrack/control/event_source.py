"""Hub event source interface."""

from __future__ import annotations

from typing import Callable

from .events import HubEvent


class EventSource:
    """Base interface for hub event sources.

    Implementations may be a live bridge (UDP) or an offline replay. ``run``
    owns the update loop: every event and every tick callback is delivered on
    the calling thread, which is the only thread allowed to touch controller
    state.
    """

    def poll(self) -> list[HubEvent]:
        """Return events received since the last poll (possibly empty)."""
        raise NotImplementedError

    def run(
        self,
        on_event: Callable[[HubEvent], None],
        on_tick: Callable[[float], None],
    ) -> None:
        """Run the source's loop; on_tick receives elapsed seconds."""
        raise NotImplementedError

    def is_connected(self) -> bool:
        return True

    def close(self) -> None:
        pass
