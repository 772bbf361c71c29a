"""Hub event source fed by an external bridge over UDP.

The vendor hub client lives in its own process; it relays each event as one
JSON datagram (schema in ``packets``) to localhost. This source polls the
socket without blocking and drives the update loop.
"""

from __future__ import annotations

import logging
import socket
import time
from typing import Callable

from ..control.event_source import EventSource
from ..control.events import HubEvent
from .packets import parse_event_packet

logger = logging.getLogger(__name__)


class _UdpEventReceiver:
    def __init__(self, host: str, port: int):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind((host, int(port)))
        self.sock.setblocking(False)
        self.dropped = 0

    def recv_all(self) -> list[HubEvent]:
        events: list[HubEvent] = []
        while True:
            try:
                data, _ = self.sock.recvfrom(65535)
            except BlockingIOError:
                break
            except OSError as exc:
                logger.debug("[HUB] socket receive failed: %s", exc)
                break
            event = parse_event_packet(data)
            if event is None:
                self.dropped += 1
                continue
            events.append(event)
        return events

    def close(self) -> None:
        self.sock.close()


class UdpHubEventSource(EventSource):
    """Hub events from JSON datagrams on host:port."""

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 24570,
        poll_ms: int = 8,
    ):
        self.host = str(host)
        self.port = int(port)
        self.poll_s = max(0.001, float(poll_ms) / 1000.0)

        self._receiver = _UdpEventReceiver(self.host, self.port)
        self._closed = False
        self._last_recv_t = 0.0
        self._last_warn_t = 0.0
        self._recv_count = 0

        logger.info(
            "[HUB] source=udp-bridge (host=%s, port=%s, poll_ms=%.1f)",
            self.host,
            self.port,
            self.poll_s * 1000.0,
        )

    def is_connected(self) -> bool:
        return self._recv_count > 0 and (time.time() - self._last_recv_t) <= 2.0

    def poll(self) -> list[HubEvent]:
        events = self._receiver.recv_all()
        now = time.time()
        if not events:
            # Only warn if nothing has arrived recently.
            if (now - self._last_recv_t) > 2.0 and (now - self._last_warn_t) > 2.0:
                logger.info(
                    "[HUB] waiting for bridge packets on %s:%s", self.host, self.port
                )
                self._last_warn_t = now
            return events

        if self._recv_count == 0:
            logger.info("[HUB] first bridge packet received on %s:%s", self.host, self.port)
        self._recv_count += len(events)
        self._last_recv_t = now
        return events

    def run(
        self,
        on_event: Callable[[HubEvent], None],
        on_tick: Callable[[float], None],
    ) -> None:
        last = time.monotonic()
        try:
            while not self._closed:
                for event in self.poll():
                    on_event(event)
                now = time.monotonic()
                on_tick(now - last)
                last = now
                time.sleep(self.poll_s)
        finally:
            self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._receiver.dropped:
            logger.warning("[HUB] dropped %d malformed packets", self._receiver.dropped)
        try:
            self._receiver.close()
        except OSError:
            pass
