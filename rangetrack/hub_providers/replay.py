"""Offline hub event source: replays a JSON-lines capture.

Each non-empty line is one packet in the bridge schema. Events are delivered
one line per tick at a fixed tick rate; ``realtime`` sleeps between ticks.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from ..control.event_source import EventSource
from ..control.events import HubEvent
from .packets import parse_event_packet

logger = logging.getLogger(__name__)


def load_replay(path: str) -> list[HubEvent]:
    p = Path(path)
    if not p.is_file():
        raise ValueError(f"replay file not found: {p}")
    events: list[HubEvent] = []
    for lineno, raw_line in enumerate(p.read_text(encoding="utf-8").splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        event = parse_event_packet(line)
        if event is None:
            logger.warning("[HUB] %s:%d: skipping malformed packet", p, lineno)
            continue
        events.append(event)
    logger.info("[HUB] loaded %d events from %s", len(events), p)
    return events


class ReplayEventSource(EventSource):
    def __init__(self, path: str, tick_hz: float = 60.0, realtime: bool = False):
        self.path = str(path)
        self.dt = 1.0 / max(1e-3, float(tick_hz))
        self.realtime = bool(realtime)
        self._events = load_replay(self.path)
        self._pos = 0
        self._closed = False

    @property
    def remaining(self) -> int:
        return len(self._events) - self._pos

    def poll(self) -> list[HubEvent]:
        if self._pos >= len(self._events):
            return []
        event = self._events[self._pos]
        self._pos += 1
        return [event]

    def run(
        self,
        on_event: Callable[[HubEvent], None],
        on_tick: Callable[[float], None],
    ) -> None:
        while not self._closed and self.remaining > 0:
            for event in self.poll():
                on_event(event)
            on_tick(self.dt)
            if self.realtime:
                time.sleep(self.dt)
        logger.info("[HUB] replay finished (%s)", self.path)

    def close(self) -> None:
        self._closed = True
