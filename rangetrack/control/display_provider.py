"""Display providers for rendering runtime tracking state."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PlayerStatus:
    index: int
    device: str
    aimpoint: tuple[float, float]
    shot_delay_ms: int
    is_helmet: bool


@dataclass(slots=True)
class DisplayFrame:
    """Runtime frame data shared by all display providers."""

    hub_connected: bool
    is_tracking: bool
    translation: np.ndarray
    zero_translation: np.ndarray
    screen_calibrated: bool
    screen_normal: np.ndarray
    players: list[PlayerStatus]
    # None while responsive distance is disabled.
    target_z: Optional[float]
    # None while true-size is disabled.
    true_size_yards: Optional[float]


class DisplayProvider:
    """Base display provider interface."""

    def update(self, frame: DisplayFrame) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class NullDisplayProvider(DisplayProvider):
    def update(self, frame: DisplayFrame) -> None:  # noqa: ARG002
        pass


def _fmt3(v: np.ndarray) -> str:
    return f"({v[0]: .3f}, {v[1]: .3f}, {v[2]: .3f})"


def status_lines(frame: DisplayFrame) -> list[str]:
    lines = [
        "=== TRACKING STATUS ===",
        f"hub connected   = {frame.hub_connected}",
        f"is tracking     = {frame.is_tracking}",
        f"translation (m) = {_fmt3(frame.translation)}",
        f"zero offset (m) = {_fmt3(frame.zero_translation)}",
        f"screen          = {'calibrated' if frame.screen_calibrated else 'default'}"
        f"  normal={_fmt3(frame.screen_normal)}",
        f"devices         = {len(frame.players)}",
    ]
    for p in frame.players:
        role = " helmet" if p.is_helmet else ""
        lines.append(
            f"  [{p.index}] {p.device}{role} aim=({p.aimpoint[0]:.3f}, {p.aimpoint[1]:.3f})"
            f" delay={p.shot_delay_ms}ms"
        )
    if frame.target_z is not None:
        lines.append(f"target z        = {frame.target_z:.3f}")
    if frame.true_size_yards is not None:
        lines.append(f"true-size       = {frame.true_size_yards:.1f} yd")
    return lines


class _CliStatsSink:
    def __init__(self, mode: str):
        self.mode = "live" if mode == "live" else "scroll"
        self._is_tty = bool(getattr(sys.stderr, "isatty", lambda: False)())
        self._live_enabled = self.mode == "live" and self._is_tty
        self._line_count = 0

    def emit(self, lines: list[str], scroll_line: str) -> None:
        if not self._live_enabled:
            logger.info(scroll_line)
            return

        out = sys.stderr
        if self._line_count > 0:
            out.write(f"\x1b[{self._line_count}F")

        max_lines = max(self._line_count, len(lines))
        for i in range(max_lines):
            out.write("\x1b[2K")
            out.write(lines[i] if i < len(lines) else "")
            out.write("\n")
        out.flush()
        self._line_count = len(lines)


class TuiDisplayProvider(DisplayProvider):
    """Terminal status panel (live) or one log line per update (scroll)."""

    def __init__(self, cli_output: str = "live"):
        self.cli_sink = _CliStatsSink(cli_output)

    def update(self, frame: DisplayFrame) -> None:
        t = frame.translation
        self.cli_sink.emit(
            lines=status_lines(frame),
            scroll_line=(
                "[STATUS] hub=%s tracking=%s translation=(%.3f, %.3f, %.3f) devices=%d"
                % (
                    frame.hub_connected,
                    frame.is_tracking,
                    t[0],
                    t[1],
                    t[2],
                    len(frame.players),
                )
            ),
        )
