"""Control plane mapping hub events -> device registry, viewer pose and shots."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

import numpy as np

from .calibration import screen_info_to_local_corners
from .display_provider import DisplayFrame, DisplayProvider, NullDisplayProvider, PlayerStatus
from .distance_response import DistanceResponseCurve
from .events import (
    DeviceConnected,
    DeviceDisconnected,
    DeviceId,
    HubEvent,
    Impact,
    ScreenCalibration,
    ShotDelayChanged,
    Tracking,
    ZeroResult,
    device_label,
)
from .pose_converter import convert_hub_pose
from .screen_plane import ScreenPlane
from .slots import SlotRegistry
from .tracking_history import TrackingHistory, TrackingSample
from .true_size import TrueSizeDistance

logger = logging.getLogger(__name__)

NO_AIMPOINT = (-1.0, -1.0)


@dataclass(slots=True)
class Player:
    device: DeviceId
    history: TrackingHistory
    shot_delay_ms: int = 0
    aimpoint: tuple[float, float] = NO_AIMPOINT


@dataclass(frozen=True, slots=True)
class Shot:
    device: DeviceId
    index: int
    # Normalized [0, 1]^2, y up.
    aimpoint: tuple[float, float]
    # Pixels, y down.
    screen_point: tuple[float, float]
    timestamp: int


class RangeController:
    def __init__(
        self,
        screen_plane: ScreenPlane,
        helmet_ids: Iterable[DeviceId] = (),
        distance_curve: Optional[DistanceResponseCurve] = None,
        true_size: Optional[TrueSizeDistance] = None,
        display_provider: Optional[DisplayProvider] = None,
        history_size: int = 100,
        distance_offset: float = 1.0,
        screen_size_px: tuple[int, int] = (1920, 1080),
        display_hz: float = 5.0,
        hub_connected: Optional[Callable[[], bool]] = None,
    ):
        self.screen_plane = screen_plane
        self.helmet_ids = frozenset(bytes(h) for h in helmet_ids)
        self.distance_curve = distance_curve
        self.true_size = true_size
        self.display_provider = display_provider or NullDisplayProvider()
        self.history_size = int(history_size)
        self.distance_offset = float(distance_offset)
        self.screen_size_px = (int(screen_size_px[0]), int(screen_size_px[1]))
        self.hub_connected = hub_connected or (lambda: True)

        self.players: SlotRegistry[Player] = SlotRegistry()
        # Hub identity -> registry index; kept apart from the registry itself.
        self._index_by_device: dict[DeviceId, int] = {}

        self.is_tracking = False
        self.translation = np.zeros(3, dtype=np.float64)
        self.zero_translation = np.zeros(3, dtype=np.float64)
        self._helmet_position: Optional[np.ndarray] = None
        self._helmet_device: Optional[DeviceId] = None
        self._depth_ref: Optional[float] = None

        self.display_interval = (1.0 / display_hz) if display_hz > 0.0 else 0.0
        self._since_display = 0.0

    # -- registry lookups -------------------------------------------------

    def player_index(self, device: DeviceId) -> Optional[int]:
        return self._index_by_device.get(device)

    def player(self, device: DeviceId) -> Optional[Player]:
        index = self._index_by_device.get(device)
        return None if index is None else self.players.get(index)

    def is_helmet(self, device: DeviceId) -> bool:
        return device in self.helmet_ids

    def has_active_helmet(self) -> bool:
        return any(self.is_helmet(p.device) for _, p in self.players)

    # -- event dispatch ---------------------------------------------------

    def handle(self, event: HubEvent) -> Optional[Shot]:
        """Apply one hub event. Returns a Shot for resolved impacts."""
        if isinstance(event, Tracking):
            self._on_tracking(event)
        elif isinstance(event, Impact):
            return self._on_impact(event)
        elif isinstance(event, DeviceConnected):
            self._on_connect(event)
        elif isinstance(event, DeviceDisconnected):
            self._on_disconnect(event)
        elif isinstance(event, ZeroResult):
            self._on_zero_result(event)
        elif isinstance(event, ShotDelayChanged):
            self._on_shot_delay(event)
        elif isinstance(event, ScreenCalibration):
            self._on_screen_calibration(event)
        else:
            raise TypeError(f"unsupported hub event: {type(event).__name__}")
        return None

    def _on_connect(self, event: DeviceConnected) -> None:
        if event.device in self._index_by_device:
            logger.debug("[DEVICE] %s already connected", device_label(event.device))
            return
        index = self.players.allocate(
            Player(device=event.device, history=TrackingHistory(self.history_size))
        )
        self._index_by_device[event.device] = index
        logger.info(
            "[DEVICE] connected %s -> slot %d%s",
            device_label(event.device),
            index,
            " (helmet)" if self.is_helmet(event.device) else "",
        )

    def _on_disconnect(self, event: DeviceDisconnected) -> None:
        index = self._index_by_device.pop(event.device, None)
        if index is None:
            logger.debug("[DEVICE] disconnect for unknown %s", device_label(event.device))
            return
        self.players.free(index)
        if event.device == self._helmet_device:
            self._helmet_position = None
            self._helmet_device = None
        if self.is_helmet(event.device) and not self.has_active_helmet():
            self._depth_ref = None
        logger.info("[DEVICE] disconnected %s (slot %d)", device_label(event.device), index)

    def _on_tracking(self, event: Tracking) -> None:
        player = self.player(event.device)
        if player is None:
            # Connect handles registration.
            logger.debug("[DEVICE] tracking for unknown %s", device_label(event.device))
            return

        pose = convert_hub_pose(event.pose)
        player.aimpoint = event.aimpoint
        player.history.push(
            TrackingSample(aimpoint=event.aimpoint, pose=pose, timestamp=event.timestamp)
        )

        if self.is_helmet(event.device):
            self.is_tracking = True
            self._helmet_position = pose.position
            self._helmet_device = event.device
            self.translation = self.zero_translation + pose.position
            if self._depth_ref is None:
                self._depth_ref = float(pose.position[2])

    def _on_impact(self, event: Impact) -> Optional[Shot]:
        index = self._index_by_device.get(event.device)
        player = None if index is None else self.players.get(index)
        if player is None:
            logger.debug("[SHOT] impact from unknown %s", device_label(event.device))
            return None

        sample = player.history.closest(event.timestamp - player.shot_delay_ms * 1000)
        if sample is None:
            logger.debug("[SHOT] no tracking history for %s", device_label(event.device))
            return None

        x, y = sample.aimpoint
        w, h = self.screen_size_px
        shot = Shot(
            device=event.device,
            index=index,
            aimpoint=(x, y),
            screen_point=(x * w, h - y * h),
            timestamp=event.timestamp,
        )
        logger.info(
            "[SHOT] %s slot %d aim=(%.3f, %.3f) px=(%.1f, %.1f)",
            device_label(event.device),
            index,
            x,
            y,
            shot.screen_point[0],
            shot.screen_point[1],
        )
        return shot

    def _on_zero_result(self, event: ZeroResult) -> None:
        if event.success:
            logger.info("[DEVICE] zero successful for %s", device_label(event.device))
        else:
            logger.warning("[DEVICE] zero failed for %s, try again", device_label(event.device))

    def _on_shot_delay(self, event: ShotDelayChanged) -> None:
        player = self.player(event.device)
        if player is None:
            logger.debug("[DEVICE] shot delay for unknown %s", device_label(event.device))
            return
        player.shot_delay_ms = int(event.delay_ms)

    def _on_screen_calibration(self, event: ScreenCalibration) -> None:
        local = screen_info_to_local_corners(event.tl, event.tr, event.bl, event.br)
        self.screen_plane.set_local_bounds(
            local.top_left, local.top_right, local.bottom_left, local.bottom_right
        )
        self.zero_translation = np.array(
            [local.origin[0], local.origin[1], self.distance_offset], dtype=np.float64
        )
        logger.info(
            "[SCREEN] zero translation=(%.3f, %.3f, %.3f)",
            self.zero_translation[0],
            self.zero_translation[1],
            self.zero_translation[2],
        )

    # -- per-tick update --------------------------------------------------

    def helmet_depth(self) -> Optional[float]:
        """Helmet z relative to where it was first seen (positive = away)."""
        if self._helmet_position is None or self._depth_ref is None:
            return None
        return float(self._helmet_position[2]) - self._depth_ref

    def tick(self, dt: float) -> None:
        if self.distance_curve is not None:
            depth = self.helmet_depth()
            self.distance_curve.update(
                0.0 if depth is None else depth,
                dt,
                camera_z=float(self.translation[2]),
            )

        if self.true_size is not None and self.true_size.enabled:
            self.true_size.tick(dt)
            if self._helmet_position is not None:
                self.translation = self.true_size.combined_translation(
                    self.zero_translation + self._helmet_position
                )
            elif not self.has_active_helmet():
                self.is_tracking = True
                self.translation = self.true_size.current.copy()

        if self.display_interval <= 0.0:
            return
        self._since_display += max(0.0, float(dt))
        if self._since_display >= self.display_interval:
            self.display_provider.update(self.display_frame())
            self._since_display = 0.0

    def display_frame(self) -> DisplayFrame:
        return DisplayFrame(
            hub_connected=bool(self.hub_connected()),
            is_tracking=self.is_tracking,
            translation=self.translation.copy(),
            zero_translation=self.zero_translation.copy(),
            screen_calibrated=self.screen_plane.is_calibrated,
            screen_normal=self.screen_plane.normal,
            players=[
                PlayerStatus(
                    index=index,
                    device=device_label(p.device),
                    aimpoint=p.aimpoint,
                    shot_delay_ms=p.shot_delay_ms,
                    is_helmet=self.is_helmet(p.device),
                )
                for index, p in self.players
            ],
            target_z=None if self.distance_curve is None else self.distance_curve.position,
            true_size_yards=(
                self.true_size.distance_yards
                if self.true_size is not None and self.true_size.enabled
                else None
            ),
        )
