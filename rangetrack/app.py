"""
Range trainer tracking core:
- Hub events from the UDP bridge (or a JSON-lines replay)
- Stable slot registry of connected devices, identity -> slot side lookup
- Hub pose -> world pose conversion on every tracking update
- Screen plane calibrated from the hub's screen info
- Helmet pose drives the viewer translation
- Responsive distance: helmet depth -> smoothed, bounded target z
- True-size: preset shooting distance -> viewer translation
- Impacts resolved against tracking history delayed by the device shot delay
- Status display provider (tui/none)

Deps:
  pip install numpy pyyaml
"""

from __future__ import annotations

import logging

import numpy as np

from .config import parse_args
from .control.controller import RangeController
from .control.display_provider import NullDisplayProvider, TuiDisplayProvider
from .control.distance_response import DistanceResponseCurve
from .control.screen_plane import ScreenPlane
from .control.true_size import TrueSizeDistance
from .hub_providers.replay import ReplayEventSource
from .hub_providers.udp_bridge import UdpHubEventSource

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_event_source(cfg):
    if cfg.event_source == "udp":
        return UdpHubEventSource(
            host=cfg.hub_host,
            port=cfg.hub_port,
            poll_ms=cfg.hub_poll_ms,
        )
    if cfg.event_source == "replay":
        return ReplayEventSource(
            cfg.replay_path,
            tick_hz=cfg.replay_hz,
            realtime=cfg.replay_realtime,
        )
    raise RuntimeError(f"Unsupported event source: {cfg.event_source}")


def build_distance_curve(cfg):
    if not cfg.responsive_distance:
        return None
    curve = DistanceResponseCurve(
        base_z=cfg.distance_base_z,
        min_z=cfg.distance_min_z,
        max_z=cfg.distance_max_z,
        scaling_ratio=cfg.distance_scaling_ratio,
        approach_speed=cfg.distance_approach_speed,
        smoothing_time=cfg.distance_smoothing_time,
        camera_relative_min=cfg.distance_camera_relative_min,
        camera_margin=cfg.distance_camera_margin,
    )
    logger.info(
        "[DISTANCE] responsive distance base=%.2f bounds=[%.2f, %.2f] k=%.2f a=%.2f smoothing=%.2fs",
        cfg.distance_base_z,
        cfg.distance_min_z,
        cfg.distance_max_z,
        cfg.distance_scaling_ratio,
        cfg.distance_approach_speed,
        cfg.distance_smoothing_time,
    )
    return curve


def build_true_size(cfg):
    if not cfg.true_size:
        return None
    true_size = TrueSizeDistance(
        base_camera_offset=cfg.distance_offset,
        smoothing_time=cfg.true_size_smoothing_s,
    )
    true_size.set_enabled(True)
    true_size.set_distance_yards(cfg.true_size_yards)
    return true_size


def build_display_provider(cfg):
    if cfg.display_provider == "tui":
        return TuiDisplayProvider(cli_output=cfg.cli_output)
    if cfg.display_provider == "none":
        return NullDisplayProvider()
    raise RuntimeError(f"Unsupported display provider: {cfg.display_provider}")


def build_controller(cfg, event_source) -> RangeController:
    screen_plane = ScreenPlane(default_size=(cfg.screen_width_m, cfg.screen_height_m))
    logger.info(
        "[SCREEN] default plane %.3f x %.3f m until calibration, normal=%s",
        cfg.screen_width_m,
        cfg.screen_height_m,
        np.round(screen_plane.normal, 3).tolist(),
    )
    return RangeController(
        screen_plane=screen_plane,
        helmet_ids=[bytes.fromhex(u) for u in cfg.helmet_uuids],
        distance_curve=build_distance_curve(cfg),
        true_size=build_true_size(cfg),
        display_provider=build_display_provider(cfg),
        history_size=cfg.tracking_history_size,
        distance_offset=cfg.distance_offset,
        screen_size_px=(cfg.screen_width_px, cfg.screen_height_px),
        display_hz=cfg.display_hz,
        hub_connected=event_source.is_connected,
    )


def main(argv=None):
    cfg = parse_args(argv)
    configure_logging(cfg.log_level)

    event_source = build_event_source(cfg)
    controller = build_controller(cfg, event_source)
    logger.info("[HUB] helmets configured: %d", len(controller.helmet_ids))

    try:
        event_source.run(controller.handle, controller.tick)
    except KeyboardInterrupt:
        logger.info("[HUB] interrupted, shutting down")
    finally:
        try:
            event_source.close()
        finally:
            controller.display_provider.close()


if __name__ == "__main__":
    main()
