"""CLI config and defaults."""

from __future__ import annotations

import argparse
import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml


@dataclass(frozen=True)
class AppConfig:
    event_source: str = "udp"
    hub_host: str = "127.0.0.1"
    hub_port: int = 24570
    hub_poll_ms: int = 8
    replay_path: str = ""
    replay_hz: float = 60.0
    replay_realtime: bool = False
    helmet_uuids: tuple[str, ...] = ()
    screen_width_m: float = 1.756
    screen_height_m: float = 0.988
    screen_width_px: int = 1920
    screen_height_px: int = 1080
    distance_offset: float = 1.0
    tracking_history_size: int = 100
    responsive_distance: bool = False
    distance_base_z: float = 7.0
    distance_min_z: float = 1.0
    distance_max_z: float = 10.0
    distance_scaling_ratio: float = 1.0
    distance_approach_speed: float = 2.0
    distance_smoothing_time: float = 0.5
    distance_camera_relative_min: bool = False
    distance_camera_margin: float = 0.1
    true_size: bool = False
    true_size_yards: float = 3.0
    true_size_smoothing_s: float = 0.5
    display_provider: str = "tui"
    display_hz: float = 0.5
    cli_output: str = "live"
    log_level: str = "info"


_APP_CONFIG_FIELDS = {f.name for f in fields(AppConfig)}
_BOOL_FIELDS = {
    "replay_realtime",
    "responsive_distance",
    "distance_camera_relative_min",
    "true_size",
}
_INT_FIELDS = {
    "hub_port",
    "hub_poll_ms",
    "screen_width_px",
    "screen_height_px",
    "tracking_history_size",
}
_FLOAT_FIELDS = {
    "replay_hz",
    "screen_width_m",
    "screen_height_m",
    "distance_offset",
    "distance_base_z",
    "distance_min_z",
    "distance_max_z",
    "distance_scaling_ratio",
    "distance_approach_speed",
    "distance_smoothing_time",
    "distance_camera_margin",
    "true_size_yards",
    "true_size_smoothing_s",
    "display_hz",
}
_STRING_LIST_FIELDS = {"helmet_uuids"}
_STRING_FIELDS = {
    "event_source",
    "hub_host",
    "replay_path",
    "display_provider",
    "cli_output",
    "log_level",
}
_KEY_ALIASES = {
    "helmet_uuid": "helmet_uuids",
    "helmets": "helmet_uuids",
}


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        s = value.strip().lower()
        if s in {"1", "true", "yes", "on"}:
            return True
        if s in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"config key '{key}' expects a bool, got {value!r}")


def _parse_string_list(value: Any, key: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(s.strip() for s in value.split(",") if s.strip())
    if isinstance(value, (list, tuple)):
        return tuple(str(v).strip() for v in value)
    raise ValueError(f"config key '{key}' expects a list of strings, got {value!r}")


def _coerce_config_value(key: str, value: Any) -> Any:
    try:
        if key in _BOOL_FIELDS:
            return _parse_bool(value, key)
        if key in _INT_FIELDS:
            return int(value)
        if key in _FLOAT_FIELDS:
            return float(value)
        if key in _STRING_LIST_FIELDS:
            return _parse_string_list(value, key)
        if key in _STRING_FIELDS:
            return "" if value is None else str(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid value for config key '{key}': {value!r}") from exc
    raise ValueError(f"unsupported config key '{key}'")


def _normalize_config_key(raw_key: Any) -> str:
    if not isinstance(raw_key, str):
        raise ValueError(f"config key must be string, got {type(raw_key).__name__}")
    key = raw_key.strip().replace("-", "_")
    if not key:
        raise ValueError("config key cannot be empty")
    return _KEY_ALIASES.get(key, key)


def _load_yaml_config(path: str) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ValueError(f"--config file not found: {p}")
    if not p.is_file():
        raise ValueError(f"--config must point to a file: {p}")

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"failed to read --config file {p}: {exc}") from exc
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"failed to parse YAML config {p}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"--config root must be a mapping/object, got {type(loaded).__name__}")

    normalized: dict[str, Any] = {}
    for raw_key, raw_value in loaded.items():
        key = _normalize_config_key(raw_key)
        if key not in _APP_CONFIG_FIELDS:
            raise ValueError(f"unknown config key in {p}: {raw_key!r}")
        normalized[key] = _coerce_config_value(key, raw_value)
    return normalized


def _yaml_defaults_to_argparse_defaults(cfg: dict[str, Any]) -> dict[str, Any]:
    defaults: dict[str, Any] = {}
    for key, value in cfg.items():
        if key in _STRING_LIST_FIELDS:
            defaults[key] = list(value)
        else:
            defaults[key] = value
    return defaults


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="rangetrack")
    ap.add_argument(
        "--config",
        type=str,
        default="",
        help="YAML config file path. CLI args override YAML values.",
    )
    ap.add_argument(
        "--event-source",
        choices=["udp", "replay"],
        default="udp",
        help="Hub events from the UDP bridge or a JSON-lines replay file.",
    )
    ap.add_argument("--hub-host", type=str, default="127.0.0.1", help="UDP bridge bind host.")
    ap.add_argument("--hub-port", type=int, default=24570, help="UDP bridge bind port.")
    ap.add_argument(
        "--hub-poll-ms",
        type=int,
        default=8,
        help="UDP bridge polling sleep in milliseconds.",
    )
    ap.add_argument("--replay-path", type=str, default="", help="JSON-lines event capture.")
    ap.add_argument(
        "--replay-hz",
        type=float,
        default=60.0,
        help="Replay tick rate (one packet per tick).",
    )
    ap.add_argument(
        "--replay-realtime",
        action="store_true",
        help="Sleep between replay ticks instead of running flat out.",
    )
    ap.add_argument(
        "--helmet-uuid",
        dest="helmet_uuids",
        action="append",
        default=[],
        help="Device UUID (12 hex chars) whose pose drives the viewer. Repeatable.",
    )
    ap.add_argument(
        "--screen-width-m",
        type=float,
        default=1.756,
        help="Default screen width before calibration (m).",
    )
    ap.add_argument(
        "--screen-height-m",
        type=float,
        default=0.988,
        help="Default screen height before calibration (m).",
    )
    ap.add_argument("--screen-width-px", type=int, default=1920, help="Output width in pixels.")
    ap.add_argument("--screen-height-px", type=int, default=1080, help="Output height in pixels.")
    ap.add_argument(
        "--distance-offset",
        type=float,
        default=1.0,
        help="Camera distance from the screen plane (m), added to zero translation z.",
    )
    ap.add_argument(
        "--tracking-history-size",
        type=int,
        default=100,
        help="Tracking samples kept per device for shot-delay lookup.",
    )
    ap.add_argument(
        "--responsive-distance",
        action="store_true",
        help="Move the target in z as the helmet moves toward/away from the screen.",
    )
    ap.add_argument("--distance-base-z", type=float, default=7.0, help="Target base z.")
    ap.add_argument("--distance-min-z", type=float, default=1.0, help="Closest target z.")
    ap.add_argument("--distance-max-z", type=float, default=10.0, help="Farthest target z.")
    ap.add_argument(
        "--distance-scaling-ratio",
        type=float,
        default=1.0,
        help="Target z units per unit of tracked depth.",
    )
    ap.add_argument(
        "--distance-approach-speed",
        type=float,
        default=2.0,
        help="How quickly the target approaches its bound, in [0.5,5].",
    )
    ap.add_argument(
        "--distance-smoothing-time",
        type=float,
        default=0.5,
        help="Target smoothing time in seconds.",
    )
    ap.add_argument(
        "--distance-camera-relative-min",
        action="store_true",
        help="Keep the target at least --distance-camera-margin in front of the viewer.",
    )
    ap.add_argument(
        "--distance-camera-margin",
        type=float,
        default=0.1,
        help="Margin from the viewer for --distance-camera-relative-min (m).",
    )
    ap.add_argument(
        "--true-size",
        action="store_true",
        help="Move the viewer back by the shooting distance (true-size targets).",
    )
    ap.add_argument(
        "--true-size-yards",
        type=float,
        default=3.0,
        help="Shooting distance in yards; snaps to the closest preset (3, 7, 15).",
    )
    ap.add_argument(
        "--true-size-smoothing-s",
        type=float,
        default=0.5,
        help="Viewer transition time when the shooting distance changes.",
    )
    ap.add_argument(
        "--display-provider",
        choices=["tui", "none"],
        default="tui",
        help="Status display: terminal TUI or none.",
    )
    ap.add_argument(
        "--display-hz",
        type=float,
        default=0.5,
        help="Status refresh rate in Hz (0 disables display updates).",
    )
    ap.add_argument(
        "--cli-output",
        choices=["live", "scroll"],
        default="live",
        help="TUI output mode: in-place live panel or scrolling logs.",
    )
    ap.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Global log level.",
    )
    return ap


def _is_device_uuid(s: str) -> bool:
    if len(s) != 12:
        return False
    try:
        bytes.fromhex(s)
    except ValueError:
        return False
    return True


def validate_config(cfg: AppConfig) -> None:
    if cfg.event_source not in {"udp", "replay"}:
        raise ValueError(f"--event-source must be one of udp|replay, got {cfg.event_source}")
    if cfg.event_source == "replay" and not cfg.replay_path.strip():
        raise ValueError("--replay-path must be provided when --event-source=replay")
    if not cfg.hub_host.strip():
        raise ValueError("--hub-host must be non-empty")
    if not (1 <= cfg.hub_port <= 65535):
        raise ValueError(f"--hub-port must be in [1,65535], got {cfg.hub_port}")
    if cfg.hub_poll_ms <= 0:
        raise ValueError(f"--hub-poll-ms must be > 0, got {cfg.hub_poll_ms}")
    if cfg.replay_hz <= 0.0:
        raise ValueError(f"--replay-hz must be > 0, got {cfg.replay_hz}")
    for uuid in cfg.helmet_uuids:
        if not _is_device_uuid(uuid):
            raise ValueError(f"--helmet-uuid must be 12 hex characters, got {uuid!r}")
    if cfg.screen_width_m <= 0.0 or cfg.screen_height_m <= 0.0:
        raise ValueError("--screen-width-m/--screen-height-m must be > 0")
    if cfg.screen_width_px <= 0 or cfg.screen_height_px <= 0:
        raise ValueError("--screen-width-px/--screen-height-px must be > 0")
    if not math.isfinite(cfg.distance_offset):
        raise ValueError("--distance-offset must be a finite number")
    if cfg.tracking_history_size <= 0:
        raise ValueError(
            f"--tracking-history-size must be > 0, got {cfg.tracking_history_size}"
        )
    if not all(
        math.isfinite(v)
        for v in (cfg.distance_base_z, cfg.distance_min_z, cfg.distance_max_z)
    ):
        raise ValueError("--distance-base-z/--distance-min-z/--distance-max-z must be finite")
    if cfg.distance_min_z > cfg.distance_max_z:
        raise ValueError(
            f"--distance-min-z must be <= --distance-max-z, got {cfg.distance_min_z} > {cfg.distance_max_z}"
        )
    if not (cfg.distance_min_z <= cfg.distance_base_z <= cfg.distance_max_z):
        raise ValueError(
            f"--distance-base-z must be within [min-z, max-z], got {cfg.distance_base_z}"
        )
    if cfg.distance_scaling_ratio < 0.1:
        raise ValueError(
            f"--distance-scaling-ratio must be >= 0.1, got {cfg.distance_scaling_ratio}"
        )
    if not (0.5 <= cfg.distance_approach_speed <= 5.0):
        raise ValueError(
            f"--distance-approach-speed must be in [0.5,5.0], got {cfg.distance_approach_speed}"
        )
    if cfg.distance_smoothing_time < 0.0:
        raise ValueError(
            f"--distance-smoothing-time must be >= 0, got {cfg.distance_smoothing_time}"
        )
    if cfg.distance_camera_margin < 0.0:
        raise ValueError(
            f"--distance-camera-margin must be >= 0, got {cfg.distance_camera_margin}"
        )
    if cfg.true_size_yards <= 0.0:
        raise ValueError(f"--true-size-yards must be > 0, got {cfg.true_size_yards}")
    if cfg.true_size_smoothing_s < 0.0:
        raise ValueError(
            f"--true-size-smoothing-s must be >= 0, got {cfg.true_size_smoothing_s}"
        )
    if cfg.display_provider not in {"tui", "none"}:
        raise ValueError(f"--display-provider must be one of tui|none, got {cfg.display_provider}")
    if cfg.display_hz < 0.0:
        raise ValueError(f"--display-hz must be >= 0, got {cfg.display_hz}")
    if cfg.cli_output not in {"live", "scroll"}:
        raise ValueError(f"--cli-output must be live|scroll, got {cfg.cli_output}")


def parse_args(argv=None) -> AppConfig:
    bootstrap = argparse.ArgumentParser(add_help=False)
    bootstrap.add_argument("--config", type=str, default="")
    bootstrap_ns, _ = bootstrap.parse_known_args(argv)

    yaml_cfg: dict[str, Any] = {}
    yaml_error: Optional[str] = None
    if bootstrap_ns.config:
        try:
            yaml_cfg = _load_yaml_config(bootstrap_ns.config)
        except ValueError as exc:
            yaml_error = str(exc)

    ap = build_arg_parser()
    if yaml_error is not None:
        ap.error(yaml_error)
    if yaml_cfg:
        ap.set_defaults(**_yaml_defaults_to_argparse_defaults(yaml_cfg))
    args = ap.parse_args(argv)

    cfg = AppConfig(
        event_source=args.event_source,
        hub_host=args.hub_host,
        hub_port=args.hub_port,
        hub_poll_ms=args.hub_poll_ms,
        replay_path=args.replay_path,
        replay_hz=float(args.replay_hz),
        replay_realtime=args.replay_realtime,
        helmet_uuids=tuple(s.strip().lower() for s in args.helmet_uuids),
        screen_width_m=args.screen_width_m,
        screen_height_m=args.screen_height_m,
        screen_width_px=args.screen_width_px,
        screen_height_px=args.screen_height_px,
        distance_offset=args.distance_offset,
        tracking_history_size=args.tracking_history_size,
        responsive_distance=args.responsive_distance,
        distance_base_z=args.distance_base_z,
        distance_min_z=args.distance_min_z,
        distance_max_z=args.distance_max_z,
        distance_scaling_ratio=args.distance_scaling_ratio,
        distance_approach_speed=args.distance_approach_speed,
        distance_smoothing_time=args.distance_smoothing_time,
        distance_camera_relative_min=args.distance_camera_relative_min,
        distance_camera_margin=args.distance_camera_margin,
        true_size=args.true_size,
        true_size_yards=args.true_size_yards,
        true_size_smoothing_s=args.true_size_smoothing_s,
        display_provider=args.display_provider,
        display_hz=float(args.display_hz),
        cli_output=args.cli_output,
        log_level=args.log_level,
    )
    try:
        validate_config(cfg)
    except ValueError as exc:
        ap.error(str(exc))
    return cfg
