"""
Perception session aggregator: command-line entry point.

Wires detector adapters into a session controller, runs one polling loop per
modality and prints the session summary when the session ends.

Usage:
    python src/main.py --config config/config.yaml --replay recordings/demo.yaml --duration 30

Arguments:
    --config: Path to configuration file
    --replay: Recording of per-modality detections to replay
    --duration: Seconds to run before stopping (default: until Ctrl+C)
    --serve: Also serve the HTTP API
    --export: Write the export artifact when the session ends
"""

import os
import sys
import argparse
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

import uvicorn
import yaml

from detection.replay import create_replay_adapters
from models.config import Config
from models.detection import Modality
from ops.logging import setup_logging
from runtime.controller import SessionController
from runtime.errors import InvalidStateError
from tracking.identity import MATCHING_MODES
from web.app import create_app

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        if os.path.exists(config_path) and os.path.abspath(config_path) not in (
            os.path.abspath(local_overrides_path),
            os.path.abspath(base_path),
        ):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['session', 'tracking', 'interactions', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Session settings
    session = config.get('session') or {}
    capacity = session.get('history_capacity', 1000)
    if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity <= 0:
        return False, "session.history_capacity must be a positive integer"
    timeline_limit = session.get('timeline_limit', 50)
    if not isinstance(timeline_limit, int) or isinstance(timeline_limit, bool) or timeline_limit < 0:
        return False, "session.timeline_limit must be a non-negative integer"
    intervals = session.get('intervals_ms') or {}
    if not isinstance(intervals, dict):
        return False, "session.intervals_ms must be a mapping of modality to milliseconds"
    for name, interval in intervals.items():
        if name not in [m.value for m in Modality]:
            return False, f"session.intervals_ms has unknown modality: {name}"
        if not isinstance(interval, int) or isinstance(interval, bool) or interval <= 0:
            return False, f"session.intervals_ms.{name} must be a positive integer"

    # Tracking settings
    tracking = config.get('tracking') or {}
    if not _is_positive_number(tracking.get('distance_threshold_px', 100)):
        return False, "tracking.distance_threshold_px must be a positive number"
    if tracking.get('matching', 'greedy') not in MATCHING_MODES:
        return False, f"tracking.matching must be one of: {', '.join(MATCHING_MODES)}"

    # Interaction settings
    interactions = config.get('interactions') or {}
    if not _is_positive_number(interactions.get('distance_threshold_px', 300)):
        return False, "interactions.distance_threshold_px must be a positive number"
    if not isinstance(interactions.get('smile_emotion', 'happy'), str):
        return False, "interactions.smile_emotion must be a string"
    log_capacity = interactions.get('log_capacity', 1000)
    if log_capacity is not None and (not isinstance(log_capacity, int) or isinstance(log_capacity, bool) or log_capacity < 0):
        return False, "interactions.log_capacity must be a non-negative integer or null"

    # Web settings
    web = config.get('web') or {}
    port = web.get('port', 5000)
    if not isinstance(port, int) or not (0 < port < 65536):
        return False, "web.port must be an integer between 1 and 65535"

    # Log settings
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def build_controller(config: Dict[str, Any], replay_path: Optional[str] = None, loop: bool = False) -> SessionController:
    """Create the controller and register replay adapters, if any."""
    controller = SessionController(Config.from_dict(config))
    if replay_path:
        for modality, adapter in create_replay_adapters(replay_path, loop=loop).items():
            controller.register(modality, adapter)
    controller.initialize_adapters()
    return controller


def _replay_finished(controller: SessionController) -> bool:
    adapters = [a for a in controller.adapters.values() if hasattr(a, "exhausted")]
    return bool(adapters) and all(a.exhausted for a in adapters)


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Perception Session Aggregator')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--replay', type=str, default=None,
                        help='Recording of per-modality detections to replay')
    parser.add_argument('--loop', action='store_true',
                        help='Loop the replay recording')
    parser.add_argument('--duration', type=float, default=None,
                        help='Seconds to run before stopping')
    parser.add_argument('--window', type=float, default=None,
                        help='Summary window in minutes (default: entire session)')
    parser.add_argument('--serve', action='store_true',
                        help='Serve the HTTP API while the session runs')
    parser.add_argument('--export', nargs='?', const='', default=None,
                        help='Write the export artifact (optional path)')
    args = parser.parse_args()

    config = load_config(args.config)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    logging.info("Starting Perception Session Aggregator")

    controller = build_controller(config, replay_path=args.replay, loop=args.loop)
    if not controller.ready_modalities():
        logging.error("No detector adapter is ready; pass --replay with a recording")
        sys.exit(1)

    if args.serve:
        web_cfg = config.get('web') or {}

        def run_web_app():
            uvicorn.run(
                create_app(controller),
                host=web_cfg.get('host', '0.0.0.0'),
                port=web_cfg.get('port', 5000),
                log_level="info",
            )

        web_thread = threading.Thread(target=run_web_app, daemon=True)
        web_thread.start()
        logging.info(f"Web interface started on port {web_cfg.get('port', 5000)}")

    try:
        controller.start()
        started = time.time()
        while True:
            time.sleep(0.2)
            if args.duration is not None and time.time() - started >= args.duration:
                break
            if args.duration is None and not args.serve and not args.loop and _replay_finished(controller):
                # Let the last in-flight ticks land
                time.sleep(0.5)
                break
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    except InvalidStateError as e:
        logging.error(f"Could not start session: {e}")
        sys.exit(1)
    finally:
        if controller.is_active:
            controller.stop()

    print(controller.render_summary(args.window))

    if args.export is not None:
        path = controller.export_to_file(args.export or None)
        print(f"Exported session to {path}")

    logging.info("Perception Session Aggregator stopped")


if __name__ == "__main__":
    main()
