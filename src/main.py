"""
Main application: driver distraction monitor.

Reads frames from the cabin camera, runs the detection model on each frame,
and plays an audio alert once a distracting behaviour has been seen on
enough frames in a row.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --source: Override camera.device_id (camera index or video file)
    --max-frames: Stop after this many processed frames
"""

import os
import sys
import argparse
import logging
import signal
from typing import Any, Dict, List, Optional, Tuple

import yaml

from detection.detector import create_detector_from_config
from detection.errors import LabelLoadError
from models.config import Config
from ops.logging import setup_logging
from pipeline.engine import create_engine_from_config


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        local_overrides_path = os.path.join(config_dir, "config.yaml")

        merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        if (
            os.path.exists(config_path)
            and os.path.abspath(config_path) != os.path.abspath(local_overrides_path)
            and os.path.abspath(config_path) != os.path.abspath(base_path)
        ):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'model', 'detection', 'confirmation', 'alerts', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera') or {}
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if isinstance(camera['device_id'], bool) or not isinstance(camera['device_id'], (int, str)):
        return False, "camera.device_id must be an integer (index) or string (file path)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"
    if 'resolution' in camera:
        resolution = camera['resolution']
        if not isinstance(resolution, list) or len(resolution) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in resolution):
            return False, "camera.resolution values must be positive integers"
    if camera.get('rotate', 0) not in (0, 90, 180, 270):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    # Model
    model = config.get('model') or {}
    for key in ('path', 'labels_path'):
        if not isinstance(model.get(key), str) or not model.get(key):
            return False, f"model.{key} is required"
    if 'num_threads' in model and (not isinstance(model['num_threads'], int) or model['num_threads'] <= 0):
        return False, "model.num_threads must be a positive integer"
    if 'input_std' in model and (not _is_number(model['input_std']) or model['input_std'] == 0):
        return False, "model.input_std must be a non-zero number"

    # Detection thresholds
    detection = config.get('detection') or {}
    for key in ('confidence_threshold', 'iou_threshold'):
        if key in detection:
            value = detection[key]
            if not _is_number(value) or not (0 <= value <= 1):
                return False, f"detection.{key} must be between 0 and 1"

    # Temporal confirmation
    confirmation = config.get('confirmation') or {}
    if 'detection_threshold' in confirmation:
        dt = confirmation['detection_threshold']
        if not isinstance(dt, int) or isinstance(dt, bool) or dt <= 0:
            return False, "confirmation.detection_threshold must be a positive integer"
    if 'time_window_ms' in confirmation:
        tw = confirmation['time_window_ms']
        if not _is_number(tw) or tw < 0:
            return False, "confirmation.time_window_ms must be a non-negative number"

    # Alerts
    alerts = config.get('alerts') or {}
    backend = alerts.get('backend', 'command')
    if backend not in ('command', 'log'):
        return False, "alerts.backend must be one of: command, log"
    if backend == 'command':
        command = alerts.get('player_command')
        if not isinstance(command, list) or not command or not all(isinstance(c, str) for c in command):
            return False, "alerts.player_command must be a non-empty list of strings"
    sounds = alerts.get('sounds')
    if sounds is not None and (
        not isinstance(sounds, dict)
        or not all(isinstance(k, str) and isinstance(v, str) for k, v in sounds.items())
    ):
        return False, "alerts.sounds must map class names to sound file names"

    # Logging
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def _parse_device(value: str):
    return int(value) if value.isdigit() else value


def main(argv: Optional[List[str]] = None) -> int:
    """Main application function."""
    parser = argparse.ArgumentParser(description='Driver distraction monitor')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--source', type=str, default=None,
                        help='Camera index or video file (overrides camera.device_id)')
    parser.add_argument('--max-frames', type=int, default=None,
                        help='Stop after this many processed frames')
    args = parser.parse_args(argv)

    raw_config = load_config(args.config)
    if args.source is not None:
        raw_config.setdefault('camera', {})['device_id'] = _parse_device(args.source)

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        return 1

    config = Config.from_dict(raw_config)
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting distraction monitor")

    try:
        detector = create_detector_from_config(config)
    except LabelLoadError as e:
        logging.error(f"Cannot start without labels: {e}")
        return 1
    except (ImportError, ValueError, OSError, RuntimeError) as e:
        logging.error(f"Failed to initialize inference engine: {e}")
        return 1

    if not detector.setup():
        detector.close()
        logging.error("Detector is not ready; check the model's input/output shapes")
        return 1

    engine = create_engine_from_config(config, detector, max_frames=args.max_frames)

    def _handle_signal(signum, frame):
        logging.info(f"Received signal {signum}, stopping")
        engine.stop()

    signal.signal(signal.SIGTERM, _handle_signal)

    engine.run()
    if engine.error is not None:
        logging.error(f"Pipeline ended with an error: {engine.error}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
