"""
Stop-line monitor entrypoint.

Samples a live video feed, classifies frames with an external vision service,
and records evidence when an object crosses the stop line without stopping
long enough. Serves a small HTTP API with live status and the event log.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --no-autostart: Serve the API without starting monitoring
    --port: Override web.port
"""

import os
import sys
import argparse
import asyncio
import logging
from typing import Dict, Any, Tuple, Optional
from urllib.parse import urlparse

import yaml
import uvicorn

from models.config import Config
from ops.logging import setup_logging
from runtime.context import build_context
from runtime.session import MonitoringSession, MonitoringStartError
from web.app import create_app

_LOOPBACK_HOSTS = ("localhost", "127.0.0.1", "::1")


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

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def check_endpoint_secure(endpoint: str) -> Optional[str]:
    """
    Frames leave the machine, so the classifier must be reached over HTTPS
    unless it runs on the loopback interface.

    Returns an error message, or None if the endpoint is acceptable.
    """
    parsed = urlparse(endpoint)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return f"classifier.endpoint is not a valid http(s) URL: {endpoint!r}"
    if parsed.scheme == "http" and parsed.hostname not in _LOOPBACK_HOSTS:
        return "classifier.endpoint must use https unless the service runs on localhost"
    return None


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
    required_sections = ['camera', 'classifier', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera', {}) or {}
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if not isinstance(camera['device_id'], (int, str)) or isinstance(camera['device_id'], bool):
        return False, "camera.device_id must be an integer (index) or string (URL or file)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"
    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"
    if camera.get('rotate', 0) not in (0, 90, 180, 270, None):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    # Sampling
    sampling = config.get('sampling', {}) or {}
    if 'interval_s' in sampling and not _is_positive_number(sampling['interval_s']):
        return False, "sampling.interval_s must be a positive number"
    if 'resolution' in sampling:
        res = sampling['resolution']
        if not isinstance(res, list) or len(res) != 2:
            return False, "sampling.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in res):
            return False, "sampling.resolution values must be positive integers"
    if 'jpeg_quality' in sampling:
        q = sampling['jpeg_quality']
        if not isinstance(q, int) or not (1 <= q <= 100):
            return False, "sampling.jpeg_quality must be an integer between 1 and 100"

    # Classifier
    classifier = config.get('classifier', {}) or {}
    endpoint = classifier.get('endpoint')
    if not isinstance(endpoint, str) or not endpoint:
        return False, "Missing classifier.endpoint"
    endpoint_error = check_endpoint_secure(endpoint)
    if endpoint_error:
        return False, endpoint_error
    if 'timeout_s' in classifier and not _is_positive_number(classifier['timeout_s']):
        return False, "classifier.timeout_s must be a positive number"

    # Detection rule
    detection = config.get('detection', {}) or {}
    if 'stop_threshold_s' in detection:
        threshold = detection['stop_threshold_s']
        if not isinstance(threshold, int) or isinstance(threshold, bool) or threshold <= 0:
            return False, "detection.stop_threshold_s must be a positive integer"

    # Violation timing
    violation = config.get('violation', {}) or {}
    for key in ('settle_delay_s', 'alert_duration_s'):
        if key in violation:
            value = violation[key]
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
                return False, f"violation.{key} must be a non-negative number"

    # Evidence
    evidence = config.get('evidence', {}) or {}
    if 'max_clip_seconds' in evidence and not _is_positive_number(evidence['max_clip_seconds']):
        return False, "evidence.max_clip_seconds must be a positive number"
    if 'fourcc' in evidence and (not isinstance(evidence['fourcc'], str) or len(evidence['fourcc']) != 4):
        return False, "evidence.fourcc must be a 4-character codec code"

    # Log settings
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


async def run(config: Config, autostart: bool = True) -> int:
    """Run the monitor and API server in one event loop until interrupted."""
    session = MonitoringSession(build_context(config))

    if autostart:
        try:
            await session.start()
        except MonitoringStartError as e:
            logging.error(f"Cannot start monitoring: {e}")
            await session.aclose()
            return 1

    server = uvicorn.Server(
        uvicorn.Config(
            create_app(session),
            host=config.web.host,
            port=config.web.port,
            log_level="info",
        )
    )
    logging.info(f"Web interface starting on {config.web.host}:{config.web.port}")

    try:
        await server.serve()
    finally:
        await session.aclose()
        logging.info("Stop-line monitor stopped")
    return 0


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Stop-Line Monitor')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--no-autostart', action='store_true',
                        help='Serve the API without starting monitoring')
    parser.add_argument('--port', type=int, default=None,
                        help='Override web.port')
    args = parser.parse_args()

    config = load_config(args.config)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])

    typed = Config.from_dict(config)
    if args.port is not None:
        typed.web.port = args.port

    logging.info("Starting Stop-Line Monitor")
    try:
        exit_code = asyncio.run(run(typed, autostart=not args.no_autostart))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
