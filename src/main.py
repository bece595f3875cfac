"""
Multi-camera object detection.

Opens every configured camera, runs each frame through an SSD object detector
(TensorFlow SavedModel), logs detections and shows annotated frames in a
window and/or the web preview.

Usage:
    python src/main.py --config config/config.yaml --display

Arguments:
    --config: Path to configuration file
    --display: Show annotated frames in a desktop window
    --web: Serve the live preview (FastAPI) regardless of config
    --log-level: Override the configured log level
"""

import os
import sys
import argparse
import logging
import signal
import threading
from typing import Dict, Any, Tuple, Optional

import yaml
import uvicorn

from codec import OpenCVFrameCodec
from display import create_display
from errors import ModelLoadError
from inference.labels import LabelTable
from models.config import Config
from ops.logging import VALID_LEVELS, setup_logging
from pipeline import WorkerPool
from runtime.context import RuntimeContext
from web.app import create_app
from web.state import FrameStore


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
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping")
    return data


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `default.yaml` next to config_path (checked in)
    - `config.yaml` next to config_path (local overrides)
    - plus the explicitly provided `--config` path (treated as overrides)

    Exits with status 1 if a file cannot be parsed.
    """
    config_dir = os.path.dirname(config_path)
    try:
        base_path = os.path.join(config_dir, "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            base_cfg = _read_yaml(base_path)

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            local_cfg = _read_yaml(local_overrides_path)

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not one of the files above
        layered = {os.path.abspath(base_path), os.path.abspath(local_overrides_path)}
        if os.path.exists(config_path) and os.path.abspath(config_path) not in layered:
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except (OSError, yaml.YAMLError, ValueError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _validate_stream(index: int, stream: Any) -> Optional[str]:
    where = f"streams[{index}]"
    if not isinstance(stream, dict):
        return f"{where} must be a mapping"

    stream_id = stream.get("id")
    if stream_id is None or not str(stream_id).strip():
        return f"{where}.id is required"

    if "input" not in stream:
        return f"{where}.input is required"
    value = stream["input"]
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        return f"{where}.input must be an integer (device index) or string (path/URL)"
    if isinstance(value, int) and value < 0:
        return f"{where}.input integer must be non-negative"
    if isinstance(value, str) and not value.strip():
        return f"{where}.input must not be empty"

    if stream.get("rtsp_transport", "tcp") not in ("tcp", "udp"):
        return f"{where}.rtsp_transport must be one of: tcp, udp"

    resolution = stream.get("resolution")
    if resolution is not None:
        if not isinstance(resolution, list) or len(resolution) != 2:
            return f"{where}.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in resolution):
            return f"{where}.resolution values must be positive integers"

    fps = stream.get("fps")
    if fps is not None and (not isinstance(fps, int) or fps <= 0):
        return f"{where}.fps must be a positive integer"

    return None


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    # Required top-level sections
    required_sections = ['model', 'streams', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Model
    model = config.get('model') or {}
    if not isinstance(model.get('path'), str) or not model.get('path'):
        return False, "model.path must be a non-empty string"
    tags = model.get('tags', ['serve'])
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        return False, "model.tags must be a list of strings"

    # Streams
    streams = config.get('streams')
    if not isinstance(streams, list) or not streams:
        return False, "streams must be a non-empty list"
    seen = set()
    for i, stream in enumerate(streams):
        error = _validate_stream(i, stream)
        if error:
            return False, error
        stream_id = str(stream['id'])
        if stream_id in seen:
            return False, f"Duplicate stream id: {stream_id}"
        seen.add(stream_id)

    # Worker loop
    worker = config.get('worker', {}) or {}
    if 'max_consecutive_failures' in worker:
        mcf = worker['max_consecutive_failures']
        if not isinstance(mcf, int) or mcf < 0:
            return False, "worker.max_consecutive_failures must be a non-negative integer (0 = unlimited)"
    for key in ('retry_delay', 'stats_log_interval'):
        if key in worker:
            value = worker[key]
            if not isinstance(value, (int, float)) or value < 0:
                return False, f"worker.{key} must be a non-negative number"

    # Display / web
    display = config.get('display', {}) or {}
    if display.get('backend', 'window') not in ('window', 'web', 'none'):
        return False, "display.backend must be one of: window, web, none"
    web = config.get('web', {}) or {}
    if 'port' in web and (not isinstance(web['port'], int) or not 0 < web['port'] < 65536):
        return False, "web.port must be an integer between 1 and 65535"

    # Validate log settings
    if config['log_level'] not in VALID_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LEVELS)}"

    return True, None


def _load_backend(cfg: Config):
    """Load the TensorFlow model; raises ModelLoadError on any failure."""
    # Imported here so the rest of the app (and its tests) work without tensorflow
    from inference.tensorflow_backend import TensorFlowBackend, TensorFlowConfig

    return TensorFlowBackend(TensorFlowConfig.from_model_config(cfg.model))


def _start_web(app_cfg: Config, store: FrameStore, pool: WorkerPool) -> threading.Thread:
    def run_web_app():
        uvicorn.run(
            create_app(store, pool),
            host=app_cfg.web.host,
            port=app_cfg.web.port,
            log_level="warning",
        )

    web_thread = threading.Thread(target=run_web_app, name="web", daemon=True)
    web_thread.start()
    logging.info(f"Web preview started on {app_cfg.web.host}:{app_cfg.web.port}")
    return web_thread


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Multi-camera object detection')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--display', action='store_true',
                        help='Show annotated frames in a window')
    parser.add_argument('--web', action='store_true',
                        help='Enable the web preview')
    parser.add_argument('--log-level', type=str, default=None, choices=VALID_LEVELS,
                        help='Override log_level from the config')
    args = parser.parse_args()

    # Load configuration
    config = load_config(args.config)
    if args.log_level:
        config['log_level'] = args.log_level

    # Validate configuration
    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    # Setup logging
    setup_logging(config['log_path'], config['log_level'])

    app_cfg = Config.from_dict(config)
    if args.display:
        app_cfg.display.backend = "window"
    if args.web:
        app_cfg.web.enabled = True

    logging.info(f"Starting object detection on {len(app_cfg.streams)} stream(s)")

    try:
        backend = _load_backend(app_cfg)
    except ModelLoadError as e:
        logging.error(f"Fatal error during load: {e}")
        sys.exit(1)

    frame_store = None
    if app_cfg.web.enabled or app_cfg.display.backend == "web":
        frame_store = FrameStore()

    ctx = RuntimeContext(
        backend=backend,
        codec=OpenCVFrameCodec(),
        labels=LabelTable.coco(),
        display=create_display(app_cfg.display.backend, frame_store),
        worker_config=app_cfg.worker,
        frame_store=frame_store,
    )

    try:
        pool = WorkerPool(app_cfg.video_streams(), ctx)

        if frame_store is not None:
            _start_web(app_cfg, frame_store, pool)

        def handle_signal(signum, _frame):
            logging.info(f"Received signal {signum}, stopping workers")
            pool.stop()

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)

        pool.run()
    finally:
        ctx.close()
        logging.info("Object detection stopped")


if __name__ == "__main__":
    main()
