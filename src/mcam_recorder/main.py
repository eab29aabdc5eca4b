"""
Main application entry point for the multi-camera recorder.
"""

import sys
import time
import logging
import argparse
from contextlib import ExitStack
from typing import Callable, List, Optional

import psutil

from . import __version__
from .camera import CameraDetector
from .config import RunConfig, load_config
from .controller import Controller
from .display import Display
from .errors import NoCamerasAvailable
from .lifecycle import SessionSet, transient_buffers
from .pipeline import process_all
from .session import SessionManager
from .storage import StorageManager

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

USAGE_HINT = ("Recording. Press ESC to stop. Press 1-9 to switch, 0 for grid, "
              "s to snapshot, r/R to rotate, m/M to mirror.")


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Attach console (and optional file) handlers to the root logger."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, '_mcam_handler', False):
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._mcam_handler = True
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler._mcam_handler = True
        root_logger.addHandler(file_handler)

    root_logger.setLevel(logging.DEBUG if log_file else log_level)
    logger.debug("Logging initialized")


class MultiCameraRecorderApp:
    """Records every detected camera while showing a live preview."""

    def __init__(self, config: RunConfig,
                 capture_factory: Optional[Callable] = None,
                 writer_factory: Optional[Callable] = None,
                 display_factory: Optional[Callable] = None,
                 log: Optional[logging.Logger] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config
        self.logger = log or logger
        self.clock = clock

        self.detector = CameraDetector(capture_factory, self.logger)
        self.storage = StorageManager(config.output_dir, config.snapshot_dir, self.logger)
        self.session_manager = SessionManager(config, capture_factory, writer_factory,
                                              self.storage, self.logger)
        self.display_factory = display_factory or Display

        self.iterations = 0
        self._process = psutil.Process()
        self._started = 0.0
        self._last_stats = 0.0
        self._last_stats_iterations = 0

    def run(self) -> int:
        """Detect, open, and record until ESC. Returns the process exit status."""
        self.logger.info("Started detecting available cameras.")
        device_ids = self.detector.detect_cameras(self.config.max_cam)
        if not device_ids:
            self.logger.info("No video devices found.")
            return 0
        self.logger.info(f"Found {len(device_ids)} camera(s): {device_ids}.")

        try:
            sessions = self.session_manager.open_all(device_ids)
        except NoCamerasAvailable as e:
            self.logger.info(str(e))
            return 0

        with ExitStack() as stack:
            stack.enter_context(sessions)
            display = stack.enter_context(self.display_factory(self.config.window_name, self.logger))
            controller = Controller(sessions, self.config, self.storage, self.logger)

            self.logger.info(USAGE_HINT)
            self.loop(sessions, display, controller)

        self._log_final_stats(sessions)
        return 0

    def loop(self, sessions: SessionSet, display, controller: Controller) -> None:
        """Run iterations until the controller asks to stop."""
        self._started = self._last_stats = self.clock()
        self._last_stats_iterations = 0

        while self.run_iteration(sessions, display, controller):
            self._maybe_log_stats()

    def run_iteration(self, sessions: SessionSet, display, controller: Controller) -> bool:
        """
        Process all sessions once, show the result and apply one key.

        Returns:
            False once ESC was pressed.
        """
        with transient_buffers() as buffers:
            buffers.tiles.extend(process_all(sessions, self.config, self.logger))
            buffers.output = controller.compose(buffers.tiles)

            display.show(buffers.output)
            key = display.poll_key(self.config.key_wait_ms)
            self.iterations += 1

            return controller.handle_key(key, buffers.tiles)

    def _maybe_log_stats(self) -> None:
        now = self.clock()
        elapsed = now - self._last_stats
        if elapsed < self.config.stats_interval:
            return

        loops = self.iterations - self._last_stats_iterations
        rss_mb = self._process.memory_info().rss / (1024 ** 2)
        self.logger.info(f"Loop rate {loops / elapsed:.1f} it/s, "
                         f"resident memory {rss_mb:.1f} MB.")
        self._last_stats = now
        self._last_stats_iterations = self.iterations

    def _log_final_stats(self, sessions: SessionSet) -> None:
        elapsed = self.clock() - self._started
        stats = self.storage.get_recording_stats(sessions.filenames)
        self.logger.info(f"Stopped after {self.iterations} iteration(s) in {elapsed:.1f}s; "
                         f"{stats['total_files']} recording(s), "
                         f"{stats['total_size_mb']:.1f} MB.")


def _positive(kind: type, name: str) -> Callable[[str], float]:
    def parse(value: str):
        try:
            parsed = kind(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"{name} must be a number, got {value!r}")
        if parsed <= 0:
            raise argparse.ArgumentTypeError(f"{name} must be greater than zero")
        return parsed
    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='mcam-recorder',
                                     description='A CLI for multi camera recordings')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-c', '--config', help='Path to YAML configuration file')
    parser.add_argument('-n', '--max-cam', type=_positive(int, 'number of camera'),
                        help='Maximum number of cameras to scan (default 10)')
    parser.add_argument('-o', '--output-dir', help='Directory to save output (default ./output)')
    parser.add_argument('-W', '--width', type=_positive(float, 'width'),
                        help='Video capture width (default 640)')
    parser.add_argument('-H', '--height', type=_positive(float, 'height'),
                        help='Video capture height (default 480)')
    parser.add_argument('--fps', type=_positive(float, 'fps'),
                        help='Frames per second (default 30)')
    parser.add_argument('--ovl', '--enable-overlay', dest='enable_overlay',
                        action='store_true', default=None, help='Enable overlay text')
    parser.add_argument('--no-overlay', dest='enable_overlay', action='store_false',
                        help='Disable overlay text')
    parser.add_argument('--snapshot-dir', help='Directory to save snapshots (default snapshots)')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        type=str.upper, help='Logging level')
    parser.add_argument('--detect', action='store_true',
                        help='Detect cameras and exit')
    return parser


def resolve_config(args: argparse.Namespace) -> RunConfig:
    """Defaults, then the YAML file, then explicit command line flags."""
    config = load_config(args.config)
    return config.with_overrides(
        max_cam=args.max_cam,
        output_dir=args.output_dir,
        width=args.width,
        height=args.height,
        fps=args.fps,
        enable_overlay=args.enable_overlay,
        snapshot_dir=args.snapshot_dir,
        log_level=args.log_level,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = resolve_config(args)
    except (OSError, ValueError, TypeError) as e:
        setup_logging()
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(config.log_level, config.log_file)

    if args.detect:
        devices = CameraDetector().detect_cameras(config.max_cam)
        print("\n=== Detected Cameras ===")
        for device_id in devices:
            print(f"Camera {device_id}")
        if not devices:
            print("No video devices found.")
        return 0

    app = MultiCameraRecorderApp(config)

    try:
        return app.run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
