"""
Camera sessions: one capture handle, one writer and one frame buffer per device.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

import cv2
import numpy as np

from .camera import default_capture_factory
from .config import RunConfig
from .errors import DeviceUnavailable, NoCamerasAvailable, WriterInitFailed
from .lifecycle import SessionSet, close_session
from .storage import StorageManager

logger = logging.getLogger(__name__)

__all__ = [
    "CameraSession",
    "SessionManager",
    "close_session",
    "default_writer_factory",
]


def default_writer_factory(filename: str, fourcc: str, fps: float, frame_size: tuple):
    """Open an OpenCV video writer for colour frames."""
    return cv2.VideoWriter(filename, cv2.VideoWriter_fourcc(*fourcc), fps, frame_size, True)


@dataclass
class CameraSession:
    """Handles and transform flags for one recording camera."""
    device_id: int
    capture: Any
    writer: Any
    frame: Optional[np.ndarray]
    fps: float
    filename: str
    rotation: int = 0
    mirror: bool = False
    failed_reads: int = 0
    closed: bool = False


class SessionManager:
    """Opens recording sessions for detected devices."""

    def __init__(self, config: RunConfig,
                 capture_factory: Optional[Callable] = None,
                 writer_factory: Optional[Callable] = None,
                 storage: Optional[StorageManager] = None,
                 log: Optional[logging.Logger] = None):
        self.config = config
        self.capture_factory = capture_factory or default_capture_factory
        self.writer_factory = writer_factory or default_writer_factory
        self.logger = log or logger
        self.storage = storage or StorageManager(config.output_dir, config.snapshot_dir, self.logger)

    def open_session(self, device_id: int) -> CameraSession:
        """
        Open capture and writer for one device.

        Raises:
            DeviceUnavailable: the device could not be opened.
            WriterInitFailed: the writer could not be opened; the capture
                handle has been released already.
        """
        width, height = self.config.frame_size

        try:
            capture = self.capture_factory(device_id)
        except cv2.error as e:
            raise DeviceUnavailable(device_id) from e

        if capture is None or not capture.isOpened():
            if capture is not None:
                capture.release()
            raise DeviceUnavailable(device_id)

        try:
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
            writer, filename = self._open_writer(device_id, (width, height))
        except BaseException:
            capture.release()
            raise

        return CameraSession(
            device_id=device_id,
            capture=capture,
            writer=writer,
            frame=np.zeros((height, width, 3), dtype=np.uint8),
            fps=self.config.fps,
            filename=filename,
        )

    def _open_writer(self, device_id: int, frame_size: tuple):
        filename = ""
        try:
            filename = str(self.storage.recording_path(device_id))
            writer = self.writer_factory(filename, self.config.fourcc,
                                         self.config.fps, frame_size)
        except (OSError, cv2.error) as e:
            raise WriterInitFailed(device_id, filename) from e

        if writer is None or not writer.isOpened():
            if writer is not None:
                writer.release()
            raise WriterInitFailed(device_id, filename)

        return writer, filename

    def open_all(self, device_ids: Iterable[int]) -> SessionSet:
        """
        Open a session for each id; failures are logged and skipped.

        Any other error closes the sessions opened so far and propagates.

        Raises:
            NoCamerasAvailable: no session could be opened.
        """
        sessions = []
        try:
            for device_id in device_ids:
                try:
                    session = self.open_session(device_id)
                except (DeviceUnavailable, WriterInitFailed) as e:
                    self.logger.error(str(e))
                    continue

                self.logger.info(f"Opened cam {device_id} will write to {session.filename}.")
                sessions.append(session)
        except BaseException:
            for session in sessions:
                close_session(session, self.logger)
            raise

        if not sessions:
            raise NoCamerasAvailable("No cameras opened.")

        return SessionSet(sessions, self.logger)
