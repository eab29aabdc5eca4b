"""
Camera detection utilities.
"""

import logging
from typing import Callable, List, Optional

import cv2

logger = logging.getLogger(__name__)


def default_capture_factory(device_id: int):
    """Open an OpenCV capture handle for a device index."""
    return cv2.VideoCapture(device_id)


class CameraDetector:
    """Detects capture devices by probing device indices in order."""

    def __init__(self, capture_factory: Optional[Callable] = None,
                 log: Optional[logging.Logger] = None):
        self.capture_factory = capture_factory or default_capture_factory
        self.logger = log or logger

    def detect_cameras(self, max_cam: int) -> List[int]:
        """
        Probe device ids 0..max_cam-1.

        Returns:
            Ids whose capture handle reported opened, in probe order.
        """
        devices = []

        for device_id in range(max_cam):
            try:
                capture = self.capture_factory(device_id)
            except cv2.error as e:
                self.logger.debug(f"Probe of camera {device_id} failed: {e}")
                continue

            try:
                if capture.isOpened():
                    devices.append(device_id)
                    self.logger.debug(f"Camera {device_id} responded to probe")
            finally:
                self._release(capture, device_id)

        return devices

    def _release(self, capture, device_id: int) -> None:
        try:
            capture.release()
        except cv2.error as e:
            self.logger.debug(f"Error releasing probe for camera {device_id}: {e}")


def detect_video_devices(max_cam: int, capture_factory: Optional[Callable] = None) -> List[int]:
    """Convenience wrapper around CameraDetector.detect_cameras."""
    return CameraDetector(capture_factory).detect_cameras(max_cam)
