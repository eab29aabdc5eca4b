"""
Preview window and key polling.
"""

import logging
from typing import Optional

import cv2

logger = logging.getLogger(__name__)


class Display:
    """OpenCV HighGUI window showing the preview image."""

    def __init__(self, window_name: str, log: Optional[logging.Logger] = None):
        self.window_name = window_name
        self.logger = log or logger
        self._open = False

    def open(self) -> 'Display':
        cv2.namedWindow(self.window_name, cv2.WINDOW_AUTOSIZE)
        self._open = True
        return self

    def show(self, image) -> bool:
        """Render image; failures are logged and reported as False."""
        try:
            cv2.imshow(self.window_name, image)
        except cv2.error as e:
            self.logger.error(f"Failed to display window: {e}.")
            return False
        return True

    def poll_key(self, wait_ms: int = 1) -> int:
        """Wait up to wait_ms for a key; -1 when none was pressed."""
        key = cv2.waitKey(wait_ms)
        if key == -1:
            return -1
        return key & 0xFF

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        try:
            cv2.destroyWindow(self.window_name)
        except cv2.error as e:
            self.logger.error(f"Failed to close window: {e}.")

    def __enter__(self) -> 'Display':
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
