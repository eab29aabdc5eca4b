"""
Per-iteration frame processing: acquire, transform, overlay, record.
"""

import logging
from datetime import datetime
from typing import List, Optional

import cv2
import numpy as np

from .config import RunConfig

logger = logging.getLogger(__name__)

OVERLAY_ORIGIN = (10, 20)
OVERLAY_FONT = cv2.FONT_HERSHEY_PLAIN
OVERLAY_SCALE = 1.1
OVERLAY_COLOR = (0, 0, 255)  # BGR red
OVERLAY_THICKNESS = 2


def blank_frame(width: int, height: int) -> np.ndarray:
    """Black 3-channel image of the given size."""
    return np.zeros((height, width, 3), dtype=np.uint8)


def acquire(session, log: Optional[logging.Logger] = None) -> Optional[np.ndarray]:
    """
    Read the next frame into the session's buffer.

    Returns:
        The frame, or None when the read failed or came back empty.
    """
    log = log or logger
    try:
        ok, frame = session.capture.read(session.frame)
    except (cv2.error, OSError) as e:
        log.debug(f"Read error on camera {session.device_id}: {e}")
        return None

    if not ok or frame is None or frame.size == 0:
        return None

    session.frame = frame
    return frame


def transform_frame(frame: np.ndarray, rotation: int, mirror: bool,
                    frame_size: Optional[tuple] = None) -> np.ndarray:
    """
    Return a new image with rotation then mirroring applied.

    The input is never modified. When frame_size is given, frames of a
    different size are scaled to it first.
    """
    if frame_size is not None and (frame.shape[1], frame.shape[0]) != tuple(frame_size):
        processed = cv2.resize(frame, tuple(frame_size), interpolation=cv2.INTER_AREA)
    else:
        processed = frame.copy()

    if rotation == 180:
        processed = cv2.flip(processed, -1)

    if mirror:
        processed = cv2.flip(processed, 1)

    return processed


def overlay_text(device_id: int, fps: float, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    stamp = now.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
    return f"Cam {device_id} | {stamp} | {fps:.2f} FPS"


def add_overlay(image: np.ndarray, device_id: int, fps: float,
                log: Optional[logging.Logger] = None) -> str:
    """Burn the camera id, current time and fps into image in place."""
    text = overlay_text(device_id, fps)
    try:
        cv2.putText(image, text, OVERLAY_ORIGIN, OVERLAY_FONT, OVERLAY_SCALE,
                    OVERLAY_COLOR, OVERLAY_THICKNESS)
    except cv2.error as e:
        (log or logger).error(f"Error adding overlay: {e}.")
    return text


def record(session, image: np.ndarray, log: Optional[logging.Logger] = None) -> bool:
    """Append image to the session's recording. Failures are logged only."""
    try:
        session.writer.write(image)
    except (cv2.error, OSError) as e:
        (log or logger).error(f"Failed to write camera {session.device_id}: {e}.")
        return False
    return True


def process_session(session, config: RunConfig,
                    log: Optional[logging.Logger] = None) -> np.ndarray:
    """
    Run one iteration for one session and return its tile.

    A failed read yields a blank placeholder that is shown but not recorded.
    """
    log = log or logger
    width, height = config.frame_size

    frame = acquire(session, log)
    if frame is None:
        if session.failed_reads == 0:
            log.warning(f"Camera {session.device_id} returned no frame, showing placeholder.")
        session.failed_reads += 1
        return blank_frame(width, height)

    if session.failed_reads:
        log.info(f"Camera {session.device_id} recovered after {session.failed_reads} empty read(s).")
        session.failed_reads = 0

    tile = transform_frame(frame, session.rotation, session.mirror, (width, height))
    if config.enable_overlay:
        add_overlay(tile, session.device_id, session.fps, log)

    record(session, tile, log)
    return tile


def process_all(sessions, config: RunConfig,
                log: Optional[logging.Logger] = None) -> List[np.ndarray]:
    """Process every session in order; one tile per session."""
    return [process_session(session, config, log) for session in sessions]
