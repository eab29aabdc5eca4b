"""
Release of capture handles, writers and frame buffers.

Sessions are owned by a SessionSet used as a context manager, so every
handle opened during setup is released once on any exit path. Buffers
created inside one loop iteration live in a transient_buffers() scope
and are dropped when that iteration ends.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

import cv2

logger = logging.getLogger(__name__)


def _release(handle, what: str, device_id: int, log: logging.Logger) -> None:
    if handle is None:
        return
    try:
        handle.release()
    except (cv2.error, OSError, RuntimeError) as e:
        log.error(f"Failed to release {what} for camera {device_id}: {e}.")


def close_session(session, log: Optional[logging.Logger] = None) -> None:
    """
    Release capture, writer and frame buffer of one session.

    Safe to call more than once; release errors are logged, not raised.
    """
    log = log or logger
    if session.closed:
        return

    _release(session.capture, "capture", session.device_id, log)
    _release(session.writer, "writer", session.device_id, log)
    session.capture = None
    session.writer = None
    session.frame = None
    session.closed = True
    log.debug(f"Closed camera {session.device_id}")


class SessionSet:
    """Ordered, fixed collection of open camera sessions."""

    def __init__(self, sessions: Sequence, log: Optional[logging.Logger] = None):
        self._sessions = tuple(sessions)
        self.logger = log or logger

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self):
        return iter(self._sessions)

    def __getitem__(self, index):
        return self._sessions[index]

    @property
    def device_ids(self) -> List[int]:
        return [s.device_id for s in self._sessions]

    @property
    def filenames(self) -> List[str]:
        return [s.filename for s in self._sessions]

    def close(self) -> None:
        """Close every session; already-closed sessions are skipped."""
        for session in self._sessions:
            close_session(session, self.logger)

    def __enter__(self) -> 'SessionSet':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class IterationBuffers:
    """Images created during one loop iteration."""

    def __init__(self):
        self.tiles: List = []
        self.output = None

    def release(self) -> None:
        self.tiles.clear()
        self.output = None

    @property
    def released(self) -> bool:
        return not self.tiles and self.output is None


@contextmanager
def transient_buffers() -> Iterator[IterationBuffers]:
    """Yield the buffers of one iteration; released when the block exits."""
    buffers = IterationBuffers()
    try:
        yield buffers
    finally:
        buffers.release()
