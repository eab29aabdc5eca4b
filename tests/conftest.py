import os
import sys

import cv2
import numpy as np
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from mcam_recorder.config import RunConfig  # noqa: E402

WIDTH = 64
HEIGHT = 48
ESC = 27


def solid_frame(value, width=WIDTH, height=HEIGHT):
    return np.full((height, width, 3), value, dtype=np.uint8)


class FakeCapture:
    """Stands in for cv2.VideoCapture."""

    def __init__(self, device_id, opened=True, fail_reads=False, frame=None):
        self.device_id = device_id
        self.opened = opened
        self.fail_reads = fail_reads
        self.frame = frame
        self.props = {}
        self.reads = 0
        self.released = 0

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def read(self, image=None):
        self.reads += 1
        if self.fail_reads:
            return False, None
        if self.frame is not None:
            return True, self.frame.copy()
        return True, solid_frame(self.device_id * 10 + 1)

    def release(self):
        self.released += 1


class FakeWriter:
    """Stands in for cv2.VideoWriter."""

    def __init__(self, filename, fourcc, fps, frame_size, opened=True, fail_writes=False):
        self.filename = filename
        self.fourcc = fourcc
        self.fps = fps
        self.frame_size = frame_size
        self.opened = opened
        self.fail_writes = fail_writes
        self.frames = []
        self.released = 0

    def isOpened(self):
        return self.opened

    def write(self, image):
        if self.fail_writes:
            raise cv2.error("write failed")
        self.frames.append(image.copy())

    def release(self):
        self.released += 1


class FakeDisplay:
    """Stands in for the HighGUI window; replays a list of keys, then ESC."""

    def __init__(self, window_name, log=None, keys=(), fail_on_show=None):
        self.window_name = window_name
        self.keys = list(keys)
        self.fail_on_show = fail_on_show
        self.shown = []
        self.opened = False
        self.closed = False

    def show(self, image):
        if self.fail_on_show is not None and len(self.shown) == self.fail_on_show:
            raise RuntimeError("display exploded")
        self.shown.append(image.shape)
        return True

    def poll_key(self, wait_ms=1):
        if self.keys:
            key = self.keys.pop(0)
            return ord(key) if isinstance(key, str) else key
        return ESC

    def __enter__(self):
        self.opened = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True
        return False


class Hardware:
    """Factories for fake captures and writers, remembering what they built."""

    def __init__(self, available=(0, 1, 2), failing_reads=(), failing_writers=(),
                 failing_writes=()):
        self.available = set(available)
        self.failing_reads = set(failing_reads)
        self.failing_writers = set(failing_writers)
        self.failing_writes = set(failing_writes)
        self.captures = []
        self.writers = []

    def capture_factory(self, device_id):
        capture = FakeCapture(device_id,
                              opened=device_id in self.available,
                              fail_reads=device_id in self.failing_reads)
        self.captures.append(capture)
        return capture

    def writer_factory(self, filename, fourcc, fps, frame_size):
        device_id = int(os.path.basename(filename).split('_')[1])
        writer = FakeWriter(filename, fourcc, fps, frame_size,
                            opened=device_id not in self.failing_writers,
                            fail_writes=device_id in self.failing_writes)
        self.writers.append(writer)
        return writer

    def captures_for(self, device_id):
        return [c for c in self.captures if c.device_id == device_id]


@pytest.fixture
def config(tmp_path):
    return RunConfig(
        max_cam=4,
        output_dir=str(tmp_path / 'output'),
        snapshot_dir=str(tmp_path / 'snapshots'),
        width=WIDTH,
        height=HEIGHT,
        fps=30,
        enable_overlay=False,
    )


@pytest.fixture
def hardware():
    return Hardware()
