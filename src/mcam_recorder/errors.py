"""
Error types raised while setting up camera sessions.
"""


class RecorderError(Exception):
    """Base class for recorder errors."""


class DeviceUnavailable(RecorderError):
    """Capture device could not be opened or is not ready."""

    def __init__(self, device_id: int):
        super().__init__(f"could not open camera {device_id}")
        self.device_id = device_id


class WriterInitFailed(RecorderError):
    """Recording writer could not be opened for a session."""

    def __init__(self, device_id: int, filename: str):
        super().__init__(f"could not open writer for camera {device_id}: {filename}")
        self.device_id = device_id
        self.filename = filename


class NoCamerasAvailable(RecorderError):
    """None of the candidate devices could be opened."""
