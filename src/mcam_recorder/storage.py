"""
Output locations for recordings and snapshots.
"""

import time
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

import cv2

logger = logging.getLogger(__name__)


def ensure_directory(path: Path) -> Path:
    """Create path (and parents) if missing."""
    path.mkdir(parents=True, exist_ok=True)
    return path


class StorageManager:
    """Derives output filenames and writes snapshot images."""

    def __init__(self, output_dir: str, snapshot_dir: str = "snapshots",
                 log: Optional[logging.Logger] = None):
        self.output_dir = Path(output_dir)
        self.snapshot_dir = Path(snapshot_dir)
        self.logger = log or logger

    def recording_path(self, device_id: int, timestamp: Optional[float] = None) -> Path:
        """Path of the video file for one camera; creates the output directory."""
        ensure_directory(self.output_dir)
        unix = int(timestamp if timestamp is not None else time.time())
        return self.output_dir / f"camera_{device_id}_{unix}.mp4"

    def snapshot_path(self, device_id: int, timestamp: Optional[float] = None) -> Path:
        """Path of a snapshot image for one camera; creates the snapshot directory."""
        ensure_directory(self.snapshot_dir)
        unix = int(timestamp if timestamp is not None else time.time())
        return self.snapshot_dir / f"snapshot_cam{device_id}_{unix}.jpg"

    def save_snapshot(self, image, device_id: int) -> Optional[Path]:
        """
        Encode image as JPEG into the snapshot directory.

        Returns:
            The written path, or None if the write failed.
        """
        try:
            filename = self.snapshot_path(device_id)
            ok = cv2.imwrite(str(filename), image)
        except (OSError, cv2.error) as e:
            self.logger.error(f"Failed to save snapshot for camera {device_id}: {e}")
            return None

        if not ok:
            self.logger.error(f"Failed to save snapshot for camera {device_id}.")
            return None

        self.logger.info(f"Saved snapshot: {filename}")
        return filename

    def get_recording_stats(self, filenames: Iterable[str]) -> Dict:
        """Get size statistics for the given recording files."""
        stats = {
            'total_files': 0,
            'total_size_mb': 0.0,
            'files': {}
        }

        for name in filenames:
            path = Path(name)
            if not path.exists():
                continue
            size_mb = path.stat().st_size / (1024 ** 2)
            stats['files'][path.name] = size_mb
            stats['total_files'] += 1
            stats['total_size_mb'] += size_mb

        return stats
