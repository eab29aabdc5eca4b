"""
Mosaic preview built from one tile per camera.
"""

import logging
from typing import List, Optional, Sequence

import cv2
import numpy as np

from .pipeline import blank_frame

logger = logging.getLogger(__name__)

GRID_ROWS = 2


def grid_columns(n: int) -> int:
    """Columns needed to lay n tiles out in two rows."""
    return (n + 1) // 2


def grid_shape(n: int, width: int, height: int) -> tuple:
    """(height, width) of the mosaic for n tiles of width x height."""
    if n == 0:
        return height, width
    return GRID_ROWS * height, grid_columns(n) * width


def tile_grid(frames: Sequence[np.ndarray], width: int, height: int,
              log: Optional[logging.Logger] = None) -> np.ndarray:
    """
    Arrange frames in a fixed two-row grid.

    Cell (r, c) holds frames[r * cols + c]; cells past the last frame are
    blank. Every frame must be width x height.
    """
    log = log or logger
    n = len(frames)
    if n == 0:
        return blank_frame(width, height)

    cols = grid_columns(n)
    rows: List[np.ndarray] = []
    for r in range(GRID_ROWS):
        cells = []
        for c in range(cols):
            idx = r * cols + c
            cells.append(frames[idx] if idx < n else blank_frame(width, height))
        rows.append(_concat(cells, cv2.hconcat, "horizontal", log))

    return _concat(rows, cv2.vconcat, "vertical", log)


def _concat(images: List[np.ndarray], join, direction: str,
            log: logging.Logger) -> np.ndarray:
    result = images[0].copy()
    for image in images[1:]:
        try:
            result = join([result, image])
        except cv2.error as e:
            log.error(f"Error adding {direction} tile: {e}.")
    return result
