"""
Keyboard-driven view, rotation, mirror and snapshot control.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np

from .config import RunConfig
from .grid import tile_grid
from .pipeline import add_overlay
from .storage import StorageManager

logger = logging.getLogger(__name__)

ESC = 27


class Action(Enum):
    NONE = "none"
    EXIT = "exit"
    SELECT_VIEW = "select_view"
    SNAPSHOT = "snapshot"
    ROTATE = "rotate"
    MIRROR = "mirror"


def decode_key(key: int) -> Action:
    """Map a polled key code to the action it triggers."""
    if key == ESC:
        return Action.EXIT
    if ord('0') <= key <= ord('9'):
        return Action.SELECT_VIEW
    if key in (ord('s'), ord('S')):
        return Action.SNAPSHOT
    if key in (ord('r'), ord('R')):
        return Action.ROTATE
    if key in (ord('m'), ord('M')):
        return Action.MIRROR
    return Action.NONE


@dataclass(frozen=True)
class ViewState:
    """Display mode: the grid when index is None, otherwise one camera."""
    index: Optional[int] = None

    @classmethod
    def grid(cls) -> 'ViewState':
        return cls()

    @classmethod
    def for_digit(cls, digit: int, session_count: int) -> 'ViewState':
        """Digit d selects camera position d-1; anything out of range is the grid."""
        index = digit - 1
        if 0 <= index < session_count:
            return cls(index)
        return cls.grid()

    @property
    def is_grid(self) -> bool:
        return self.index is None

    def __str__(self) -> str:
        return "Grid" if self.is_grid else f"Single({self.index})"


class Controller:
    """Applies key commands to the view state and to every session."""

    def __init__(self, sessions: Sequence, config: RunConfig,
                 storage: Optional[StorageManager] = None,
                 log: Optional[logging.Logger] = None):
        self.sessions = sessions
        self.config = config
        self.logger = log or logger
        self.storage = storage or StorageManager(config.output_dir, config.snapshot_dir, self.logger)
        self.view = ViewState.grid()

    def compose(self, tiles: Sequence[np.ndarray]) -> np.ndarray:
        """Image to display for the current view."""
        if not self.view.is_grid:
            return tiles[self.view.index].copy()
        width, height = self.config.frame_size
        return tile_grid(tiles, width, height, self.logger)

    def handle_key(self, key: int, tiles: Sequence[np.ndarray]) -> bool:
        """
        Apply one polled key.

        Returns:
            False when the loop must stop, True otherwise.
        """
        action = decode_key(key)

        if action is Action.EXIT:
            return False
        if action is Action.SELECT_VIEW:
            self.select_view(key - ord('0'))
        elif action is Action.SNAPSHOT:
            self.snapshot(tiles)
        elif action is Action.ROTATE:
            self.toggle_rotation()
        elif action is Action.MIRROR:
            self.toggle_mirror()

        return True

    def select_view(self, digit: int) -> ViewState:
        view = ViewState.for_digit(digit, len(self.sessions))
        if view != self.view:
            self.logger.info(f"View: {view}.")
        self.view = view
        return view

    def snapshot(self, tiles: Sequence[np.ndarray]) -> List[Path]:
        """
        Save the current tile of the selected camera, or of every camera in grid view.

        The overlay is drawn again onto the snapshot even when the live tile
        already carries one.
        """
        if self.view.is_grid:
            indices = range(len(self.sessions))
        else:
            indices = [self.view.index]

        saved = []
        for i in indices:
            session = self.sessions[i]
            # Saved image keeps the current rotation and mirror.
            image = tiles[i].copy()
            if self.config.enable_overlay:
                add_overlay(image, session.device_id, session.fps, self.logger)
            path = self.storage.save_snapshot(image, session.device_id)
            if path is not None:
                saved.append(path)
        return saved

    def toggle_rotation(self) -> None:
        for session in self.sessions:
            session.rotation = (session.rotation + 180) % 360
            self.logger.info(f"Cam {session.device_id} rotation: {session.rotation}°.")

    def toggle_mirror(self) -> None:
        for session in self.sessions:
            session.mirror = not session.mirror
            state = "ON" if session.mirror else "OFF"
            self.logger.info(f"Cam {session.device_id} mirror: {state}.")
