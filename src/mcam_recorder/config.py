"""
Configuration management for the multi-camera recorder.
"""

import os
import yaml
import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunConfig:
    """Immutable settings for one recording run."""
    max_cam: int = 10
    output_dir: str = "./output"
    width: float = 640.0
    height: float = 480.0
    fps: float = 30.0
    enable_overlay: bool = True
    snapshot_dir: str = "snapshots"
    window_name: str = "Multi-Camera Viewer"
    key_wait_ms: int = 1
    fourcc: str = "mp4v"
    stats_interval: float = 30.0
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        if self.max_cam <= 0:
            raise ValueError("number of camera must be greater than zero")
        if self.width <= 0:
            raise ValueError("width must be greater than zero")
        if self.height <= 0:
            raise ValueError("height must be greater than zero")
        if self.fps <= 0:
            raise ValueError("fps must be greater than zero")
        if self.key_wait_ms <= 0:
            raise ValueError("key_wait_ms must be greater than zero")
        if len(self.fourcc) != 4:
            raise ValueError(f"fourcc must be four characters, got {self.fourcc!r}")

    @property
    def frame_size(self) -> tuple:
        """Cell size as (width, height) in whole pixels."""
        return int(self.width), int(self.height)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RunConfig':
        """Build a configuration from a mapping of field names."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, config_path: str) -> 'RunConfig':
        """Load configuration from YAML file."""
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"{config_path}: expected a mapping at top level")

        return cls.from_dict(data)

    def with_overrides(self, **overrides) -> 'RunConfig':
        """Return a copy with the given non-None fields replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def to_yaml(self, output_path: str) -> None:
        """Save configuration to YAML file."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}

        with open(output_path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Configuration saved to {output_path}")


def load_config(config_path: Optional[str] = None) -> RunConfig:
    """
    Load run configuration.

    Reads config_path when given, otherwise returns the defaults.
    """
    if config_path:
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        logger.info(f"Loading configuration from {config_path}")
        return RunConfig.from_yaml(config_path)

    logger.debug("No configuration file given, using defaults")
    return RunConfig()
