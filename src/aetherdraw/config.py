"""Drawing configuration, loaded from YAML."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

from aetherdraw.engine import COLOR_COOLDOWN_MS, ERASER_WIDTH, PEN_WIDTH, SMOOTHING
from aetherdraw.palette import DEFAULT_COLOR, DEFAULT_PALETTE
from aetherdraw.surface import parse_color

logger = logging.getLogger("aetherdraw.config")


@dataclass
class DrawingConfig:
    # Strokes
    pen_width: float = PEN_WIDTH
    eraser_width: float = ERASER_WIDTH
    smoothing: float = SMOOTHING
    color_cooldown_ms: float = COLOR_COOLDOWN_MS
    mirror: bool = True
    palette: list[str] = field(default_factory=lambda: list(DEFAULT_PALETTE))
    default_color: str = DEFAULT_COLOR

    # Camera / detector
    camera_index: int = 0
    camera_width: int = 1280
    camera_height: int = 720
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5

    def validate(self):
        """Raise ValueError naming the first invalid setting."""
        if self.pen_width <= 0:
            raise ValueError(f"pen_width must be positive, got {self.pen_width}")
        if self.eraser_width <= 0:
            raise ValueError(f"eraser_width must be positive, got {self.eraser_width}")
        if not 0 < self.smoothing <= 1:
            raise ValueError(f"smoothing must be in (0, 1], got {self.smoothing}")
        if self.color_cooldown_ms < 0:
            raise ValueError(f"color_cooldown_ms must be >= 0, got {self.color_cooldown_ms}")
        if not isinstance(self.mirror, bool):
            raise ValueError(f"mirror must be true or false, got {self.mirror!r}")
        if not isinstance(self.palette, (list, tuple)):
            raise ValueError(f"palette must be a list of colors, got {self.palette!r}")
        if not self.palette:
            raise ValueError("palette must contain at least one color")
        for color in [*self.palette, self.default_color]:
            try:
                parse_color(color)
            except ValueError:
                raise ValueError(f"palette: unsupported color {color!r}") from None
        if self.camera_width <= 0 or self.camera_height <= 0:
            raise ValueError(
                f"camera size must be positive, got {self.camera_width}x{self.camera_height}"
            )
        for name in ("min_detection_confidence", "min_tracking_confidence"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"{name} must be in [0, 1], got {value}")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> DrawingConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        config = cls(**{k: v for k, v in data.items() if k in known})
        try:
            config.validate()
        except TypeError as e:
            raise ValueError(f"Invalid config value: {e}") from e
        config.palette = list(config.palette)
        return config


def load_config(path: Optional[str | Path] = None) -> DrawingConfig:
    """Load a config file; defaults when no path is given."""
    if path is None:
        return DrawingConfig()

    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ValueError(f"Cannot read config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must be a mapping, got {type(data).__name__}")

    config = DrawingConfig.from_dict(data)
    logger.info("Loaded config from %s", path)
    return config


def save_config(config: DrawingConfig, path: str | Path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(config.to_dict(), f, sort_keys=False)
