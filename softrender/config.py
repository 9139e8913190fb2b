from dataclasses import dataclass
from typing import Optional

from .pipeline import MODE_NAMES, RENDER_FLAT


@dataclass(frozen=True)
class RenderConfig:
    """Output settings for one run of the command line tool."""
    width: int = 800
    height: int = 600
    mode: int = RENDER_FLAT
    cull_backfaces: bool = True
    output: str = "output.ppm"
    mesh_path: Optional[str] = None
    scene_path: Optional[str] = None
    show: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"image size must be positive, got {self.width}x{self.height}")
        if self.mode not in MODE_NAMES.values():
            raise ValueError(f"unknown render mode {self.mode!r}")
