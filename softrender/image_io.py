import logging
from pathlib import Path

import numpy as np
from PIL import Image

from .framebuffer import Framebuffer

logger = logging.getLogger(__name__)


def upright_rgb(fb: Framebuffer) -> np.ndarray:
    """Color grid with the top row first, shape (H,W,3), dtype=uint8."""
    return np.ascontiguousarray(np.flipud(fb.color))


def to_image(fb: Framebuffer) -> Image.Image:
    return Image.fromarray(upright_rgb(fb))


def save_ppm(fb: Framebuffer, path):
    """
    Write a plain-text (P3) PPM.

    Rows go from the highest framebuffer y down to y=0, so the file
    shows the scene upright.
    """
    with open(path, "w", encoding="ascii") as f:
        f.write(f"P3\n{fb.width} {fb.height}\n255\n")
        for row in upright_rgb(fb):
            f.write(" ".join(str(int(c)) for c in row.reshape(-1)))
            f.write("\n")


def save_image(fb: Framebuffer, path):
    """Save `.ppm` as plain-text PPM, anything else through Pillow."""
    path = Path(path)
    if path.suffix.lower() == ".ppm":
        save_ppm(fb, path)
    else:
        to_image(fb).save(path)
    logger.info("Saved %dx%d image to %s", fb.width, fb.height, path)
