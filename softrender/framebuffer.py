import math
from typing import Callable, Iterator, Tuple

import numpy as np
from numba import njit

from .color import BLACK, Color
from .mathlib import Vec3

# Triangles whose doubled signed screen area is below this are skipped.
DEGENERATE_AREA = 0.001


# ============================================================
#  Bresenham line
# ============================================================

def draw_line(x0, y0, x1, y1, set_pixel: Callable, color):
    """
    Bresenham integer line drawing.

    Parameters:
      x0, y0, x1, y1  - integer endpoints (both included)
      set_pixel(x,y,color) - callback for plotting
      color - passed through to set_pixel

    Works in every octant: absolute deltas drive the error term and the
    sign steps pick the direction. A zero-length line plots one pixel.
    """
    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy

    while True:
        set_pixel(x0, y0, color)
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x0 += sx
        if e2 < dx:
            err += dx
            y0 += sy


# ============================================================
#  Numba rasterizers
# ============================================================

@njit(cache=True)
def _barycentric(ax, ay, bx, by, cx, cy, px, py):
    """
    Barycentric weights of (px,py) with respect to triangle (A,B,C).

    Returns (w0, w1, w2) summing to 1. If the triangle is degenerate
    the result is (-1, 0, 0), which callers treat as "outside".
    """
    den = (by - cy) * (ax - cx) + (cx - bx) * (ay - cy)
    if abs(den) < DEGENERATE_AREA:
        return -1.0, 0.0, 0.0
    w0 = ((by - cy) * (px - cx) + (cx - bx) * (py - cy)) / den
    w1 = ((cy - ay) * (px - cx) + (ax - cx) * (py - cy)) / den
    return w0, w1, 1.0 - w0 - w1


@njit(cache=True)
def _bbox(W, H, x0, y0, x1, y1, x2, y2):
    """Pixel bounding box of the triangle clamped to [0,W-1] x [0,H-1]."""
    minx = max(0, int(math.floor(min(x0, x1, x2))))
    maxx = min(W - 1, int(math.ceil(max(x0, x1, x2))))
    miny = max(0, int(math.floor(min(y0, y1, y2))))
    maxy = min(H - 1, int(math.ceil(max(y0, y1, y2))))
    return minx, maxx, miny, maxy


@njit(cache=True)
def draw_triangle_solid_flat(img, zbuf,
                             x0, y0, z0,
                             x1, y1, z1,
                             x2, y2, z2,
                             r, g, b):
    """
    Rasterize a filled triangle with a constant color.

    Z-buffer:
      - depth is interpolated linearly from z0, z1, z2
      - pixel is drawn only if depth < zbuf[y,x] (nearer wins, ties keep)

    img:
      - shape (H,W,3), dtype=uint8, indexed [y,x,channel]

    Returns the number of pixels written.
    """
    H, W, _ = img.shape
    minx, maxx, miny, maxy = _bbox(W, H, x0, y0, x1, y1, x2, y2)

    written = 0
    for y in range(miny, maxy + 1):
        for x in range(minx, maxx + 1):
            a, b0, c = _barycentric(x0, y0, x1, y1, x2, y2, float(x), float(y))
            if a < 0.0 or b0 < 0.0 or c < 0.0:
                continue

            z = a*z0 + b0*z1 + c*z2
            if not z < zbuf[y, x]:
                continue
            zbuf[y, x] = z

            img[y, x, 0] = r
            img[y, x, 1] = g
            img[y, x, 2] = b
            written += 1
    return written


@njit(cache=True)
def triangle_coverage(W, H, x0, y0, x1, y1, x2, y2):
    """
    Pixels covered by a triangle, for per-pixel shading in Python.

    Returns (xs, ys, weights) where weights has shape (n,3) and holds the
    barycentric weights of each covered pixel. Same coverage rule as
    draw_triangle_solid_flat.
    """
    minx, maxx, miny, maxy = _bbox(W, H, x0, y0, x1, y1, x2, y2)
    n = max(0, maxx - minx + 1) * max(0, maxy - miny + 1)

    xs = np.empty(n, np.int64)
    ys = np.empty(n, np.int64)
    weights = np.empty((n, 3), np.float64)
    k = 0
    for y in range(miny, maxy + 1):
        for x in range(minx, maxx + 1):
            a, b0, c = _barycentric(x0, y0, x1, y1, x2, y2, float(x), float(y))
            if a < 0.0 or b0 < 0.0 or c < 0.0:
                continue
            xs[k] = x
            ys[k] = y
            weights[k, 0] = a
            weights[k, 1] = b0
            weights[k, 2] = c
            k += 1
    return xs[:k], ys[:k], weights[:k]


# ============================================================
#  Framebuffer
# ============================================================

class Framebuffer:
    """
    Color grid plus depth grid of the same size.

    Pixel (0,0) is the bottom-left corner: screen y grows upwards, the way
    NDC y does. Exporters flip rows to produce upright images.
    Depth is NDC z; smaller is nearer, +inf means nothing drawn yet.
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"framebuffer size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.color = np.zeros((height, width, 3), dtype=np.uint8)
        self.depth = np.full((height, width), np.inf, dtype=np.float64)
        self.clear()

    def clear(self, color: Color = BLACK):
        """Reset every pixel to `color` and every depth to +inf."""
        self.color[:, :] = color.rgb
        self.depth.fill(np.inf)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def set_pixel(self, x: int, y: int, color: Color, depth: float = 0.0) -> bool:
        """Depth-tested write; returns True if the pixel was replaced."""
        if not self.in_bounds(x, y):
            return False
        if not depth < self.depth[y, x]:
            return False
        self.color[y, x] = color.rgb
        self.depth[y, x] = depth
        return True

    def get_pixel(self, x: int, y: int) -> Color:
        if not self.in_bounds(x, y):
            return BLACK
        r, g, b = self.color[y, x]
        return Color(int(r), int(g), int(b))

    def get_depth(self, x: int, y: int) -> float:
        if not self.in_bounds(x, y):
            return math.inf
        return float(self.depth[y, x])

    def _plot(self, x, y, color: Color):
        # lines ignore the depth test and stay in front of later triangles
        if self.in_bounds(x, y):
            self.color[y, x] = color.rgb
            self.depth[y, x] = -np.inf

    def draw_line(self, x0: int, y0: int, x1: int, y1: int, color: Color):
        draw_line(int(x0), int(y0), int(x1), int(y1), self._plot, color)

    def draw_triangle(self, v0: Vec3, v1: Vec3, v2: Vec3, color: Color) -> int:
        """
        Flat-fill a screen-space triangle (x,y in pixels, z = depth).

        Only depth is interpolated; the whole triangle gets `color`.
        Returns the number of pixels that passed the depth test.
        """
        return draw_triangle_solid_flat(self.color, self.depth,
                                        float(v0.x), float(v0.y), float(v0.z),
                                        float(v1.x), float(v1.y), float(v1.z),
                                        float(v2.x), float(v2.y), float(v2.z),
                                        color.r, color.g, color.b)

    def fragments(self, v0: Vec3, v1: Vec3, v2: Vec3) -> Iterator[Tuple[int, int, float, float, float]]:
        """Yield (x, y, w0, w1, w2) for every pixel the triangle covers."""
        xs, ys, weights = triangle_coverage(self.width, self.height,
                                            float(v0.x), float(v0.y),
                                            float(v1.x), float(v1.y),
                                            float(v2.x), float(v2.y))
        for i in range(len(xs)):
            yield int(xs[i]), int(ys[i]), float(weights[i, 0]), float(weights[i, 1]), float(weights[i, 2])
