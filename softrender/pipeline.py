import logging
from dataclasses import dataclass
from typing import Tuple

from .color import WHITE, Color
from .framebuffer import Framebuffer
from .mesh import Face, Mesh
from .mathlib import Vec3
from .shading import (
    RenderContext,
    Vertex,
    fragment_shader,
    interpolate_vertex,
    vertex_shader,
)

logger = logging.getLogger(__name__)


# ============================================================
#  Render modes
# ============================================================

RENDER_WIREFRAME = 1
RENDER_FLAT = 2
RENDER_SMOOTH = 3

MODE_NAMES = {
    "wireframe": RENDER_WIREFRAME,
    "flat": RENDER_FLAT,
    "smooth": RENDER_SMOOTH,
}

WIREFRAME_COLOR = Color(200, 200, 220)
OUTLINE_COLOR = WHITE

# Corners further than this outside the viewport count as off-screen.
SCREEN_MARGIN = 50

# Number of rasterized triangles echoed at DEBUG level per render.
DEBUG_TRIANGLES = 3


@dataclass
class RenderStats:
    """Per-render triangle counts."""
    submitted: int = 0
    near_far_rejected: int = 0
    backface_culled: int = 0
    offscreen_rejected: int = 0
    rasterized: int = 0


# ============================================================
#  Per-triangle stages
# ============================================================

def shade_face(ctx: RenderContext, mesh: Mesh, face: Face) -> Tuple[Vertex, Vertex, Vertex]:
    """Run the vertex stage on the three corners of a face."""
    return tuple(
        vertex_shader(ctx, mesh.vertex(vi), mesh.normal(vni), mesh.texcoord(vti))
        for vi, vti, vni in zip(face.v, face.vt, face.vn)
    )


def outside_depth_range(verts) -> bool:
    """True if any corner's NDC z lies outside [-1, 1]."""
    return any(v.position.z < -1.0 or v.position.z > 1.0 for v in verts)


def to_screen(ndc: Vec3, width: int, height: int) -> Vec3:
    """
    Convert NDC x/y in [-1..1] to pixel coordinates, keeping NDC z as depth.

    NDC:
      x=-1 left,   x=+1 right
      y=-1 bottom, y=+1 top

    Screen:
      x=0 left, y=0 bottom (framebuffer convention)
    """
    return Vec3((ndc.x + 1.0) * width * 0.5, (ndc.y + 1.0) * height * 0.5, ndc.z)


def is_front_facing(verts, camera_pos: Vec3) -> bool:
    """World-space back-face test: face normal must point towards the camera."""
    p0, p1, p2 = (v.world_pos for v in verts)
    face_normal = (p1 - p0).cross(p2 - p0)
    return face_normal.dot(camera_pos - p0) > 0.0


def is_on_screen(screen, width: int, height: int, margin: float = SCREEN_MARGIN) -> bool:
    """Coarse test: at least one corner within the viewport grown by `margin`."""
    return any(
        -margin <= s.x < width + margin and -margin <= s.y < height + margin
        for s in screen
    )


def rasterize_smooth(fb: Framebuffer, ctx: RenderContext, screen, verts) -> int:
    """Per-pixel shading: interpolate the full vertex and shade each fragment."""
    s0, s1, s2 = screen
    written = 0
    for x, y, w0, w1, w2 in fb.fragments(s0, s1, s2):
        z = s0.z * w0 + s1.z * w1 + s2.z * w2
        if not z < fb.depth[y, x]:
            continue
        fragment = interpolate_vertex(verts[0], verts[1], verts[2], w0, w1, w2)
        if fb.set_pixel(x, y, fragment_shader(ctx, fragment), z):
            written += 1
    return written


def draw_wireframe(fb: Framebuffer, screen, color: Color = WIREFRAME_COLOR):
    s0, s1, s2 = screen
    for a, b in ((s0, s1), (s1, s2), (s2, s0)):
        fb.draw_line(int(a.x), int(a.y), int(b.x), int(b.y), color)


def draw_edges(fb: Framebuffer, mesh: Mesh, ctx: RenderContext, color: Color = OUTLINE_COLOR) -> int:
    """
    Draw `mesh.edges` as lines on top of whatever is already in `fb`.

    Edges are neither culled nor depth tested, so hidden ones show too.
    An edge with an endpoint outside the near/far range is skipped.
    Returns the number of edges drawn.
    """
    W, H = fb.width, fb.height
    drawn = 0
    for i, j in mesh.edges:
        a = ctx.mvp.transform(mesh.vertex(i))
        b = ctx.mvp.transform(mesh.vertex(j))
        if not (-1.0 <= a.z <= 1.0 and -1.0 <= b.z <= 1.0):
            continue
        sa, sb = to_screen(a, W, H), to_screen(b, W, H)
        fb.draw_line(int(sa.x), int(sa.y), int(sb.x), int(sb.y), color)
        drawn += 1
    return drawn


# ============================================================
#  Orchestrator
# ============================================================

def render_mesh(fb: Framebuffer, mesh: Mesh, ctx: RenderContext,
                mode: int = RENDER_FLAT, cull_backfaces: bool = True) -> RenderStats:
    """
    Draw every face of `mesh` into `fb`.

    Per triangle:
      1. vertex stage on the three corners
      2. discard if any corner's NDC z is outside [-1,1] (no clipping)
      3. map NDC to pixels
      4. world-space back-face culling
      5. discard if all corners are off-screen (with margin)
      6. rasterize: one flat color from the first vertex, per-pixel
         shading, or edges only, depending on `mode`

    Triangles are independent; only the depth test orders them.
    The framebuffer is not cleared here.
    """
    if mode not in MODE_NAMES.values():
        raise ValueError(f"unknown render mode {mode!r}")
    stats = RenderStats()
    W, H = fb.width, fb.height

    for face in mesh.faces:
        stats.submitted += 1
        verts = shade_face(ctx, mesh, face)

        if outside_depth_range(verts):
            stats.near_far_rejected += 1
            continue

        screen = tuple(to_screen(v.position, W, H) for v in verts)

        if cull_backfaces and not is_front_facing(verts, ctx.camera_pos):
            stats.backface_culled += 1
            continue

        if not is_on_screen(screen, W, H):
            stats.offscreen_rejected += 1
            continue

        if mode == RENDER_WIREFRAME:
            draw_wireframe(fb, screen)
        elif mode == RENDER_SMOOTH:
            rasterize_smooth(fb, ctx, screen, verts)
        else:
            fb.draw_triangle(screen[0], screen[1], screen[2], fragment_shader(ctx, verts[0]))
        stats.rasterized += 1

        if stats.rasterized <= DEBUG_TRIANGLES:
            logger.debug("Triangle %d screen vertices: %s", stats.rasterized,
                         " ".join(f"({s.x:.2f},{s.y:.2f},{s.z:.4f})" for s in screen))

    logger.info("Rendered %d of %d triangles (near/far %d, backface %d, offscreen %d)",
                stats.rasterized, stats.submitted, stats.near_far_rejected,
                stats.backface_culled, stats.offscreen_rejected)
    return stats
