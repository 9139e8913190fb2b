from __future__ import annotations

import math

import numpy as np
import pytest

from softrender.color import Color
from softrender.framebuffer import Framebuffer
from softrender.mathlib import Mat4, Vec3, look_at, perspective, rotate_y
from softrender.mesh import Face, Mesh
from softrender.pipeline import (
    RENDER_FLAT,
    RENDER_SMOOTH,
    RENDER_WIREFRAME,
    draw_edges,
    is_on_screen,
    render_mesh,
    shade_face,
    to_screen,
)
from softrender.shading import Light, LightType, Material, RenderContext, fragment_shader

SIZE = 100
BACKGROUND = Color(0, 0, 0)


def make_context(eye: Vec3 = Vec3(0.0, 0.0, 5.0), fov: float = math.pi / 2,
                 light_dir: Vec3 = Vec3(0.0, 0.0, -1.0), model: Mat4 | None = None) -> RenderContext:
    return RenderContext(
        model=model if model is not None else Mat4(),
        view=look_at(eye, Vec3(0.0, 0.0, 0.0), Vec3(0.0, 1.0, 0.0)),
        projection=perspective(fov, 1.0, 1.0, 20.0),
        camera_pos=eye,
        lights=(Light(type=LightType.DIRECTIONAL, direction=light_dir),),
        material=Material(),
    )


def triangle_mesh(*triangles: tuple[Vec3, Vec3, Vec3]) -> Mesh:
    mesh = Mesh()
    for tri in triangles:
        base = len(mesh.verts)
        mesh.verts.extend(tri)
        mesh.faces.append(Face(v=(base, base + 1, base + 2)))
    return mesh


def render(mesh: Mesh, ctx: RenderContext, **kwargs) -> tuple[Framebuffer, object]:
    fb = Framebuffer(SIZE, SIZE)
    fb.clear(BACKGROUND)
    stats = render_mesh(fb, mesh, ctx, **kwargs)
    return fb, stats


def covered(fb: Framebuffer) -> np.ndarray:
    return np.isfinite(fb.depth)


FRONT = (Vec3(-1.0, -1.0, 0.0), Vec3(1.0, -1.0, 0.0), Vec3(0.0, 1.0, 0.0))
BACK = (FRONT[0], FRONT[2], FRONT[1])


def test_front_facing_triangle_is_rasterized() -> None:
    fb, stats = render(triangle_mesh(FRONT), make_context())
    assert stats.submitted == 1
    assert stats.rasterized == 1
    assert covered(fb).sum() > 0
    # centroid (0, -1/3) lands at pixel (50, 46)
    assert fb.get_pixel(50, 46) != BACKGROUND
    assert -1.0 < fb.get_depth(50, 46) < 1.0


def test_back_facing_triangle_is_culled() -> None:
    fb, stats = render(triangle_mesh(BACK), make_context())
    assert stats.backface_culled == 1
    assert stats.rasterized == 0
    assert not covered(fb).any()

    fb, stats = render(triangle_mesh(BACK), make_context(), cull_backfaces=False)
    assert stats.rasterized == 1
    assert covered(fb).any()


def test_culling_uses_world_space_after_model_transform() -> None:
    # turning the model around makes the back-wound triangle face the camera
    fb, stats = render(triangle_mesh(BACK), make_context(model=rotate_y(math.pi)))
    assert stats.rasterized == 1
    assert covered(fb).any()


@pytest.mark.parametrize(
    "corner",
    [
        Vec3(0.0, 1.0, 4.5),    # in front of the camera but closer than the near plane
        Vec3(0.0, 1.0, -20.0),  # beyond the far plane
        Vec3(0.0, 1.0, 6.0),    # behind the camera
    ],
)
def test_triangles_crossing_near_or_far_are_dropped_whole(corner: Vec3) -> None:
    mesh = triangle_mesh((FRONT[0], FRONT[1], corner))
    fb, stats = render(mesh, make_context(), cull_backfaces=False)
    assert stats.near_far_rejected == 1
    assert stats.rasterized == 0
    assert not covered(fb).any()


def test_fully_off_screen_triangle_is_rejected() -> None:
    mesh = triangle_mesh((Vec3(30.0, -1.0, 0.0), Vec3(32.0, -1.0, 0.0), Vec3(31.0, 1.0, 0.0)))
    fb, stats = render(mesh, make_context())
    assert stats.offscreen_rejected == 1
    assert stats.rasterized == 0


def test_partially_visible_triangle_is_kept() -> None:
    mesh = triangle_mesh((Vec3(-1.0, -1.0, 0.0), Vec3(30.0, -1.0, 0.0), Vec3(0.0, 1.0, 0.0)))
    fb, stats = render(mesh, make_context())
    assert stats.rasterized == 1
    assert covered(fb).any()


def test_on_screen_margin() -> None:
    inside = (Vec3(-49.0, 10.0, 0.0), Vec3(-200.0, 10.0, 0.0), Vec3(-300.0, 10.0, 0.0))
    outside = (Vec3(-51.0, 10.0, 0.0), Vec3(-200.0, 10.0, 0.0), Vec3(10.0, 151.0, 0.0))
    assert is_on_screen(inside, SIZE, SIZE)
    assert not is_on_screen(outside, SIZE, SIZE)


def test_screen_mapping() -> None:
    assert to_screen(Vec3(-1.0, -1.0, 0.3), 200, 100) == Vec3(0.0, 0.0, 0.3)
    assert to_screen(Vec3(1.0, 1.0, -0.2), 200, 100) == Vec3(200.0, 100.0, -0.2)
    assert to_screen(Vec3(0.0, 0.0, 0.0), 200, 100) == Vec3(100.0, 50.0, 0.0)


def test_flat_color_comes_from_first_vertex() -> None:
    mesh = triangle_mesh(FRONT)
    mesh.normals = [Vec3(0.0, 0.0, 1.0), Vec3(0.0, 0.0, -1.0)]
    mesh.faces[0].vn = (0, 1, 1)
    ctx = make_context()
    expected = fragment_shader(ctx, shade_face(ctx, mesh, mesh.faces[0])[0])

    fb, _ = render(mesh, ctx)
    mask = covered(fb)
    assert mask.any()
    assert np.all(fb.color[mask] == np.array(expected.rgb, dtype=np.uint8))


def test_missing_attributes_use_defaults() -> None:
    mesh = triangle_mesh(FRONT)
    verts = shade_face(make_context(), mesh, mesh.faces[0])
    for v in verts:
        assert v.normal == Vec3(0.0, 0.0, 1.0)
        assert v.uv.x == 0.0 and v.uv.y == 0.0


def test_output_is_independent_of_submission_order() -> None:
    near = (Vec3(-1.0, -1.0, 1.0), Vec3(1.5, -1.0, 1.0), Vec3(0.0, 1.5, 1.0))
    far = (Vec3(-1.5, -1.5, -1.0), Vec3(1.0, -1.5, -1.0), Vec3(-0.5, 1.0, -1.0))
    ctx = make_context()

    first = triangle_mesh(near, far)
    first.normals = [Vec3(0.0, 0.0, 1.0), Vec3(0.6, 0.0, 0.8)]
    first.faces[0].vn = (0, 0, 0)
    first.faces[1].vn = (1, 1, 1)
    second = Mesh(verts=first.verts, normals=first.normals, faces=list(reversed(first.faces)))

    a, _ = render(first, ctx)
    b, _ = render(second, ctx)
    assert np.array_equal(a.color, b.color)
    assert np.array_equal(a.depth, b.depth)


def test_smooth_mode_matches_flat_coverage() -> None:
    mesh = triangle_mesh(FRONT)
    mesh.normals = [Vec3(0.0, 0.0, 1.0), Vec3(1.0, 0.0, 1.0).normalize()]
    mesh.faces[0].vn = (0, 1, 1)
    ctx = make_context()
    flat, _ = render(mesh, ctx, mode=RENDER_FLAT)
    smooth, _ = render(mesh, ctx, mode=RENDER_SMOOTH)
    assert np.array_equal(covered(flat), covered(smooth))
    np.testing.assert_allclose(flat.depth[covered(flat)], smooth.depth[covered(smooth)])
    # shading varies across the triangle
    assert len(np.unique(smooth.color[covered(smooth)], axis=0)) > 1


def test_wireframe_mode_draws_edges_only() -> None:
    flat, _ = render(triangle_mesh(FRONT), make_context())
    fb, stats = render(triangle_mesh(FRONT), make_context(), mode=RENDER_WIREFRAME)
    assert stats.rasterized == 1
    drawn = np.any(fb.color != np.array(BACKGROUND.rgb, dtype=np.uint8), axis=2)
    assert 0 < drawn.sum() < covered(flat).sum()
    assert fb.get_pixel(50, 46) == BACKGROUND


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValueError):
        render(triangle_mesh(FRONT), make_context(), mode=99)


def test_lit_box_faces_shade_by_angle_to_light() -> None:
    # top face (normal +y) and front face (normal +z) of a unit box,
    # white light shining straight down
    top = [Vec3(-0.5, 0.5, 0.5), Vec3(0.5, 0.5, 0.5), Vec3(0.5, 0.5, -0.5), Vec3(-0.5, 0.5, -0.5)]
    front = [Vec3(-0.5, -0.5, 0.5), Vec3(0.5, -0.5, 0.5), Vec3(0.5, 0.5, 0.5), Vec3(-0.5, 0.5, 0.5)]
    mesh = Mesh(
        verts=top + front,
        normals=[Vec3(0.0, 1.0, 0.0), Vec3(0.0, 0.0, 1.0)],
        faces=[
            Face(v=(0, 1, 2), vn=(0, 0, 0)),
            Face(v=(0, 2, 3), vn=(0, 0, 0)),
            Face(v=(4, 5, 6), vn=(1, 1, 1)),
            Face(v=(4, 6, 7), vn=(1, 1, 1)),
        ],
    )
    eye = Vec3(0.0, 2.0, 4.0)
    ctx = RenderContext(
        view=look_at(eye, Vec3(0.0, 0.0, 0.0), Vec3(0.0, 1.0, 0.0)),
        projection=perspective(math.radians(40.0), 1.0, 0.1, 100.0),
        camera_pos=eye,
        lights=(Light(type=LightType.DIRECTIONAL, direction=Vec3(0.0, -1.0, 0.0),
                      color=Color(255, 255, 255)),),
    )
    fb = Framebuffer(128, 128)
    fb.clear(BACKGROUND)
    stats = render_mesh(fb, mesh, ctx)
    assert stats.rasterized == 4

    mask = covered(fb)
    assert mask.any()
    assert np.all(fb.color[mask].astype(int).sum(axis=1) > 0)

    def pixel_of(p: Vec3) -> Color:
        s = to_screen(ctx.mvp.transform(p), fb.width, fb.height)
        return fb.get_pixel(int(s.x), int(s.y))

    lit = pixel_of(Vec3(0.0, 0.5, 0.1))
    grazing = pixel_of(Vec3(0.0, 0.1, 0.5))
    assert lit != BACKGROUND and grazing != BACKGROUND
    assert sum(grazing.rgb) < sum(lit.rgb)


def test_edges_are_drawn_on_top_and_skip_out_of_range_endpoints() -> None:
    mesh = triangle_mesh(FRONT)
    mesh.verts.append(Vec3(0.0, 0.0, 10.0))  # behind the camera
    mesh.edges = [(0, 1), (1, 2), (2, 3)]
    fb = Framebuffer(SIZE, SIZE)
    fb.clear(BACKGROUND)

    assert draw_edges(fb, mesh, make_context()) == 2
    white = np.all(fb.color == 255, axis=2)
    assert white.sum() >= 30
    assert np.all(np.isneginf(fb.depth[white]))


def test_mesh_without_edges_draws_nothing() -> None:
    fb, _ = render(triangle_mesh(FRONT), make_context())
    before = fb.color.copy()
    assert draw_edges(fb, triangle_mesh(FRONT), make_context()) == 0
    assert np.array_equal(fb.color, before)
