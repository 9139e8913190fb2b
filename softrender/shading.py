"""
Vertex and fragment stages.

Everything the shaders read lives in an immutable RenderContext, so one
context can drive many draw calls (or threads) without shared state.
"""

import enum
from dataclasses import dataclass, field
from typing import Callable, Tuple

from .color import Color, WHITE
from .mathlib import Mat4, Vec2, Vec3, ZERO

# Point light falloff: 1 / (1 + LINEAR*d + QUADRATIC*d^2)
ATTENUATION_LINEAR = 0.09
ATTENUATION_QUADRATIC = 0.032

# Lower bound applied to whatever the occlusion hook returns.
MIN_AMBIENT_OCCLUSION = 0.1


class LightType(enum.Enum):
    DIRECTIONAL = 0
    POINT = 1


@dataclass(frozen=True)
class Light:
    """
    Scene light.

    Directional lights shine along `direction` and ignore position and
    attenuation; point lights shine from `position` and ignore direction.
    """
    type: LightType = LightType.DIRECTIONAL
    position: Vec3 = ZERO
    direction: Vec3 = Vec3(0.0, -1.0, 0.0)
    color: Color = WHITE
    intensity: float = 1.0


@dataclass(frozen=True)
class Material:
    """Surface reflectance shared by the whole mesh."""
    diffuse: Color = Color(128, 128, 128)
    specular: Color = Color(255, 255, 255)
    ambient: Color = Color(32, 32, 32)
    shininess: float = 32.0


@dataclass(frozen=True)
class Vertex:
    """
    Vertex stage output / fragment stage input.

    position  - NDC position (after the perspective divide)
    normal    - unit world-space normal
    world_pos - world-space position
    uv        - texture coordinate, passed through unchanged
    """
    position: Vec3
    normal: Vec3
    world_pos: Vec3
    uv: Vec2


ShadowHook = Callable[[Vertex, Light], float]
OcclusionHook = Callable[[Vertex], float]


def no_shadow(vertex: Vertex, light: Light) -> float:
    """Shadow factor hook: every fragment fully lit."""
    return 1.0


def no_occlusion(vertex: Vertex) -> float:
    """Ambient occlusion hook: nothing occluded."""
    return 1.0


@dataclass(frozen=True)
class RenderContext:
    """
    Matrices, camera, lights, material and hooks for one draw call.

    `mvp` (projection @ view @ model) is derived at construction.
    """
    model: Mat4 = field(default_factory=Mat4)
    view: Mat4 = field(default_factory=Mat4)
    projection: Mat4 = field(default_factory=Mat4)
    camera_pos: Vec3 = ZERO
    lights: Tuple[Light, ...] = ()
    material: Material = Material()
    shadow: ShadowHook = no_shadow
    occlusion: OcclusionHook = no_occlusion
    mvp: Mat4 = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "lights", tuple(self.lights))
        object.__setattr__(self, "mvp", self.projection @ self.view @ self.model)


def vertex_shader(ctx: RenderContext, position: Vec3, normal: Vec3, uv: Vec2) -> Vertex:
    """Transform one mesh corner into world space and NDC."""
    return Vertex(
        position=ctx.mvp.transform(position),
        normal=ctx.model.transform(normal, 0.0).normalize(),
        world_pos=ctx.model.transform(position),
        uv=uv,
    )


def light_contribution(ctx: RenderContext, vertex: Vertex, light: Light) -> Vec3:
    """Diffuse + Blinn-Phong specular of a single light, in linear [0,1] RGB."""
    material = ctx.material
    attenuation = 1.0
    if light.type is LightType.DIRECTIONAL:
        light_dir = -light.direction
    else:
        to_light = light.position - vertex.world_pos
        light_dir = to_light.normalize()
        d = to_light.norm()
        attenuation = 1.0 / (1.0 + ATTENUATION_LINEAR * d + ATTENUATION_QUADRATIC * d * d)

    n = vertex.normal
    diff = max(0.0, n.dot(light_dir))

    view_dir = (ctx.camera_pos - vertex.world_pos).normalize()
    halfway = (light_dir + view_dir).normalize()
    spec = max(0.0, n.dot(halfway)) ** material.shininess

    surface = material.diffuse.to_unit() * diff + material.specular.to_unit() * spec
    factor = light.intensity * attenuation * ctx.shadow(vertex, light)
    return surface * light.color.to_unit() * factor


def fragment_shader(ctx: RenderContext, vertex: Vertex) -> Color:
    """
    Shade a fragment: material ambient plus every light, in list order.

    The sum is scaled by the occlusion hook (floored at 0.1), clamped to
    [0,1] per channel and quantized to 8 bits.
    """
    final = ctx.material.ambient.to_unit()
    for light in ctx.lights:
        final = final + light_contribution(ctx, vertex, light)

    final = final * max(MIN_AMBIENT_OCCLUSION, ctx.occlusion(vertex))
    return Color.from_unit(final)


def interpolate_vertex(v0: Vertex, v1: Vertex, v2: Vertex, w0: float, w1: float, w2: float) -> Vertex:
    """Blend three vertices with barycentric weights; the normal is renormalized."""
    return Vertex(
        position=v0.position * w0 + v1.position * w1 + v2.position * w2,
        normal=(v0.normal * w0 + v1.normal * w1 + v2.normal * w2).normalize(),
        world_pos=v0.world_pos * w0 + v1.world_pos * w1 + v2.world_pos * w2,
        uv=v0.uv * w0 + v1.uv * w1 + v2.uv * w2,
    )
