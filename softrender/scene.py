"""
Scene setup: camera, lights, material and the built-in fallback cube.

A scene can also be described in JSON:

    {
      "camera": {"eye": [0, 0, 3], "target": [0, 0, 0], "up": [0, 1, 0],
                 "fov": 45, "near": 0.1, "far": 100},
      "lights": [
        {"type": "directional", "direction": [-1, -1, -1],
         "color": [255, 255, 255], "intensity": 1.0},
        {"type": "point", "position": [2, 2, 2], "intensity": 0.8}
      ],
      "material": {"diffuse": [150, 150, 200], "specular": [255, 255, 255],
                   "ambient": [30, 30, 50], "shininess": 32},
      "background": [20, 30, 50]
    }

`fov` is given in degrees in the file; every key is optional.
"""

import json
import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Tuple

from .color import Color
from .errors import SceneConfigError
from .mathlib import Mat4, Vec3, look_at, perspective
from .mesh import Face, Mesh
from .shading import Light, LightType, Material, RenderContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Camera:
    eye: Vec3 = Vec3(0.0, 0.0, 3.0)
    target: Vec3 = Vec3(0.0, 0.0, 0.0)
    up: Vec3 = Vec3(0.0, 1.0, 0.0)
    fov: float = math.pi / 4.0
    near: float = 0.1
    far: float = 100.0

    def view_matrix(self) -> Mat4:
        return look_at(self.eye, self.target, self.up)

    def projection_matrix(self, aspect: float) -> Mat4:
        return perspective(self.fov, aspect, self.near, self.far)


def default_lights() -> Tuple[Light, ...]:
    """A white key light from the upper right front plus a warm point light."""
    return (
        Light(type=LightType.DIRECTIONAL,
              direction=Vec3(-1.0, -1.0, -1.0).normalize(),
              color=Color(255, 255, 255),
              intensity=1.0),
        Light(type=LightType.POINT,
              position=Vec3(200.0, 200.0, 200.0),
              color=Color(255, 200, 150),
              intensity=0.8),
    )


@dataclass(frozen=True)
class SceneConfig:
    """Everything a render needs besides the mesh and the model matrix."""
    camera: Camera = Camera()
    lights: Tuple[Light, ...] = field(default_factory=default_lights)
    material: Material = Material()
    background: Color = Color(50, 50, 100)


def default_scene() -> SceneConfig:
    return SceneConfig()


def build_context(scene: SceneConfig, width: int, height: int, model: Mat4 = None) -> RenderContext:
    """Freeze a scene into the RenderContext used by the pipeline."""
    return RenderContext(
        model=model if model is not None else Mat4(),
        view=scene.camera.view_matrix(),
        projection=scene.camera.projection_matrix(width / height),
        camera_pos=scene.camera.eye,
        lights=scene.lights,
        material=scene.material,
    )


def fit_camera(mesh: Mesh, camera: Camera) -> Camera:
    """
    Frame a loaded mesh: look at its bounding-box center from the upper
    front right, at a distance proportional to its largest dimension.
    Near/far planes are scaled to the model so its depth fits in NDC.
    """
    lo, hi = mesh.bounds()
    center = (lo + hi) * 0.5
    size = hi - lo
    max_dim = max(size.x, size.y, size.z)
    if max_dim <= 0.0:
        return camera
    logger.debug("Model bounds: min %s max %s center %s", lo, hi, center)
    return replace(
        camera,
        eye=center + Vec3(0.8, 0.3, 1.2) * max_dim,
        target=center,
        near=max_dim * 0.01,
        far=max_dim * 10.0,
    )


# ============================================================
#  Fallback geometry
# ============================================================

_CUBE_FACES = (
    # (corner indices, normal index), counter-clockwise seen from outside
    ((0, 3, 2), 0), ((0, 2, 1), 0),  # back   -z
    ((4, 5, 6), 1), ((4, 6, 7), 1),  # front  +z
    ((0, 4, 7), 2), ((0, 7, 3), 2),  # left   -x
    ((1, 2, 6), 3), ((1, 6, 5), 3),  # right  +x
    ((3, 7, 6), 4), ((3, 6, 2), 4),  # top    +y
    ((0, 1, 5), 5), ((0, 5, 4), 5),  # bottom -y
)

_CUBE_EDGES = (
    (0, 1), (1, 2), (2, 3), (3, 0),  # back
    (4, 5), (5, 6), (6, 7), (7, 4),  # front
    (0, 4), (1, 5), (2, 6), (3, 7),  # sides
)


def cube_mesh(size: float = 2.0) -> Mesh:
    """
    Axis-aligned cube centered at the origin with outward face normals.
    Its 12 edges are listed in `edges` for the outline overlay.
    """
    h = size / 2.0
    verts = [
        Vec3(-h, -h, -h), Vec3(h, -h, -h), Vec3(h, h, -h), Vec3(-h, h, -h),
        Vec3(-h, -h, h), Vec3(h, -h, h), Vec3(h, h, h), Vec3(-h, h, h),
    ]
    normals = [
        Vec3(0.0, 0.0, -1.0), Vec3(0.0, 0.0, 1.0),
        Vec3(-1.0, 0.0, 0.0), Vec3(1.0, 0.0, 0.0),
        Vec3(0.0, 1.0, 0.0), Vec3(0.0, -1.0, 0.0),
    ]
    faces = [Face(v=corners, vn=(n, n, n)) for corners, n in _CUBE_FACES]
    return Mesh(verts=verts, normals=normals, faces=faces, edges=list(_CUBE_EDGES))


# ============================================================
#  JSON scene files
# ============================================================

def _vec3(value: Any, key: str) -> Vec3:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise SceneConfigError(f"{key}: expected a list of 3 numbers, got {value!r}")
    try:
        return Vec3(*(float(c) for c in value))
    except (TypeError, ValueError) as exc:
        raise SceneConfigError(f"{key}: expected numbers, got {value!r}") from exc


def _color(value: Any, key: str) -> Color:
    v = _vec3(value, key)
    channels = (v.x, v.y, v.z)
    if any(c < 0 or c > 255 for c in channels):
        raise SceneConfigError(f"{key}: channels must be in [0, 255], got {value!r}")
    return Color(*(int(c) for c in channels))


def _number(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SceneConfigError(f"{key}: expected a number, got {value!r}")
    return float(value)


def _light(data: Mapping[str, Any], key: str) -> Light:
    if not isinstance(data, Mapping):
        raise SceneConfigError(f"{key}: expected an object, got {data!r}")
    kind = data.get("type", "directional")
    try:
        light_type = LightType[str(kind).upper()]
    except KeyError:
        raise SceneConfigError(f"{key}.type: unknown light type {kind!r}") from None
    light = Light(type=light_type)
    if "position" in data:
        light = replace(light, position=_vec3(data["position"], f"{key}.position"))
    if "direction" in data:
        light = replace(light, direction=_vec3(data["direction"], f"{key}.direction").normalize())
    if "color" in data:
        light = replace(light, color=_color(data["color"], f"{key}.color"))
    if "intensity" in data:
        light = replace(light, intensity=_number(data["intensity"], f"{key}.intensity"))
    return light


def scene_from_dict(data: Mapping[str, Any], base: SceneConfig = None) -> SceneConfig:
    """Overlay a parsed scene description onto `base` (the default scene)."""
    if not isinstance(data, Mapping):
        raise SceneConfigError("scene description must be a JSON object")
    scene = base if base is not None else default_scene()

    cam = data.get("camera", {})
    if cam:
        camera = scene.camera
        for name in ("eye", "target", "up"):
            if name in cam:
                camera = replace(camera, **{name: _vec3(cam[name], f"camera.{name}")})
        if "fov" in cam:
            camera = replace(camera, fov=math.radians(_number(cam["fov"], "camera.fov")))
        for name in ("near", "far"):
            if name in cam:
                camera = replace(camera, **{name: _number(cam[name], f"camera.{name}")})
        if not 0.0 < camera.fov < math.pi:
            raise SceneConfigError("camera.fov must be between 0 and 180 degrees")
        if not 0.0 < camera.near < camera.far:
            raise SceneConfigError("camera.near must be positive and below camera.far")
        scene = replace(scene, camera=camera)

    if "lights" in data:
        lights = data["lights"]
        if not isinstance(lights, list):
            raise SceneConfigError("lights: expected a list")
        scene = replace(scene, lights=tuple(
            _light(item, f"lights[{i}]") for i, item in enumerate(lights)))

    mat = data.get("material", {})
    if mat:
        material = scene.material
        for name in ("diffuse", "specular", "ambient"):
            if name in mat:
                material = replace(material, **{name: _color(mat[name], f"material.{name}")})
        if "shininess" in mat:
            material = replace(material, shininess=_number(mat["shininess"], "material.shininess"))
        scene = replace(scene, material=material)

    if "background" in data:
        scene = replace(scene, background=_color(data["background"], "background"))
    return scene


def load_scene_config(path) -> SceneConfig:
    """Read a JSON scene file; raises SceneConfigError on any problem."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as exc:
        raise SceneConfigError(f"cannot open scene file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SceneConfigError(f"{path}: invalid JSON: {exc}") from exc
    return scene_from_dict(data)
