"""Software triangle rasterizer: mesh + camera + lights in, RGB image out."""

from .color import Color
from .errors import MeshLoadError, SceneConfigError, SoftRenderError
from .framebuffer import Framebuffer
from .image_io import save_image, save_ppm, to_image
from .mathlib import Mat4, Vec2, Vec3, look_at, perspective, rotate_x, rotate_y, rotate_z, scale, translate
from .mesh import Face, Mesh, load_obj, parse_obj
from .pipeline import RENDER_FLAT, RENDER_SMOOTH, RENDER_WIREFRAME, RenderStats, render_mesh
from .scene import Camera, SceneConfig, build_context, cube_mesh, default_scene, load_scene_config
from .shading import Light, LightType, Material, RenderContext, Vertex, fragment_shader, vertex_shader

__version__ = "0.1.0"
