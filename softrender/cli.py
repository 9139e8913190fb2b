import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional, Tuple

from .color import WHITE, Color
from .config import RenderConfig
from .errors import MeshLoadError, SceneConfigError
from .framebuffer import Framebuffer
from .image_io import save_image
from .mathlib import Mat4, rotate_x, rotate_y
from .mesh import Mesh, load_obj
from .pipeline import MODE_NAMES, RenderStats, draw_edges, render_mesh
from .scene import (
    SceneConfig,
    build_context,
    cube_mesh,
    default_scene,
    fit_camera,
    load_scene_config,
)
from .shading import Material

logger = logging.getLogger(__name__)

# Tilt applied to the fallback cube so three faces are visible.
PLACEHOLDER_MODEL = rotate_x(0.5) @ rotate_y(0.7)

# Look used for loaded meshes when no scene file is given.
MESH_MATERIAL = Material(diffuse=Color(150, 150, 200), specular=WHITE, ambient=Color(30, 30, 50))
MESH_BACKGROUND = Color(20, 30, 50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="softrender",
        description="Render an OBJ mesh with a software rasterizer.",
    )
    parser.add_argument("mesh", nargs="?", help="Wavefront OBJ file (renders a cube if omitted)")
    parser.add_argument("-o", "--output", default="output.ppm",
                        help="output image; .ppm is plain text, other extensions go through Pillow")
    parser.add_argument("--width", type=int, default=800)
    parser.add_argument("--height", type=int, default=600)
    parser.add_argument("--mode", choices=sorted(MODE_NAMES), default="flat")
    parser.add_argument("--no-cull", action="store_true", help="disable back-face culling")
    parser.add_argument("--scene", help="JSON scene description (camera, lights, material)")
    parser.add_argument("--show", action="store_true", help="open an interactive viewer window")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def config_from_args(argv: Optional[List[str]] = None) -> RenderConfig:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return _make_config(args)
    except ValueError as exc:
        parser.error(str(exc))


def _make_config(args: argparse.Namespace) -> RenderConfig:
    return RenderConfig(
        width=args.width,
        height=args.height,
        mode=MODE_NAMES[args.mode],
        cull_backfaces=not args.no_cull,
        output=args.output,
        mesh_path=args.mesh,
        scene_path=args.scene,
        show=args.show,
        log_level=args.log_level,
    )


def prepare_scene(config: RenderConfig) -> Tuple[Mesh, SceneConfig, Mat4]:
    """
    Load the mesh and scene for a run.

    A mesh that fails to load is replaced by the placeholder cube;
    a broken scene file is fatal (SceneConfigError propagates).
    """
    scene = load_scene_config(config.scene_path) if config.scene_path else default_scene()

    mesh = None
    if config.mesh_path:
        try:
            mesh = load_obj(config.mesh_path)
        except MeshLoadError as exc:
            logger.warning("%s; rendering the placeholder cube instead", exc)

    if mesh is None or not mesh.faces:
        logger.info("Creating test cube")
        return cube_mesh(), scene, PLACEHOLDER_MODEL

    if mesh.generate_normals():
        logger.info("Generated %d vertex normals", len(mesh.normals))
    if not config.scene_path:
        scene = replace(
            scene,
            camera=fit_camera(mesh, scene.camera),
            material=MESH_MATERIAL,
            background=MESH_BACKGROUND,
        )
    return mesh, scene, Mat4()


def render(config: RenderConfig, mesh: Mesh, scene: SceneConfig, model: Mat4) -> Tuple[Framebuffer, RenderStats]:
    fb = Framebuffer(config.width, config.height)
    fb.clear(scene.background)
    ctx = build_context(scene, config.width, config.height, model)
    stats = render_mesh(fb, mesh, ctx, mode=config.mode, cull_backfaces=config.cull_backfaces)
    if mesh.edges:
        draw_edges(fb, mesh, ctx)
    return fb, stats


def main(argv: Optional[List[str]] = None) -> int:
    config = config_from_args(argv)
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        mesh, scene, model = prepare_scene(config)
    except SceneConfigError as exc:
        logger.error("%s", exc)
        return 2

    fb, _ = render(config, mesh, scene, model)
    save_image(fb, config.output)

    if config.show:
        from .viewer import run_viewer
        run_viewer(mesh, scene, config.width, config.height,
                   mode=config.mode, cull_backfaces=config.cull_backfaces, model=model)
    return 0


if __name__ == "__main__":
    sys.exit(main())
