import logging

import numpy as np
import pygame

from .framebuffer import Framebuffer
from .image_io import upright_rgb
from .mathlib import Mat4, rotate_x, rotate_y
from .mesh import Mesh
from .pipeline import RENDER_FLAT, RENDER_SMOOTH, RENDER_WIREFRAME, draw_edges, render_mesh
from .scene import SceneConfig, build_context

logger = logging.getLogger(__name__)

MODE_KEYS = {
    pygame.K_1: RENDER_WIREFRAME,
    pygame.K_2: RENDER_FLAT,
    pygame.K_3: RENDER_SMOOTH,
}
MODE_LABELS = {
    RENDER_WIREFRAME: "WIREFRAME (1)",
    RENDER_FLAT: "FLAT (2)",
    RENDER_SMOOTH: "SMOOTH (3)",
}


def orbit_model(yaw: float, pitch: float, base: Mat4) -> Mat4:
    """Model matrix for the drag rotation, applied after `base`."""
    return rotate_y(yaw) @ rotate_x(pitch) @ base


def run_viewer(mesh: Mesh, scene: SceneConfig, width: int, height: int,
               mode: int = RENDER_FLAT, cull_backfaces: bool = True,
               model: Mat4 = None):
    """
    Interactive loop:
      - LMB drag rotates the model (yaw/pitch)
      - 1..3 switch render mode, C toggles back-face culling
      - ESC or closing the window exits

    The scene is re-rendered only when something changed.
    """
    base = model if model is not None else Mat4()
    fb = Framebuffer(width, height)

    pygame.init()
    screen = pygame.display.set_mode((width, height))
    pygame.display.set_caption("softrender")
    clock = pygame.time.Clock()
    font = pygame.font.SysFont("consolas", 16)

    yaw = 0.0
    pitch = 0.0
    dragging = False
    last_mouse = (0, 0)
    dirty = True
    running = True

    while running:
        clock.tick(60)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key in MODE_KEYS:
                    mode = MODE_KEYS[event.key]
                    dirty = True
                elif event.key == pygame.K_c:
                    cull_backfaces = not cull_backfaces
                    dirty = True

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                dragging = True
                last_mouse = event.pos

            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                dragging = False

            elif event.type == pygame.MOUSEMOTION and dragging:
                mx, my = event.pos
                lx, ly = last_mouse
                last_mouse = (mx, my)
                yaw += (mx - lx) * 0.01
                pitch += (my - ly) * 0.01
                pitch = max(-1.4, min(1.4, pitch))
                dirty = True

        if dirty:
            ctx = build_context(scene, width, height, orbit_model(yaw, pitch, base))
            fb.clear(scene.background)
            stats = render_mesh(fb, mesh, ctx, mode=mode, cull_backfaces=cull_backfaces)
            if mesh.edges:
                draw_edges(fb, mesh, ctx)
            # surfarray wants [x,y,channel]
            pygame.surfarray.blit_array(screen, np.swapaxes(upright_rgb(fb), 0, 1))
            hud = [
                f"{MODE_LABELS[mode]} | Cull(C): {cull_backfaces} | "
                f"Triangles: {stats.rasterized}/{stats.submitted}",
                "LMB drag rotate | 1..3 modes | ESC exit",
            ]
            y = 10
            for line in hud:
                screen.blit(font.render(line, True, (235, 235, 235)), (10, y))
                y += 18
            pygame.display.flip()
            dirty = False

    pygame.quit()
