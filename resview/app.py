"""The viewer application and its command-line entry point."""

from __future__ import annotations

import argparse
from os import PathLike
from typing import Any

import numpy as np

from resview.camera_control import update_camera
from resview.input import InputState
from resview.pipeline import GraphicsPipeline
from resview.scene import Mesh, Scene, Spline
from resview.window import Window

VERSION = "v0.1"
WINDOW_WIDTH = 1600
WINDOW_HEIGHT = 1200
DEFAULT_MESH = "resources/meshes/monkey_smooth.obj"
DEFAULT_SHADER_DIR = "resources/shaders"

_DEMO_SPLINES = (
    ((0.0, 0.0, 0.5), (-0.5, 0.5, 0.7), (0.5, -0.5, 0.9), (0.0, 0.0, 1.1)),
    ((0.0, 0.0, -1.0), (-1.0, 0.0, -0.5), (1.0, 0.0, 0.5), (0.0, 0.0, 1.0)),
)


def build_demo_scene(mesh_path: str | PathLike[str]) -> Scene:
    """A scene with the mesh at ``mesh_path`` and two sample splines."""
    scene = Scene()
    scene.meshes.append(Mesh.from_obj(mesh_path))
    scene.splines.extend(
        Spline(*(np.array(point) for point in points)) for points in _DEMO_SPLINES
    )
    return scene


class Application:
    """Window, renderer and scene driven by a per-frame loop."""

    def __init__(
        self,
        version: str = VERSION,
        *,
        mesh_path: str | PathLike[str] = DEFAULT_MESH,
        shader_dir: str | PathLike[str] = DEFAULT_SHADER_DIR,
        window: Any = None,
        pipeline: Any = None,
    ) -> None:
        self.version = version
        self.mesh_path = mesh_path
        self.window = window or Window(f"R.E.S {version}", WINDOW_WIDTH, WINDOW_HEIGHT)
        self.pipeline = pipeline or GraphicsPipeline(self.window, shader_dir=shader_dir)
        self.input = InputState()
        self.scene = Scene()

    def initialize(self) -> None:
        """Open the window, set up rendering and register the demo scene."""
        self.window.initialize(self.input)
        self.pipeline.initialize()
        self.scene = build_demo_scene(self.mesh_path)
        self.pipeline.register_scene(self.scene)

    def run(self) -> None:
        """Process input and draw frames until the window asks to close."""
        while not self.window.should_close():
            self.window.poll()
            update_camera(self.scene.camera, self.input)
            self.pipeline.render_scene(self.scene)
            self.pipeline.present()
            self.input.refresh()

    def close(self) -> None:
        self.pipeline.clean_up()
        self.window.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="resview", description="Interactive 3D scene viewer.")
    parser.add_argument("--mesh", default=DEFAULT_MESH, help="OBJ file to display")
    parser.add_argument("--shaders", default=DEFAULT_SHADER_DIR, help="directory of shaders")
    args = parser.parse_args(argv)

    app = Application(VERSION, mesh_path=args.mesh, shader_dir=args.shaders)
    try:
        app.initialize()
        app.run()
    finally:
        app.close()
    return 0