"""Scene rendering: shader programs, the background passes, meshes and splines."""

from __future__ import annotations

import logging
import math
from os import PathLike
from pathlib import Path
from typing import Any, Protocol

import numpy as np

from resview.gl_objects import (
    BufferKind,
    BufferObject,
    GLBackend,
    PygletBackend,
    ShaderKind,
    ShaderObject,
    ShaderProgram,
    VertexArray,
)
from resview.scene import Camera, CameraProjectionMode, Mesh, MeshRenderMode, Scene, Spline
from resview.transforms import look_at, ortho, perspective

logger = logging.getLogger(__name__)

NEAR_PLANE = 0.001
FAR_PLANE = 10000.0
CLEAR_COLOR = (0.1, 0.1, 0.1, 1.0)
SPLINE_SEGMENT_COUNT = 40.0
SPLINE_STRIP_COUNT = 1.0
PATCH_VERTICES = 4

_QUAD_POSITIONS = [
    -1.0, -1.0, 0.0,
    1.0, -1.0, 0.0,
    1.0, 1.0, 0.0,
    -1.0, 1.0, 0.0,
]
_QUAD_INDICES = [0, 1, 2, 2, 3, 0]

_PROGRAM_SOURCES: dict[str, tuple[tuple[ShaderKind, str], ...]] = {
    "unlit": ((ShaderKind.VERTEX, "unlit.vert"), (ShaderKind.FRAGMENT, "unlit.frag")),
    "normal": ((ShaderKind.VERTEX, "normal.vert"), (ShaderKind.FRAGMENT, "normal.frag")),
    "grid": ((ShaderKind.VERTEX, "grid.vert"), (ShaderKind.FRAGMENT, "grid.frag")),
    "checkers": (
        (ShaderKind.VERTEX, "screenSpace.vert"),
        (ShaderKind.FRAGMENT, "checkers.frag"),
    ),
    "spline": (
        (ShaderKind.VERTEX, "spline.vert"),
        (ShaderKind.TESS_CONTROL, "spline.tcs"),
        (ShaderKind.TESS_EVALUATION, "spline.tes"),
        (ShaderKind.FRAGMENT, "spline.frag"),
    ),
}


class DrawingWindow(Protocol):
    @property
    def dimensions(self) -> tuple[int, int]: ...

    def swap_buffers(self) -> None: ...


class PipelineBackend(GLBackend, Protocol):
    """Resource operations plus the global state and draw calls of a frame."""

    def configure(self, width: int, height: int) -> None: ...
    def viewport(self, width: int, height: int) -> None: ...
    def clear(self, color: tuple[float, float, float, float]) -> None: ...
    def set_depth_test(self, enabled: bool) -> None: ...
    def draw_triangles(self, count: int) -> None: ...
    def draw_patches(self, count: int) -> None: ...


class PygletPipelineBackend(PygletBackend):
    """Pipeline backend issuing OpenGL calls through pyglet."""

    def configure(self, width: int, height: int) -> None:
        gl = self._gl
        gl.glEnable(gl.GL_BLEND)
        gl.glBlendFunc(gl.GL_SRC_ALPHA, gl.GL_ONE_MINUS_SRC_ALPHA)
        gl.glEnable(gl.GL_DEPTH_TEST)
        gl.glDepthFunc(gl.GL_LESS)
        gl.glViewport(0, 0, width, height)
        gl.glEnable(gl.GL_CULL_FACE)
        gl.glCullFace(gl.GL_BACK)
        gl.glPatchParameteri(gl.GL_PATCH_VERTICES, PATCH_VERTICES)

    def viewport(self, width: int, height: int) -> None:
        self._gl.glViewport(0, 0, width, height)

    def clear(self, color: tuple[float, float, float, float]) -> None:
        gl = self._gl
        gl.glClearColor(*color)
        gl.glClear(gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT)

    def set_depth_test(self, enabled: bool) -> None:
        gl = self._gl
        (gl.glEnable if enabled else gl.glDisable)(gl.GL_DEPTH_TEST)

    def draw_triangles(self, count: int) -> None:
        gl = self._gl
        gl.glDrawElements(gl.GL_TRIANGLES, count, gl.GL_UNSIGNED_INT, None)

    def draw_patches(self, count: int) -> None:
        gl = self._gl
        gl.glDrawArrays(gl.GL_PATCHES, 0, count)


class GraphicsPipeline:
    """Owns the shader programs and draws a scene into a window."""

    def __init__(
        self,
        window: DrawingWindow,
        backend: PipelineBackend | None = None,
        shader_dir: str | PathLike[str] = "resources/shaders",
    ) -> None:
        self.window = window
        self.shader_dir = Path(shader_dir)
        self._backend: Any = backend
        self.programs: dict[str, ShaderProgram] = {}
        self.quad_vao: VertexArray | None = None
        self.quad_positions: BufferObject | None = None
        self.quad_indices: BufferObject | None = None

    def _require_backend(self) -> Any:
        if self._backend is None:
            raise RuntimeError("pipeline has not been initialized")
        return self._backend

    def _build_program(self, name: str) -> ShaderProgram:
        shaders = []
        for kind, filename in _PROGRAM_SOURCES[name]:
            shader = ShaderObject(kind, backend=self._backend)
            shader.load(self.shader_dir / filename)
            shaders.append(shader)
        program = ShaderProgram(backend=self._backend)
        program.link(*shaders)
        return program

    def _program(self, name: str) -> ShaderProgram:
        try:
            return self.programs[name]
        except KeyError:
            raise RuntimeError("pipeline has not been initialized") from None

    def initialize(self) -> None:
        """Set up OpenGL state, compile every program and build the fullscreen quad."""
        if self._backend is None:
            try:
                self._backend = PygletPipelineBackend()
            except Exception as exc:
                raise RuntimeError("failed to initialize OpenGL") from exc
        width, height = self.window.dimensions
        self._backend.configure(width, height)

        for name in _PROGRAM_SOURCES:
            self.programs[name] = self._build_program(name)

        self.quad_vao = VertexArray(backend=self._backend)
        self.quad_vao.bind()
        self.quad_positions = BufferObject(BufferKind.VERTEX, backend=self._backend)
        self.quad_positions.upload(_QUAD_POSITIONS)
        self.quad_vao.add_attribute(0, 3)
        self.quad_indices = BufferObject(BufferKind.INDEX, backend=self._backend)
        self.quad_indices.upload(_QUAD_INDICES)
        self.quad_vao.unbind()

    def register_mesh(self, mesh: Mesh) -> None:
        """Create the vertex array and buffers that hold ``mesh`` on the GPU."""
        backend = self._require_backend()
        mesh.vao = VertexArray(backend=backend)
        mesh.vao.bind()

        mesh.positions_buffer = BufferObject(BufferKind.VERTEX, backend=backend)
        mesh.positions_buffer.upload(mesh.vertices)
        mesh.vao.add_attribute(0, 3)

        if mesh.normals:
            mesh.normals_buffer = BufferObject(BufferKind.VERTEX, backend=backend)
            mesh.normals_buffer.upload(mesh.normals)
            mesh.vao.add_attribute(1, 3)

        if mesh.uvs:
            mesh.uvs_buffer = BufferObject(BufferKind.VERTEX, backend=backend)
            mesh.uvs_buffer.upload(mesh.uvs)
            mesh.vao.add_attribute(2, 2)

        mesh.indices_buffer = BufferObject(BufferKind.INDEX, backend=backend)
        mesh.indices_buffer.upload(mesh.indices)

        mesh.vao.unbind()
        logger.info("mesh: %s has been registered", mesh.id)

    def register_spline(self, spline: Spline) -> None:
        """Upload the spline's control points as one patch."""
        backend = self._require_backend()
        spline.vao = VertexArray(backend=backend)
        spline.vao.bind()
        spline.positions_buffer = BufferObject(BufferKind.VERTEX, backend=backend)
        spline.positions_buffer.upload(spline.positions())
        spline.vao.add_attribute(0, 3)
        spline.vao.unbind()
        logger.info("spline: %s has been registered", spline.id)

    def register_scene(self, scene: Scene) -> None:
        for mesh in scene.meshes:
            self.register_mesh(mesh)
        for spline in scene.splines:
            self.register_spline(spline)

    def projection_matrix(self, camera: Camera) -> np.ndarray:
        """Projection for the camera's mode at the window's current size."""
        width, height = self.window.dimensions
        if camera.projection_mode is CameraProjectionMode.ORTHOGRAPHIC:
            half_width = width / 1000 * camera.zoom_factor
            half_height = height / 1000 * camera.zoom_factor
            return ortho(-half_width, half_width, -half_height, half_height, NEAR_PLANE, FAR_PLANE)
        return perspective(math.radians(camera.fov), width / height, NEAR_PLANE, FAR_PLANE)

    def render_mesh(self, mesh: Mesh, view: np.ndarray, projection: np.ndarray) -> None:
        if mesh.vao is None:
            raise RuntimeError(f"mesh {mesh.id} has not been registered")
        name = "unlit" if mesh.render_mode is MeshRenderMode.UNLIT else "normal"
        program = self._program(name)
        program.use()
        program.set_mat4("projection", projection)
        program.set_mat4("view", view)
        program.set_mat4("transform", np.eye(4))

        mesh.vao.bind()
        self._backend.draw_triangles(len(mesh.indices))
        mesh.vao.unbind()
        self._backend.use_program(None)

    def render_spline(self, spline: Spline, view: np.ndarray, projection: np.ndarray) -> None:
        if spline.vao is None:
            raise RuntimeError(f"spline {spline.id} has not been registered")
        program = self._program("spline")
        program.use()
        program.set_mat4("view", view)
        program.set_mat4("projection", projection)
        program.set_vec4("tint", np.ones(4))
        program.set_mat4("transform", np.eye(4))
        program.set_float("segmentCount", SPLINE_SEGMENT_COUNT)
        program.set_float("stripCount", SPLINE_STRIP_COUNT)

        spline.vao.bind()
        self._backend.draw_patches(PATCH_VERTICES)
        spline.vao.unbind()
        self._backend.use_program(None)

    def _draw_quad(self, program: ShaderProgram) -> None:
        assert self.quad_vao is not None
        self.quad_vao.bind()
        self._backend.draw_triangles(len(_QUAD_INDICES))
        self.quad_vao.unbind()
        self._backend.use_program(None)

    def render_scene(self, scene: Scene) -> None:
        """Draw the checkered background, the grid, then every mesh and spline."""
        backend = self._require_backend()
        width, height = self.window.dimensions
        backend.viewport(width, height)
        backend.clear(CLEAR_COLOR)

        camera = scene.camera
        view = look_at(camera.position, camera.target, camera.up)
        projection = self.projection_matrix(camera)

        backend.set_depth_test(False)
        checkers = self._program("checkers")
        checkers.use()
        checkers.set_vec2("resolution", (width, height))
        self._draw_quad(checkers)

        grid = self._program("grid")
        grid.use()
        grid.set_mat4("view", view)
        grid.set_mat4("projection", projection)
        self._draw_quad(grid)
        backend.set_depth_test(True)

        for mesh in scene.meshes:
            self.render_mesh(mesh, view, projection)
        for spline in scene.splines:
            self.render_spline(spline, view, projection)

    def present(self) -> None:
        self.window.swap_buffers()

    def clean_up(self) -> None:
        """Delete the programs, their shaders and the fullscreen quad."""
        for program in self.programs.values():
            program.delete()
        self.programs.clear()
        for buffer in (self.quad_positions, self.quad_indices):
            if buffer is not None:
                buffer.delete()
        self.quad_positions = None
        self.quad_indices = None
        self.quad_vao = None