"""OpenGL resources: shaders, programs, vertex arrays, buffers and textures.

Every resource talks to the driver through a backend object. By default this
is :class:`PygletBackend`, which issues the calls through pyglet's OpenGL
bindings on the current context.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Sequence
from enum import Enum
from os import PathLike
from typing import Any, Protocol

import numpy as np
from PIL import Image

from resview.io import read_shader_source

logger = logging.getLogger(__name__)

FLOAT_SIZE = np.dtype(np.float32).itemsize


class ShaderError(RuntimeError):
    """A shader failed to compile or a program failed to link."""


class ShaderKind(Enum):
    VERTEX = "vertex"
    FRAGMENT = "fragment"
    TESS_CONTROL = "tesscontrol"
    TESS_EVALUATION = "tessevaluation"


class BufferKind(Enum):
    """Vertex data (32-bit floats) or element indices (32-bit ints)."""

    VERTEX = "vertex"
    INDEX = "index"

    @property
    def dtype(self) -> type:
        return np.float32 if self is BufferKind.VERTEX else np.int32


class UniformKind(Enum):
    FLOAT = "float"
    INT = "int"
    VEC2 = "vec2"
    VEC3 = "vec3"
    VEC4 = "vec4"
    MAT4 = "mat4"


class GLBackend(Protocol):
    """Operations the resource classes need from an OpenGL implementation."""

    def compile_shader(self, kind: ShaderKind, source: str) -> Any: ...
    def delete_shader(self, shader: Any) -> None: ...
    def link_program(self, shaders: Sequence[Any]) -> Any: ...
    def use_program(self, program: Any | None) -> None: ...
    def set_uniform(self, program: Any, name: str, kind: UniformKind, values: tuple) -> None: ...
    def delete_program(self, program: Any) -> None: ...
    def create_vertex_array(self) -> int: ...
    def bind_vertex_array(self, handle: int | None) -> None: ...
    def vertex_attribute(self, location: int, length: int, stride: int) -> None: ...
    def create_buffer(self) -> int: ...
    def bind_buffer(self, kind: BufferKind, handle: int | None) -> None: ...
    def buffer_data(self, kind: BufferKind, data: bytes) -> None: ...
    def delete_buffer(self, handle: int) -> None: ...
    def create_texture(self) -> int: ...
    def bind_texture(self, handle: int | None) -> None: ...
    def set_texture_sampling(self) -> None: ...
    def texture_image(self, width: int, height: int, data: bytes) -> None: ...


class PygletBackend:
    """Backend issuing OpenGL calls through pyglet on the current context."""

    def __init__(self) -> None:
        from pyglet import gl
        from pyglet.graphics import shader

        self._gl = gl
        self._shader = shader

    def _target(self, kind: BufferKind) -> int:
        gl = self._gl
        return gl.GL_ARRAY_BUFFER if kind is BufferKind.VERTEX else gl.GL_ELEMENT_ARRAY_BUFFER

    def compile_shader(self, kind: ShaderKind, source: str) -> Any:
        try:
            return self._shader.Shader(source, kind.value)
        except self._shader.ShaderException as exc:
            raise ShaderError(str(exc)) from exc

    def delete_shader(self, shader: Any) -> None:
        shader.delete()

    def link_program(self, shaders: Sequence[Any]) -> Any:
        try:
            return self._shader.ShaderProgram(*shaders)
        except self._shader.ShaderException as exc:
            raise ShaderError(str(exc)) from exc

    def use_program(self, program: Any | None) -> None:
        self._gl.glUseProgram(program.id if program is not None else 0)

    def set_uniform(self, program: Any, name: str, kind: UniformKind, values: tuple) -> None:
        gl = self._gl
        encoded = name.encode("utf-8") + b"\0"
        name_buffer = (gl.GLchar * len(encoded)).from_buffer_copy(encoded)
        location = gl.glGetUniformLocation(program.id, name_buffer)
        if kind is UniformKind.FLOAT:
            gl.glUniform1f(location, *values)
        elif kind is UniformKind.INT:
            gl.glUniform1i(location, *values)
        elif kind is UniformKind.VEC2:
            gl.glUniform2f(location, *values)
        elif kind is UniformKind.VEC3:
            gl.glUniform3f(location, *values)
        elif kind is UniformKind.VEC4:
            gl.glUniform4f(location, *values)
        else:
            gl.glUniformMatrix4fv(location, 1, gl.GL_FALSE, (gl.GLfloat * 16)(*values))

    def delete_program(self, program: Any) -> None:
        program.delete()

    def create_vertex_array(self) -> int:
        handle = self._gl.GLuint()
        self._gl.glGenVertexArrays(1, handle)
        return handle.value

    def bind_vertex_array(self, handle: int | None) -> None:
        self._gl.glBindVertexArray(handle or 0)

    def vertex_attribute(self, location: int, length: int, stride: int) -> None:
        gl = self._gl
        gl.glVertexAttribPointer(location, length, gl.GL_FLOAT, gl.GL_FALSE, stride, None)
        gl.glEnableVertexAttribArray(location)

    def create_buffer(self) -> int:
        handle = self._gl.GLuint()
        self._gl.glGenBuffers(1, handle)
        return handle.value

    def bind_buffer(self, kind: BufferKind, handle: int | None) -> None:
        self._gl.glBindBuffer(self._target(kind), handle or 0)

    def buffer_data(self, kind: BufferKind, data: bytes) -> None:
        self._gl.glBufferData(self._target(kind), len(data), data, self._gl.GL_STATIC_DRAW)

    def delete_buffer(self, handle: int) -> None:
        self._gl.glDeleteBuffers(1, self._gl.GLuint(handle))

    def create_texture(self) -> int:
        handle = self._gl.GLuint()
        self._gl.glGenTextures(1, handle)
        return handle.value

    def bind_texture(self, handle: int | None) -> None:
        self._gl.glBindTexture(self._gl.GL_TEXTURE_2D, handle or 0)

    def set_texture_sampling(self) -> None:
        gl = self._gl
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_S, gl.GL_REPEAT)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_T, gl.GL_REPEAT)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MIN_FILTER, gl.GL_LINEAR_MIPMAP_LINEAR)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MAG_FILTER, gl.GL_LINEAR)

    def texture_image(self, width: int, height: int, data: bytes) -> None:
        gl = self._gl
        gl.glTexImage2D(
            gl.GL_TEXTURE_2D, 0, gl.GL_RGB, width, height, 0, gl.GL_RGB, gl.GL_UNSIGNED_BYTE, data
        )
        gl.glGenerateMipmap(gl.GL_TEXTURE_2D)


@functools.lru_cache(maxsize=1)
def _default_backend() -> PygletBackend:
    return PygletBackend()


def _backend(backend: GLBackend | None) -> GLBackend:
    return backend if backend is not None else _default_backend()


def _components(value: Any, count: int) -> tuple[float, ...]:
    array = np.asarray(value, dtype=float).ravel()
    if array.size != count:
        raise ValueError(f"expected {count} components, got {array.size}")
    return tuple(float(x) for x in array)


class ShaderObject:
    """One shader stage compiled from a source file."""

    def __init__(self, kind: ShaderKind | str, backend: GLBackend | None = None) -> None:
        self.kind = ShaderKind(kind)
        self.handle: Any = None
        self._backend = _backend(backend)

    def load(self, path: str | PathLike[str]) -> None:
        """Compile the shader from the file at ``path``; raises ShaderError on failure."""
        source = read_shader_source(path)
        compiled = self._backend.compile_shader(self.kind, source)
        if self.handle is not None:
            self._backend.delete_shader(self.handle)
        self.handle = compiled

    def delete(self) -> None:
        if self.handle is not None:
            self._backend.delete_shader(self.handle)
            self.handle = None


class ShaderProgram:
    """A linked program owning the shader stages it was built from."""

    def __init__(self, backend: GLBackend | None = None) -> None:
        self.handle: Any = None
        self.shaders: tuple[ShaderObject, ...] = ()
        self._backend = _backend(backend)

    def link(self, *args: ShaderObject) -> None:
        """Link vertex and fragment stages, optionally with both tessellation stages."""
        kinds = [shader.kind for shader in args]
        if len(set(kinds)) != len(kinds):
            raise ShaderError("each shader stage may appear only once")
        if ShaderKind.VERTEX not in kinds or ShaderKind.FRAGMENT not in kinds:
            raise ShaderError("a program needs a vertex and a fragment shader")
        tessellation = {ShaderKind.TESS_CONTROL, ShaderKind.TESS_EVALUATION} & set(kinds)
        if len(tessellation) == 1:
            raise ShaderError("tessellation needs both control and evaluation shaders")
        for shader in args:
            if shader.handle is None:
                raise ShaderError(f"{shader.kind.value} shader has not been loaded")
        self.handle = self._backend.link_program([shader.handle for shader in args])
        self.shaders = tuple(args)

    def _require_linked(self) -> None:
        if self.handle is None:
            raise ShaderError("program is not linked")

    def use(self) -> None:
        self._require_linked()
        self._backend.use_program(self.handle)

    def _set(self, name: str, kind: UniformKind, values: tuple) -> None:
        self._require_linked()
        self._backend.set_uniform(self.handle, name, kind, values)

    def set_float(self, name: str, value: float) -> None:
        self._set(name, UniformKind.FLOAT, (float(value),))

    def set_int(self, name: str, value: int) -> None:
        self._set(name, UniformKind.INT, (int(value),))

    def set_vec2(self, name: str, value: Any) -> None:
        self._set(name, UniformKind.VEC2, _components(value, 2))

    def set_vec3(self, name: str, value: Any) -> None:
        self._set(name, UniformKind.VEC3, _components(value, 3))

    def set_vec4(self, name: str, value: Any) -> None:
        self._set(name, UniformKind.VEC4, _components(value, 4))

    def set_mat4(self, name: str, value: Any) -> None:
        """Upload a 4x4 matrix given in row-major form; it is sent column-major."""
        matrix = np.asarray(value, dtype=float)
        if matrix.shape != (4, 4):
            raise ValueError(f"expected a 4x4 matrix, got shape {matrix.shape}")
        self._set(name, UniformKind.MAT4, tuple(float(x) for x in matrix.flatten(order="F")))

    def delete(self) -> None:
        """Delete the attached shaders and the program itself."""
        for shader in self.shaders:
            shader.delete()
        self.shaders = ()
        if self.handle is not None:
            self._backend.delete_program(self.handle)
            self.handle = None


class VertexArray:
    """Vertex array object recording attribute layouts."""

    def __init__(self, backend: GLBackend | None = None) -> None:
        self._backend = _backend(backend)
        self.handle = self._backend.create_vertex_array()

    def add_attribute(self, location: int, length: int) -> None:
        """Describe a tightly packed float attribute of ``length`` components."""
        self._backend.vertex_attribute(location, length, length * FLOAT_SIZE)

    def bind(self) -> None:
        self._backend.bind_vertex_array(self.handle)

    def unbind(self) -> None:
        self._backend.bind_vertex_array(None)


class BufferObject:
    """GPU buffer of vertex floats or element indices."""

    def __init__(self, kind: BufferKind = BufferKind.VERTEX, backend: GLBackend | None = None) -> None:
        self.kind = BufferKind(kind)
        self._backend = _backend(backend)
        self.handle: int | None = self._backend.create_buffer()

    def upload(self, data: Any) -> None:
        """Bind the buffer and fill it with ``data`` as 32-bit values."""
        packed = np.asarray(data, dtype=self.kind.dtype).ravel().tobytes()
        self.bind()
        self._backend.buffer_data(self.kind, packed)

    def bind(self) -> None:
        self._backend.bind_buffer(self.kind, self.handle)

    def unbind(self) -> None:
        self._backend.bind_buffer(self.kind, None)

    def delete(self) -> None:
        if self.handle is not None:
            self._backend.delete_buffer(self.handle)
            self.handle = None


class Texture:
    """2D RGB texture with repeat wrapping and mipmapped filtering."""

    def __init__(self, width: int, height: int, backend: GLBackend | None = None) -> None:
        self.width = width
        self.height = height
        self._backend = _backend(backend)
        self.handle = self._backend.create_texture()

    def load(self, path: str | PathLike[str]) -> bool:
        """Upload the image at ``path``; returns False when it cannot be read."""
        self.bind()
        self._backend.set_texture_sampling()
        try:
            with Image.open(path) as image:
                rgb = image.convert("RGB")
        except (OSError, ValueError):
            logger.warning("Failed to load texture %s", path)
            return False
        width, height = rgb.size
        self._backend.texture_image(width, height, rgb.tobytes())
        return True

    def set_data(self, data: bytes) -> None:
        """Replace the contents with raw RGB bytes of the texture's size."""
        raw = bytes(data)
        expected = self.width * self.height * 3
        if len(raw) != expected:
            raise ValueError(f"expected {expected} bytes of RGB data, got {len(raw)}")
        self.bind()
        self._backend.texture_image(self.width, self.height, raw)

    def bind(self) -> None:
        self._backend.bind_texture(self.handle)

    def unbind(self) -> None:
        self._backend.bind_texture(None)