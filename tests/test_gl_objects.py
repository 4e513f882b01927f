import itertools

import numpy as np
import pytest
from PIL import Image

from resview.gl_objects import (
    BufferKind,
    BufferObject,
    ShaderError,
    ShaderKind,
    ShaderObject,
    ShaderProgram,
    Texture,
    UniformKind,
    VertexArray,
)


class FakeBackend:
    """In-memory stand-in for a GL driver."""

    def __init__(self):
        self._ids = itertools.count(1)
        self.shaders = {}
        self.programs = {}
        self.current_program = None
        self.uniforms = []
        self.bound_vertex_array = None
        self.attributes = []
        self.buffers = {}
        self.bound_buffers = {}
        self.textures = {}
        self.bound_texture = None
        self.sampling_set = []

    def compile_shader(self, kind, source):
        if "syntax error" in source:
            raise ShaderError("0:1: syntax error")
        handle = next(self._ids)
        self.shaders[handle] = (kind, source)
        return handle

    def delete_shader(self, shader):
        del self.shaders[shader]

    def link_program(self, shaders):
        handle = next(self._ids)
        self.programs[handle] = list(shaders)
        return handle

    def use_program(self, program):
        self.current_program = program

    def set_uniform(self, program, name, kind, values):
        self.uniforms.append((program, name, kind, values))

    def delete_program(self, program):
        del self.programs[program]

    def create_vertex_array(self):
        return next(self._ids)

    def bind_vertex_array(self, handle):
        self.bound_vertex_array = handle

    def vertex_attribute(self, location, length, stride):
        self.attributes.append((location, length, stride))

    def create_buffer(self):
        handle = next(self._ids)
        self.buffers[handle] = b""
        return handle

    def bind_buffer(self, kind, handle):
        self.bound_buffers[kind] = handle

    def buffer_data(self, kind, data):
        self.buffers[self.bound_buffers[kind]] = data

    def delete_buffer(self, handle):
        del self.buffers[handle]

    def create_texture(self):
        handle = next(self._ids)
        self.textures[handle] = None
        return handle

    def bind_texture(self, handle):
        self.bound_texture = handle

    def set_texture_sampling(self):
        self.sampling_set.append(self.bound_texture)

    def texture_image(self, width, height, data):
        self.textures[self.bound_texture] = (width, height, data)


@pytest.fixture
def backend():
    return FakeBackend()


def _shader(backend, tmp_path, kind, source="void main() {}"):
    path = tmp_path / f"{kind.value}.glsl"
    path.write_text(source)
    shader = ShaderObject(kind, backend=backend)
    shader.load(path)
    return shader


def test_shader_load_compiles_file_contents(backend, tmp_path):
    source = "#version 410 core\nvoid main() {}\n"
    shader = _shader(backend, tmp_path, ShaderKind.VERTEX, source)
    assert backend.shaders[shader.handle] == (ShaderKind.VERTEX, source)


def test_shader_load_missing_file_raises(backend, tmp_path):
    shader = ShaderObject(ShaderKind.FRAGMENT, backend=backend)
    with pytest.raises(FileNotFoundError):
        shader.load(tmp_path / "absent.frag")
    assert shader.handle is None


def test_shader_compile_error_raises(backend, tmp_path):
    path = tmp_path / "bad.frag"
    path.write_text("syntax error here")
    shader = ShaderObject("fragment", backend=backend)
    with pytest.raises(ShaderError, match="syntax error"):
        shader.load(path)
    assert shader.handle is None


def test_shader_delete_releases_handle(backend, tmp_path):
    shader = _shader(backend, tmp_path, ShaderKind.VERTEX)
    shader.delete()
    assert shader.handle is None
    assert backend.shaders == {}


def test_program_links_vertex_and_fragment(backend, tmp_path):
    vertex = _shader(backend, tmp_path, ShaderKind.VERTEX)
    fragment = _shader(backend, tmp_path, ShaderKind.FRAGMENT)
    program = ShaderProgram(backend=backend)
    program.link(vertex, fragment)
    assert program.shaders == (vertex, fragment)
    assert backend.programs[program.handle] == [vertex.handle, fragment.handle]


def test_program_links_tessellation_stages(backend, tmp_path):
    stages = [
        _shader(backend, tmp_path, kind)
        for kind in (
            ShaderKind.VERTEX,
            ShaderKind.TESS_CONTROL,
            ShaderKind.TESS_EVALUATION,
            ShaderKind.FRAGMENT,
        )
    ]
    program = ShaderProgram(backend=backend)
    program.link(*stages)
    assert backend.programs[program.handle] == [stage.handle for stage in stages]


def test_program_without_fragment_is_rejected(backend, tmp_path):
    vertex = _shader(backend, tmp_path, ShaderKind.VERTEX)
    with pytest.raises(ShaderError):
        ShaderProgram(backend=backend).link(vertex)


def test_program_with_one_tessellation_stage_is_rejected(backend, tmp_path):
    vertex = _shader(backend, tmp_path, ShaderKind.VERTEX)
    fragment = _shader(backend, tmp_path, ShaderKind.FRAGMENT)
    control = _shader(backend, tmp_path, ShaderKind.TESS_CONTROL)
    with pytest.raises(ShaderError, match="tessellation"):
        ShaderProgram(backend=backend).link(vertex, control, fragment)


def test_program_with_unloaded_shader_is_rejected(backend, tmp_path):
    vertex = _shader(backend, tmp_path, ShaderKind.VERTEX)
    fragment = ShaderObject(ShaderKind.FRAGMENT, backend=backend)
    program = ShaderProgram(backend=backend)
    with pytest.raises(ShaderError, match="not been loaded"):
        program.link(vertex, fragment)
    assert program.handle is None


def test_uniform_on_unlinked_program_raises(backend):
    with pytest.raises(ShaderError, match="not linked"):
        ShaderProgram(backend=backend).set_float("segmentCount", 40)


@pytest.fixture
def program(backend, tmp_path):
    linked = ShaderProgram(backend=backend)
    linked.link(
        _shader(backend, tmp_path, ShaderKind.VERTEX),
        _shader(backend, tmp_path, ShaderKind.FRAGMENT),
    )
    return linked


def test_use_selects_program(backend, program):
    program.use()
    assert backend.current_program == program.handle


def test_scalar_and_vector_uniforms(backend, program):
    program.set_float("segmentCount", 40)
    program.set_int("mode", 2)
    program.set_vec2("resolution", (1600, 1200))
    program.set_vec4("tint", np.ones(4))
    assert backend.uniforms == [
        (program.handle, "segmentCount", UniformKind.FLOAT, (40.0,)),
        (program.handle, "mode", UniformKind.INT, (2,)),
        (program.handle, "resolution", UniformKind.VEC2, (1600.0, 1200.0)),
        (program.handle, "tint", UniformKind.VEC4, (1.0, 1.0, 1.0, 1.0)),
    ]


def test_vector_uniform_wrong_length_raises(program):
    with pytest.raises(ValueError):
        program.set_vec3("color", (1.0, 2.0))


def test_mat4_uniform_is_column_major(backend, program):
    matrix = np.arange(16.0).reshape(4, 4)
    program.set_mat4("view", matrix)
    _, name, kind, values = backend.uniforms[-1]
    assert (name, kind) == ("view", UniformKind.MAT4)
    assert values[:4] == tuple(matrix[:, 0])
    assert values[4:8] == tuple(matrix[:, 1])
    assert np.array_equal(np.array(values).reshape(4, 4).T, matrix)


def test_mat4_uniform_rejects_wrong_shape(program):
    with pytest.raises(ValueError):
        program.set_mat4("view", np.eye(3))


def test_program_delete_removes_shaders_and_program(backend, program):
    program.delete()
    assert backend.programs == {}
    assert backend.shaders == {}
    assert program.shaders == ()


def test_vertex_array_attribute_and_binding(backend):
    vao = VertexArray(backend=backend)
    vao.bind()
    assert backend.bound_vertex_array == vao.handle
    vao.add_attribute(0, 3)
    vao.add_attribute(2, 2)
    vao.unbind()
    assert backend.bound_vertex_array is None
    assert backend.attributes == [(0, 3, 12), (2, 2, 8)]


def test_vertex_buffer_upload_packs_floats(backend):
    buffer = BufferObject(BufferKind.VERTEX, backend=backend)
    data = [-1.0, -1.0, 0.0, 1.0, 0.5, 0.25]
    buffer.upload(data)
    assert backend.bound_buffers[BufferKind.VERTEX] == buffer.handle
    assert np.frombuffer(backend.buffers[buffer.handle], dtype=np.float32).tolist() == data


def test_index_buffer_upload_packs_ints(backend):
    buffer = BufferObject(BufferKind.INDEX, backend=backend)
    buffer.upload([0, 1, 2, 2, 3, 0])
    stored = np.frombuffer(backend.buffers[buffer.handle], dtype=np.int32)
    assert stored.tolist() == [0, 1, 2, 2, 3, 0]


def test_buffer_unbind_and_delete(backend):
    buffer = BufferObject(BufferKind.INDEX, backend=backend)
    handle = buffer.handle
    buffer.bind()
    buffer.unbind()
    assert backend.bound_buffers[BufferKind.INDEX] is None
    buffer.delete()
    assert handle not in backend.buffers
    assert buffer.handle is None


def test_texture_load_uploads_rgb_pixels(backend, tmp_path):
    path = tmp_path / "image.png"
    image = Image.new("RGBA", (2, 3), (10, 20, 30, 40))
    image.save(path)
    texture = Texture(2, 3, backend=backend)
    assert texture.load(path) is True
    assert backend.sampling_set == [texture.handle]
    assert backend.textures[texture.handle] == (2, 3, image.convert("RGB").tobytes())


def test_texture_load_missing_file_returns_false(backend, tmp_path):
    texture = Texture(4, 4, backend=backend)
    assert texture.load(tmp_path / "missing.png") is False
    assert backend.textures[texture.handle] is None


def test_texture_set_data_and_size_check(backend):
    texture = Texture(2, 2, backend=backend)
    pixels = bytes(range(12))
    texture.set_data(pixels)
    assert backend.textures[texture.handle] == (2, 2, pixels)
    with pytest.raises(ValueError):
        texture.set_data(bytes(5))
    texture.unbind()
    assert backend.bound_texture is None