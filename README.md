# resview

resview is a small interactive 3D viewer built on OpenGL through pyglet. It
opens a window and draws a checkered background and a ground grid. It then
draws the triangle meshes in the scene, which it loads from OBJ files, and the
cubic splines, which the GPU tessellates.

## Installation

```
pip install .
```

You need a graphics driver that can create an OpenGL 4.1 forward-compatible
context with tessellation shaders.

## Running

```
resview [--mesh PATH] [--shaders DIR]
```

- `--mesh`: the OBJ file to display. The default is
  `resources/meshes/monkey_smooth.obj`.
- `--shaders`: the directory that holds the GLSL shaders. The default is
  `resources/shaders`.

Both defaults are relative to the working directory. The package does not
include the shaders or the mesh. The shader directory must contain:
`unlit.vert`, `unlit.frag`, `normal.vert`, `normal.frag`, `grid.vert`,
`grid.frag`, `screenSpace.vert`, `checkers.frag`, `spline.vert`,
`spline.tcs`, `spline.tes` and `spline.frag`.

The demo scene holds the first mesh of the OBJ file and two sample splines.

### Camera controls

Every control except scrolling uses the middle mouse button:

- **Drag**: orbit the camera around its target.
- **Left Shift + drag**: pan the camera and its target together, along the
  camera's right and up directions.
- **Left Ctrl + drag**: move the camera and its target along the camera's
  right and forward directions. The step grows with the distance to the
  target.
- **Scroll wheel**: move the camera towards or away from its target. It also
  changes the camera's `zoom_factor`, which sets the size of the orthographic
  projection.

## Using it as a library

```python
from resview.scene import Scene, Spline, Mesh
from resview.camera_control import update_camera
from resview.input import InputState

scene = Scene()
scene.meshes.append(Mesh.from_obj("resources/meshes/monkey_smooth.obj", 0))
scene.splines.append(Spline((0, 0, -1), (-1, 0, -0.5), (1, 0, 0.5), (0, 0, 1)))

print(scene.splines[0].positions())   # 12 floats: four control points

state = InputState()
state.on_scroll(0.0, 1.0)
update_camera(scene.camera, state)    # one frame of input applied to the camera
```

Most of the package works without a window:

- `resview.transforms` builds 4×4 matrices: `translate`, `rotate`,
  `look_at`, `perspective` and `ortho`.
- `resview.scene` holds the scene model: `Camera` (with `rotate_around`),
  `Mesh` (with `Mesh.from_obj`), `Spline` and `Scene`. `Mesh.from_obj`
  triangulates polygons and flips texture V. It joins identical vertices and
  generates smooth normals when the file has none. A mesh without texture
  coordinates raises `RuntimeError`.
- `resview.input.InputState` collects key, button, cursor and scroll state.
- `resview.camera_control.update_camera` applies one frame of that state to a
  camera.
- `resview.io.read_shader_source` reads a shader file as text.

The OpenGL code is in three modules:

- `resview.gl_objects`: `ShaderObject`, `ShaderProgram`, `VertexArray`,
  `BufferObject` and `Texture`. Each takes an optional backend object; the
  default is `PygletBackend`.
- `resview.pipeline.GraphicsPipeline`: the renderer.
- `resview.window.Window`: the window.

`resview.app.Application` ties them together.

## What it does not do

resview only views. It cannot edit a scene or save one. It shows only the
first mesh of the OBJ file given with `--mesh`, and the splines are the two
built-in samples. The camera starts in perspective mode, and no control
switches it to orthographic. The viewer does not use `Texture`, so meshes are
drawn without textures.