"""An OpenGL viewer for triangle meshes and cubic splines, with an orbit camera."""

__version__ = "0.1.0"