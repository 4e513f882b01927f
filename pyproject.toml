[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "resview"
version = "0.1.0"
description = "A small OpenGL viewer for triangle meshes and cubic Bezier splines with an orbit camera"
requires-python = ">=3.10"
keywords = ["opengl", "viewer", "mesh", "obj", "spline", "bezier", "3d"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: X11 Applications",
    "Environment :: Win32 (MS Windows)",
    "Environment :: MacOS X",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
]
dependencies = [
    "numpy",
    "pyglet",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
resview = "resview.app:main"

[tool.hatch.build.targets.wheel]
packages = ["resview"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
