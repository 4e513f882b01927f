"""Scene contents: camera, meshes and cubic splines."""

from __future__ import annotations

import random
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from os import PathLike
from pathlib import Path
from typing import Any

import numpy as np

from resview.transforms import rotate, translate


class MeshRenderMode(Enum):
    NORMAL = 0
    UNLIT = 1


class CameraProjectionMode(Enum):
    PERSPECTIVE = 0
    ORTHOGRAPHIC = 1


def _random_id() -> int:
    return random.randrange(2**31)


def _vector(*values: float):
    return lambda: np.array(values, dtype=float)


@dataclass(eq=False)
class Camera:
    fov: float = 70.0
    zoom_factor: float = 1.0
    projection_mode: CameraProjectionMode = CameraProjectionMode.PERSPECTIVE
    position: np.ndarray = field(default_factory=_vector(2.0, 2.0, 2.0))
    rotation: np.ndarray = field(default_factory=_vector(0.0, 0.0, 0.0))
    target: np.ndarray = field(default_factory=_vector(0.0, 0.0, 0.0))
    up: np.ndarray = field(default_factory=_vector(0.0, 1.0, 0.0))

    def rotate_around(self, angle: float, axis, origin) -> None:
        """Rotate the camera position by ``angle`` radians about ``axis`` through ``origin``."""
        origin_v = np.asarray(origin, dtype=float)
        transform = translate(origin_v) @ rotate(angle, axis) @ translate(-origin_v)
        self.position = (transform @ np.append(self.position, 1.0))[:3]


@dataclass(eq=False)
class Mesh:
    id: int = field(default_factory=_random_id)
    render_mode: MeshRenderMode = MeshRenderMode.NORMAL
    vertices: list[float] = field(default_factory=list)
    uvs: list[float] = field(default_factory=list)
    normals: list[float] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)
    vao: Any = field(default=None, repr=False)
    positions_buffer: Any = field(default=None, repr=False)
    uvs_buffer: Any = field(default=None, repr=False)
    normals_buffer: Any = field(default=None, repr=False)
    indices_buffer: Any = field(default=None, repr=False)

    @classmethod
    def from_obj(cls, path: str | PathLike[str], mesh_index: int = 0) -> Mesh:
        """Load one mesh of a Wavefront OBJ file as an indexed triangle list.

        Polygons are triangulated, missing normals are generated smoothly,
        texture V is flipped and identical vertices are joined.
        """
        try:
            text = Path(path).read_text(encoding="utf-8", errors="replace")
            positions, texcoords, normals, objects = _parse_obj(text)
        except (OSError, ValueError, IndexError) as exc:
            raise RuntimeError(f"Failed to load scene for mesh file: {path}") from exc
        if not objects:
            raise RuntimeError(f"Failed to load scene for mesh file: {path}")
        if not 0 <= mesh_index < len(objects):
            raise RuntimeError(f"Failed to load mesh file: {path}")

        triangles = [
            (face[0], face[k], face[k + 1])
            for face in objects[mesh_index]
            for k in range(1, len(face) - 1)
        ]
        corners = [corner for triangle in triangles for corner in triangle]
        if any(corner[1] is None for corner in corners):
            raise RuntimeError("imported OBJ mesh must have uvs")

        if all(corner[2] is not None for corner in corners):
            def normal_of(corner):
                return normals[corner[2]]
        else:
            smooth = _smooth_normals(triangles, positions)

            def normal_of(corner):
                return smooth[positions[corner[0]]]

        mesh = cls()
        index_of: dict[tuple, int] = {}
        for corner in corners:
            position = positions[corner[0]]
            u, v = texcoords[corner[1]]
            uv = (u, 1.0 - v)
            normal = tuple(normal_of(corner))
            key = (position, uv, normal)
            if key not in index_of:
                index_of[key] = len(index_of)
                mesh.vertices.extend(position)
                mesh.uvs.extend(uv)
                mesh.normals.extend(normal)
            mesh.indices.append(index_of[key])
        return mesh


def _resolve(token: str, count: int) -> int | None:
    if not token:
        return None
    index = int(token)
    resolved = count + index if index < 0 else index - 1
    if not 0 <= resolved < count:
        raise ValueError(f"OBJ index {index} out of range")
    return resolved


def _parse_obj(text: str):
    positions: list[tuple[float, float, float]] = []
    texcoords: list[tuple[float, float]] = []
    normals: list[tuple[float, float, float]] = []
    objects: list[list[list[tuple]]] = [[]]

    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        keyword, *args = line.split()
        if keyword == "v":
            x, y, z = (float(a) for a in args[:3])
            positions.append((x, y, z))
        elif keyword == "vt":
            u = float(args[0])
            v = float(args[1]) if len(args) > 1 else 0.0
            texcoords.append((u, v))
        elif keyword == "vn":
            x, y, z = (float(a) for a in args[:3])
            normals.append((x, y, z))
        elif keyword == "f":
            if len(args) < 3:
                continue
            face = []
            for token in args:
                parts = (token.split("/") + ["", ""])[:3]
                face.append(
                    (
                        _resolve(parts[0], len(positions)),
                        _resolve(parts[1], len(texcoords)),
                        _resolve(parts[2], len(normals)),
                    )
                )
            if any(corner[0] is None for corner in face):
                raise ValueError("face vertex without position")
            objects[-1].append(face)
        elif keyword in ("o", "g") and objects[-1]:
            objects.append([])

    return positions, texcoords, normals, [faces for faces in objects if faces]


def _smooth_normals(triangles, positions) -> dict[tuple, np.ndarray]:
    accumulated: dict[tuple, np.ndarray] = defaultdict(lambda: np.zeros(3))
    for triangle in triangles:
        a, b, c = (np.array(positions[corner[0]]) for corner in triangle)
        normal = np.cross(b - a, c - a)
        length = np.linalg.norm(normal)
        if length > 0.0:
            normal = normal / length
        for corner in triangle:
            accumulated[positions[corner[0]]] += normal
    result = {}
    for position, total in accumulated.items():
        length = np.linalg.norm(total)
        result[position] = total / length if length > 0.0 else total
    return result


@dataclass(eq=False)
class Spline:
    """Cubic curve segment given by four control points."""

    p0: np.ndarray
    p1: np.ndarray
    p2: np.ndarray
    p3: np.ndarray
    id: int = field(default_factory=_random_id)
    vao: Any = field(default=None, repr=False)
    positions_buffer: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        for name in ("p0", "p1", "p2", "p3"):
            point = np.asarray(getattr(self, name), dtype=float)
            if point.shape != (3,):
                raise ValueError(f"{name} must have three components")
            setattr(self, name, point)

    def positions(self) -> list[float]:
        """Control points flattened as x, y, z triples."""
        return [float(c) for point in (self.p0, self.p1, self.p2, self.p3) for c in point]


@dataclass(eq=False)
class Scene:
    meshes: list[Mesh] = field(default_factory=list)
    splines: list[Spline] = field(default_factory=list)
    camera: Camera = field(default_factory=Camera)