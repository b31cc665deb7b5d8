"""
Triangle mesh container shared by the registration and smoothing code.

Vertex positions are mutable in place, the triangle list is not. Consumers
that cache anything derived from the geometry (viewers, plotters, ...)
register a listener and get called once per batch of vertex writes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List

import numpy as np

from .errors import LengthMismatchError


@dataclass(frozen=True, eq=False)
class MeshSnapshot:
    """Immutable copy of the vertex positions of a mesh."""

    vertices: np.ndarray

    def __post_init__(self):
        frozen = np.array(self.vertices, dtype=np.float64, copy=True)
        frozen.flags.writeable = False
        object.__setattr__(self, "vertices", frozen)

    def __len__(self) -> int:
        return self.vertices.shape[0]


class Mesh:
    """Vertex positions ``(N, 3)`` plus triangles ``(M, 3)`` indexing them."""

    def __init__(self, vertices, faces):
        verts = np.array(vertices, dtype=np.float64, copy=True)
        if verts.ndim != 2 or verts.shape[1] != 3:
            raise ValueError("vertices must be shaped (N, 3)")

        tris = np.array(faces, dtype=np.int64, copy=True)
        if tris.size == 0:
            tris = tris.reshape(0, 3)
        if tris.ndim != 2 or tris.shape[1] != 3:
            raise ValueError("faces must be shaped (M, 3)")
        if tris.size and (tris.min() < 0 or tris.max() >= verts.shape[0]):
            raise ValueError("face indices must lie in [0, num_vertices)")
        tris.flags.writeable = False

        self._vertices = verts
        self._faces = tris
        self._listeners: List[Callable[["Mesh"], None]] = []
        self.revision = 0

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def vertices(self) -> np.ndarray:
        """Read-only view of the current vertex positions."""
        view = self._vertices.view()
        view.flags.writeable = False
        return view

    @property
    def faces(self) -> np.ndarray:
        return self._faces

    @property
    def num_vertices(self) -> int:
        return self._vertices.shape[0]

    @property
    def num_faces(self) -> int:
        return self._faces.shape[0]

    def get_vertex(self, index: int) -> np.ndarray:
        return self._vertices[index].copy()

    def points(self) -> np.ndarray:
        """Independent copy of the vertex positions (a point set)."""
        return self._vertices.copy()

    # ------------------------------------------------------------------
    # Write access
    # ------------------------------------------------------------------

    def set_vertex(self, index: int, position) -> None:
        position = np.asarray(position, dtype=np.float64)
        if position.shape != (3,):
            raise ValueError("a vertex position must have 3 coordinates")
        self._vertices[index] = position

    def set_vertices(self, vertices) -> None:
        """Overwrite all vertex positions; the vertex count cannot change."""
        verts = np.asarray(vertices, dtype=np.float64)
        if verts.shape != self._vertices.shape:
            raise LengthMismatchError(
                f"expected vertices shaped {self._vertices.shape}, got {verts.shape}"
            )
        self._vertices[...] = verts

    def add_listener(self, callback: Callable[["Mesh"], None]) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[["Mesh"], None]) -> None:
        self._listeners.remove(callback)

    def update(self) -> None:
        """Signal that a batch of vertex writes is complete."""
        self.revision += 1
        for callback in list(self._listeners):
            callback(self)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> MeshSnapshot:
        return MeshSnapshot(self._vertices)

    def restore(self, snapshot: MeshSnapshot) -> None:
        self.set_vertices(snapshot.vertices)
        self.update()

    def copy(self) -> "Mesh":
        return Mesh(self._vertices, self._faces)

    # ------------------------------------------------------------------
    # PyVista interop
    # ------------------------------------------------------------------

    @classmethod
    def from_pyvista(cls, poly) -> "Mesh":
        """Build a mesh from a ``pyvista.PolyData``, triangulating it first."""
        tri = poly.triangulate()
        faces = np.asarray(tri.faces, dtype=np.int64).reshape(-1, 4)
        if faces.size and not np.all(faces[:, 0] == 3):
            raise ValueError("PolyData still contains non-triangular cells")
        return cls(np.asarray(tri.points, dtype=np.float64), faces[:, 1:])

    def to_pyvista(self):
        import pyvista as pv

        faces_padded = np.hstack(
            [np.full((self.num_faces, 1), 3, dtype=np.int64), self._faces]
        ).astype(np.int64)
        return pv.PolyData(self._vertices.copy(), faces_padded)

    def __repr__(self) -> str:
        return f"Mesh(num_vertices={self.num_vertices}, num_faces={self.num_faces})"
