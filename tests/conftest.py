"""Shared meshes for the test suite.

Meshes are built from explicit arrays so the numerical tests do not depend
on any file or primitive generator.
"""

from __future__ import annotations

import os
import sys

import numpy as np
import pytest

# Allow importing `src` without installing the project
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from src.core import Mesh  # noqa: E402


def make_unit_cube_mesh() -> tuple[np.ndarray, np.ndarray]:
    """Return a simple triangulated cube surface mesh.

    - 8 vertices
    - 12 triangles
    """
    verts = np.array(
        [
            [0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
            [1.0, 1.0, 0.0],
            [0.0, 1.0, 0.0],
            [0.0, 0.0, 1.0],
            [1.0, 0.0, 1.0],
            [1.0, 1.0, 1.0],
            [0.0, 1.0, 1.0],
        ],
        dtype=np.float64,
    )

    faces = np.array(
        [
            # bottom (z=0)
            [0, 2, 1],
            [0, 3, 2],
            # top (z=1)
            [4, 5, 6],
            [4, 6, 7],
            # front (y=0)
            [0, 1, 5],
            [0, 5, 4],
            # back (y=1)
            [3, 6, 2],
            [3, 7, 6],
            # left (x=0)
            [0, 7, 3],
            [0, 4, 7],
            # right (x=1)
            [1, 2, 6],
            [1, 6, 5],
        ],
        dtype=np.int64,
    )
    return verts, faces


def make_icosahedron() -> tuple[np.ndarray, np.ndarray]:
    """Regular icosahedron with 12 vertices of valence 5, on the unit sphere."""
    phi = (1.0 + np.sqrt(5.0)) / 2.0
    verts = np.array(
        [
            [-1, phi, 0], [1, phi, 0], [-1, -phi, 0], [1, -phi, 0],
            [0, -1, phi], [0, 1, phi], [0, -1, -phi], [0, 1, -phi],
            [phi, 0, -1], [phi, 0, 1], [-phi, 0, -1], [-phi, 0, 1],
        ],
        dtype=np.float64,
    )
    verts /= np.linalg.norm(verts, axis=1, keepdims=True)

    faces = np.array(
        [
            [0, 11, 5], [0, 5, 1], [0, 1, 7], [0, 7, 10], [0, 10, 11],
            [1, 5, 9], [5, 11, 4], [11, 10, 2], [10, 7, 6], [7, 1, 8],
            [3, 9, 4], [3, 4, 2], [3, 2, 6], [3, 6, 8], [3, 8, 9],
            [4, 9, 5], [2, 4, 11], [6, 2, 10], [8, 6, 7], [9, 8, 1],
        ],
        dtype=np.int64,
    )
    return verts, faces


def make_planar_square() -> tuple[np.ndarray, np.ndarray]:
    """Unit square in the z=0 plane split into two counter-clockwise triangles."""
    verts = np.array(
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]]
    )
    faces = np.array([[0, 1, 2], [0, 2, 3]])
    return verts, faces


@pytest.fixture
def cube():
    return make_unit_cube_mesh()


@pytest.fixture
def icosahedron():
    return make_icosahedron()


@pytest.fixture
def icosahedron_mesh():
    return Mesh(*make_icosahedron())


@pytest.fixture
def square():
    return make_planar_square()


class UpdateCounter:
    """Mesh listener counting notifications."""

    def __init__(self):
        self.calls = 0

    def __call__(self, mesh):
        self.calls += 1


@pytest.fixture
def update_counter():
    return UpdateCounter()
