"""
Discrete Laplace-Beltrami operator on triangle meshes.

The operator is assembled from piecewise-linear (hat function) gradients:

    G   : (3M, N)  per-face gradient of a scalar vertex function
    Mv  : (3M, 3M) face areas, repeated for the x/y/z rows of each face
    M   : (N, N)   lumped vertex mass, area/3 from every incident face
    S   = G^T Mv G (cotangent stiffness matrix)
    L   = M^-1 S

All functions are pure: they take vertex positions and faces and return
fresh arrays or CSR matrices.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np
from scipy import sparse

from ..core.errors import DegenerateMeshError

logger = logging.getLogger(__name__)

# Below this largest lumped mass the matrix is rescaled by 1 / (max + min).
# Empirical: keeps meshes normalised to a small box from collapsing under
# implicit steps. Reproduced as-is, the intent of the divisor is unverified.
_MASS_RESCALE_THRESHOLD = 0.5

# Smallest mass entry accepted when inverting M
_MIN_VERTEX_MASS = 1e-12


class LaplaceOperators(NamedTuple):
    gradient: sparse.csr_matrix
    face_areas: sparse.csr_matrix
    mass: sparse.csr_matrix
    stiffness: sparse.csr_matrix


def triangle_area(p0, p1, p2) -> float:
    """Half the norm of the edge cross product."""
    p0 = np.asarray(p0, dtype=np.float64)
    e1 = np.asarray(p1, dtype=np.float64) - p0
    e2 = np.asarray(p2, dtype=np.float64) - p0
    return float(np.linalg.norm(np.cross(e1, e2)) / 2)


def face_areas(verts, faces) -> np.ndarray:
    """(M,) areas of all faces; degenerate faces give 0."""
    verts = np.asarray(verts, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64)
    v0 = verts[faces[:, 0]]
    v1 = verts[faces[:, 1]]
    v2 = verts[faces[:, 2]]
    return np.linalg.norm(np.cross(v1 - v0, v2 - v0), axis=1) / 2


def vertex_mass_matrix(verts, faces, stabilize=True) -> sparse.csr_matrix:
    """
    Lumped (diagonal) vertex mass matrix.

    Args:
        verts: (N, 3) vertex positions
        faces: (M, 3) triangle indices
        stabilize: rescale by 1 / (max + min) when the largest entry is
            below 0.5

    Returns:
        (N, N) diagonal CSR matrix
    """
    verts = np.asarray(verts, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64)
    num_verts = verts.shape[0]

    third_areas = face_areas(verts, faces) / 3
    vertex_areas = np.zeros(num_verts)
    np.add.at(vertex_areas, faces[:, 0], third_areas)
    np.add.at(vertex_areas, faces[:, 1], third_areas)
    np.add.at(vertex_areas, faces[:, 2], third_areas)

    if stabilize and num_verts > 0:
        max_mass = vertex_areas.max()
        min_mass = vertex_areas.min()
        if max_mass < _MASS_RESCALE_THRESHOLD:
            if max_mass + min_mass <= 0:
                raise DegenerateMeshError("mesh has zero surface area")
            logger.debug(
                "Rescaling mass matrix by 1/(%.6g + %.6g)", max_mass, min_mass
            )
            vertex_areas = vertex_areas / (max_mass + min_mass)

    return sparse.diags(vertex_areas).tocsr()


def gradient_operator(verts, faces) -> sparse.csr_matrix:
    """
    Gradient of piecewise-linear vertex functions, one 3-vector per face.

    Rows 3f, 3f+1 and 3f+2 hold the x, y and z components on face f. For the
    corner i of a face, grad(phi_i) = (n x e_i) / (2A) where e_i is the edge
    opposite i (oriented along the face) and n the unit normal. Degenerate
    faces get zero rows.
    """
    verts = np.asarray(verts, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64)
    num_verts = verts.shape[0]
    num_faces = faces.shape[0]

    v0 = verts[faces[:, 0]]
    v1 = verts[faces[:, 1]]
    v2 = verts[faces[:, 2]]

    normals = np.cross(v1 - v0, v2 - v0)
    double_areas = np.linalg.norm(normals, axis=1)
    valid = double_areas > 0
    if not valid.all():
        logger.debug("%d degenerate faces in gradient operator", int((~valid).sum()))

    safe = np.where(valid, double_areas, 1.0)
    unit_normals = normals / safe[:, None]
    # n / (2A) scaled once, then crossed with each opposite edge
    scaled = unit_normals / safe[:, None]
    scaled[~valid] = 0.0

    opposite_edges = (v2 - v1, v0 - v2, v1 - v0)

    rows = []
    cols = []
    data = []
    face_rows = 3 * np.arange(num_faces)
    for corner, edge in enumerate(opposite_edges):
        grad = np.cross(scaled, edge)
        for axis in range(3):
            rows.append(face_rows + axis)
            cols.append(faces[:, corner])
            data.append(grad[:, axis])

    G = sparse.coo_matrix(
        (np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))),
        shape=(3 * num_faces, num_verts),
    )
    return G.tocsr()


def face_area_matrix(verts, faces) -> sparse.csr_matrix:
    """(3M, 3M) diagonal matrix with each face area on its three rows."""
    return sparse.diags(np.repeat(face_areas(verts, faces), 3)).tocsr()


def stiffness_matrix(verts, faces) -> sparse.csr_matrix:
    """S = G^T Mv G."""
    G = gradient_operator(verts, faces)
    Mv = face_area_matrix(verts, faces)
    return (G.T @ Mv @ G).tocsr()


def inverse_mass_matrix(mass) -> sparse.csr_matrix:
    """Entrywise reciprocal of a diagonal mass matrix."""
    diag = mass.diagonal()
    bad = diag <= _MIN_VERTEX_MASS
    if bad.any():
        raise DegenerateMeshError(
            f"{int(bad.sum())} vertices have zero or near-zero mass "
            "(unreferenced vertices or degenerate faces)"
        )
    return sparse.diags(1.0 / diag).tocsr()


def build_operators(verts, faces, stabilize=True) -> LaplaceOperators:
    """Assemble G, Mv, M and S for one mesh state."""
    G = gradient_operator(verts, faces)
    Mv = face_area_matrix(verts, faces)
    M = vertex_mass_matrix(verts, faces, stabilize=stabilize)
    S = (G.T @ Mv @ G).tocsr()
    return LaplaceOperators(G, Mv, M, S)


def laplacian(verts, faces, stabilize=True) -> sparse.csr_matrix:
    """
    Laplace-Beltrami matrix L = M^-1 G^T Mv G.

    Raises:
        DegenerateMeshError: if a vertex mass is zero, which would put inf or
            NaN into L
    """
    ops = build_operators(verts, faces, stabilize=stabilize)
    M_inv = inverse_mass_matrix(ops.mass)
    return (M_inv @ ops.stiffness).tocsr()
