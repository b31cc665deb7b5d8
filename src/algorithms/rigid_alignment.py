"""
Closed-form rigid alignment of two corresponding point sets.

The rotation is the orthogonal Procrustes (Kabsch/Horn) solution: with the
cross-covariance M = U S V^T of the centred point sets, R = V diag(1, 1, d) U^T
where d = det(V U^T) flips the last axis whenever V U^T would be a
reflection.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np

from ..core.errors import EmptyInputError, LengthMismatchError
from ..core.mesh import Mesh

logger = logging.getLogger(__name__)


class RigidTransform(NamedTuple):
    rotation: np.ndarray
    translation: np.ndarray

    def apply(self, points) -> np.ndarray:
        """Return ``R p + t`` for every row ``p`` of ``points``."""
        points = np.asarray(points, dtype=np.float64)
        return points @ self.rotation.T + self.translation


def _paired(points_p, points_q):
    p = np.asarray(points_p, dtype=np.float64)
    q = np.asarray(points_q, dtype=np.float64)
    if len(p) != len(q):
        raise LengthMismatchError(f"point sets differ in length: {len(p)} != {len(q)}")
    if len(p) == 0:
        raise EmptyInputError("point sets are empty")
    return p, q


def centroid(points) -> np.ndarray:
    points = np.asarray(points, dtype=np.float64)
    if points.shape[0] == 0:
        raise EmptyInputError("centroid of an empty point set")
    return points.mean(axis=0)


def cross_covariance(points_p, points_q) -> np.ndarray:
    """
    3x3 matrix (1/n) sum (p_i - c_P)(q_i - c_Q)^T.

    Rows follow the components of P, columns those of Q.
    """
    p, q = _paired(points_p, points_q)
    p_centered = p - centroid(p)
    q_centered = q - centroid(q)
    return (p_centered.T @ q_centered) / p.shape[0]


def optimal_rotation(M) -> np.ndarray:
    """Proper rotation (det = +1) maximising the alignment encoded in ``M``."""
    M = np.asarray(M, dtype=np.float64)
    U, _, Vt = np.linalg.svd(M)
    V = Vt.T
    d = np.linalg.det(V @ U.T)

    correction = np.eye(3)
    correction[2, 2] = d
    return V @ correction @ U.T


def optimal_translation(points_p, points_q, rotation) -> np.ndarray:
    """Translation ``c_Q - R c_P`` completing ``rotation``."""
    p, q = _paired(points_p, points_q)
    return centroid(q) - np.asarray(rotation, dtype=np.float64) @ centroid(p)


def solve_rigid_transform(points_p, points_q) -> RigidTransform:
    """Rigid motion taking ``points_p`` onto ``points_q`` in the least-squares sense."""
    M = cross_covariance(points_p, points_q)
    R = optimal_rotation(M)
    t = optimal_translation(points_p, points_q, R)
    return RigidTransform(R, t)


def apply_rotation(rotation, mesh: Mesh) -> None:
    """Left-multiply every vertex of ``mesh`` by ``rotation``."""
    rotation = np.asarray(rotation, dtype=np.float64)
    mesh.set_vertices(mesh.vertices @ rotation.T)
    mesh.update()


def apply_translation(translation, mesh: Mesh) -> None:
    translation = np.asarray(translation, dtype=np.float64)
    mesh.set_vertices(mesh.vertices + translation)
    mesh.update()


def apply_rigid_transform(transform: RigidTransform, mesh: Mesh) -> None:
    """Rotate then translate ``mesh`` in one batch with a single update."""
    mesh.set_vertices(transform.apply(mesh.vertices))
    mesh.update()


def mean_squared_error(left, right) -> float:
    """(1/n) sum ||left_i - right_i||^2."""
    left, right = _paired(left, right)
    return float(np.mean(np.sum((left - right) ** 2, axis=1)))
