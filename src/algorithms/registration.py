"""
ICP-style rigid registration of a source surface P onto a target surface Q.

``align_once`` composes one iteration from the correspondence and alignment
primitives. ``RigidRegistration`` adds the caller-side policy: keeping the
load-time state of both surfaces for ``reset``, looping until the error
stops improving, and perturbing Q for demonstrations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..core.config import RegistrationConfig
from ..core.mesh import Mesh
from .correspondence import find_correspondences, sample_random_vertices
from .rigid_alignment import (
    RigidTransform,
    apply_rigid_transform,
    apply_rotation,
    apply_translation,
    mean_squared_error,
    solve_rigid_transform,
)

logger = logging.getLogger(__name__)


@dataclass
class IterationResult:
    num_samples: int
    median: float
    threshold: float
    num_kept: int
    transform: RigidTransform
    error_before: float
    error_after: float


def rotation_about_axis(axis, angle: float) -> np.ndarray:
    """Rotation matrix for ``angle`` radians about ``axis`` (Rodrigues)."""
    axis = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(axis)
    if norm == 0:
        raise ValueError("rotation axis must be non-zero")
    kx, ky, kz = axis / norm
    K = np.array([
        [0.0, -kz, ky],
        [kz, 0.0, -kx],
        [-ky, kx, 0.0],
    ])
    return np.eye(3) + np.sin(angle) * K + (1 - np.cos(angle)) * (K @ K)


def align_once(source: Mesh, target: Mesh, sample_count: int, outlier_factor: float,
               rng=None) -> IterationResult:
    """
    One ICP iteration; moves ``source`` towards ``target``.

    The target is only read. The source mesh is written once, after the
    transform has been solved, and notified once.
    """
    samples = sample_random_vertices(source.points(), sample_count, rng=rng)
    pairs, info = find_correspondences(samples, target.points(), outlier_factor)

    error_before = mean_squared_error(pairs.source, pairs.target)
    transform = solve_rigid_transform(pairs.source, pairs.target)
    apply_rigid_transform(transform, source)
    error_after = mean_squared_error(transform.apply(pairs.source), pairs.target)

    logger.debug(
        "Kept %d/%d pairs, error %.6g -> %.6g",
        info['num_kept'], info['num_samples'], error_before, error_after,
    )
    return IterationResult(
        num_samples=info['num_samples'],
        median=info['median'],
        threshold=info['threshold'],
        num_kept=info['num_kept'],
        transform=transform,
        error_before=error_before,
        error_after=error_after,
    )


class RigidRegistration:
    """Registers surface P onto surface Q, keeping both load-time states."""

    def __init__(self, surf_p: Mesh, surf_q: Mesh, config: Optional[RegistrationConfig] = None,
                 rng=None):
        self.config = config or RegistrationConfig()
        self.surf_p = surf_p
        self.surf_q = surf_q
        self._original_p = surf_p.snapshot()
        self._original_q = surf_q.snapshot()
        self.rng = np.random.default_rng(self.config.seed if rng is None else rng)
        logger.info("Vertices P: %d, vertices Q: %d", surf_p.num_vertices, surf_q.num_vertices)

    def reset(self) -> None:
        """Put both surfaces back in the state they had when registered."""
        self.surf_p.restore(self._original_p)
        self.surf_q.restore(self._original_q)

    def iterate(self) -> IterationResult:
        return align_once(
            self.surf_p, self.surf_q,
            self.config.sample_count, self.config.outlier_factor,
            rng=self.rng,
        )

    def run(self, max_iterations: Optional[int] = None,
            tolerance: Optional[float] = None) -> List[IterationResult]:
        """
        Iterate until the error improvement drops below ``tolerance``.

        Defaults come from the registration config.
        """
        max_iterations = self.config.max_iterations if max_iterations is None else max_iterations
        tolerance = self.config.tolerance if tolerance is None else tolerance

        results = []
        for it in range(max_iterations):
            result = self.iterate()
            results.append(result)
            logger.debug("Iteration %s/%s: error %.6g", it + 1, max_iterations, result.error_after)
            if abs(result.error_before - result.error_after) < tolerance:
                break
        return results

    def rotate_target(self, angle_degrees: float = 30.0, axis=(1.0, 1.0, 1.0)) -> np.ndarray:
        """Rotate Q about ``axis`` through the origin; returns the matrix used."""
        rotation = rotation_about_axis(axis, np.deg2rad(angle_degrees))
        apply_rotation(rotation, self.surf_q)
        return rotation

    def translate_target_randomly(self, size: float) -> np.ndarray:
        """Shift Q by a random vector in [-size/2, size/2]^3; returns it."""
        translation = self.rng.uniform(-size / 2, size / 2, size=3)
        apply_translation(translation, self.surf_q)
        return translation
