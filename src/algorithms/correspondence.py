"""
Correspondence search for rigid registration.

Source vertices are sampled, matched to their closest target vertex by a
brute-force scan, and pairs that lie much further apart than the median
pair are flagged as outliers.
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Tuple

import numpy as np

from ..core.errors import EmptyInputError, LengthMismatchError
from ..core.mesh import Mesh

logger = logging.getLogger(__name__)


class Correspondences(NamedTuple):
    """Parallel arrays of matched source and target points."""

    source: np.ndarray
    target: np.ndarray


def _as_points(points, name="points") -> np.ndarray:
    if isinstance(points, Mesh):
        points = points.vertices
    arr = np.asarray(points, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"{name} must be shaped (N, 3)")
    return arr


def _check_same_length(left, right) -> None:
    if len(left) != len(right):
        raise LengthMismatchError(
            f"paired sequences differ in length: {len(left)} != {len(right)}"
        )


def sample_random_vertices(points, count: int, rng=None) -> np.ndarray:
    """
    Draw ``min(count, N)`` points uniformly without replacement.

    Args:
        points: (N, 3) vertex positions or a ``Mesh``
        count: number of points to draw
        rng: seed or ``np.random.Generator``; ``None`` draws fresh entropy

    Returns:
        (min(count, N), 3) copy of the selected points. When ``count >= N``
        every point is returned in its original order.
    """
    points = _as_points(points)
    if count < 0:
        raise ValueError("count must be non-negative")

    n = points.shape[0]
    if count >= n:
        return points.copy()

    rng = np.random.default_rng(rng)
    idx = rng.choice(n, size=count, replace=False)
    return points[idx].copy()


def nearest_neighbors(query, target) -> Tuple[np.ndarray, np.ndarray]:
    """
    Find the closest target point of every query point.

    Every target index is visited for every query point, so the cost is
    O(|query| * |target|). Ties go to the lowest target index.

    Returns:
        matched: (Q, 3) closest target point per query point
        indices: (Q,) index of that point in ``target``
    """
    query = _as_points(query, "query")
    target = _as_points(target, "target")
    if target.shape[0] == 0:
        raise EmptyInputError("cannot search neighbours in an empty target set")

    indices = np.empty(query.shape[0], dtype=np.int64)
    for i, point in enumerate(query):
        dist = np.linalg.norm(target - point, axis=1)
        # argmin returns the first occurrence of the minimum
        indices[i] = int(np.argmin(dist))

    return target[indices].copy(), indices


def distances(left, right) -> np.ndarray:
    """Euclidean distance between ``left[i]`` and ``right[i]``."""
    _check_same_length(left, right)
    left = _as_points(left, "left")
    right = _as_points(right, "right")
    return np.linalg.norm(left - right, axis=1)


def median(values) -> float:
    """Median of ``values``; the input is left untouched."""
    data = np.sort(np.asarray(values, dtype=np.float64).ravel())
    n = data.shape[0]
    if n == 0:
        raise EmptyInputError("median of an empty sequence")

    middle = n // 2
    if n % 2 == 0:
        return float((data[middle - 1] + data[middle]) / 2.0)
    return float(data[middle])


def outlier_mask(dists, median_value: float, k: float) -> np.ndarray:
    """``True`` where a distance exceeds ``median_value * k``."""
    threshold = median_value * k
    return np.asarray(dists, dtype=np.float64) > threshold


def filter_by_mask(sequence, mask) -> np.ndarray:
    """Keep the elements whose mask entry is ``False``, preserving order."""
    _check_same_length(sequence, mask)
    keep = ~np.asarray(mask, dtype=bool)
    return np.asarray(sequence)[keep]


def find_correspondences(source_points, target_points, k: float):
    """
    Match ``source_points`` to ``target_points`` and drop outlier pairs.

    Returns:
        pairs: filtered ``Correspondences``
        info: dict with the median distance, threshold and counts
    """
    matched, _ = nearest_neighbors(source_points, target_points)
    dists = distances(source_points, matched)
    med = median(dists)
    mask = outlier_mask(dists, med, k)

    pairs = Correspondences(
        filter_by_mask(source_points, mask),
        filter_by_mask(matched, mask),
    )
    logger.debug(
        "Median %.6g, threshold %.6g, kept %d/%d pairs",
        med, med * k, len(pairs.source), len(dists),
    )
    return pairs, {
        'median': med,
        'threshold': med * k,
        'num_samples': int(len(dists)),
        'num_kept': int(len(pairs.source)),
    }
