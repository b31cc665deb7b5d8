"""
Mesh smoothing by uniform averaging and mean curvature flow.

Three update rules, each mutating a ``Mesh`` in place and notifying it once:

- iterative: umbrella step towards the average of the 1-ring
- explicit:  x <- x - tau L x
- implicit:  (M + tau S) x' = M x, solved per coordinate with BiCGSTAB
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np
from scipy import sparse
from scipy.sparse.linalg import bicgstab

from ..core.config import SMOOTHING_METHODS
from ..core.errors import SolverDivergenceError
from ..core.mesh import Mesh
from .laplace_beltrami import build_operators, laplacian

logger = logging.getLogger(__name__)

CHANNELS = ("x", "y", "z")


@dataclass
class SmoothingReport:
    """Outcome of one smoothing step."""

    method: str
    step: float
    failed_channels: Tuple[str, ...] = ()
    iterations: Dict[str, int] = field(default_factory=dict)
    elapsed: float = 0.0

    @property
    def converged(self) -> bool:
        return not self.failed_channels


def build_adjacency_matrix(num_verts, faces):
    """
    Build the row-normalized adjacency matrix W = D^-1 * A.

    Every edge of every face links its two vertices in both directions;
    repeated edges count once. Rows of vertices that no face references
    stay zero.
    """
    faces = np.asarray(faces, dtype=np.int64)
    # faces is (M, 3)
    # We need to add edges (i, j) for every edge in the mesh
    rows = np.concatenate([faces[:, 0], faces[:, 1], faces[:, 2], faces[:, 1], faces[:, 2], faces[:, 0]])
    cols = np.concatenate([faces[:, 1], faces[:, 2], faces[:, 0], faces[:, 0], faces[:, 1], faces[:, 2]])
    data = np.ones(len(rows))

    A = sparse.coo_matrix((data, (rows, cols)), shape=(num_verts, num_verts))
    A = A.tocsr()
    A.sum_duplicates()
    # Deduplicate neighbours shared by two faces
    A.data[:] = 1.0

    degrees = np.array(A.sum(axis=1)).flatten()
    safe_degrees = np.where(degrees == 0, 1, degrees)
    D_inv = sparse.diags(1.0 / safe_degrees)
    return (D_inv @ A).tocsr()


def vertex_neighbors(num_verts, faces) -> List[np.ndarray]:
    """Sorted 1-ring neighbour indices of every vertex."""
    W = build_adjacency_matrix(num_verts, faces)
    return [np.sort(W.indices[W.indptr[i]:W.indptr[i + 1]]) for i in range(num_verts)]


def iterative_smoothing(mesh: Mesh, step_size: float) -> SmoothingReport:
    """
    Umbrella step: x <- x + step_size * (mean(neighbours) - x).

    All new positions are computed from the old ones before any write.
    """
    start = time.time()
    verts = mesh.points()
    W = build_adjacency_matrix(mesh.num_vertices, mesh.faces)

    has_neighbors = np.diff(W.indptr) > 0
    displacement = W @ verts - verts
    displacement[~has_neighbors] = 0.0

    mesh.set_vertices(verts + step_size * displacement)
    mesh.update()
    return SmoothingReport('iterative', step_size, elapsed=time.time() - start)


def explicit_smoothing(mesh: Mesh, tau: float) -> SmoothingReport:
    """Explicit Euler step of mean curvature flow: x <- x - tau L x."""
    start = time.time()
    logger.debug("Calculating explicit MCF (tau=%g)", tau)
    verts = mesh.points()
    L = laplacian(verts, mesh.faces)

    new_verts = np.empty_like(verts)
    for axis in range(3):
        coord = verts[:, axis]
        new_verts[:, axis] = coord - tau * (L @ coord)

    mesh.set_vertices(new_verts)
    mesh.update()
    return SmoothingReport('explicit', tau, elapsed=time.time() - start)


def _solve_channel(A, rhs, x0, rtol=1e-8, maxiter=None):
    """Solve A x = rhs with BiCGSTAB, raising on any failure."""
    counter = {'n': 0}

    def _count(_xk):
        counter['n'] += 1

    try:
        x, info = bicgstab(A, rhs, x0=x0, rtol=rtol, atol=0.0, maxiter=maxiter, callback=_count)
    except (ArithmeticError, ValueError, np.linalg.LinAlgError) as exc:
        raise SolverDivergenceError(f"BiCGSTAB raised: {exc}") from exc

    if info > 0:
        raise SolverDivergenceError(f"BiCGSTAB did not converge after {info} iterations")
    if info < 0:
        raise SolverDivergenceError(f"BiCGSTAB breakdown (info={info})")
    if not np.all(np.isfinite(x)):
        raise SolverDivergenceError("BiCGSTAB returned non-finite values")
    return x, counter['n']


def implicit_smoothing(mesh: Mesh, tau: float, rtol=1e-8, maxiter=None) -> SmoothingReport:
    """
    Implicit Euler step of mean curvature flow.

    Solves (M + tau S) x' = M x for each coordinate channel. A channel whose
    solve fails is logged and left unmodified; the solved channels are still
    written, but the mesh is only notified when every channel succeeded.
    """
    start = time.time()
    logger.debug("Calculating implicit MCF (tau=%g)", tau)
    verts = mesh.points()
    ops = build_operators(verts, mesh.faces)

    # (M + tS)
    A = (ops.mass + tau * ops.stiffness).tocsr()
    rhs = ops.mass @ verts

    new_verts = verts.copy()
    failed = []
    iterations = {}
    for axis, name in enumerate(CHANNELS):
        try:
            new_verts[:, axis], iterations[name] = _solve_channel(
                A, rhs[:, axis], verts[:, axis], rtol=rtol, maxiter=maxiter
            )
        except SolverDivergenceError as exc:
            logger.warning("Failed to solve %s channel: %s", name, exc)
            failed.append(name)

    mesh.set_vertices(new_verts)
    if not failed:
        mesh.update()

    return SmoothingReport(
        'implicit', tau,
        failed_channels=tuple(failed),
        iterations=iterations,
        elapsed=time.time() - start,
    )


def smooth(mesh: Mesh, method: str, step: float, iterations=1, **solver_options) -> List[SmoothingReport]:
    """
    Run ``iterations`` steps of one smoothing method.

    Stops early when an implicit step reports a failed channel.

    Returns:
        list of per-step ``SmoothingReport``
    """
    if method not in SMOOTHING_METHODS:
        raise ValueError(f"Unknown method: {method}")

    reports = []
    for i in range(iterations):
        if method == 'iterative':
            report = iterative_smoothing(mesh, step)
        elif method == 'explicit':
            report = explicit_smoothing(mesh, step)
        else:
            report = implicit_smoothing(mesh, step, **solver_options)
        reports.append(report)
        logger.debug("Step %d/%d (%s) took %.3fs", i + 1, iterations, method, report.elapsed)
        if not report.converged:
            logger.warning("Stopping %s smoothing after partial failure at step %d", method, i + 1)
            break
    return reports
