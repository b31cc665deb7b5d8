"""Parameter sets for registration and smoothing runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

SMOOTHING_METHODS = ("iterative", "explicit", "implicit")


@dataclass(frozen=True)
class RegistrationConfig:
    """Parameters of the ICP loop.

    ``sample_count`` source vertices are drawn per iteration and a pair is
    rejected when its distance exceeds ``outlier_factor`` times the median
    pair distance.
    """

    sample_count: int = 100
    outlier_factor: float = 3.0
    max_iterations: int = 50
    tolerance: float = 1e-8
    seed: Optional[int] = None

    def __post_init__(self):
        if self.sample_count < 1:
            raise ValueError("sample_count must be at least 1")
        if self.outlier_factor <= 0:
            raise ValueError("outlier_factor must be positive")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        if self.tolerance < 0:
            raise ValueError("tolerance must be non-negative")


@dataclass(frozen=True)
class SmoothingConfig:
    method: str = "implicit"
    step: float = 1e-3
    iterations: int = 1
    solver_rtol: float = 1e-8
    solver_maxiter: Optional[int] = None

    def __post_init__(self):
        if self.method not in SMOOTHING_METHODS:
            raise ValueError(
                f"Unknown smoothing method {self.method!r}, expected one of {SMOOTHING_METHODS}"
            )
        if self.step < 0:
            raise ValueError("step must be non-negative")
        if self.iterations < 0:
            raise ValueError("iterations must be non-negative")
        if self.solver_rtol <= 0:
            raise ValueError("solver_rtol must be positive")
        if self.solver_maxiter is not None and self.solver_maxiter < 1:
            raise ValueError("solver_maxiter must be at least 1")

    def solver_options(self) -> dict:
        """Keyword arguments forwarded to the implicit integrator."""
        return {"rtol": self.solver_rtol, "maxiter": self.solver_maxiter}
