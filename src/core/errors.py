"""Custom errors for mesh registration and smoothing."""


class MeshProcessingError(Exception):
    """Base class for errors raised by the geometry pipeline."""


class LengthMismatchError(MeshProcessingError, ValueError):
    """Raised when paired sequences do not have the same length."""


class EmptyInputError(MeshProcessingError, ValueError):
    """Raised when a reduction (centroid, median, ...) gets no data."""


class DegenerateMeshError(MeshProcessingError, ValueError):
    """Raised when the mesh geometry makes an operator singular."""


class SolverDivergenceError(MeshProcessingError, RuntimeError):
    """Raised when an iterative linear solve fails to converge."""
