"""
Mesh container, configuration and error types.
"""

from .config import RegistrationConfig, SmoothingConfig, SMOOTHING_METHODS
from .errors import (
    MeshProcessingError,
    LengthMismatchError,
    EmptyInputError,
    DegenerateMeshError,
    SolverDivergenceError,
)
from .mesh import Mesh, MeshSnapshot

__all__ = [
    'Mesh',
    'MeshSnapshot',
    'RegistrationConfig',
    'SmoothingConfig',
    'SMOOTHING_METHODS',
    # Errors
    'MeshProcessingError',
    'LengthMismatchError',
    'EmptyInputError',
    'DegenerateMeshError',
    'SolverDivergenceError',
]
