"""
Core geometric algorithms for rigid registration and mesh smoothing.
"""

from .correspondence import (
    Correspondences,
    sample_random_vertices,
    nearest_neighbors,
    distances,
    median,
    outlier_mask,
    filter_by_mask,
    find_correspondences,
)
from .rigid_alignment import (
    RigidTransform,
    centroid,
    cross_covariance,
    optimal_rotation,
    optimal_translation,
    solve_rigid_transform,
    apply_rotation,
    apply_translation,
    apply_rigid_transform,
    mean_squared_error,
)
from .registration import IterationResult, RigidRegistration, align_once, rotation_about_axis
from .laplace_beltrami import (
    LaplaceOperators,
    triangle_area,
    face_areas,
    vertex_mass_matrix,
    gradient_operator,
    face_area_matrix,
    stiffness_matrix,
    build_operators,
    laplacian,
)
from .smoothing import (
    SmoothingReport,
    build_adjacency_matrix,
    vertex_neighbors,
    iterative_smoothing,
    explicit_smoothing,
    implicit_smoothing,
    smooth,
)
from .metrics import (
    hausdorff_distance,
    mean_curvature,
    surface_area,
    enclosed_volume,
    compute_volume_change_percent,
)

__all__ = [
    # Correspondence search
    'Correspondences',
    'sample_random_vertices',
    'nearest_neighbors',
    'distances',
    'median',
    'outlier_mask',
    'filter_by_mask',
    'find_correspondences',
    # Rigid alignment
    'RigidTransform',
    'centroid',
    'cross_covariance',
    'optimal_rotation',
    'optimal_translation',
    'solve_rigid_transform',
    'apply_rotation',
    'apply_translation',
    'apply_rigid_transform',
    'mean_squared_error',
    # Registration loop
    'IterationResult',
    'RigidRegistration',
    'align_once',
    'rotation_about_axis',
    # Laplace-Beltrami
    'LaplaceOperators',
    'triangle_area',
    'face_areas',
    'vertex_mass_matrix',
    'gradient_operator',
    'face_area_matrix',
    'stiffness_matrix',
    'build_operators',
    'laplacian',
    # Smoothing
    'SmoothingReport',
    'build_adjacency_matrix',
    'vertex_neighbors',
    'iterative_smoothing',
    'explicit_smoothing',
    'implicit_smoothing',
    'smooth',
    # Metrics
    'hausdorff_distance',
    'mean_curvature',
    'surface_area',
    'enclosed_volume',
    'compute_volume_change_percent',
]
