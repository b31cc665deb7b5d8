import numpy as np
from scipy.spatial.distance import directed_hausdorff

from .laplace_beltrami import face_areas, laplacian


def mean_curvature(verts, faces):
    """
    Mean curvature magnitude at each vertex, H = |L x| / 2.

    Uses the Laplace-Beltrami operator without the small-mesh mass rescale,
    so values are in inverse length units (1/r on a sphere of radius r).

    Args:
        verts: (N, 3) array of vertex positions
        faces: (M, 3) array of triangle indices

    Returns:
        H: (N,) array of mean curvature values at each vertex
        H_mean: scalar mean curvature across the mesh
        H_std: scalar standard deviation of curvature
    """
    verts = np.asarray(verts, dtype=np.float64)
    L = laplacian(verts, faces, stabilize=False)
    H = np.linalg.norm(L @ verts, axis=1) / 2
    return H, float(np.mean(H)), float(np.std(H))


def surface_area(verts, faces):
    """Total area of all faces."""
    return float(face_areas(verts, faces).sum())


def enclosed_volume(verts, faces):
    """
    Volume bounded by a closed, consistently oriented surface.

    Sums the signed volumes of the tetrahedra spanned by the origin and each
    face; the absolute value is returned so orientation does not matter.
    """
    verts = np.asarray(verts, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64)
    v0 = verts[faces[:, 0]]
    v1 = verts[faces[:, 1]]
    v2 = verts[faces[:, 2]]
    signed = np.einsum('ij,ij->i', v0, np.cross(v1, v2)).sum() / 6
    return float(abs(signed))


def hausdorff_distance(verts1, verts2, sample_size=5000, rng=None):
    """
    Compute Hausdorff distance between two point clouds.
    Uses sampling for large meshes to keep computation tractable.

    Args:
        verts1: (N, 3) array of vertices
        verts2: (M, 3) array of vertices
        sample_size: max points to use for computation
        rng: seed or np.random.Generator used for the sampling

    Returns:
        float: Hausdorff distance
    """
    rng = np.random.default_rng(rng)

    if verts1.shape[0] > sample_size:
        idx = rng.choice(verts1.shape[0], sample_size, replace=False)
        verts1 = verts1[idx]

    if verts2.shape[0] > sample_size:
        idx = rng.choice(verts2.shape[0], sample_size, replace=False)
        verts2 = verts2[idx]

    d1 = directed_hausdorff(verts1, verts2)[0]
    d2 = directed_hausdorff(verts2, verts1)[0]
    return max(d1, d2)


def compute_volume_change_percent(original_volume, new_volume):
    """Compute percentage change in volume."""
    if original_volume == 0:
        return 0.0
    return ((new_volume - original_volume) / original_volume) * 100
