"""Tests for the closed-form rigid alignment solver."""

import numpy as np
import pytest

from src.algorithms.registration import rotation_about_axis
from src.algorithms.rigid_alignment import (
    RigidTransform,
    apply_rigid_transform,
    apply_rotation,
    apply_translation,
    centroid,
    cross_covariance,
    mean_squared_error,
    optimal_rotation,
    optimal_translation,
    solve_rigid_transform,
)
from src.core import EmptyInputError, LengthMismatchError, Mesh


def _random_rotation(rng):
    return rotation_about_axis(rng.normal(size=3), rng.uniform(-np.pi, np.pi))


def test_centroid():
    np.testing.assert_allclose(centroid([[0, 0, 0], [2, 4, 6]]), [1, 2, 3])


def test_centroid_empty():
    with pytest.raises(EmptyInputError):
        centroid(np.zeros((0, 3)))


def test_cross_covariance_outer_product_orientation():
    P = np.array([[1.0, 0.0, 0.0], [-1.0, 0.0, 0.0]])
    Q = np.array([[0.0, 1.0, 0.0], [0.0, -1.0, 0.0]])
    M = cross_covariance(P, Q)
    expected = np.zeros((3, 3))
    expected[0, 1] = 1.0
    np.testing.assert_allclose(M, expected)


def test_cross_covariance_length_mismatch():
    with pytest.raises(LengthMismatchError):
        cross_covariance(np.zeros((3, 3)), np.zeros((4, 3)))


def test_cross_covariance_empty():
    with pytest.raises(EmptyInputError):
        cross_covariance(np.zeros((0, 3)), np.zeros((0, 3)))


@pytest.mark.parametrize("seed", range(5))
def test_rotation_is_proper_for_arbitrary_point_sets(seed):
    rng = np.random.default_rng(seed)
    P = rng.normal(size=(20, 3))
    Q = rng.normal(size=(20, 3))
    R = optimal_rotation(cross_covariance(P, Q))
    assert np.linalg.det(R) == pytest.approx(1.0)
    np.testing.assert_allclose(R.T @ R, np.eye(3), atol=1e-10)


def test_rotation_corrects_reflection():
    rng = np.random.default_rng(11)
    P = rng.normal(size=(30, 3))
    Q = P * np.array([-1.0, 1.0, 1.0])
    M = cross_covariance(P, Q)

    U, _, Vt = np.linalg.svd(M)
    assert np.linalg.det(Vt.T @ U.T) == pytest.approx(-1.0)

    R = optimal_rotation(M)
    assert np.linalg.det(R) == pytest.approx(1.0)


@pytest.mark.parametrize("seed", range(5))
def test_exact_rigid_motion_is_recovered(seed):
    rng = np.random.default_rng(seed)
    P = rng.normal(size=(25, 3))
    R_true = _random_rotation(rng)
    t_true = rng.normal(size=3)
    Q = P @ R_true.T + t_true

    transform = solve_rigid_transform(P, Q)

    np.testing.assert_allclose(transform.rotation, R_true, atol=1e-8)
    np.testing.assert_allclose(transform.translation, t_true, atol=1e-8)
    assert mean_squared_error(transform.apply(P), Q) == pytest.approx(0.0, abs=1e-16)


def test_optimal_translation_matches_centroids():
    P = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    Q = P + np.array([1.0, 2.0, 3.0])
    t = optimal_translation(P, Q, np.eye(3))
    np.testing.assert_allclose(t, [1.0, 2.0, 3.0])


def test_mean_squared_error():
    left = np.zeros((2, 3))
    right = np.array([[1.0, 0.0, 0.0], [0.0, 2.0, 0.0]])
    assert mean_squared_error(left, right) == pytest.approx(2.5)


def test_mean_squared_error_length_mismatch():
    with pytest.raises(LengthMismatchError):
        mean_squared_error(np.zeros((2, 3)), np.zeros((1, 3)))


def test_apply_rotation_and_translation_notify(icosahedron, update_counter):
    verts, faces = icosahedron
    mesh = Mesh(verts, faces)
    mesh.add_listener(update_counter)
    R = rotation_about_axis([0, 0, 1], np.pi / 2)

    apply_rotation(R, mesh)
    np.testing.assert_allclose(mesh.vertices, verts @ R.T, atol=1e-12)
    assert update_counter.calls == 1

    apply_translation([1.0, 0.0, 0.0], mesh)
    np.testing.assert_allclose(mesh.vertices, verts @ R.T + [1.0, 0.0, 0.0], atol=1e-12)
    assert update_counter.calls == 2


def test_apply_rigid_transform_single_update(icosahedron, update_counter):
    verts, faces = icosahedron
    mesh = Mesh(verts, faces)
    mesh.add_listener(update_counter)
    transform = RigidTransform(rotation_about_axis([1, 1, 1], 0.3), np.array([0.5, -1.0, 2.0]))

    apply_rigid_transform(transform, mesh)

    np.testing.assert_allclose(mesh.vertices, transform.apply(verts))
    assert update_counter.calls == 1
