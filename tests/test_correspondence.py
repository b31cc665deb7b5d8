"""Tests for correspondence search and outlier rejection."""

import numpy as np
import pytest

from src.algorithms.correspondence import (
    distances,
    filter_by_mask,
    find_correspondences,
    median,
    nearest_neighbors,
    outlier_mask,
    sample_random_vertices,
)
from src.core import EmptyInputError, LengthMismatchError


def test_median_even_and_odd():
    assert median([1, 2, 3, 4]) == 2.5
    assert median([1, 2, 3]) == 2


def test_median_ignores_input_order_and_keeps_input():
    values = np.array([4.0, 1.0, 3.0, 2.0])
    assert median(values) == 2.5
    np.testing.assert_array_equal(values, [4.0, 1.0, 3.0, 2.0])


def test_median_empty():
    with pytest.raises(EmptyInputError):
        median([])


def test_outlier_mask_threshold():
    mask = outlier_mask([1, 5, 7, 2], median_value=2, k=3)
    assert mask.tolist() == [False, False, True, False]


def test_outlier_mask_is_strict():
    # distance equal to the threshold is kept
    assert outlier_mask([6.0], median_value=2.0, k=3).tolist() == [False]


def test_filter_preserves_order():
    kept = filter_by_mask(['a', 'b', 'c', 'd'], [False, True, False, True])
    assert list(kept) == ['a', 'c']


def test_filter_points():
    points = np.arange(12, dtype=np.float64).reshape(4, 3)
    kept = filter_by_mask(points, np.array([True, False, False, True]))
    np.testing.assert_array_equal(kept, points[1:3])


def test_filter_length_mismatch():
    with pytest.raises(LengthMismatchError):
        filter_by_mask([1, 2, 3], [False, True])


def test_distances():
    left = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]])
    right = np.array([[3.0, 4.0, 0.0], [1.0, 1.0, 1.0]])
    np.testing.assert_allclose(distances(left, right), [5.0, 0.0])


def test_distances_length_mismatch():
    with pytest.raises(LengthMismatchError):
        distances(np.zeros((3, 3)), np.zeros((2, 3)))


def test_nearest_neighbor_visits_last_index():
    target = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
    matched, idx = nearest_neighbors(np.array([[0.9, 0.0, 0.0]]), target)
    assert idx.tolist() == [1]
    np.testing.assert_array_equal(matched, [[1.0, 0.0, 0.0]])


def test_nearest_neighbor_tie_goes_to_lowest_index():
    target = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
    _, idx = nearest_neighbors(np.array([[0.5, 0.0, 0.0]]), target)
    assert idx.tolist() == [0]


def test_nearest_neighbor_single_target():
    target = np.array([[2.0, 2.0, 2.0]])
    matched, idx = nearest_neighbors(np.zeros((3, 3)), target)
    assert idx.tolist() == [0, 0, 0]
    np.testing.assert_array_equal(matched, np.repeat(target, 3, axis=0))


def test_nearest_neighbor_matches_scipy():
    from scipy.spatial.distance import cdist

    rng = np.random.default_rng(3)
    query = rng.normal(size=(40, 3))
    target = rng.normal(size=(60, 3))
    _, idx = nearest_neighbors(query, target)
    np.testing.assert_array_equal(idx, np.argmin(cdist(query, target), axis=1))


def test_nearest_neighbor_empty_target():
    with pytest.raises(EmptyInputError):
        nearest_neighbors(np.zeros((1, 3)), np.zeros((0, 3)))


def test_sample_returns_everything_when_count_is_large(icosahedron):
    verts, _ = icosahedron
    sample = sample_random_vertices(verts, 100)
    np.testing.assert_array_equal(sample, verts)
    sample[0] = 42.0
    assert not np.any(verts == 42.0)


def test_sample_without_replacement(icosahedron):
    verts, _ = icosahedron
    sample = sample_random_vertices(verts, 5, rng=0)
    assert sample.shape == (5, 3)
    assert len(np.unique(sample, axis=0)) == 5
    for point in sample:
        assert np.any(np.all(verts == point, axis=1))


def test_sample_is_reproducible_with_seed(icosahedron):
    verts, _ = icosahedron
    a = sample_random_vertices(verts, 6, rng=np.random.default_rng(7))
    b = sample_random_vertices(verts, 6, rng=np.random.default_rng(7))
    np.testing.assert_array_equal(a, b)


def test_sample_rejects_negative_count(icosahedron):
    verts, _ = icosahedron
    with pytest.raises(ValueError):
        sample_random_vertices(verts, -1)


def test_find_correspondences_drops_outlier():
    target = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
    source = target + np.array([0.0, 0.1, 0.0])
    source[3] = [3.0, 5.0, 0.0]

    pairs, info = find_correspondences(source, target, k=3)

    assert info['num_samples'] == 4
    assert info['num_kept'] == 3
    assert info['median'] == pytest.approx(0.1)
    np.testing.assert_allclose(pairs.source, source[:3])
    np.testing.assert_allclose(pairs.target, target[:3])
