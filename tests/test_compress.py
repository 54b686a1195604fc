# Author: Emrullah Erce Dutkan
"""
Tests for compress.py.

"""

import numpy as np
import pytest

from lmodel.compress import CentroidCompressor
from lmodel.errors import ConfigError, DimensionError


def test_blocks_respect_cap_and_conserve_multiplicity():
    random_state = np.random.RandomState(42)
    comp = CentroidCompressor(3, max_clusters=10)
    for n in (50, 30, 20):
        comp.absorb(random_state.randn(n, 3))
        assert comp.n_centroids <= 10

    assert comp.n_centroids == 10
    assert np.isclose(comp.multiplicities.sum(), 100)


def test_under_cap_keeps_observations():
    random_state = np.random.RandomState(0)
    x = random_state.randn(5, 4)
    comp = CentroidCompressor(4, max_clusters=10).absorb(x)

    assert np.array_equal(comp.centroids, x)
    assert np.array_equal(comp.multiplicities, np.ones(5))
    assert np.allclose(comp.crossprod(), x.T @ x)


def test_duplicates_fold_at_zero_threshold():
    x = np.array([[1.0, 2.0], [1.0, 2.0], [3.0, 0.0]])
    comp = CentroidCompressor(2, max_clusters=10).absorb(x)

    assert comp.n_centroids == 2
    assert np.array_equal(comp.multiplicities, [2.0, 1.0])


def test_threshold_folds_into_nearest():
    x = np.array([[0.0, 0.0], [0.5, 0.0], [4.0, 0.0]])
    comp = CentroidCompressor(2, max_clusters=10, threshold=1.0).absorb(x)

    assert comp.n_centroids == 2
    assert np.allclose(comp.centroids, [[0.25, 0.0], [4.0, 0.0]])
    assert np.array_equal(comp.multiplicities, [2.0, 1.0])


def test_merge_tie_break_lowest_pair():
    # Pairs (0, 1) and (1, 2) are equidistant; the lowest one is merged
    x = np.array([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]])
    comp = CentroidCompressor(2, max_clusters=2).absorb(x)

    assert np.allclose(comp.centroids, [[0.5, 0.0], [2.0, 0.0]])
    assert np.array_equal(comp.multiplicities, [2.0, 1.0])
    assert comp.n_merges == 1


def test_merge_tie_break_is_lexicographic():
    # (0, 4) and (1, 2) are equidistant; (0, 4) comes first
    x = np.array([[0.0, 0.0], [10.0, 0.0], [11.0, 0.0], [20.0, 20.0], [1.0, 0.0]])
    comp = CentroidCompressor(2, max_clusters=4).absorb(x)

    assert np.allclose(comp.centroids, [[0.5, 0.0], [10.0, 0.0], [11.0, 0.0], [20.0, 20.0]])


def test_heavier_class_wins():
    comp = CentroidCompressor(2, max_clusters=1)
    comp.absorb(np.array([[0.0, 0.0], [0.0, 0.1]]), classes=[1, 1])
    comp.absorb(np.array([[5.0, 5.0]]), classes=[2])

    assert np.array_equal(comp.classes, [1])
    assert np.isclose(comp.multiplicities[0], 3)


def test_equal_weight_merge_keeps_existing_class():
    comp = CentroidCompressor(2, max_clusters=1)
    comp.absorb(np.array([[0.0, 0.0], [1.0, 1.0]]), classes=[1, 2])

    assert np.array_equal(comp.classes, [1])
    assert np.allclose(comp.centroids, [[0.5, 0.5]])


def test_zero_row_block_is_noop():
    random_state = np.random.RandomState(3)
    comp = CentroidCompressor(3, max_clusters=4).absorb(random_state.randn(6, 3))
    before = comp.centroids, comp.multiplicities

    comp.absorb(np.zeros((0, 3)))
    assert np.array_equal(comp.centroids, before[0])
    assert np.array_equal(comp.multiplicities, before[1])


def test_dimension_errors():
    comp = CentroidCompressor(3)
    with pytest.raises(DimensionError):
        comp.absorb(np.ones((2, 4)))
    with pytest.raises(DimensionError):
        comp.absorb(np.ones((2, 3)), classes=[1, 2, 3])
    with pytest.raises(DimensionError):
        comp.absorb(np.array([[1.0, np.nan, 0.0]]))
    with pytest.raises(DimensionError):
        comp.absorb(np.ones((2, 3)), classes=["a", "b"])
    assert comp.n_centroids == 0


def test_invalid_options():
    with pytest.raises(ConfigError):
        CentroidCompressor(3, max_clusters=0)
    with pytest.raises(ConfigError):
        CentroidCompressor(3, threshold=-1.0)


def test_from_arrays_merges_down_to_cap():
    random_state = np.random.RandomState(4)
    centr = random_state.randn(6, 2)
    comp = CentroidCompressor.from_arrays(centr, np.arange(1, 7), max_clusters=3)

    assert comp.n_centroids == 3
    assert np.isclose(comp.multiplicities.sum(), 21)


def test_decay():
    comp = CentroidCompressor(2).absorb(np.eye(2))
    comp.decay(0.9)
    assert np.allclose(comp.multiplicities, [0.9, 0.9])


def test_memory_is_bounded():
    random_state = np.random.RandomState(5)
    comp = CentroidCompressor(4, max_clusters=20).absorb(random_state.randn(10, 4))
    small = comp.get_memory_bytes()
    comp.absorb(random_state.randn(500, 4))
    assert comp.get_memory_bytes() == small
