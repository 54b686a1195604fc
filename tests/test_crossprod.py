# Author: Emrullah Erce Dutkan
"""
Tests for crossprod.py.

"""

import numpy as np
import pytest

from lmodel.crossprod import CrossProductAccumulator
from lmodel.errors import DimensionError


def test_additivity():
    random_state = np.random.RandomState(0)
    b1 = random_state.randn(30, 4)
    b2 = random_state.randn(20, 4)

    acc = CrossProductAccumulator(4).accumulate(b1).accumulate(b2)
    full = CrossProductAccumulator(4).accumulate(np.vstack([b1, b2]))

    assert np.allclose(acc.XX, full.XX)
    assert acc.N == full.N == 50


def test_order_independence():
    random_state = np.random.RandomState(1)
    blocks = [random_state.randn(n, 3) for n in (5, 17, 9)]
    ys = [random_state.randn(b.shape[0], 2) for b in blocks]

    fwd = CrossProductAccumulator(3, 2)
    rev = CrossProductAccumulator(3, 2)
    for b, y in zip(blocks, ys):
        fwd.accumulate(b, y)
    for b, y in reversed(list(zip(blocks, ys))):
        rev.accumulate(b, y)

    assert np.allclose(fwd.XX, rev.XX)
    assert np.allclose(fwd.XY, rev.XY)
    assert np.allclose(fwd.YY, rev.YY)


def test_remove_restores_sums():
    random_state = np.random.RandomState(2)
    b1 = random_state.randn(10, 3)
    b2 = random_state.randn(8, 3)

    acc = CrossProductAccumulator(3).accumulate(b1).accumulate(b2).remove(b2)
    assert np.allclose(acc.XX, b1.T @ b1, atol=1e-10)
    assert np.allclose(acc.XX, acc.XX.T)
    assert acc.N == 10


def test_remove_too_many_rows():
    acc = CrossProductAccumulator(2).accumulate(np.ones((3, 2)))
    with pytest.raises(DimensionError):
        acc.remove(np.ones((4, 2)))


def test_dimension_errors():
    acc = CrossProductAccumulator(3)
    with pytest.raises(DimensionError):
        acc.accumulate(np.ones((5, 4)))
    with pytest.raises(DimensionError):
        acc.accumulate(np.ones((5, 3)), np.ones((5, 1)))

    acc_y = CrossProductAccumulator(3, 1)
    with pytest.raises(DimensionError):
        acc_y.accumulate(np.ones((5, 3)))
    with pytest.raises(DimensionError):
        acc_y.accumulate(np.ones((5, 3)), np.ones((4, 1)))
    with pytest.raises(DimensionError):
        acc.accumulate(np.array([[1.0, np.inf, 0.0]]))
    with pytest.raises(DimensionError):
        acc_y.accumulate(np.ones((1, 3)), np.array([[np.nan]]))

    # Rejected blocks leave the sums untouched
    assert np.all(acc.XX == 0)
    assert acc.N == 0


def test_decay():
    x = np.arange(6, dtype=float).reshape(3, 2)
    acc = CrossProductAccumulator(2, 1).accumulate(x, np.ones((3, 1)))
    XX, XY = acc.XX.copy(), acc.XY.copy()

    acc.decay(0.5)
    assert np.allclose(acc.XX, 0.5 * XX)
    assert np.allclose(acc.XY, 0.5 * XY)
    assert acc.N == 1.5


def test_from_arrays_copies():
    XX = np.eye(2)
    acc = CrossProductAccumulator.from_arrays(XX, N=4)
    acc.accumulate(np.ones((1, 2)))
    assert np.array_equal(XX, np.eye(2))
    assert acc.N == 5
    assert not acc.has_y
