# Author: Emrullah Erce Dutkan
"""
Tests for meda.py.

"""

import numpy as np
import pytest

from lmodel.config import LmodelConfig
from lmodel.errors import ConfigError, DimensionError
from lmodel.meda import meda_lpca, meda_lpls, meda_map, omeda_lpca, omeda_lpls, omeda_vector
from lmodel.model import ini_lmodel


def test_meda_lpca_bounded_and_symmetric(pca_model):
    meda = meda_lpca(pca_model)

    assert meda.shape == (5, 5)
    assert np.allclose(meda, meda.T)
    assert np.all((meda >= 0) & (meda <= 1))


def test_meda_all_components_is_identity(block_data):
    model = ini_lmodel(block_data, config=LmodelConfig(lvs=[1, 2, 3, 4, 5]))
    assert np.allclose(meda_lpca(model), np.eye(5))


def test_meda_map_zero_variance_variable():
    XX = np.diag([2.0, 0.0, 1.0])
    meda = meda_map(XX, np.eye(3))

    assert np.all(meda[1] == 0)
    assert np.all(meda[:, 1] == 0)
    assert meda[0, 0] == 1


def test_meda_lpls(pls_model):
    meda = meda_lpls(pls_model)

    assert meda.shape == (5, 5)
    assert np.allclose(meda, meda.T)
    assert np.all((meda >= 0) & (meda <= 1))


def test_omeda_finds_shifted_variable(block_data):
    model = ini_lmodel(block_data, config=LmodelConfig(lvs=[1, 2, 3, 4, 5]))

    test = block_data[:20].copy()
    test[:10, 3] += 10 * model.sc[3]
    dummy = np.zeros(20)
    dummy[:10] = 1

    omeda = omeda_lpca(model, dummy, test=test)
    assert omeda.shape == (5,)
    assert np.argmax(np.abs(omeda)) == 3
    assert omeda[3] > 0


def test_omeda_over_centroids(pca_model, pls_model):
    dummy = np.zeros(pca_model.centr.shape[0])
    dummy[:5] = 1
    assert omeda_lpca(pca_model, dummy).shape == (5,)

    dummy = -np.ones(pls_model.centr.shape[0])
    dummy[0] = 1
    assert omeda_lpls(pls_model, dummy).shape == (5,)


def test_omeda_vector_errors():
    x = np.ones((4, 2))
    with pytest.raises(DimensionError):
        omeda_vector(x, x, np.ones(3))
    with pytest.raises(ConfigError):
        omeda_vector(x, x, np.zeros(4))


def test_omeda_vector_multiplicity_weights():
    x = np.array([[1.0, 0.0], [0.0, 1.0]])
    dummy = np.array([1.0, 0.0])

    plain = omeda_vector(np.vstack([x[:1], x[:1], x[1:]]), np.vstack([x[:1], x[:1], x[1:]]),
                         np.array([1.0, 1.0, 0.0]))
    weighted = omeda_vector(x, x, dummy, weights=[2.0, 1.0])
    assert np.allclose(plain, weighted)
