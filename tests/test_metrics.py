# Author: Emrullah Erce Dutkan
"""
Tests for metrics.py.

"""

import numpy as np
import pytest

from lmodel.config import LmodelConfig
from lmodel.metrics import (
    centroid_subspace_distance,
    compression_error,
    leverages_lpca,
    leverages_lpls,
    reconstruction_error,
    subspace_distance,
    var_lpca,
    var_lpls
)
from lmodel.model import ini_lmodel


def test_var_lpca_non_increasing(block_data):
    model = ini_lmodel(block_data, config=LmodelConfig(lvs=[1, 2, 3, 4, 5]))
    xvar = var_lpca(model)

    assert xvar.shape == (6,)
    assert xvar[0] == 1
    assert np.all(np.diff(xvar) <= 1e-12)
    assert abs(xvar[-1]) < 1e-10


def test_var_lpca_length_follows_max_lvs(pca_model):
    model = pca_model.copy()
    model.lvs = np.array([3])
    assert var_lpca(model).shape == (4,)


def test_var_lpls_non_increasing(pls_model):
    yvar, tvar = var_lpls(pls_model)

    assert yvar.shape == tvar.shape == (4,)
    assert yvar[0] == tvar[0] == 1
    assert np.all(np.diff(yvar) <= 1e-12)
    assert np.all(np.diff(tvar) <= 1e-12)
    # Y is a noisy copy of the first variable
    assert yvar[-1] < 0.5


def test_leverages_lpca(pca_model):
    lev = leverages_lpca(pca_model)

    assert lev.shape == (5,)
    assert np.all(lev >= 0)
    assert np.isclose(lev.sum(), 2)


def test_leverages_all_components_are_one(block_data):
    model = ini_lmodel(block_data, config=LmodelConfig(lvs=[1, 2, 3, 4, 5]))
    assert np.allclose(leverages_lpca(model), 1)


def test_leverages_lpls(pls_model):
    lev = leverages_lpls(pls_model)

    assert lev.shape == (5,)
    assert np.isclose(lev.sum(), 3)


def test_reconstruction_error_positive_with_few_components(pca_model, block_data):
    assert reconstruction_error(pca_model, block_data) > 0
    assert reconstruction_error(pca_model, block_data[:0]) == 0


def test_compression_error(block_data):
    exact = ini_lmodel(block_data, config=LmodelConfig(max_clusters=100))
    assert compression_error(exact) < 1e-12
    assert centroid_subspace_distance(exact, k=2) < 1e-6

    coarse = ini_lmodel(block_data, config=LmodelConfig(max_clusters=5))
    assert compression_error(coarse) > 0


def test_subspace_distance():
    e = np.eye(4)
    assert subspace_distance(e[:, :2], e[:, :2]) < 1e-6
    assert np.isclose(subspace_distance(e[:, :2], e[:, 2:]), 1)
    assert np.isclose(subspace_distance(e[:, :1], e[:, 1:2], method="grassmann"), np.pi / 2)
    with pytest.raises(ValueError):
        subspace_distance(e[:, :1], e[:, :1], method="cos")
