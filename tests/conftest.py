# Author: Emrullah Erce Dutkan
"""
Configuration file for pytest, containing shared fixtures.

"""
import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from lmodel.config import LmodelConfig
from lmodel.datasets import load_synthetic, simule_mv
from lmodel.model import ini_lmodel


@pytest.fixture
def small_data():
    """20 observations of 4 correlated variables."""
    return simule_mv(20, 4, level_corr=5, seed=1)


@pytest.fixture
def block_data():
    return simule_mv(100, 5, level_corr=5, seed=3)


@pytest.fixture
def xy_data():
    """Correlated X (200 x 5) with a noisy single response."""
    return load_synthetic(n=200, m=5, level_corr=5, n_outputs=1, seed=7)


@pytest.fixture
def pca_model(block_data):
    """PCA model holding every observation as its own centroid."""
    config = LmodelConfig(max_clusters=200, lvs=[1, 2])
    return ini_lmodel(block_data, config=config)


@pytest.fixture
def pls_model(xy_data):
    X, Y = xy_data
    config = LmodelConfig(max_clusters=50, lvs=[1, 2, 3])
    return ini_lmodel(X, Y, config=config)


def assert_models_equal(a, b):
    """Field-by-field comparison of two Lmodels."""
    from dataclasses import fields

    for f in fields(a):
        va, vb = getattr(a, f.name), getattr(b, f.name)
        if isinstance(va, np.ndarray):
            assert isinstance(vb, np.ndarray), f.name
            assert va.shape == vb.shape, f.name
            assert np.array_equal(va, vb), f.name
        else:
            assert va == vb, f.name


@pytest.fixture
def models_equal():
    return assert_models_equal
