# Author: Emrullah Erce Dutkan
"""
Tests for mspc.py.

"""

import numpy as np
import pytest

from lmodel.config import LmodelConfig
from lmodel.errors import ConfigError
from lmodel.model import ini_lmodel
from lmodel.mspc import hot_lim, mspc_lpca, spe_lim
from lmodel.projection import lpca


def test_hot_lim():
    lim_01 = hot_lim(2, 100, 0.01)
    lim_05 = hot_lim(2, 100, 0.05)

    assert lim_01 > lim_05 > 0
    assert hot_lim(2, 100, 0.01, phase=1) > 0
    with pytest.raises(ConfigError):
        hot_lim(2, 3, 0.01)
    with pytest.raises(ConfigError):
        hot_lim(2, 100, 0.01, phase=3)
    with pytest.raises(ConfigError):
        hot_lim(2, 100, 1.5)


def test_spe_lim():
    assert spe_lim(np.zeros(3), 0.01) == 0
    assert spe_lim(np.array([0.5, 0.3, 0.1]), 0.01) > spe_lim(np.array([0.5, 0.3, 0.1]), 0.05)


def test_mspc_lpca_statistics(pca_model):
    result = mspc_lpca(pca_model)

    assert result.dst.shape == result.qst.shape == (100,)
    assert result.dstt is None
    assert np.all(result.dst >= 0)
    assert np.all(result.qst >= 0)
    # Each centroid is one observation: D sums to A (N - 1)
    assert np.isclose(result.dst.sum(), 2 * (pca_model.N - 1))


def test_mspc_lpca_flags_residual_outlier(pca_model, block_data):
    fitted = lpca(pca_model)
    P = fitted.loads
    k = int(np.argmin(np.sum(P ** 2, axis=1)))
    v = np.eye(5)[k] - P @ P[k]
    v = 50 * v / np.linalg.norm(v)
    outlier = v * fitted.sc + fitted.av

    test = np.vstack([block_data[:3], outlier])
    result = mspc_lpca(pca_model, test=test)

    assert result.qstt.shape == (4,)
    assert result.qstt[-1] > result.uclq
    assert np.isclose(result.qstt[-1], 2500)


def test_mspc_requires_components(block_data):
    model = ini_lmodel(block_data, config=LmodelConfig(lvs=[0]))
    with pytest.raises(ConfigError):
        mspc_lpca(model)


def test_mspc_requires_observations():
    x = np.random.RandomState(0).randn(3, 4)
    model = ini_lmodel(x, config=LmodelConfig(lvs=[1, 2]))
    with pytest.raises(ConfigError):
        mspc_lpca(model)
