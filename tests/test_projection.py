# Author: Emrullah Erce Dutkan
"""
Tests for projection.py.

"""

import numpy as np
import pytest

from lmodel.config import LmodelConfig
from lmodel.datasets import simule_mv
from lmodel.errors import ConfigError, NumericError
from lmodel.metrics import reconstruction_error
from lmodel.model import Lmodel, ini_lmodel
from lmodel.preprocess import preprocess_2d
from lmodel.projection import kernel_pls, lpca, lpls, scores_lpca, scores_lpls


def test_lpca_all_components_round_trip(block_data):
    model = ini_lmodel(block_data, config=LmodelConfig(lvs=[1, 2, 3, 4, 5]))
    fitted = lpca(model)

    assert np.isclose(fitted.sdT.sum(), fitted.var)
    assert np.allclose(fitted.loads.T @ fitted.loads, np.eye(5))
    assert reconstruction_error(model, block_data) < 1e-16


def test_lpca_captured_variance_matches_reference(small_data):
    model = ini_lmodel(small_data, config=LmodelConfig(lvs=[1, 2]))
    fitted = lpca(model)

    xcs, _, _ = preprocess_2d(small_data, 2)
    ev = np.sort(np.linalg.eigvalsh(xcs.T @ xcs))[::-1]
    reference = ev[:2].sum() / ev.sum()

    assert abs(fitted.sdT.sum() / fitted.var - reference) < 1e-6


def test_lpca_sorted_and_reproducible(pca_model):
    a = lpca(pca_model)
    b = lpca(pca_model)

    assert a.sdT[0] >= a.sdT[1]
    assert np.array_equal(a.loads, b.loads)
    assert np.allclose(a.scores, a.centr @ a.loads)
    assert a.type == "PCA"
    # The input model is left as it was
    assert pca_model.loads is None


def test_lpca_skipped_components(block_data):
    full = lpca(ini_lmodel(block_data, config=LmodelConfig(lvs=[1, 2, 3])))
    skip = lpca(ini_lmodel(block_data, config=LmodelConfig(lvs=[1, 3])))

    assert skip.loads.shape == (5, 2)
    assert np.allclose(skip.loads[:, 1], full.loads[:, 2])
    assert np.allclose(skip.sdT, full.sdT[[0, 2]])


def test_lpca_non_finite_crossproduct():
    XX = np.eye(3)
    XX[0, 1] = np.nan
    with pytest.raises(NumericError):
        lpca(Lmodel(XX=XX))


def test_scores_lpca_test_block(pca_model, block_data):
    T, TT = scores_lpca(pca_model, test=block_data[:7])

    assert T.shape == (100, 2)
    assert TT.shape == (7, 2)
    # Every observation is its own centroid
    assert np.allclose(TT, T[:7])

    _, none = scores_lpca(pca_model)
    assert none is None


def test_kernel_pls_full_rank_is_least_squares():
    random_state = np.random.RandomState(42)
    x = random_state.randn(200, 4)
    y = x @ np.array([[1.0], [-2.0], [0.5], [0.0]]) + 0.1 * random_state.randn(200, 1)
    XX, XY = x.T @ x, x.T @ y

    beta, W, P, Q, R = kernel_pls(XX, XY, 4)

    assert np.allclose(beta, np.linalg.solve(XX, XY))
    assert np.allclose(W.T @ W, np.eye(4), atol=1e-8)
    assert np.allclose(P.T @ R, np.eye(4), atol=1e-8)
    TT = R.T @ XX @ R
    assert np.allclose(TT, np.diag(np.diag(TT)), atol=1e-6)


def test_kernel_pls_multiple_responses():
    random_state = np.random.RandomState(0)
    x = random_state.randn(100, 5)
    y = x[:, :2] + 0.1 * random_state.randn(100, 2)

    beta, W, P, Q, R = kernel_pls(x.T @ x, x.T @ y, 2)
    assert beta.shape == (5, 2)
    assert Q.shape == (2, 2)
    assert np.allclose(W.T @ W, np.eye(2), atol=1e-8)


def test_kernel_pls_exhausted_weights():
    with pytest.raises(NumericError):
        kernel_pls(np.eye(3), np.zeros((3, 1)), 1)


def test_lpls(pls_model):
    fitted = lpls(pls_model)

    assert fitted.type == "PLS"
    assert fitted.weights.shape == (5, 3)
    assert fitted.yloads.shape == (1, 3)
    assert fitted.beta.shape == (5, 1)
    assert np.allclose(fitted.scores, fitted.centr @ fitted.altweights)
    assert np.allclose(fitted.sdT, np.diag(fitted.altweights.T @ fitted.XX @ fitted.altweights))
    assert np.all(fitted.sdT > 0)


def test_lpls_requires_y(pca_model):
    with pytest.raises(ConfigError):
        lpls(pca_model)


def test_scores_lpls_test_block(pls_model, xy_data):
    X, _ = xy_data
    T, TT = scores_lpls(pls_model, test=X[:10])

    assert T.shape == (50, 3)
    assert TT.shape == (10, 3)


def test_lpca_on_strongly_correlated_data():
    x = simule_mv(500, 6, level_corr=10, seed=5)
    fitted = lpca(ini_lmodel(x, config=LmodelConfig(lvs=[1])))
    assert fitted.sdT[0] / fitted.var > 0.5
