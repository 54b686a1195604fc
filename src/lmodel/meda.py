# Author: Emrullah Erce Dutkan
"""
MEDA and oMEDA for large-data models.

MEDA (Missing-data methods for Exploratory Data Analysis) maps the pairwise
relationships between variables that a model captures. Both maps are
derived from cross-products and the model's reconstruction matrix Q
(X_hat = X Q): Q = P P^T for PCA and Q = R P^T for PLS.

oMEDA (observation-based MEDA) shows which variables separate a group of
observations from the rest, according to a dummy vector with positive
entries for the group, negative entries for the reference and zeros
elsewhere.
"""

from typing import Optional
import numpy as np

from .errors import ConfigError, DimensionError
from .model import Lmodel
from .preprocess import preprocess_2d_app
from .projection import lpca, lpls


def meda_map(XX: np.ndarray, Q: np.ndarray) -> np.ndarray:
    """
    MEDA map from a cross-product matrix and a reconstruction matrix.

    Reconstructing variable j from variable i alone gives

        meda[i, j] = 1 - ||x_j - x_i Q_ij||^2 / ||x_j||^2
                   = (2 Q_ij XX_ij - Q_ij^2 XX_ii) / XX_jj

    The map is symmetrized and clipped to [0, 1]. Variables with zero
    variance get zero rows and columns.

    Args:
        XX: (M, M) cross-product matrix.
        Q: (M, M) reconstruction matrix.

    Returns:
        Symmetric (M, M) map with values in [0, 1].
    """
    d = np.diag(XX).copy()
    valid = d > 0
    d[~valid] = 1.0

    num = 2 * Q * XX - Q ** 2 * d[:, None]
    meda = num / d[None, :]
    meda[~valid, :] = 0
    meda[:, ~valid] = 0

    meda = (meda + meda.T) / 2
    return np.clip(meda, 0, 1)


def meda_lpca(model: Lmodel) -> np.ndarray:
    """MEDA map of the PCA model with the requested components."""
    fitted = lpca(model)
    P = fitted.loads
    return meda_map(fitted.XX, P @ P.T)


def meda_lpls(model: Lmodel) -> np.ndarray:
    """MEDA map of the PLS model with the requested LVs."""
    fitted = lpls(model)
    return meda_map(fitted.XX, fitted.altweights @ fitted.loads.T)


def omeda_vector(
    x: np.ndarray,
    xA: np.ndarray,
    dummy: np.ndarray,
    weights: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    oMEDA vector.

        omeda = (2 sum - sum_A) * |sum_A| / sqrt(d^T d)

    with sum = x^T d and sum_A = xA^T d.

    Args:
        x: (n, M) preprocessed observations.
        xA: (n, M) model reconstruction of x.
        dummy: (n,) group indicator.
        weights: Optional (n,) multiplicity of each row.

    Returns:
        Array of shape (M,).
    """
    dummy = np.asarray(dummy, dtype=np.float64).ravel()
    if dummy.shape[0] != x.shape[0]:
        raise DimensionError(
            f"dummy has {dummy.shape[0]} entries but there are {x.shape[0]} observations"
        )
    w = np.ones_like(dummy) if weights is None else np.asarray(weights, dtype=np.float64).ravel()

    norm = np.sqrt(np.sum(w * dummy ** 2))
    if norm == 0:
        raise ConfigError("dummy must have at least one non-zero entry")

    s = x.T @ (dummy * w)
    s_a = xA.T @ (dummy * w)
    return (2 * s - s_a) * np.abs(s_a) / norm


def _omeda(model: Lmodel, Q: np.ndarray, dummy: np.ndarray, test: Optional[np.ndarray]) -> np.ndarray:
    if test is None:
        # Compressed data: each centroid stands for multr observations
        x = model.centr
        weights = model.multr
    else:
        x = preprocess_2d_app(test, model.av, model.sc, model.weight)
        weights = None
    return omeda_vector(x, x @ Q, dummy, weights)


def omeda_lpca(
    model: Lmodel,
    dummy: np.ndarray,
    test: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    oMEDA of the PCA model.

    Args:
        model: Model with XX, lvs and centroids.
        dummy: Group indicator, one entry per test row, or per centroid when
            no test block is given.
        test: Optional raw block of shape (n, M).

    Returns:
        Array of shape (M,) with the contribution of each variable.
    """
    fitted = lpca(model)
    P = fitted.loads
    return _omeda(fitted, P @ P.T, dummy, test)


def omeda_lpls(
    model: Lmodel,
    dummy: np.ndarray,
    test: Optional[np.ndarray] = None
) -> np.ndarray:
    """oMEDA of the PLS model; see omeda_lpca."""
    fitted = lpls(model)
    return _omeda(fitted, fitted.altweights @ fitted.loads.T, dummy, test)
