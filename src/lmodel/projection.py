# Author: Emrullah Erce Dutkan
"""
PCA and PLS for large data, computed from cross-product matrices.

Decompositions never touch raw observations: PCA eigen-decomposes XX and
PLS runs the kernel algorithm on XX and XY. Centroids are then projected to
obtain compressed scores. Every call recomputes the decomposition from the
model's current cross-products.

The sign of each component is arbitrary in theory; a fixed convention (the
largest absolute loading is positive) makes repeated calls identical, but
callers should not attach meaning to signs.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from .errors import ConfigError, NumericError
from .model import Lmodel, check_lmodel
from .preprocess import preprocess_2d_app


logger = logging.getLogger(__name__)


def _fix_signs(V: np.ndarray) -> np.ndarray:
    """Flip columns so the entry with largest magnitude is positive."""
    if V.size == 0:
        return V
    idx = np.argmax(np.abs(V), axis=0)
    signs = np.sign(V[idx, np.arange(V.shape[1])])
    signs[signs == 0] = 1
    return V * signs


def _check_finite(name: str, A: np.ndarray) -> None:
    if not np.all(np.isfinite(A)):
        raise NumericError(f"{name} contains non-finite values")


def eig_xx(XX: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Eigen-decomposition of a symmetric cross-product matrix.

    Args:
        XX: Symmetric (M, M) matrix.

    Returns:
        Tuple of (eigenvalues, eigenvectors) sorted by descending eigenvalue.
    """
    _check_finite("XX", XX)
    try:
        # eigh only reads one triangle; symmetrize to absorb rounding
        d, P = np.linalg.eigh((XX + XX.T) / 2)
    except np.linalg.LinAlgError as exc:
        raise NumericError(f"Eigen-decomposition of XX failed: {exc}") from exc

    order = np.argsort(d)[::-1]
    return d[order], _fix_signs(P[:, order])


def lpca(model: Lmodel) -> Lmodel:
    """
    PCA of a large-data model.

    Args:
        model: Model with XX and requested lvs. lvs may skip components,
            e.g. [1, 3] selects the first and third.

    Returns:
        Copy of the model with:
        - loads: (M, A) loadings of the requested components
        - scores: (C, A) compressed scores of the centroids
        - sdT: (A,) eigenvalues of the requested components
        - var: total variance (sum of all eigenvalues of XX)
    """
    _, out = check_lmodel(model)
    out.clear_derived()

    d, P = eig_xx(out.XX)
    idx = out.lvs - 1

    out.loads = P[:, idx]
    out.scores = out.centr @ out.loads
    out.sdT = d[idx]
    out.var = float(np.sum(d))
    out.type = "PCA"

    logger.debug("Lpca: %d components from %dx%d XX", idx.size, *out.XX.shape)
    return out


def kernel_pls(
    XX: np.ndarray,
    XY: np.ndarray,
    A: int
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Kernel PLS from cross-product matrices.

    Improved kernel algorithm of Dayal and MacGregor (1997). Only XY is
    deflated, and the weights R relate the undeflated X directly to the
    scores: T = X R.

    For each component a = 1..A:
        w = XY q (q: dominant eigenvector of XY^T XY; q = 1 for one response)
        r = w - sum_j (p_j^T w) r_j
        tt = r^T XX r
        p = XX r / tt,  q = XY^T r / tt
        XY <- XY - tt p q^T

    Args:
        XX: (M, M) X cross-product.
        XY: (M, L) X-Y cross-product.
        A: Number of latent variables.

    Returns:
        Tuple of (beta, W, P, Q, R):
        - beta: (M, L) regression coefficients R Q^T
        - W: (M, A) weights
        - P: (M, A) X-loadings
        - Q: (L, A) Y-loadings
        - R: (M, A) weights for the undeflated X

    Raises:
        NumericError: If a weight vanishes or a score has zero norm before
            A components are extracted.
    """
    _check_finite("XX", XX)
    _check_finite("XY", XY)
    M, L = XY.shape
    XY = XY.copy()

    W = np.zeros((M, A))
    P = np.zeros((M, A))
    Q = np.zeros((L, A))
    R = np.zeros((M, A))

    tiny = np.finfo(float).tiny
    xx_tol = 1e-12 * max(np.trace(XX), tiny)
    xy_tol = 1e-10 * max(np.linalg.norm(XY), tiny)
    for a in range(A):
        if L == 1:
            w = XY[:, 0].copy()
        else:
            try:
                _, C = np.linalg.eigh(XY.T @ XY)
            except np.linalg.LinAlgError as exc:
                raise NumericError(f"PLS weight extraction failed at LV {a + 1}: {exc}") from exc
            w = XY @ C[:, -1]

        norm = np.linalg.norm(w)
        if norm <= xy_tol:
            raise NumericError(
                f"PLS weight vanished at LV {a + 1}: XY is exhausted after {a} LVs"
            )
        w = w / norm

        r = w.copy()
        for j in range(a):
            r -= (P[:, j] @ w) * R[:, j]

        tt = r @ XX @ r
        if tt <= xx_tol:
            raise NumericError(
                f"Singular PLS deflation at LV {a + 1}: score norm {tt:.3g}"
            )
        p = (XX @ r) / tt
        q = (XY.T @ r) / tt
        XY -= tt * np.outer(p, q)

        W[:, a] = w
        P[:, a] = p
        Q[:, a] = q
        R[:, a] = r

    beta = R @ Q.T
    return beta, W, P, Q, R


def lpls(model: Lmodel) -> Lmodel:
    """
    PLS of a large-data model.

    Latent variables 1..max(lvs) are extracted in sequence and the requested
    ones are selected afterwards.

    Args:
        model: Model with XX, XY, YY and requested lvs.

    Returns:
        Copy of the model with loads (P), weights (W), altweights (R),
        yloads (Q), beta, scores = centr R, sdT = diag(R^T XX R) and var.
    """
    _, out = check_lmodel(model)
    if not out.has_y:
        raise ConfigError("Lpls requires Lmodel.XY and Lmodel.YY")
    out.clear_derived()

    if out.lvs.size == 0:
        A = 0
    else:
        A = int(out.lvs.max())
    beta, W, P, Q, R = kernel_pls(out.XX, out.XY, A)
    idx = out.lvs - 1

    out.loads = P[:, idx]
    out.weights = W[:, idx]
    out.altweights = R[:, idx]
    out.yloads = Q[:, idx]
    out.beta = out.altweights @ out.yloads.T
    out.scores = out.centr @ out.altweights
    out.sdT = np.einsum("ij,ij->j", out.altweights, out.XX @ out.altweights)
    out.var = float(np.trace(out.XX))
    out.type = "PLS"

    logger.debug("Lpls: %d of %d LVs extracted", idx.size, A)
    return out


def _test_scores(model: Lmodel, test: Optional[np.ndarray], R: np.ndarray) -> Optional[np.ndarray]:
    if test is None:
        return None
    testcs = preprocess_2d_app(test, model.av, model.sc, model.weight)
    return testcs @ R


def scores_lpca(
    model: Lmodel,
    test: Optional[np.ndarray] = None
) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Compressed PCA scores.

    Args:
        model: Model to decompose.
        test: Optional raw block of shape (n, M), preprocessed like the
            calibration data.

    Returns:
        Tuple of (T, TT): centroid scores and test scores (None without test).
    """
    out = lpca(model)
    return out.scores, _test_scores(out, test, out.loads)


def scores_lpls(
    model: Lmodel,
    test: Optional[np.ndarray] = None
) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Compressed PLS scores.

    Args:
        model: Model to decompose.
        test: Optional raw block of shape (n, M).

    Returns:
        Tuple of (T, TT): centroid scores and test scores (None without test).
    """
    out = lpls(model)
    return out.scores, _test_scores(out, test, out.altweights)
