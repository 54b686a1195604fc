# Author: Emrullah Erce Dutkan
"""
Model-quality metrics for large-data PCA and PLS.

This module provides diagnostics computed from an Lmodel and its
decompositions:

1. Leverages: influence of each variable on the retained components
2. Captured variance: residual variance as a function of the number of LVs
3. Reconstruction error: residual of a block after projection
4. Compression error: how well the centroids reproduce XX
5. Subspace distance: angle between the loadings of two models

All metrics are pure functions of the model; none of them modify it.
"""

from typing import Optional, Tuple
import numpy as np

from .model import Lmodel, check_lmodel
from .preprocess import preprocess_2d_app
from .projection import lpca, lpls


def _with_lvs(model: Lmodel, lvs) -> Lmodel:
    out = model.copy()
    out.lvs = np.asarray(lvs, dtype=np.int64)
    return out


def leverages_lpca(model: Lmodel) -> np.ndarray:
    """
    Leverages of the variables in a PCA model.

    Args:
        model: Model with XX and lvs.

    Returns:
        Array of shape (M,) with diag(P P^T).
    """
    P = lpca(model).loads
    return np.sum(P ** 2, axis=1)


def leverages_lpls(model: Lmodel) -> np.ndarray:
    """
    Leverages of the variables in a PLS model.

    Args:
        model: Model with XX, XY and lvs.

    Returns:
        Array of shape (M,) with diag(W W^T).
    """
    W = lpls(model).weights
    return np.sum(W ** 2, axis=1)


def var_lpca(model: Lmodel) -> np.ndarray:
    """
    Residual X variance in terms of the number of PCs.

    Args:
        model: Model with XX; components 1..max(lvs) are swept.

    Returns:
        Array xvar of length max(lvs) + 1 where xvar[i] is the fraction of
        variance left after i PCs (xvar[0] = 1).
    """
    _, model = check_lmodel(model)
    maxlvs = int(model.lvs.max()) if model.lvs.size else 0

    xvar = np.ones(maxlvs + 1)
    if maxlvs == 0:
        return xvar

    P = lpca(_with_lvs(model, np.arange(1, maxlvs + 1))).loads
    # Sum of eigenvalues equals the trace
    total = np.trace(model.XX)
    if total <= 0:
        return xvar
    for i in range(1, maxlvs + 1):
        Pi = P[:, :i]
        xvar[i] = 1 - np.trace(Pi.T @ model.XX @ Pi) / total
    return xvar


def var_lpls(model: Lmodel) -> Tuple[np.ndarray, np.ndarray]:
    """
    Residual Y and score variance in terms of the number of LVs.

    Args:
        model: Model with XX, XY, YY; LVs 1..max(lvs) are swept.

    Returns:
        Tuple of (yvar, tvar), each of length max(lvs) + 1, with the
        fraction of Y variance and of X variance not captured by the
        first i LVs.
    """
    _, model = check_lmodel(model)
    maxlvs = int(model.lvs.max()) if model.lvs.size else 0

    yvar = np.ones(maxlvs + 1)
    tvar = np.ones(maxlvs + 1)
    if maxlvs == 0:
        return yvar, tvar

    fitted = lpls(_with_lvs(model, np.arange(1, maxlvs + 1)))
    R = fitted.altweights
    Q = fitted.yloads

    total_t = np.trace(model.XX)
    total_y = np.trace(model.YY)
    for i in range(1, maxlvs + 1):
        TT = R[:, :i].T @ model.XX @ R[:, :i]
        if total_t > 0:
            tvar[i] = 1 - np.trace(TT) / total_t
        if total_y > 0:
            yvar[i] = 1 - np.trace(Q[:, :i] @ TT @ Q[:, :i].T) / total_y
    return yvar, tvar


def reconstruction_error(
    model: Lmodel,
    x: np.ndarray,
    preprocessed: bool = False
) -> float:
    """
    Mean squared reconstruction error of a block under the PCA model.

        MSE = mean(||x - x P P^T||^2)

    Args:
        model: Model with XX and lvs.
        x: Block of shape (n, M).
        preprocessed: If False, x is preprocessed with the model's parameters.

    Returns:
        Mean squared reconstruction error.
    """
    fitted = lpca(model)
    if not preprocessed:
        x = preprocess_2d_app(x, fitted.av, fitted.sc, fitted.weight)
    x = np.asarray(x, dtype=np.float64)
    if x.shape[0] == 0:
        return 0.0
    P = fitted.loads
    error = x - (x @ P) @ P.T
    return float(np.mean(np.sum(error ** 2, axis=1)))


def centroid_crossprod(model: Lmodel) -> np.ndarray:
    """Approximation of XX from the centroids: sum_i multr_i c_i c_i^T."""
    _, model = check_lmodel(model)
    C = model.centr
    return (C * model.multr[:, None]).T @ C


def compression_error(model: Lmodel) -> float:
    """
    Relative Frobenius distance between XX and its centroid approximation.

    Returns:
        ||XX - sum_i multr_i c_i c_i^T||_F / ||XX||_F (0 when XX is zero).
    """
    _, model = check_lmodel(model)
    norm = np.linalg.norm(model.XX)
    if norm == 0:
        return 0.0
    return float(np.linalg.norm(model.XX - centroid_crossprod(model)) / norm)


def principal_angles(
    W1: np.ndarray,
    W2: np.ndarray
) -> np.ndarray:
    """
    Compute principal angles between two subspaces.

    cos(theta_i) = sigma_i(W1^T W2), where sigma_i are the singular values.

    Args:
        W1: Matrix with orthonormal columns, shape (M, k1).
        W2: Matrix with orthonormal columns, shape (M, k2).

    Returns:
        Array of principal angles in radians, length min(k1, k2).
    """
    if W1.ndim == 1:
        W1 = W1.reshape(-1, 1)
    if W2.ndim == 1:
        W2 = W2.reshape(-1, 1)

    s = np.linalg.svd(W1.T @ W2, compute_uv=False)
    # Clip to [0, 1] for numerical stability
    return np.arccos(np.clip(s, 0, 1))


def subspace_distance(
    W_est: np.ndarray,
    W_ref: np.ndarray,
    method: str = "sin"
) -> float:
    """
    Distance between two loading subspaces.

    Args:
        W_est: Loadings, shape (M, k).
        W_ref: Reference loadings, shape (M, k).
        method: Distance measure:
            - "sin": Mean of sin(theta) for principal angles (default)
            - "sin_max": Maximum sin(theta)
            - "grassmann": Grassmann distance sqrt(sum(theta^2))

    Returns:
        Subspace distance (0 = identical, larger = more different).
    """
    W_est, _ = np.linalg.qr(np.atleast_2d(W_est.T).T)
    W_ref, _ = np.linalg.qr(np.atleast_2d(W_ref.T).T)
    angles = principal_angles(W_est, W_ref)

    if method == "sin":
        return float(np.mean(np.sin(angles)))
    elif method == "sin_max":
        return float(np.max(np.sin(angles)))
    elif method == "grassmann":
        return float(np.sqrt(np.sum(angles ** 2)))
    else:
        raise ValueError(f"Unknown method: {method}")


def centroid_subspace_distance(model: Lmodel, k: Optional[int] = None) -> float:
    """
    Distance between the top-k PCs of XX and of the centroid approximation.

    Args:
        model: Model with XX and centroids.
        k: Number of PCs. Defaults to max(lvs).

    Returns:
        Mean sin of the principal angles between both subspaces.
    """
    _, model = check_lmodel(model)
    if k is None:
        k = int(model.lvs.max()) if model.lvs.size else 1
    lvs = np.arange(1, k + 1)
    P_ref = lpca(_with_lvs(model, lvs)).loads
    approx = _with_lvs(model, lvs)
    approx.XX = centroid_crossprod(model)
    P_est = lpca(approx).loads
    return subspace_distance(P_est, P_ref)
