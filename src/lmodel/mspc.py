# Author: Emrullah Erce Dutkan
"""
Multivariate Statistical Process Control for large-data PCA models.

Two statistics are computed for every centroid and for every row of an
optional test block:
- D-statistic (Hotelling T^2): distance inside the model subspace,
  sum_a t_a^2 / s_a^2 with s_a^2 = sdT_a / (N - 1)
- Q-statistic (SPE): squared residual outside the model subspace

Upper control limits come from the F distribution (D) and from Box's
chi-square approximation built on the residual eigenvalues of XX (Q).
"""

from typing import Optional
from dataclasses import dataclass

import numpy as np
from scipy.stats import beta, chi2, f

from .errors import ConfigError, NumericError
from .model import Lmodel
from .preprocess import preprocess_2d_app
from .projection import eig_xx, lpca


@dataclass
class MspcResult:
    """D and Q statistics with their control limits."""
    dst: np.ndarray
    qst: np.ndarray
    dstt: Optional[np.ndarray]
    qstt: Optional[np.ndarray]
    ucld: float
    uclq: float
    p_value: float


def hot_lim(npc: int, nobs: float, p_value: float, phase: int = 2) -> float:
    """
    Control limit of the D-statistic.

    Args:
        npc: Number of PCs.
        nobs: Number of calibration observations.
        p_value: Type I risk.
        phase: 1 for calibration observations (beta distribution),
            2 for new observations (F distribution).

    Returns:
        Upper control limit.
    """
    if not 0 < p_value < 1:
        raise ConfigError(f"p_value must be in (0, 1), got {p_value}")
    if nobs <= npc + 1:
        raise ConfigError(
            f"D-statistic limit needs more observations ({nobs:g}) than PCs + 1 ({npc + 1})"
        )
    if phase == 1:
        return float((nobs - 1) ** 2 / nobs * beta.ppf(1 - p_value, npc / 2, (nobs - npc - 1) / 2))
    elif phase == 2:
        return float(npc * (nobs ** 2 - 1) / (nobs * (nobs - npc)) * f.ppf(1 - p_value, npc, nobs - npc))
    else:
        raise ConfigError(f"phase must be 1 or 2, got {phase}")


def spe_lim(residual_eigs: np.ndarray, p_value: float) -> float:
    """
    Control limit of the Q-statistic (Box approximation).

        theta_k = sum(lambda^k),  g = theta_2 / theta_1,  h = theta_1^2 / theta_2
        UCL = g chi2_{1-p}(h)

    Args:
        residual_eigs: Eigenvalues of the covariance not captured by the model.
        p_value: Type I risk.

    Returns:
        Upper control limit (0 if there is no residual variance).
    """
    if not 0 < p_value < 1:
        raise ConfigError(f"p_value must be in (0, 1), got {p_value}")
    lam = np.clip(np.asarray(residual_eigs, dtype=np.float64), 0, None)
    theta1 = np.sum(lam)
    theta2 = np.sum(lam ** 2)
    if theta1 <= 0 or theta2 <= 0:
        return 0.0
    g = theta2 / theta1
    h = theta1 ** 2 / theta2
    return float(g * chi2.ppf(1 - p_value, h))


def _statistics(x: np.ndarray, P: np.ndarray, s2: np.ndarray):
    T = x @ P
    dst = np.sum(T ** 2 / s2, axis=1)
    E = x - T @ P.T
    qst = np.sum(E ** 2, axis=1)
    return dst, qst


def mspc_lpca(
    model: Lmodel,
    test: Optional[np.ndarray] = None,
    p_value: float = 0.01
) -> MspcResult:
    """
    D and Q statistics of the centroids and of an optional test block.

    Args:
        model: Model with XX, lvs, centroids and N.
        test: Optional raw block of shape (n, M).
        p_value: Type I risk of the control limits.

    Returns:
        MspcResult with statistics for centroids (dst, qst) and test rows
        (dstt, qstt, None without test) and the upper control limits.
    """
    fitted = lpca(model)
    P = fitted.loads
    A = P.shape[1]
    N = fitted.N
    if A == 0:
        raise ConfigError("MSPC requires at least one PC")
    if N <= A + 1:
        raise ConfigError(f"MSPC requires more observations ({N:g}) than PCs + 1 ({A + 1})")

    s2 = fitted.sdT / (N - 1)
    if np.any(s2 <= 0):
        raise NumericError("A selected PC has zero variance")

    dst, qst = _statistics(fitted.centr, P, s2)
    dstt = qstt = None
    if test is not None:
        testcs = preprocess_2d_app(test, fitted.av, fitted.sc, fitted.weight)
        dstt, qstt = _statistics(testcs, P, s2)

    d, _ = eig_xx(fitted.XX)
    mask = np.ones(d.shape[0], dtype=bool)
    mask[fitted.lvs - 1] = False
    residual = d[mask] / (N - 1)

    return MspcResult(
        dst=dst,
        qst=qst,
        dstt=dstt,
        qstt=qstt,
        ucld=hot_lim(A, N, p_value, phase=2),
        uclq=spe_lim(residual, p_value),
        p_value=p_value
    )
