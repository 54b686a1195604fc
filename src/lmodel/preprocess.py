# Author: Emrullah Erce Dutkan
"""
Preprocessing of data blocks.

Preprocessing parameters (average, scale and variable weights) are derived
once from a reference block and then applied unchanged to every block that
is absorbed afterwards, so all cross-products live in the same space.

Codes:
- 0: no preprocessing
- 1: mean-centering
- 2: autoscaling (mean-centering and unit variance)
"""

from typing import Optional, Tuple
import numpy as np

from .config import check_preprocessing
from .errors import DimensionError


def as_block(x, name: str = "x", finite: bool = False) -> np.ndarray:
    """
    Return x as a 2D float64 array, promoting vectors to a single column.

    With finite=True, NaN and infinite entries raise DimensionError.
    """
    try:
        x = np.asarray(x, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise DimensionError(f"{name} must be numeric: {e}") from e
    if x.ndim == 1:
        x = x.reshape(-1, 1)
    if x.ndim != 2:
        raise DimensionError(f"{name} must be a 2D matrix, got {x.ndim} dimensions")
    if finite and not np.all(np.isfinite(x)):
        bad = int(np.sum(~np.isfinite(x)))
        raise DimensionError(f"{name} contains {bad} non-finite values")
    return x


def as_classes(classes, n: int) -> np.ndarray:
    """
    Return class labels as an int64 vector of length n (ones by default).

    Labels must be integers; integral floats such as 2.0 are accepted.
    """
    if classes is None:
        return np.ones(n, dtype=np.int64)
    classes = np.asarray(classes).ravel()
    if classes.shape[0] != n:
        raise DimensionError(f"Block has {n} rows but {classes.shape[0]} class labels")
    if classes.dtype.kind not in "iuf":
        raise DimensionError(f"class labels must be integers, got dtype {classes.dtype}")
    if classes.dtype.kind == "f" and not np.all(np.isfinite(classes) & (classes == np.round(classes))):
        raise DimensionError("class labels must be integers")
    return classes.astype(np.int64)


def preprocess_2d(
    x: np.ndarray,
    prep: int = 2,
    weight: Optional[np.ndarray] = None
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Derive preprocessing parameters from a reference block and apply them.

    Args:
        x: Reference block of shape (n, m).
        prep: Preprocessing code (0, 1 or 2).
        weight: Per-variable weights applied after scaling. Ones by default.

    Returns:
        Tuple of (xcs, av, sc) where xcs is the preprocessed block and
        av/sc are the average and scale of shape (m,).
    """
    check_preprocessing("preprocessing", prep)
    x = as_block(x)
    n, m = x.shape

    if prep == 0 or n == 0:
        av = np.zeros(m)
        sc = np.ones(m)
    elif prep == 1:
        av = x.mean(axis=0)
        sc = np.ones(m)
    else:
        av = x.mean(axis=0)
        sc = x.std(axis=0, ddof=1) if n > 1 else np.zeros(m)
        # Constant variables are left unscaled
        sc[sc == 0] = 1.0

    weight = check_weight(weight, m)
    return preprocess_2d_app(x, av, sc, weight), av, sc


def preprocess_2d_app(
    x: np.ndarray,
    av: np.ndarray,
    sc: np.ndarray,
    weight: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    Apply stored preprocessing parameters to a new block.

    Args:
        x: Block of shape (n, m).
        av: Average, shape (m,).
        sc: Scale, shape (m,).
        weight: Per-variable weights, shape (m,).

    Returns:
        Preprocessed block (x - av) / sc * weight.
    """
    x = as_block(x)
    m = np.size(av)
    if x.shape[1] != m:
        raise DimensionError(
            f"Block has {x.shape[1]} variables but the model has {m}"
        )
    weight = check_weight(weight, m)
    return (x - av) / sc * weight


def check_weight(weight: Optional[np.ndarray], m: int) -> np.ndarray:
    """Return a validated weight vector of length m."""
    if weight is None:
        return np.ones(m)
    weight = np.asarray(weight, dtype=np.float64).ravel()
    if weight.shape[0] != m:
        raise DimensionError(f"weight must have {m} entries, got {weight.shape[0]}")
    return weight
