# Author: Emrullah Erce Dutkan
"""
Dataset loading utilities for large-data models.

Available datasets:
- digits: 8x8 handwritten digit images (1797 samples, 64 features)
- synthetic: correlated multivariate data with a tunable correlation level
- random: independent Gaussian data

For block processing, datasets are split into blocks with
lmodel.stream.BlockStream.
"""

from typing import Tuple, Optional
import numpy as np


def correlated_covariance(
    m: int,
    level_corr: float = 5,
    seed: Optional[int] = None
) -> np.ndarray:
    """
    Generate a covariance matrix with a given correlation level.

    Eigenvalues decay as exp(-0.4 * level_corr * i) on a random orthonormal
    basis, rescaled so every variable has unit variance.

    Args:
        m: Number of variables.
        level_corr: 0 gives independent variables; 10 gives variables
            dominated by very few components.
        seed: Random seed.

    Returns:
        Correlation matrix of shape (m, m).
    """
    if not 0 <= level_corr <= 10:
        raise ValueError(f"level_corr must be in [0, 10], got {level_corr}")
    rng = np.random.default_rng(seed)

    Q, _ = np.linalg.qr(rng.standard_normal((m, m)))
    lambdas = np.exp(-0.4 * level_corr * np.arange(m))
    lambdas = np.maximum(lambdas, 1e-6)

    cov = (Q * lambdas) @ Q.T
    sd = np.sqrt(np.diag(cov))
    return cov / np.outer(sd, sd)


def simule_mv(
    n: int,
    m: int,
    level_corr: float = 5,
    seed: Optional[int] = 42
) -> np.ndarray:
    """
    Simulate multivariate Gaussian data with correlated variables.

    Args:
        n: Number of observations.
        m: Number of variables.
        level_corr: Correlation level in [0, 10].
        seed: Random seed.

    Returns:
        Data matrix of shape (n, m).
    """
    rng = np.random.default_rng(seed)
    cov = correlated_covariance(m, level_corr, seed=rng.integers(2 ** 31))
    L = np.linalg.cholesky(cov + 1e-10 * np.eye(m))
    return rng.standard_normal((n, m)) @ L.T


def load_digits() -> Tuple[np.ndarray, np.ndarray]:
    """
    Load the digits dataset from sklearn.

    Returns:
        Tuple of (X, y) where:
        - X: Feature matrix of shape (1797, 64)
        - y: Labels of shape (1797,)

    Raises:
        ImportError: If sklearn is not available.
    """
    try:
        from sklearn.datasets import load_digits as sklearn_load_digits
    except ImportError:
        raise ImportError(
            "sklearn is required for loading the digits dataset. "
            "Install with: pip install scikit-learn"
        )

    data = sklearn_load_digits()
    return data.data.astype(np.float64), data.target


def load_synthetic(
    n: int = 10000,
    m: int = 10,
    level_corr: float = 8,
    n_outputs: int = 1,
    seed: Optional[int] = 42
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Generate a correlated dataset with a Y-block.

    Y is a noisy copy of the first n_outputs variables.

    Returns:
        Tuple of (X, Y) with shapes (n, m) and (n, n_outputs).
    """
    rng = np.random.default_rng(seed)
    X = simule_mv(n, m, level_corr, seed=seed)
    Y = X[:, :n_outputs] + 0.1 * rng.standard_normal((n, n_outputs))
    return X, Y


def load_random(
    n: int = 10000,
    m: int = 10,
    seed: Optional[int] = 42
) -> Tuple[np.ndarray, None]:
    """
    Generate random Gaussian data (full rank).

    Returns:
        Tuple of (X, None) where X has shape (n, m).
    """
    rng = np.random.default_rng(seed)
    return rng.standard_normal((n, m)), None


def load_dataset(
    name: str,
    n: Optional[int] = None,
    m: Optional[int] = None,
    seed: Optional[int] = 42
) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Load a dataset by name.

    Args:
        name: Dataset name ("digits", "synthetic", "random").
        n: Number of samples (for generated datasets).
        m: Number of variables (for generated datasets).
        seed: Random seed.

    Returns:
        Tuple of (X, y) where y may be None.
    """
    if name == "digits":
        return load_digits()
    elif name == "synthetic":
        return load_synthetic(n=n or 10000, m=m or 10, seed=seed)
    elif name == "random":
        return load_random(n=n or 10000, m=m or 10, seed=seed)
    else:
        raise ValueError(f"Unknown dataset: {name}")
