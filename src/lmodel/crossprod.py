# Author: Emrullah Erce Dutkan
"""
Exact cross-product accumulation.

The cross-product matrices XX = sum X^T X, XY = sum X^T Y and YY = sum Y^T Y
are sufficient statistics for PCA and PLS. They are additive over blocks,
so the order in which blocks arrive does not matter, and their size depends
only on the number of variables, not on the number of observations.

Blocks must already be preprocessed with the model's parameters.
"""

from typing import Optional
import numpy as np

from .errors import DimensionError
from .preprocess import as_block


class CrossProductAccumulator:
    """
    Running sums of the X and Y cross-products and observation count.

    Attributes:
        m: Number of X variables.
        XX: (m, m) X-block cross-product.
        XY: (m, l) cross-product between blocks, None until Y is seen.
        YY: (l, l) Y-block cross-product, None until Y is seen.
        N: Number of absorbed observations (fractional after decay).
    """

    def __init__(self, m: int, l: Optional[int] = None):
        """
        Initialize empty sums.

        Args:
            m: Number of X variables.
            l: Number of Y variables. If None, only XX is accumulated.
        """
        self.m = m
        self.XX = np.zeros((m, m), dtype=np.float64)
        self.XY = None if l is None else np.zeros((m, l), dtype=np.float64)
        self.YY = None if l is None else np.zeros((l, l), dtype=np.float64)
        self.N = 0.0

    @classmethod
    def from_arrays(
        cls,
        XX: np.ndarray,
        XY: Optional[np.ndarray] = None,
        YY: Optional[np.ndarray] = None,
        N: float = 0.0
    ) -> "CrossProductAccumulator":
        """Wrap copies of existing sums."""
        XX = np.asarray(XX, dtype=np.float64)
        acc = cls(XX.shape[0], None if XY is None else np.shape(XY)[1])
        acc.XX = XX.copy()
        if XY is not None:
            acc.XY = np.array(XY, dtype=np.float64)
            acc.YY = np.array(YY, dtype=np.float64)
        acc.N = float(N)
        return acc

    @property
    def has_y(self) -> bool:
        return self.XY is not None

    def check_block(self, x: np.ndarray, y: Optional[np.ndarray] = None) -> None:
        """Raise DimensionError if the block does not fit these sums."""
        if x.shape[1] != self.m:
            raise DimensionError(
                f"Block has {x.shape[1]} variables but the model has {self.m}"
            )
        if not np.all(np.isfinite(x)) or (y is not None and not np.all(np.isfinite(y))):
            raise DimensionError("Block contains non-finite values")
        if y is None:
            if self.has_y:
                raise DimensionError("The model has a Y-block but no y was given")
            return
        if not self.has_y:
            raise DimensionError("y was given but the model has no Y-block")
        if y.shape[0] != x.shape[0]:
            raise DimensionError(
                f"x has {x.shape[0]} rows but y has {y.shape[0]}"
            )
        if y.shape[1] != self.XY.shape[1]:
            raise DimensionError(
                f"y has {y.shape[1]} variables but the model has {self.XY.shape[1]}"
            )

    def accumulate(
        self,
        x: np.ndarray,
        y: Optional[np.ndarray] = None
    ) -> "CrossProductAccumulator":
        """
        Add a preprocessed block to the sums.

        Args:
            x: Block of shape (n, m).
            y: Optional Y block of shape (n, l).

        Returns:
            self, for method chaining.
        """
        x = as_block(x)
        y = None if y is None else as_block(y, "y")
        self.check_block(x, y)

        self.XX += x.T @ x
        if y is not None:
            self.XY += x.T @ y
            self.YY += y.T @ y
        self.N += x.shape[0]
        return self

    def remove(
        self,
        x: np.ndarray,
        y: Optional[np.ndarray] = None
    ) -> "CrossProductAccumulator":
        """
        Subtract a previously accumulated block from the sums.

        Args:
            x: Block of shape (n, m).
            y: Optional Y block of shape (n, l).

        Returns:
            self, for method chaining.
        """
        x = as_block(x)
        y = None if y is None else as_block(y, "y")
        self.check_block(x, y)
        if x.shape[0] > self.N + 1e-9:
            raise DimensionError(
                f"Cannot remove {x.shape[0]} observations, only {self.N:g} absorbed"
            )

        self.XX -= x.T @ x
        # Keep XX exactly symmetric after cancellation
        self.XX = (self.XX + self.XX.T) / 2
        if y is not None:
            self.XY -= x.T @ y
            self.YY -= y.T @ y
            self.YY = (self.YY + self.YY.T) / 2
        self.N -= x.shape[0]
        return self

    def decay(self, lam: float) -> "CrossProductAccumulator":
        """Multiply all sums by the forgetting factor lam."""
        self.XX *= lam
        if self.has_y:
            self.XY *= lam
            self.YY *= lam
        self.N *= lam
        return self

    def get_memory_bytes(self) -> int:
        """Estimate memory usage in bytes."""
        nbytes = self.XX.nbytes
        if self.has_y:
            nbytes += self.XY.nbytes + self.YY.nbytes
        return nbytes
