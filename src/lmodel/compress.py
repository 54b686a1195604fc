# Author: Emrullah Erce Dutkan
"""
Centroid compression of observation streams.

The compressor summarizes an unbounded number of observations with at most
`max_clusters` weighted centroids. The centroid cross-product
sum_i multr_i * c_i c_i^T approximates the cross-product of the absorbed
observations, which is what compressed score plots and the other
observation-level diagnostics rely on.

Memory is O(max_clusters * m) regardless of how many observations have been
absorbed.
"""

import logging
from typing import Optional
import numbers

import numpy as np
from scipy.spatial.distance import cdist

from .errors import ConfigError, DimensionError
from .preprocess import as_block, as_classes


logger = logging.getLogger(__name__)


class CentroidCompressor:
    """
    Incremental clustering of observations into weighted centroids.

    Algorithm, for each incoming observation x with class label c:
    1. Find the nearest centroid k (Euclidean distance, lowest index on ties).
    2. If dist(x, c_k) <= threshold, fold x into c_k:
           c_k <- (m_k c_k + x) / (m_k + 1),  m_k <- m_k + 1
    3. Otherwise insert x as a new centroid with multiplicity 1. If the cap
       is now exceeded, merge the globally closest pair (i, j), i < j
       (lexicographically lowest pair on ties):
           c_i <- (m_i c_i + m_j c_j) / (m_i + m_j),  m_i <- m_i + m_j

    When two weighted points are combined, the class label of the heavier
    one is kept (the existing centroid on ties).

    The pairwise centroid distance matrix is maintained incrementally, so a
    merge only costs one row of distances.

    Attributes:
        m: Number of variables.
        max_clusters: Cap on the number of centroids.
        threshold: Distance under which observations join a centroid.
        n_rows: Current number of centroids.
    """

    def __init__(
        self,
        m: int,
        max_clusters: int = 100,
        threshold: float = 0.0
    ):
        """
        Initialize an empty compressor.

        Args:
            m: Number of variables.
            max_clusters: Maximum number of centroids.
            threshold: Euclidean distance under which an observation is folded
                into its nearest centroid instead of spawning a new one.
        """
        if (isinstance(max_clusters, bool) or not isinstance(max_clusters, numbers.Integral)
                or max_clusters < 1):
            raise ConfigError(f"max_clusters must be a positive integer, got {max_clusters!r}")
        if threshold < 0:
            raise ConfigError(f"threshold must be non-negative, got {threshold}")

        self.m = m
        self.max_clusters = int(max_clusters)
        self.threshold = float(threshold)

        # One spare row so a new centroid can be inserted before merging
        cap = self.max_clusters + 1
        self.C = np.zeros((cap, m), dtype=np.float64)
        self.mult = np.zeros(cap, dtype=np.float64)
        self.cls = np.zeros(cap, dtype=np.int64)
        self.D = np.full((cap, cap), np.inf)

        self.n_rows = 0
        self.n_merges = 0

    @classmethod
    def from_arrays(
        cls,
        centr: np.ndarray,
        multr: np.ndarray,
        classes: Optional[np.ndarray] = None,
        max_clusters: int = 100,
        threshold: float = 0.0
    ) -> "CentroidCompressor":
        """
        Build a compressor holding existing centroids.

        Centroids beyond the cap are merged down while loading.
        """
        centr = as_block(centr, "centr")
        multr = np.asarray(multr, dtype=np.float64).ravel()
        if classes is None:
            classes = np.ones(centr.shape[0], dtype=np.int64)
        classes = np.asarray(classes).ravel()
        if multr.shape[0] != centr.shape[0] or classes.shape[0] != centr.shape[0]:
            raise DimensionError(
                f"{centr.shape[0]} centroids but {multr.shape[0]} multiplicities "
                f"and {classes.shape[0]} class labels"
            )

        comp = cls(centr.shape[1], max_clusters=max_clusters, threshold=threshold)
        for row, w, c in zip(centr, multr, classes):
            comp._insert(row, w, c)
            if comp.n_rows > comp.max_clusters:
                comp._merge_closest()
        return comp

    @property
    def n_centroids(self) -> int:
        return self.n_rows

    @property
    def centroids(self) -> np.ndarray:
        """Centroids as an (n_centroids, m) array."""
        return self.C[:self.n_rows].copy()

    @property
    def multiplicities(self) -> np.ndarray:
        return self.mult[:self.n_rows].copy()

    @property
    def classes(self) -> np.ndarray:
        return self.cls[:self.n_rows].copy()

    def _refresh(self, k: int) -> None:
        """Recompute distances between centroid k and all others."""
        n = self.n_rows
        d = cdist(self.C[k:k + 1], self.C[:n]).ravel()
        d[k] = np.inf
        self.D[k, :n] = d
        self.D[:n, k] = d

    def _insert(self, x: np.ndarray, w: float, c: int) -> None:
        k = self.n_rows
        self.C[k] = x
        self.mult[k] = w
        self.cls[k] = c
        self.n_rows += 1
        self._refresh(k)

    def _fold(self, k: int, x: np.ndarray, w: float, c: int) -> None:
        """Fold a weighted point into centroid k."""
        total = self.mult[k] + w
        self.C[k] += (x - self.C[k]) * (w / total)
        if w > self.mult[k]:
            self.cls[k] = c
        self.mult[k] = total
        self._refresh(k)

    def _merge_closest(self) -> None:
        """Merge the closest pair of centroids into the lower index."""
        n = self.n_rows
        # D is symmetric with an infinite diagonal, so the first minimum in
        # row-major order is the lowest pair (i, j) with i < j.
        # "Lowest pair" is lexicographic: (0, 4) wins over (1, 2)
        flat = int(np.argmin(self.D[:n, :n]))
        i, j = divmod(flat, n)

        logger.debug(
            "Merging centroids %d and %d (distance %.4g)", i, j, self.D[i, j]
        )

        self._fold(i, self.C[j].copy(), self.mult[j], self.cls[j])

        # Drop row j, shifting the tail up
        self.C[j:n - 1] = self.C[j + 1:n]
        self.mult[j:n - 1] = self.mult[j + 1:n]
        self.cls[j:n - 1] = self.cls[j + 1:n]
        self.D[j:n - 1, :n] = self.D[j + 1:n, :n]
        self.D[:n - 1, j:n - 1] = self.D[:n - 1, j + 1:n]
        self.D[n - 1, :] = np.inf
        self.D[:, n - 1] = np.inf
        self.C[n - 1] = 0
        self.mult[n - 1] = 0
        self.n_rows -= 1
        self.n_merges += 1

    def absorb(
        self,
        x: np.ndarray,
        classes: Optional[np.ndarray] = None
    ) -> "CentroidCompressor":
        """
        Absorb a block of preprocessed observations.

        Args:
            x: Block of shape (n, m). A zero-row block is a no-op.
            classes: Optional class label per observation (ones by default).

        Returns:
            self, for method chaining.
        """
        x = as_block(x, finite=True)
        n = x.shape[0]
        if x.shape[1] != self.m:
            raise DimensionError(
                f"Block has {x.shape[1]} variables but the centroids have {self.m}"
            )
        classes = as_classes(classes, n)
        if n == 0:
            return self

        folded = 0
        merges_before = self.n_merges
        for row, c in zip(x, classes):
            if self.n_rows:
                d = cdist(row[None, :], self.C[:self.n_rows]).ravel()
                k = int(np.argmin(d))
                if d[k] <= self.threshold:
                    self._fold(k, row, 1.0, c)
                    folded += 1
                    continue
            self._insert(row, 1.0, c)
            if self.n_rows > self.max_clusters:
                self._merge_closest()

        logger.debug(
            "Absorbed %d observations (%d folded, %d merges), %d centroids",
            n, folded, self.n_merges - merges_before, self.n_rows
        )
        return self

    def decay(self, lam: float) -> "CentroidCompressor":
        """Multiply all multiplicities by the forgetting factor lam."""
        self.mult[:self.n_rows] *= lam
        return self

    def crossprod(self) -> np.ndarray:
        """Centroid approximation of XX: sum_i m_i c_i c_i^T."""
        C = self.C[:self.n_rows]
        return (C * self.mult[:self.n_rows, None]).T @ C

    def get_memory_bytes(self) -> int:
        """
        Estimate memory usage in bytes.

        Counts the centroid buffer, multiplicities, labels and the
        pairwise distance matrix.
        """
        return self.C.nbytes + self.mult.nbytes + self.cls.nbytes + self.D.nbytes
