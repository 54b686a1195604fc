# Author: Emrullah Erce Dutkan
"""
Block streams feeding an Lmodel.

Big data sets are absorbed one block at a time. These generators split an
in-memory data set into blocks, or read stored partition files one by one,
so only a single block is held in memory while a model is updated.
"""

from typing import Iterator, List, NamedTuple, Optional, Sequence
import numpy as np

from .config import MAX_PARTITION_ROWS
from .errors import DimensionError
from .io import load_partition


class Block(NamedTuple):
    """One block of observations."""
    x: np.ndarray
    y: Optional[np.ndarray]
    classes: np.ndarray


class BlockStream:
    """
    Split a data set into consecutive blocks.

    Attributes:
        n: Number of observations.
        block_size: Maximum rows per block.
    """

    def __init__(
        self,
        x: np.ndarray,
        y: Optional[np.ndarray] = None,
        classes: Optional[np.ndarray] = None,
        block_size: int = MAX_PARTITION_ROWS,
        shuffle: bool = False,
        seed: Optional[int] = None
    ):
        """
        Initialize the stream.

        Args:
            x: Data matrix of shape (n, M).
            y: Optional Y matrix of shape (n, L).
            classes: Optional class label per observation.
            block_size: Maximum rows per block.
            shuffle: If True, observations are visited in random order.
            seed: Random seed for shuffling.
        """
        self.x = np.asarray(x, dtype=np.float64)
        self.n = self.x.shape[0]
        self.y = None if y is None else np.asarray(y, dtype=np.float64)
        if self.y is not None and self.y.ndim == 1:
            self.y = self.y.reshape(-1, 1)
        self.classes = (np.ones(self.n, dtype=np.int64) if classes is None
                        else np.asarray(classes).ravel())

        if self.y is not None and self.y.shape[0] != self.n:
            raise DimensionError(f"x has {self.n} rows but y has {self.y.shape[0]}")
        if self.classes.shape[0] != self.n:
            raise DimensionError(f"x has {self.n} rows but {self.classes.shape[0]} class labels")
        if block_size < 1:
            raise ValueError(f"block_size must be positive, got {block_size}")

        self.block_size = block_size
        self.shuffle = shuffle
        self.rng = np.random.default_rng(seed)

    def __len__(self) -> int:
        return -(-self.n // self.block_size)

    def __iter__(self) -> Iterator[Block]:
        order = np.arange(self.n)
        if self.shuffle:
            self.rng.shuffle(order)
        for start in range(0, self.n, self.block_size):
            idx = order[start:start + self.block_size]
            yield Block(
                self.x[idx],
                None if self.y is None else self.y[idx],
                self.classes[idx]
            )


class PartitionStream:
    """Iterate over stored partition files, loading one at a time."""

    def __init__(self, paths: Sequence[str]):
        self.paths: List[str] = list(paths)

    def __len__(self) -> int:
        return len(self.paths)

    def __iter__(self) -> Iterator[Block]:
        for path in self.paths:
            x, y, classes = load_partition(path)
            yield Block(x, y, classes)
