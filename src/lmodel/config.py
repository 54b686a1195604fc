# Author: Emrullah Erce Dutkan
"""
Configuration management for large-data latent variable models.

This module provides dataclasses for the options consumed by the Lmodel
core (preprocessing, cluster cap, update policy, requested LVs) and by the
plotting helpers, with sensible defaults that allow the system to run out
of the box. Each field is validated independently and invalid values raise
ConfigError.
"""

from typing import List, Literal
from dataclasses import dataclass, field, asdict
import numbers

from .errors import ConfigError


UpdatePolicy = Literal["iterative", "ewma"]
MultiplicityEncoding = Literal["size", "marker", "zaxis", "size_class"]

# 0: none, 1: mean-center, 2: autoscale
PREPROCESSING_CODES = (0, 1, 2)

# Maximum rows per stored partition file
MAX_PARTITION_ROWS = 10000


def _check_int(name: str, value, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")


def check_preprocessing(name: str, value) -> None:
    """Raise ConfigError unless value is a valid preprocessing code."""
    if isinstance(value, bool) or value not in PREPROCESSING_CODES:
        raise ConfigError(
            f"{name} must be one of {PREPROCESSING_CODES} "
            f"(none, mean-center, autoscale), got {value!r}"
        )


def check_lvs(lvs) -> List[int]:
    """
    Validate a set of requested latent variable indices.

    Args:
        lvs: Iterable of non-negative integers.

    Returns:
        List of unique indices in the order first given.
    """
    out = []
    for lv in lvs:
        if isinstance(lv, bool) or not isinstance(lv, numbers.Integral):
            # Accept integral floats such as 2.0
            if isinstance(lv, numbers.Real) and float(lv).is_integer():
                lv = int(lv)
            else:
                raise ConfigError(f"LV indices must be integers, got {lv!r}")
        if lv < 0:
            raise ConfigError(f"LV indices must be non-negative, got {lv}")
        if int(lv) not in out:
            out.append(int(lv))
    return out


@dataclass
class UpdateConfig:
    """Configuration of the centroid update policy."""
    policy: UpdatePolicy = "iterative"
    lam: float = 0.9  # EWMA forgetting factor
    threshold: float = 0.0  # Euclidean distance to join a centroid

    def validate(self) -> "UpdateConfig":
        if self.policy not in ("iterative", "ewma"):
            raise ConfigError(
                f"update policy must be 'iterative' or 'ewma', got {self.policy!r}"
            )
        if not isinstance(self.lam, numbers.Real) or not 0 < self.lam < 1:
            raise ConfigError(f"EWMA lambda must be in (0, 1), got {self.lam!r}")
        if not isinstance(self.threshold, numbers.Real) or self.threshold < 0:
            raise ConfigError(
                f"cluster threshold must be a non-negative number, got {self.threshold!r}"
            )
        return self


@dataclass
class ScorePlotOptions:
    """
    Toggles for compressed score plots.

    Attributes:
        plot: Draw anything at all.
        bar: One bar plot per LV instead of scatter plots of LV pairs.
        test_only: Plot only the test observations.
        multiplicity: How centroid multiplicity is shown in scatter plots.
    """
    plot: bool = True
    bar: bool = False
    test_only: bool = False
    multiplicity: MultiplicityEncoding = "size"

    def validate(self) -> "ScorePlotOptions":
        for name in ("plot", "bar", "test_only"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be a boolean, got {getattr(self, name)!r}")
        if self.multiplicity not in ("size", "marker", "zaxis", "size_class"):
            raise ConfigError(f"Unknown multiplicity encoding: {self.multiplicity!r}")
        return self


@dataclass
class LmodelConfig:
    """
    Complete configuration for building and updating an Lmodel.

    Defaults are chosen to produce reasonable results without manual
    tuning.
    """
    # Preprocessing of the X and Y blocks
    preprocessing: int = 2
    preprocessing_y: int = 2

    # Compressed representation
    max_clusters: int = 100
    update: UpdateConfig = field(default_factory=UpdateConfig)

    # Decomposition request
    lvs: List[int] = field(default_factory=lambda: [1])

    # Block streaming
    block_size: int = MAX_PARTITION_ROWS

    # Reproducibility
    seed: int = 42

    def validate(self) -> "LmodelConfig":
        """Validate every field, raising ConfigError on the first bad one."""
        check_preprocessing("preprocessing", self.preprocessing)
        check_preprocessing("preprocessing_y", self.preprocessing_y)
        _check_int("max_clusters", self.max_clusters, 1)
        _check_int("block_size", self.block_size, 1)
        if not isinstance(self.update, UpdateConfig):
            raise ConfigError("update must be an UpdateConfig")
        self.update.validate()
        self.lvs = check_lvs(self.lvs)
        return self

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "LmodelConfig":
        """Create from dictionary."""
        d = dict(d)
        if "update" in d and isinstance(d["update"], dict):
            d["update"] = UpdateConfig(**d["update"])
        return cls(**d)


def get_default_config() -> LmodelConfig:
    """Get default configuration (iterative updates, autoscaling)."""
    return LmodelConfig()


def get_streaming_config(lam: float = 0.9) -> LmodelConfig:
    """Get configuration for non-stationary streams (EWMA forgetting)."""
    return LmodelConfig(
        max_clusters=100,
        update=UpdateConfig(policy="ewma", lam=lam)
    )


# Default output paths
DEFAULT_REPORTS_DIR = "reports"
DEFAULT_MODEL_FILE = "reports/lmodel.npz"
