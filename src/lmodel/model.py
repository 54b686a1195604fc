# Author: Emrullah Erce Dutkan
"""
The Lmodel: a compressed, incrementally updatable model of a big data set.

An Lmodel holds exact cross-products of all absorbed observations together
with a bounded set of weighted centroids, the preprocessing parameters used
for every block, and variable metadata. PCA and PLS models, scores and
diagnostics are computed from it without re-reading the raw data.

Every operation takes a model and returns a new one; the input is never
modified. Lifecycle:

    ini_lmodel -> check_lmodel -> update (any number of times) -> lpca / lpls

Updates either fully apply or raise before any state is touched, and they
discard the outputs of the last decomposition.
"""

import copy
import logging
from typing import List, Optional, Tuple
from dataclasses import dataclass, field, fields

import numpy as np

from .compress import CentroidCompressor
from .config import (
    LmodelConfig,
    UpdateConfig,
    check_lvs,
    check_preprocessing,
    get_default_config
)
from .crossprod import CrossProductAccumulator
from .errors import ConfigError, DimensionError
from .preprocess import (
    as_block,
    as_classes,
    check_weight,
    preprocess_2d,
    preprocess_2d_app
)


logger = logging.getLogger(__name__)

# Outputs of the last decomposition, recomputed on every lpca/lpls call
DERIVED_FIELDS = (
    "loads", "scores", "weights", "altweights", "yloads", "beta", "var", "sdT", "type"
)


@dataclass
class Lmodel:
    """
    State of a large-data model.

    Attributes:
        XX: (M, M) cross-product of the preprocessed X-block.
        XY: (M, L) cross-product between X and Y blocks, or None.
        YY: (L, L) cross-product of the preprocessed Y-block, or None.
        N: Effective number of absorbed observations (decayed under EWMA).
        centr: (C, M) cluster centroids, C <= max_clusters.
        multr: (C,) multiplicity of each centroid, summing to N.
        classes: (C,) class label of each centroid.
        vclass: (M,) class of each variable.
        varl: Label of each variable.
        lvs: Requested latent variables for the next decomposition.
        av, sc, weight: X preprocessing (average, scale, weights).
        avy, scy, weighty: Y preprocessing.
        prep, prepy: Preprocessing codes of the X and Y blocks.
        max_clusters: Cap on the number of centroids.
        update: Centroid update policy.
        type: 'PCA' or 'PLS' after a decomposition, None otherwise.
    """
    XX: Optional[np.ndarray] = None
    XY: Optional[np.ndarray] = None
    YY: Optional[np.ndarray] = None
    N: Optional[float] = None
    centr: Optional[np.ndarray] = None
    multr: Optional[np.ndarray] = None
    classes: Optional[np.ndarray] = None
    vclass: Optional[np.ndarray] = None
    varl: Optional[List[str]] = None
    lvs: Optional[np.ndarray] = None
    av: Optional[np.ndarray] = None
    sc: Optional[np.ndarray] = None
    weight: Optional[np.ndarray] = None
    avy: Optional[np.ndarray] = None
    scy: Optional[np.ndarray] = None
    weighty: Optional[np.ndarray] = None
    prep: int = 2
    prepy: int = 2
    max_clusters: int = 100
    update: UpdateConfig = field(default_factory=UpdateConfig)
    type: Optional[str] = None

    # Derived
    loads: Optional[np.ndarray] = None
    scores: Optional[np.ndarray] = None
    weights: Optional[np.ndarray] = None
    altweights: Optional[np.ndarray] = None
    yloads: Optional[np.ndarray] = None
    beta: Optional[np.ndarray] = None
    var: Optional[float] = None
    sdT: Optional[np.ndarray] = None

    @property
    def n_vars(self) -> int:
        return 0 if self.XX is None else self.XX.shape[0]

    @property
    def has_y(self) -> bool:
        return self.XY is not None

    def copy(self) -> "Lmodel":
        """Deep copy of the model."""
        return copy.deepcopy(self)

    def clear_derived(self) -> "Lmodel":
        """Drop the outputs of the last decomposition (in place)."""
        for name in DERIVED_FIELDS:
            setattr(self, name, None)
        return self

    def get_memory_bytes(self) -> int:
        """Estimate memory usage of all array fields in bytes."""
        total = 0
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, np.ndarray):
                total += value.nbytes
        return total


def ini_lmodel(
    x: np.ndarray,
    y: Optional[np.ndarray] = None,
    classes: Optional[np.ndarray] = None,
    config: Optional[LmodelConfig] = None,
    weight: Optional[np.ndarray] = None,
    varl: Optional[List[str]] = None,
    vclass: Optional[np.ndarray] = None
) -> Lmodel:
    """
    Initialize an Lmodel from a reference block.

    Preprocessing parameters are derived from this block and used for all
    later updates. The block itself is absorbed as the first block.

    Args:
        x: Reference block of shape (n, M).
        y: Optional Y block of shape (n, L).
        classes: Optional class label per observation.
        config: Model configuration. Defaults to get_default_config().
        weight: Optional per-variable weights applied after scaling.
        varl: Optional variable labels.
        vclass: Optional variable classes.

    Returns:
        A validated model that has absorbed the reference block.
    """
    config = get_default_config() if config is None else config
    config.validate()

    x = as_block(x, finite=True)
    m = x.shape[1]
    if y is not None:
        y = as_block(y, "y", finite=True)
        if y.shape[0] != x.shape[0]:
            raise DimensionError(f"x has {x.shape[0]} rows but y has {y.shape[0]}")

    weight = check_weight(weight, m)
    _, av, sc = preprocess_2d(x, config.preprocessing, weight)

    model = Lmodel(
        XX=np.zeros((m, m)),
        N=0.0,
        centr=np.zeros((0, m)),
        multr=np.zeros(0),
        classes=np.zeros(0, dtype=np.int64),
        vclass=vclass,
        varl=varl,
        lvs=np.asarray(config.lvs, dtype=np.int64),
        av=av,
        sc=sc,
        weight=weight,
        prep=config.preprocessing,
        prepy=config.preprocessing_y,
        max_clusters=config.max_clusters,
        update=copy.deepcopy(config.update)
    )

    if y is not None:
        l = y.shape[1]
        _, avy, scy = preprocess_2d(y, config.preprocessing_y)
        model.XY = np.zeros((m, l))
        model.YY = np.zeros((l, l))
        model.avy = avy
        model.scy = scy
        model.weighty = np.ones(l)

    _, model = check_lmodel(model)
    logger.info(
        "Initialized Lmodel with %d variables from a %d-row reference block",
        m, x.shape[0]
    )
    return update_iterative(model, x, y, classes)


def check_lmodel(model: Lmodel) -> Tuple[bool, Lmodel]:
    """
    Validate a model and fill in defaults for missing optional fields.

    Idempotent: checking an already valid model returns an identical copy.

    Args:
        model: Model to check.

    Returns:
        Tuple of (ok, normalized copy of the model).

    Raises:
        ConfigError: If XX is missing or inconsistent with the other fields,
            or if an option has an invalid value.
    """
    if model.XX is None:
        raise ConfigError("Lmodel.XX is required")
    XX = np.asarray(model.XX, dtype=np.float64)
    if XX.ndim != 2 or XX.shape[0] != XX.shape[1]:
        raise ConfigError(f"Lmodel.XX must be square, got shape {XX.shape}")

    out = model.copy()
    out.XX = np.asarray(out.XX, dtype=np.float64)
    m = XX.shape[0]

    if (out.XY is None) != (out.YY is None):
        raise ConfigError("Lmodel.XY and Lmodel.YY must be given together")
    if out.XY is not None:
        out.XY = as_block(out.XY, "XY")
        out.YY = np.asarray(out.YY, dtype=np.float64)
        l = out.XY.shape[1]
        if out.XY.shape[0] != m:
            raise ConfigError(f"Lmodel.XY must have {m} rows, got {out.XY.shape[0]}")
        if out.YY.shape != (l, l):
            raise ConfigError(f"Lmodel.YY must be {l}x{l}, got {out.YY.shape}")
        out.avy = np.zeros(l) if out.avy is None else np.asarray(out.avy, dtype=np.float64)
        out.scy = np.ones(l) if out.scy is None else np.asarray(out.scy, dtype=np.float64)
        out.weighty = np.ones(l) if out.weighty is None else np.asarray(out.weighty, dtype=np.float64)

    # Centroids
    out.centr = np.zeros((0, m)) if out.centr is None else as_block(out.centr, "centr")
    if out.centr.shape[0] and out.centr.shape[1] != m:
        raise ConfigError(f"Lmodel.centr must have {m} columns, got {out.centr.shape[1]}")
    if out.centr.shape[0] == 0:
        out.centr = np.zeros((0, m))
    c = out.centr.shape[0]
    out.multr = np.ones(c) if out.multr is None else np.asarray(out.multr, dtype=np.float64).ravel()
    out.classes = (np.ones(c, dtype=np.int64) if out.classes is None
                   else np.asarray(out.classes).astype(np.int64).ravel())
    if out.multr.shape[0] != c or out.classes.shape[0] != c:
        raise ConfigError(
            f"Lmodel has {c} centroids but {out.multr.shape[0]} multiplicities "
            f"and {out.classes.shape[0]} class labels"
        )
    out.N = float(out.multr.sum()) if out.N is None else float(out.N)

    # Metadata
    out.vclass = np.ones(m, dtype=np.int64) if out.vclass is None else np.asarray(out.vclass).ravel()
    out.varl = [str(i) for i in range(1, m + 1)] if out.varl is None else [str(v) for v in out.varl]
    if out.vclass.shape[0] != m or len(out.varl) != m:
        raise ConfigError(f"Lmodel.vclass and Lmodel.varl must have {m} entries")

    # Preprocessing
    check_preprocessing("Lmodel.prep", out.prep)
    check_preprocessing("Lmodel.prepy", out.prepy)
    out.av = np.zeros(m) if out.av is None else np.asarray(out.av, dtype=np.float64).ravel()
    out.sc = np.ones(m) if out.sc is None else np.asarray(out.sc, dtype=np.float64).ravel()
    out.weight = check_weight(out.weight, m)
    if out.av.shape[0] != m or out.sc.shape[0] != m:
        raise ConfigError(f"Lmodel.av and Lmodel.sc must have {m} entries")

    # Options
    if (isinstance(out.max_clusters, bool) or not isinstance(out.max_clusters, (int, np.integer))
            or out.max_clusters < 1):
        raise ConfigError(f"Lmodel.max_clusters must be a positive integer, got {out.max_clusters!r}")
    out.update = UpdateConfig() if out.update is None else out.update
    out.update.validate()

    # Requested LVs; 0 stands for "no component", an empty set is kept as is
    lvs = [1] if out.lvs is None else np.atleast_1d(out.lvs).tolist()
    lvs = [lv for lv in check_lvs(lvs) if lv > 0]
    if lvs and max(lvs) > m:
        raise ConfigError(f"LV index {max(lvs)} exceeds the number of variables {m}")
    out.lvs = np.asarray(lvs, dtype=np.int64)

    return True, out


def _validate_block(
    model: Lmodel,
    x: np.ndarray,
    y: Optional[np.ndarray],
    classes: Optional[np.ndarray]
) -> Tuple[np.ndarray, Optional[np.ndarray], np.ndarray]:
    """Check a raw block against the model before anything is touched."""
    x = as_block(x, finite=True)
    n, m = x.shape
    if m != model.n_vars:
        raise DimensionError(
            f"Block has {m} variables but the model has {model.n_vars}"
        )
    if y is not None:
        y = as_block(y, "y", finite=True)
        if not model.has_y:
            raise DimensionError("y was given but the model has no Y-block")
        if y.shape[0] != n:
            raise DimensionError(f"x has {n} rows but y has {y.shape[0]}")
        if y.shape[1] != model.XY.shape[1]:
            raise DimensionError(
                f"y has {y.shape[1]} variables but the model has {model.XY.shape[1]}"
            )
    elif model.has_y and n:
        raise DimensionError("The model has a Y-block but no y was given")
    classes = as_classes(classes, n)
    return x, y, classes


def _absorb(
    model: Lmodel,
    x: np.ndarray,
    y: Optional[np.ndarray],
    classes: np.ndarray,
    threshold: float,
    lam: Optional[float] = None
) -> Lmodel:
    """Preprocess a validated block and fold it into a copy of the model."""
    xcs = preprocess_2d_app(x, model.av, model.sc, model.weight)
    ycs = None if y is None else preprocess_2d_app(y, model.avy, model.scy, model.weighty)

    acc = CrossProductAccumulator.from_arrays(model.XX, model.XY, model.YY, model.N)
    comp = CentroidCompressor.from_arrays(
        model.centr, model.multr, model.classes,
        max_clusters=model.max_clusters, threshold=threshold
    )
    if lam is not None:
        acc.decay(lam)
        comp.decay(lam)

    acc.accumulate(xcs, ycs)
    comp.absorb(xcs, classes)

    out = model.copy().clear_derived()
    out.XX, out.XY, out.YY, out.N = acc.XX, acc.XY, acc.YY, acc.N
    out.centr = comp.centroids
    out.multr = comp.multiplicities
    out.classes = comp.classes
    return out


def update_iterative(
    model: Lmodel,
    x: np.ndarray,
    y: Optional[np.ndarray] = None,
    classes: Optional[np.ndarray] = None,
    threshold: Optional[float] = None
) -> Lmodel:
    """
    Absorb a raw block, keeping every past observation at full weight.

    Args:
        model: Current model.
        x: Raw block of shape (n, M).
        y: Raw Y block of shape (n, L); required if the model has a Y-block.
        classes: Optional class label per observation.
        threshold: Cluster distance threshold. Defaults to the model's.

    Returns:
        Updated copy of the model.
    """
    _, model = check_lmodel(model)
    threshold = model.update.threshold if threshold is None else threshold
    UpdateConfig(threshold=threshold).validate()
    x, y, classes = _validate_block(model, x, y, classes)
    if x.shape[0] == 0:
        return model

    out = _absorb(model, x, y, classes, threshold)
    logger.info(
        "Iterative update: +%d observations, N=%g, %d centroids",
        x.shape[0], out.N, out.centr.shape[0]
    )
    return out


def update_ewma(
    model: Lmodel,
    x: np.ndarray,
    y: Optional[np.ndarray] = None,
    classes: Optional[np.ndarray] = None,
    lam: Optional[float] = None,
    threshold: Optional[float] = None
) -> Lmodel:
    """
    Absorb a raw block after exponentially forgetting the past.

    Cross-products, N and centroid multiplicities are multiplied by lam
    before the block is added, so older observations weigh less.

    Args:
        model: Current model.
        x: Raw block of shape (n, M). A zero-row block is a no-op.
        y: Raw Y block of shape (n, L); required if the model has a Y-block.
        classes: Optional class label per observation.
        lam: Forgetting factor in (0, 1). Defaults to the model's.
        threshold: Cluster distance threshold. Defaults to the model's.

    Returns:
        Updated copy of the model.
    """
    _, model = check_lmodel(model)
    lam = model.update.lam if lam is None else lam
    threshold = model.update.threshold if threshold is None else threshold
    UpdateConfig(policy="ewma", lam=lam, threshold=threshold).validate()
    x, y, classes = _validate_block(model, x, y, classes)
    if x.shape[0] == 0:
        return model

    out = _absorb(model, x, y, classes, threshold, lam=lam)
    logger.info(
        "EWMA update (lambda=%g): +%d observations, N=%g, %d centroids",
        lam, x.shape[0], out.N, out.centr.shape[0]
    )
    return out


def update(
    model: Lmodel,
    x: np.ndarray,
    y: Optional[np.ndarray] = None,
    classes: Optional[np.ndarray] = None
) -> Lmodel:
    """Absorb a raw block with the model's configured update policy."""
    if model.update is not None and model.update.policy == "ewma":
        return update_ewma(model, x, y, classes)
    return update_iterative(model, x, y, classes)


def reset_lmodel(model: Lmodel) -> Lmodel:
    """
    Forget all absorbed data.

    Cross-products, centroids and N are cleared; preprocessing parameters,
    metadata and configuration are kept.
    """
    _, out = check_lmodel(model)
    m = out.n_vars
    out.clear_derived()
    out.XX = np.zeros((m, m))
    if out.has_y:
        l = out.XY.shape[1]
        out.XY = np.zeros((m, l))
        out.YY = np.zeros((l, l))
    out.N = 0.0
    out.centr = np.zeros((0, m))
    out.multr = np.zeros(0)
    out.classes = np.zeros(0, dtype=np.int64)
    return out
