# Author: Emrullah Erce Dutkan
"""
Visualization utilities for large-data models.

This module provides plotting functions for:
- Residual variance curves
- Variable leverages
- Compressed score plots (multiplicity shown in the markers)
- MEDA maps
- MSPC charts
- Compression benchmarks
"""

from typing import List, Optional, Sequence
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from .benchmark import CompressionResult
from .config import ScorePlotOptions
from .mspc import MspcResult


def setup_style() -> None:
    """Configure matplotlib style for clean plots."""
    plt.style.use("seaborn-v0_8-whitegrid")
    plt.rcParams.update({
        "figure.figsize": (10, 6),
        "font.size": 11,
        "axes.labelsize": 12,
        "axes.titlesize": 13,
        "legend.fontsize": 10,
        "lines.linewidth": 1.5,
        "lines.markersize": 6
    })


def _finish(fig: Figure, save_path: Optional[str], show: bool) -> Figure:
    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    if show:
        plt.show()
    else:
        plt.close(fig)

    return fig


def plot_variance(
    curves: Sequence[np.ndarray],
    labels: Optional[Sequence[str]] = None,
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    show: bool = True
) -> Figure:
    """
    Plot residual variance against the number of LVs.

    Args:
        curves: One or more arrays from var_lpca / var_lpls.
        labels: Legend label per curve.
        title: Plot title.
        save_path: Path to save figure.
        show: Whether to display the plot.

    Returns:
        Matplotlib figure.
    """
    setup_style()
    fig, ax = plt.subplots()

    if labels is None:
        labels = [f"curve {i + 1}" for i in range(len(curves))]
    for curve, label in zip(curves, labels):
        curve = np.asarray(curve)
        ax.plot(np.arange(curve.shape[0]), 100 * curve, marker="o", label=label)

    ax.set_xlabel("#LVs")
    ax.set_ylabel("% Residual Variance")
    ax.set_title(title or "Residual Variance")
    ax.legend(loc="best")

    return _finish(fig, save_path, show)


def plot_leverages(
    leverages: np.ndarray,
    varl: Optional[Sequence[str]] = None,
    vclass: Optional[np.ndarray] = None,
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    show: bool = True
) -> Figure:
    """
    Bar plot of variable leverages, colored by variable class.

    Returns:
        Matplotlib figure.
    """
    setup_style()
    fig, ax = plt.subplots()

    leverages = np.asarray(leverages)
    x = np.arange(leverages.shape[0])
    if vclass is None:
        colors = plt.cm.viridis(np.full(x.shape[0], 0.4))
    else:
        _, codes = np.unique(np.asarray(vclass), return_inverse=True)
        colors = plt.cm.tab10(codes % 10)

    ax.bar(x, leverages, color=colors)
    ax.set_xticks(x)
    ax.set_xticklabels(varl if varl is not None else [str(i + 1) for i in x],
                       rotation=45, ha="right")
    ax.set_xlabel("Variables")
    ax.set_ylabel("Leverages")
    ax.set_title(title or "Leverages")

    return _finish(fig, save_path, show)


def _marker_sizes(mult: np.ndarray) -> np.ndarray:
    mult = np.asarray(mult, dtype=np.float64)
    top = mult.max() if mult.size and mult.max() > 0 else 1.0
    return 20 + 180 * mult / top


def plot_compressed_scores(
    scores: np.ndarray,
    multr: np.ndarray,
    lvs: Sequence[int],
    classes: Optional[np.ndarray] = None,
    test_scores: Optional[np.ndarray] = None,
    options: Optional[ScorePlotOptions] = None,
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    show: bool = True
) -> Optional[Figure]:
    """
    Compressed score plot.

    Centroid scores are drawn with their multiplicity encoded as set in
    options. With a single LV, or options.bar, one bar plot per LV is
    drawn; otherwise the first two LVs are plotted against each other.

    Args:
        scores: (C, A) centroid scores.
        multr: (C,) centroid multiplicities.
        lvs: LV index of each score column.
        classes: Optional (C,) centroid classes.
        test_scores: Optional (n, A) scores of test observations.
        options: Plot options.
        title: Plot title.
        save_path: Path to save figure.
        show: Whether to display.

    Returns:
        Matplotlib figure, or None when options.plot is False.
    """
    options = (options or ScorePlotOptions()).validate()
    if not options.plot:
        return None

    setup_style()
    scores = np.asarray(scores)
    lvs = list(lvs)
    classes = np.ones(scores.shape[0]) if classes is None else np.asarray(classes)

    if options.test_only:
        if test_scores is None:
            raise ValueError("test_only requires test_scores")
        scores = np.asarray(test_scores)
        multr = np.ones(scores.shape[0])
        classes = np.ones(scores.shape[0])
        test_scores = None

    if len(lvs) == 1 or options.bar:
        fig, axes = plt.subplots(len(lvs), 1, figsize=(10, 3 * len(lvs)), squeeze=False)
        for i, ax in enumerate(axes[:, 0]):
            values = scores[:, i]
            if test_scores is not None:
                values = np.concatenate([values, np.asarray(test_scores)[:, i]])
            ax.bar(np.arange(values.shape[0]), values, color=plt.cm.viridis(0.4))
            ax.set_ylabel(f"Compressed Scores LV {lvs[i]}")
        axes[-1, 0].set_xlabel("Centroids")
    else:
        fig = plt.figure()
        sizes = _marker_sizes(multr)
        if options.multiplicity in ("zaxis", "size_class"):
            ax = fig.add_subplot(projection="3d")
            z = multr if options.multiplicity == "zaxis" else classes
            ax.scatter(scores[:, 0], scores[:, 1], z,
                       s=sizes if options.multiplicity == "size_class" else 30,
                       c=classes, cmap="tab10")
            ax.set_zlabel("Multiplicity" if options.multiplicity == "zaxis" else "Class")
        else:
            ax = fig.add_subplot()
            if options.multiplicity == "size":
                ax.scatter(scores[:, 0], scores[:, 1], s=sizes, c=classes,
                           cmap="tab10", alpha=0.7)
            else:
                # Marker shape by multiplicity bin
                bins = np.digitize(multr, [1, 10, 100, 1000])
                for b, marker in zip(range(5), ["x", "o", "s", "^", "D"]):
                    sel = bins == b
                    if np.any(sel):
                        ax.scatter(scores[sel, 0], scores[sel, 1], marker=marker,
                                   c=classes[sel], cmap="tab10", vmin=classes.min(),
                                   vmax=classes.max())
        if test_scores is not None:
            ax.scatter(test_scores[:, 0], test_scores[:, 1], marker="*", color="red",
                       s=60, label="test")
            ax.legend(loc="best")
        ax.set_xlabel(f"Scores LV {lvs[0]}")
        ax.set_ylabel(f"Scores LV {lvs[1]}")

    fig.suptitle(title or "Compressed Scores")
    return _finish(fig, save_path, show)


def plot_meda(
    meda: np.ndarray,
    varl: Optional[Sequence[str]] = None,
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    show: bool = True
) -> Figure:
    """Plot a MEDA map as a heat map."""
    setup_style()
    fig, ax = plt.subplots(figsize=(8, 7))

    meda = np.asarray(meda)
    im = ax.imshow(meda, vmin=0, vmax=1, cmap="viridis")
    labels = varl if varl is not None else [str(i + 1) for i in range(meda.shape[0])]
    ax.set_xticks(np.arange(meda.shape[0]))
    ax.set_yticks(np.arange(meda.shape[0]))
    ax.set_xticklabels(labels, rotation=90)
    ax.set_yticklabels(labels)
    ax.grid(False)
    fig.colorbar(im, ax=ax)
    ax.set_title(title or "MEDA")

    return _finish(fig, save_path, show)


def plot_mspc(
    result: MspcResult,
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    show: bool = True
) -> Figure:
    """
    Compound D-statistic vs Q-statistic chart with control limits.

    Returns:
        Matplotlib figure.
    """
    setup_style()
    fig, ax = plt.subplots()

    ax.scatter(result.dst, result.qst, label="centroids", alpha=0.7)
    if result.dstt is not None:
        ax.scatter(result.dstt, result.qstt, marker="*", color="red", label="test")
    ax.axvline(result.ucld, color="k", linestyle="--")
    ax.axhline(result.uclq, color="k", linestyle="--")

    ax.set_xlabel("D-statistic")
    ax.set_ylabel("Q-statistic")
    ax.set_title(title or f"MSPC (p = {result.p_value:g})")
    ax.legend(loc="best")

    return _finish(fig, save_path, show)


def plot_benchmark(
    results: List[CompressionResult],
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    show: bool = True
) -> Figure:
    """
    Plot compression error over blocks and against memory.

    Returns:
        Matplotlib figure.
    """
    setup_style()
    fig, axes = plt.subplots(1, 2, figsize=(12, 5))

    for r in results:
        if r.history.get("compression_error"):
            axes[0].plot(r.history["N"], r.history["compression_error"],
                         marker="o", markersize=3, label=f"cap {r.max_clusters}")
    axes[0].set_xlabel("Observations absorbed")
    axes[0].set_ylabel("Compression Error")
    axes[0].legend(loc="best")

    axes[1].scatter([r.memory_bytes for r in results],
                    [r.compression_error for r in results], s=80)
    for r in results:
        axes[1].annotate(str(r.max_clusters), (r.memory_bytes, r.compression_error),
                         textcoords="offset points", xytext=(5, 5), fontsize=8)
    axes[1].set_xlabel("Memory (bytes)")
    axes[1].set_ylabel("Compression Error")

    if title:
        fig.suptitle(title, fontsize=14)

    return _finish(fig, save_path, show)
