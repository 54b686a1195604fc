# Author: Emrullah Erce Dutkan
"""
Benchmarking of centroid compression.

The same data set is fed block by block to models with different cluster
caps, and each compressed representation is compared against the exact
cross-products:
- Compression error (relative Frobenius error of the centroid cross-product)
- Subspace distance between PCs of XX and of the centroid cross-product
- Memory usage
- Runtime
"""

from typing import Any, Dict, List, Optional
from dataclasses import asdict, dataclass, field
import time

import numpy as np

from .config import LmodelConfig, UpdateConfig
from .errors import DimensionError
from .metrics import centroid_subspace_distance, compression_error
from .model import Lmodel, ini_lmodel, update
from .stream import BlockStream


@dataclass
class CompressionResult:
    """Results for a single cluster cap."""
    max_clusters: int
    n_centroids: int
    n_obs: float
    compression_error: float
    subspace_error: float
    memory_bytes: int
    runtime_seconds: float
    policy: str = "iterative"
    history: Dict[str, List[float]] = field(default_factory=dict)


def run_single(
    x: np.ndarray,
    config: LmodelConfig,
    y: Optional[np.ndarray] = None,
    classes: Optional[np.ndarray] = None,
    k: int = 2
) -> CompressionResult:
    """
    Build a model block by block and measure its compression quality.

    The first block is the reference block for preprocessing.

    Args:
        x: Data matrix of shape (n, M).
        config: Model configuration (cap, policy, block size).
        y: Optional Y matrix.
        classes: Optional class labels.
        k: Number of PCs compared in the subspace error.

    Returns:
        CompressionResult, with history over blocks.
    """
    stream = BlockStream(x, y, classes, block_size=config.block_size)
    history = {"N": [], "centroids": [], "compression_error": []}

    start = time.time()
    model: Optional[Lmodel] = None
    for block in stream:
        if model is None:
            model = ini_lmodel(block.x, block.y, block.classes, config=config)
        else:
            model = update(model, block.x, block.y, block.classes)
        history["N"].append(model.N)
        history["centroids"].append(model.centr.shape[0])
        history["compression_error"].append(compression_error(model))
    runtime = time.time() - start
    if model is None:
        raise DimensionError("x has no observations")

    return CompressionResult(
        max_clusters=config.max_clusters,
        n_centroids=model.centr.shape[0],
        n_obs=model.N,
        compression_error=compression_error(model),
        subspace_error=centroid_subspace_distance(model, k=min(k, model.n_vars)),
        memory_bytes=model.get_memory_bytes(),
        runtime_seconds=runtime,
        policy=config.update.policy,
        history=history
    )


def run_compression_benchmark(
    x: np.ndarray,
    max_clusters_list: List[int],
    y: Optional[np.ndarray] = None,
    classes: Optional[np.ndarray] = None,
    block_size: int = 1000,
    update_config: Optional[UpdateConfig] = None,
    k: int = 2,
    preprocessing: int = 2
) -> List[CompressionResult]:
    """
    Compare compression quality across cluster caps.

    Args:
        x: Data matrix of shape (n, M).
        max_clusters_list: Cluster caps to try.
        y: Optional Y matrix.
        classes: Optional class labels.
        block_size: Rows per block.
        update_config: Update policy (iterative by default).
        k: Number of PCs compared in the subspace error.
        preprocessing: Preprocessing code.

    Returns:
        List of CompressionResult, one per cap.
    """
    results = []
    for cap in max_clusters_list:
        config = LmodelConfig(
            preprocessing=preprocessing,
            max_clusters=cap,
            update=UpdateConfig() if update_config is None else UpdateConfig(**asdict(update_config)),
            block_size=block_size
        )
        results.append(run_single(x, config, y, classes, k=k))
    return results


def results_to_dict(results: List[CompressionResult]) -> List[Dict[str, Any]]:
    """Convert results to dictionaries (without history) for CSV export."""
    rows = []
    for r in results:
        d = asdict(r)
        d.pop("history")
        rows.append(d)
    return rows


def format_results_table(results: List[CompressionResult]) -> str:
    """Format results as a fixed-width text table."""
    header = (
        f"{'Cap':>6} {'Centroids':>10} {'N':>10} {'CompErr':>10} "
        f"{'SubErr':>10} {'Memory':>10} {'Time(s)':>8}"
    )
    lines = [header, "-" * len(header)]
    for r in results:
        lines.append(
            f"{r.max_clusters:>6} {r.n_centroids:>10} {r.n_obs:>10.0f} "
            f"{r.compression_error:>10.5f} {r.subspace_error:>10.5f} "
            f"{r.memory_bytes:>10} {r.runtime_seconds:>8.2f}"
        )
    return "\n".join(lines)
