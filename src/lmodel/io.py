# Author: Emrullah Erce Dutkan
"""
Input/Output utilities for large-data models.

This module provides functions for:
- Reading and writing data partitions (.mat files holding x, y and class)
- Saving and loading Lmodels
- Logging per-block update statistics
- Creating report files
"""

from typing import Any, Dict, List, Optional, Tuple
import csv
import json
import os
from dataclasses import asdict
from datetime import datetime

import numpy as np
from scipy.io import loadmat, savemat

from .config import MAX_PARTITION_ROWS, UpdateConfig
from .errors import ConfigError, DimensionError
from .metrics import compression_error, var_lpca
from .model import Lmodel, check_lmodel
from .preprocess import as_block


# Array fields persisted with a model; decomposition outputs are not stored
MODEL_ARRAYS = (
    "XX", "XY", "YY", "centr", "multr", "classes", "vclass", "lvs",
    "av", "sc", "weight", "avy", "scy", "weighty"
)


def ensure_dir(path: str) -> None:
    """Create directory if it doesn't exist."""
    os.makedirs(path, exist_ok=True)


def save_partition(
    path: str,
    x: np.ndarray,
    y: Optional[np.ndarray] = None,
    classes: Optional[np.ndarray] = None
) -> None:
    """
    Save a data partition to a .mat file.

    Args:
        path: Output path.
        x: Observations, shape (n, M) with n <= 10000.
        y: Optional outputs, shape (n, L).
        classes: Optional class label per observation (ones by default).
    """
    x = as_block(x)
    n = x.shape[0]
    if n > MAX_PARTITION_ROWS:
        raise DimensionError(f"A partition holds at most {MAX_PARTITION_ROWS} rows, got {n}")
    classes = np.ones(n, dtype=np.int64) if classes is None else np.asarray(classes).ravel()
    if classes.shape[0] != n:
        raise DimensionError(f"x has {n} rows but {classes.shape[0]} class labels")

    data = {"x": x, "class": classes.reshape(-1, 1)}
    if y is not None:
        y = as_block(y, "y")
        if y.shape[0] != n:
            raise DimensionError(f"x has {n} rows but y has {y.shape[0]}")
        data["y"] = y

    ensure_dir(os.path.dirname(path) or ".")
    savemat(path, data)


def load_partition(path: str) -> Tuple[np.ndarray, Optional[np.ndarray], np.ndarray]:
    """
    Load a data partition from a .mat file.

    Args:
        path: Input path.

    Returns:
        Tuple of (x, y, classes); y is None if the file holds no outputs.
    """
    mat = loadmat(path)
    if "x" not in mat:
        raise ConfigError(f"Partition {path} has no 'x' matrix")

    x = as_block(mat["x"])
    n = x.shape[0]
    if n > MAX_PARTITION_ROWS:
        raise DimensionError(f"Partition {path} has {n} rows, more than {MAX_PARTITION_ROWS}")

    y = mat.get("y")
    if y is not None:
        y = as_block(y, "y")
        if y.size == 0:
            y = None
        elif y.shape[0] != n:
            raise DimensionError(f"Partition {path}: x has {n} rows but y has {y.shape[0]}")

    classes = mat.get("class")
    classes = np.ones(n, dtype=np.int64) if classes is None else np.asarray(classes).ravel().astype(np.int64)
    if classes.shape[0] != n:
        raise DimensionError(f"Partition {path}: x has {n} rows but {classes.shape[0]} class labels")
    return x, y, classes


def write_partitions(
    directory: str,
    x: np.ndarray,
    y: Optional[np.ndarray] = None,
    classes: Optional[np.ndarray] = None,
    block_size: int = MAX_PARTITION_ROWS,
    prefix: str = "part"
) -> List[str]:
    """
    Split a data set into partition files.

    Returns:
        List of written paths, in order.
    """
    x = as_block(x)
    if not 0 < block_size <= MAX_PARTITION_ROWS:
        raise ConfigError(f"block_size must be in [1, {MAX_PARTITION_ROWS}], got {block_size}")

    paths = []
    for i, start in enumerate(range(0, x.shape[0], block_size)):
        stop = start + block_size
        path = os.path.join(directory, f"{prefix}_{i:05d}.mat")
        save_partition(
            path,
            x[start:stop],
            None if y is None else as_block(y, "y")[start:stop],
            None if classes is None else np.asarray(classes).ravel()[start:stop]
        )
        paths.append(path)
    return paths


def save_lmodel(model: Lmodel, path: str) -> None:
    """
    Save a model to a .npz archive.

    Only persisted state is stored; decomposition outputs are recomputed
    after loading.
    """
    _, model = check_lmodel(model)
    arrays = {name: getattr(model, name) for name in MODEL_ARRAYS
              if getattr(model, name) is not None}
    meta = {
        "N": model.N,
        "varl": model.varl,
        "prep": model.prep,
        "prepy": model.prepy,
        "max_clusters": int(model.max_clusters),
        "update": asdict(model.update)
    }

    ensure_dir(os.path.dirname(path) or ".")
    np.savez(path, meta=np.array(json.dumps(meta)), **arrays)


def load_lmodel(path: str) -> Lmodel:
    """Load a model saved with save_lmodel."""
    with np.load(path, allow_pickle=False) as data:
        meta = json.loads(str(data["meta"]))
        arrays = {name: data[name] for name in MODEL_ARRAYS if name in data.files}

    model = Lmodel(
        N=meta["N"],
        varl=meta["varl"],
        prep=meta["prep"],
        prepy=meta["prepy"],
        max_clusters=meta["max_clusters"],
        update=UpdateConfig(**meta["update"]),
        **arrays
    )
    _, model = check_lmodel(model)
    return model


class UpdateLogger:
    """
    Logger for per-block update statistics to a CSV file.

    Logs one row per absorbed block, writing to disk periodically.
    """

    fieldnames = [
        "timestamp", "block", "source", "rows", "N", "centroids", "compression_error"
    ]

    def __init__(self, path: str, buffer_size: int = 100):
        """
        Initialize the logger.

        Args:
            path: Output CSV path.
            buffer_size: Number of entries to buffer before writing.
        """
        self.path = path
        self.buffer_size = buffer_size
        self.buffer: List[Dict[str, Any]] = []

        ensure_dir(os.path.dirname(path) or ".")

        # Write header if file doesn't exist
        if not os.path.exists(path):
            with open(path, "w", newline="") as f:
                writer = csv.DictWriter(f, fieldnames=self.fieldnames)
                writer.writeheader()

    def log(self, block: int, rows: int, model: Lmodel, source: str = "") -> None:
        """
        Log the state of a model after absorbing a block.

        Args:
            block: Block index.
            rows: Rows in the absorbed block.
            model: Updated model.
            source: Partition file or other origin of the block.
        """
        self.buffer.append({
            "timestamp": datetime.now().isoformat(),
            "block": block,
            "source": source,
            "rows": rows,
            "N": model.N,
            "centroids": model.centr.shape[0],
            "compression_error": compression_error(model)
        })

        if len(self.buffer) >= self.buffer_size:
            self.flush()

    def flush(self) -> None:
        """Write buffered entries to disk."""
        if not self.buffer:
            return

        with open(self.path, "a", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=self.fieldnames)
            writer.writerows(self.buffer)

        self.buffer = []

    def close(self) -> None:
        """Flush remaining entries and close."""
        self.flush()


def load_update_log(path: str) -> List[Dict[str, Any]]:
    """Load an update log written by UpdateLogger."""
    with open(path, "r") as f:
        return list(csv.DictReader(f))


def save_config(config: Dict[str, Any], path: str) -> None:
    """
    Save configuration to JSON.

    Args:
        config: Configuration dictionary.
        path: Output JSON path.
    """
    ensure_dir(os.path.dirname(path) or ".")

    with open(path, "w") as f:
        json.dump(config, f, indent=2, default=str)


def load_config(path: str) -> Dict[str, Any]:
    """
    Load configuration from JSON.

    Args:
        path: Input JSON path.

    Returns:
        Configuration dictionary.
    """
    with open(path, "r") as f:
        return json.load(f)


def format_memory(nbytes: int) -> str:
    """
    Format memory size in human-readable form.

    Args:
        nbytes: Number of bytes.

    Returns:
        Formatted string (e.g., "1.5 KB", "2.3 MB").
    """
    if nbytes < 1024:
        return f"{nbytes} B"
    elif nbytes < 1024 ** 2:
        return f"{nbytes / 1024:.1f} KB"
    elif nbytes < 1024 ** 3:
        return f"{nbytes / 1024**2:.1f} MB"
    else:
        return f"{nbytes / 1024**3:.1f} GB"


def create_summary_report(model: Lmodel) -> str:
    """
    Create a summary report of a model as text.

    Args:
        model: Model to summarize; variance is reported up to max(lvs).

    Returns:
        Summary text.
    """
    _, model = check_lmodel(model)
    xvar = var_lpca(model)

    lines = [
        "Lmodel Summary",
        "=" * 40,
        "",
        f"  Variables (M): {model.n_vars}",
        f"  Responses (L): {model.XY.shape[1] if model.has_y else 0}",
        f"  Observations (N): {model.N:g}",
        f"  Centroids: {model.centr.shape[0]} (max {model.max_clusters})",
        f"  Update policy: {model.update.policy}",
        f"  Compression error: {compression_error(model):.6f}",
        f"  Memory: {format_memory(model.get_memory_bytes())}",
        "",
        "Residual X variance:",
        "-" * 40
    ]
    for i, v in enumerate(xvar):
        lines.append(f"  {i:>3} PCs: {100 * v:8.3f} %")

    return "\n".join(lines)
