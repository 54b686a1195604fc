# Author: Emrullah Erce Dutkan
"""
Lmodel: exploratory data analysis of big data with compressed models

A library for PCA/PLS-style latent variable modeling of data sets too large
to hold in memory, using:
- Exact cross-product accumulation (XX, XY, YY) over data blocks
- Centroid compression of observations, with iterative or EWMA updates
- PCA and kernel PLS computed directly from cross-products
- Diagnostics: leverages, captured variance, MEDA, oMEDA and MSPC

The model is a value: every operation takes an Lmodel and returns a new one.
"""

from .errors import LmodelError, ConfigError, DimensionError, NumericError
from .config import (
    LmodelConfig,
    UpdateConfig,
    ScorePlotOptions,
    get_default_config,
    get_streaming_config
)
from .crossprod import CrossProductAccumulator
from .compress import CentroidCompressor
from .model import (
    Lmodel,
    ini_lmodel,
    check_lmodel,
    update,
    update_iterative,
    update_ewma,
    reset_lmodel
)
from .projection import lpca, lpls, kernel_pls, scores_lpca, scores_lpls
from .metrics import (
    leverages_lpca,
    leverages_lpls,
    var_lpca,
    var_lpls,
    reconstruction_error,
    compression_error,
    subspace_distance
)
from .meda import meda_lpca, meda_lpls, omeda_lpca, omeda_lpls
from .mspc import MspcResult, mspc_lpca
from .stream import BlockStream, PartitionStream
from .datasets import load_dataset, simule_mv

__version__ = "0.1.0"
__author__ = "Emrullah Erce Dutkan"

__all__ = [
    # Errors
    "LmodelError",
    "ConfigError",
    "DimensionError",
    "NumericError",
    # Configuration
    "LmodelConfig",
    "UpdateConfig",
    "ScorePlotOptions",
    "get_default_config",
    "get_streaming_config",
    # Core
    "CrossProductAccumulator",
    "CentroidCompressor",
    "Lmodel",
    "ini_lmodel",
    "check_lmodel",
    "update",
    "update_iterative",
    "update_ewma",
    "reset_lmodel",
    # Projection
    "lpca",
    "lpls",
    "kernel_pls",
    "scores_lpca",
    "scores_lpls",
    # Metrics
    "leverages_lpca",
    "leverages_lpls",
    "var_lpca",
    "var_lpls",
    "reconstruction_error",
    "compression_error",
    "subspace_distance",
    "meda_lpca",
    "meda_lpls",
    "omeda_lpca",
    "omeda_lpls",
    "MspcResult",
    "mspc_lpca",
    # Data
    "BlockStream",
    "PartitionStream",
    "load_dataset",
    "simule_mv",
]
