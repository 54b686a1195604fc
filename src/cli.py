# Author: Emrullah Erce Dutkan
"""
Command-line interface for large-data latent variable models.

Provides four modes:
1. simulate: Build a model from synthetic blocks and report PCA diagnostics
2. update: Absorb stored partition files into a saved model
3. report: Summarize a saved model (PCA, or PLS when it has a Y-block)
4. benchmark: Compare compression quality across cluster caps

Usage examples:
    python -m src.cli --mode simulate --n 20000 --m 10 --lvs 1,2,3 --plot
    python -m src.cli --mode update --partitions data/ --model reports/lmodel.npz --max-clusters 100
    python -m src.cli --mode report --model reports/lmodel.npz --lvs 1,2
    python -m src.cli --mode benchmark --n 20000 --m 10 --caps 10,50,100,200
"""

import argparse
import glob
import logging
import os
import sys
import time
from typing import List

import numpy as np

# Add src directory to path for imports
src_dir = os.path.dirname(os.path.abspath(__file__))
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from lmodel.config import (
    LmodelConfig,
    UpdateConfig,
    DEFAULT_REPORTS_DIR,
    DEFAULT_MODEL_FILE
)
from lmodel.datasets import load_dataset
from lmodel.errors import LmodelError
from lmodel.io import (
    UpdateLogger,
    create_summary_report,
    ensure_dir,
    load_lmodel,
    save_lmodel,
    save_config
)
from lmodel.benchmark import run_compression_benchmark, format_results_table
from lmodel.metrics import leverages_lpca, var_lpca, var_lpls
from lmodel.model import ini_lmodel, update
from lmodel.mspc import mspc_lpca
from lmodel.projection import lpls
from lmodel.stream import BlockStream, PartitionStream


def parse_int_list(text: str) -> List[int]:
    """Parse comma-separated integers."""
    return [int(v.strip()) for v in text.split(",") if v.strip()]


def build_config(args: argparse.Namespace) -> LmodelConfig:
    """Create a validated configuration from CLI arguments."""
    return LmodelConfig(
        preprocessing=args.prep,
        max_clusters=args.max_clusters,
        update=UpdateConfig(policy=args.policy, lam=args.lam, threshold=args.threshold),
        lvs=parse_int_list(args.lvs),
        block_size=args.block_size,
        seed=args.seed
    ).validate()


def print_pca_report(model, plot: bool = False) -> None:
    """Print residual variance and leverages of the PCA model."""
    print(create_summary_report(model))
    print()

    lev = leverages_lpca(model)
    print("Leverages:")
    print("-" * 40)
    for label, value in zip(model.varl, lev):
        print(f"  {label:>10}: {value:.4f}")

    if model.N > model.lvs.size + 1:
        result = mspc_lpca(model)
        n_out = int(np.sum(result.qst > result.uclq))
        print()
        print(f"Centroids above the Q limit ({result.uclq:.3f}): {n_out}/{result.qst.shape[0]}")

    if plot:
        from lmodel.viz import plot_variance, plot_leverages

        ensure_dir(DEFAULT_REPORTS_DIR)
        plot_variance([var_lpca(model)], labels=["X"],
                      save_path=os.path.join(DEFAULT_REPORTS_DIR, "variance.png"), show=False)
        plot_leverages(lev, model.varl, model.vclass,
                       save_path=os.path.join(DEFAULT_REPORTS_DIR, "leverages.png"), show=False)


def print_pls_report(model) -> None:
    """Print residual variance of Y and of the scores for the PLS model."""
    yvar, tvar = var_lpls(model)
    print()
    print("PLS residual variance (Y / scores):")
    print("-" * 40)
    for i, (yv, tv) in enumerate(zip(yvar, tvar)):
        print(f"  {i:>3} LVs: {100 * yv:8.3f} %  {100 * tv:8.3f} %")

    fitted = lpls(model)
    print()
    print("Regression coefficients:")
    print(np.array2string(fitted.beta, precision=4))


def run_simulate_mode(args: argparse.Namespace) -> None:
    """
    Build a model from synthetic data, block by block.
    """
    print("=" * 60)
    print("Lmodel Simulation")
    print("=" * 60)
    print(f"Observations: n={args.n}, variables: m={args.m}")
    print(f"Blocks of {args.block_size} rows, max clusters {args.max_clusters}")
    print(f"Update policy: {args.policy}")
    print(f"Seed: {args.seed}")
    print()

    config = build_config(args)
    X, Y = load_dataset(args.dataset, n=args.n, m=args.m, seed=args.seed)

    start_time = time.time()
    model = None
    for i, block in enumerate(BlockStream(X, Y, block_size=config.block_size), 1):
        if model is None:
            model = ini_lmodel(block.x, block.y, block.classes, config=config)
        else:
            model = update(model, block.x, block.y, block.classes)
        print(f"  Block {i}: N={model.N:g}, centroids={model.centr.shape[0]}")

    print(f"\nComplete in {time.time() - start_time:.1f}s\n")
    print_pca_report(model, plot=args.plot)
    if model.has_y:
        print_pls_report(model)


def run_update_mode(args: argparse.Namespace) -> None:
    """
    Absorb partition files into a model, creating it from the first
    partition if the model file does not exist.
    """
    paths = sorted(glob.glob(os.path.join(args.partitions, "*.mat")))
    if not paths:
        print(f"No partition files found in {args.partitions}")
        sys.exit(1)

    print("=" * 60)
    print(f"Updating {args.model} from {len(paths)} partitions")
    print("=" * 60)

    config = build_config(args)
    model = load_lmodel(args.model) if os.path.exists(args.model) else None
    logger = UpdateLogger(os.path.join(DEFAULT_REPORTS_DIR, "updates.csv"))

    for i, (path, block) in enumerate(zip(paths, PartitionStream(paths)), 1):
        if model is None:
            model = ini_lmodel(block.x, block.y, block.classes, config=config)
        else:
            model = update(model, block.x, block.y, block.classes)
        logger.log(i, block.x.shape[0], model, source=os.path.basename(path))
        print(f"  {os.path.basename(path)}: N={model.N:g}, centroids={model.centr.shape[0]}")
    logger.close()

    save_lmodel(model, args.model)
    save_config(config.to_dict(), os.path.splitext(args.model)[0] + "_config.json")
    print(f"\nModel saved to: {args.model}")


def run_report_mode(args: argparse.Namespace) -> None:
    """Summarize a saved model."""
    model = load_lmodel(args.model)
    model.lvs = np.asarray(parse_int_list(args.lvs))
    print_pca_report(model, plot=args.plot)
    if model.has_y:
        print_pls_report(model)


def run_benchmark_mode(args: argparse.Namespace) -> None:
    """Compare compression quality across cluster caps."""
    print("=" * 60)
    print("Compression Benchmark")
    print("=" * 60)

    X, Y = load_dataset(args.dataset, n=args.n, m=args.m, seed=args.seed)
    results = run_compression_benchmark(
        X,
        parse_int_list(args.caps),
        block_size=args.block_size,
        update_config=UpdateConfig(policy=args.policy, lam=args.lam, threshold=args.threshold),
        preprocessing=args.prep
    )
    print(format_results_table(results))

    if args.plot:
        from lmodel.viz import plot_benchmark

        ensure_dir(DEFAULT_REPORTS_DIR)
        plot_benchmark(results, save_path=os.path.join(DEFAULT_REPORTS_DIR, "compression.png"),
                       show=False)


def main() -> None:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Lmodel: compressed PCA/PLS models for big data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Simulation mode:
    python -m src.cli --mode simulate --n 20000 --m 10 --lvs 1,2,3 --plot

  Update mode:
    python -m src.cli --mode update --partitions data/ --model reports/lmodel.npz

  Report mode:
    python -m src.cli --mode report --model reports/lmodel.npz --lvs 1,2

  Benchmark mode:
    python -m src.cli --mode benchmark --caps 10,50,100,200
        """
    )

    parser.add_argument(
        "--mode",
        choices=["simulate", "update", "report", "benchmark"],
        required=True,
        help="Operation mode"
    )

    # Model arguments
    parser.add_argument("--prep", type=int, choices=[0, 1, 2], default=2,
                        help="Preprocessing: 0 none, 1 mean-center, 2 autoscale")
    parser.add_argument("--max-clusters", type=int, default=100, help="Maximum number of centroids")
    parser.add_argument("--policy", choices=["iterative", "ewma"], default="iterative",
                        help="Centroid update policy")
    parser.add_argument("--lam", type=float, default=0.9, help="EWMA forgetting factor")
    parser.add_argument("--threshold", type=float, default=0.0,
                        help="Distance under which observations join a centroid")
    parser.add_argument("--lvs", type=str, default="1,2", help="Comma-separated LV indices")
    parser.add_argument("--block-size", type=int, default=1000, help="Rows per block")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")

    # Data arguments
    parser.add_argument("--dataset", choices=["digits", "synthetic", "random"],
                        default="synthetic", help="Dataset (simulate/benchmark mode)")
    parser.add_argument("--n", type=int, default=20000, help="Number of observations")
    parser.add_argument("--m", type=int, default=10, help="Number of variables")
    parser.add_argument("--caps", type=str, default="10,50,100,200",
                        help="Comma-separated cluster caps (benchmark mode)")

    # Files
    parser.add_argument("--partitions", type=str, default="data/", help="Directory of partition files")
    parser.add_argument("--model", type=str, default=DEFAULT_MODEL_FILE, help="Model file")

    parser.add_argument("--plot", action="store_true", help="Save plots to the reports directory")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug messages")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s"
    )

    try:
        if args.mode == "simulate":
            run_simulate_mode(args)
        elif args.mode == "update":
            run_update_mode(args)
        elif args.mode == "report":
            run_report_mode(args)
        elif args.mode == "benchmark":
            run_benchmark_mode(args)
    except LmodelError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
