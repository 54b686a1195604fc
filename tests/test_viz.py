# Author: Emrullah Erce Dutkan
"""
Tests for viz.py (Agg backend, nothing is displayed).

"""

import numpy as np
import pytest
from matplotlib.figure import Figure

from lmodel.benchmark import run_compression_benchmark
from lmodel.config import ScorePlotOptions
from lmodel.datasets import simule_mv
from lmodel.meda import meda_lpca
from lmodel.metrics import leverages_lpca, var_lpca
from lmodel.mspc import mspc_lpca
from lmodel.projection import scores_lpca
from lmodel.viz import (
    plot_benchmark,
    plot_compressed_scores,
    plot_leverages,
    plot_meda,
    plot_mspc,
    plot_variance
)


def test_plot_variance_and_leverages(tmp_path, pca_model):
    path = tmp_path / "variance.png"
    fig = plot_variance([var_lpca(pca_model)], labels=["X"], save_path=str(path), show=False)

    assert isinstance(fig, Figure)
    assert path.exists()

    fig = plot_leverages(leverages_lpca(pca_model), pca_model.varl, np.array([1, 1, 2, 2, 3]),
                         show=False)
    assert isinstance(fig, Figure)


@pytest.mark.parametrize("multiplicity", ["size", "marker", "zaxis", "size_class"])
def test_plot_compressed_scores_scatter(pca_model, block_data, multiplicity):
    T, TT = scores_lpca(pca_model, test=block_data[:5])
    options = ScorePlotOptions(multiplicity=multiplicity)

    fig = plot_compressed_scores(T, pca_model.multr, [1, 2], pca_model.classes,
                                 test_scores=TT, options=options, show=False)
    assert isinstance(fig, Figure)


def test_plot_compressed_scores_bar_and_toggles(pca_model, block_data):
    T, TT = scores_lpca(pca_model, test=block_data[:5])

    fig = plot_compressed_scores(T, pca_model.multr, [1, 2],
                                 options=ScorePlotOptions(bar=True), show=False)
    assert len(fig.axes) == 2

    fig = plot_compressed_scores(T, pca_model.multr, [1, 2], test_scores=TT,
                                 options=ScorePlotOptions(test_only=True), show=False)
    assert isinstance(fig, Figure)

    assert plot_compressed_scores(T, pca_model.multr, [1, 2],
                                  options=ScorePlotOptions(plot=False), show=False) is None
    with pytest.raises(ValueError):
        plot_compressed_scores(T, pca_model.multr, [1, 2],
                               options=ScorePlotOptions(test_only=True), show=False)


def test_plot_meda_and_mspc(pca_model):
    assert isinstance(plot_meda(meda_lpca(pca_model), pca_model.varl, show=False), Figure)
    assert isinstance(plot_mspc(mspc_lpca(pca_model), show=False), Figure)


def test_plot_benchmark(tmp_path):
    results = run_compression_benchmark(simule_mv(60, 3, seed=1), [4, 8], block_size=20)
    path = tmp_path / "compression.png"

    fig = plot_benchmark(results, title="Compression", save_path=str(path), show=False)
    assert isinstance(fig, Figure)
    assert path.exists()
