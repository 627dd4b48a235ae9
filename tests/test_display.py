"""Tests for matplotlib figures (rendered off-screen)."""

import sys
import os

import matplotlib
matplotlib.use("Agg")

import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.shapes import KernelShape
from core.splitting import split_kernel_sheet
from filters.convolution import run_all_scored
from visualization import display_inputs, display_kernels, display_results, save_figure
from helpers import labelled_sheet


def test_figures_are_built_and_saved(tmp_path):
    shape = KernelShape(3, 6)
    sheet = labelled_sheet(shape, kernel_h=3, kernel_w=3)
    slide = np.full((12, 12), 128, dtype=np.uint8)
    kernels = split_kernel_sheet(sheet, shape)
    results, scores = run_all_scored(slide, kernels)

    fig = display_inputs(slide, sheet, shape, show=False)
    assert len(fig.axes[1].patches) == 18
    save_figure(fig, str(tmp_path / "inputs.png"))

    fig = display_kernels(kernels, shape, show=False)
    assert len(fig.axes) == 18
    save_figure(fig, str(tmp_path / "kernels.png"))

    fig = display_results(results, shape, scores, show=False)
    assert fig.axes[5].get_title().startswith("#5 (")
    path = save_figure(fig, str(tmp_path / "out" / "results.png"))
    assert path.exists()
