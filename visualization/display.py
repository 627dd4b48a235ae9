"""Display utilities for kernel exploration."""

from pathlib import Path
from typing import Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Rectangle

from core.shapes import KernelShape


def _grid_axes(rows: int, cols: int, figsize: tuple):
    fig, axes = plt.subplots(rows, cols, figsize=figsize, squeeze=False)
    return fig, axes


def display_inputs(slide: np.ndarray, sheet: np.ndarray, shape: KernelShape,
                   figsize: tuple = (12, 6), show: bool = True):
    """
    Display slide and kernels sheet side by side, with the split grid drawn.

    Trailing pixels that no kernel uses are left outside the grid.
    """
    fig, axes = plt.subplots(1, 2, figsize=figsize)

    axes[0].imshow(slide, cmap='gray', vmin=0, vmax=255)
    axes[0].set_title(f"Slide ({slide.shape[1]}x{slide.shape[0]})")
    axes[0].axis('off')

    axes[1].imshow(sheet, cmap='gray', vmin=0, vmax=255)
    axes[1].set_title(f"Kernels sheet ({shape.label})")
    axes[1].axis('off')

    kh = sheet.shape[0] // shape.rows
    kw = sheet.shape[1] // shape.cols
    for r in range(shape.rows):
        for c in range(shape.cols):
            axes[1].add_patch(Rectangle((c * kw - 0.5, r * kh - 0.5), kw, kh,
                                        fill=False, edgecolor='red', linewidth=1))

    plt.tight_layout()
    if show:
        plt.show()
    return fig


def display_kernels(kernels: Sequence[np.ndarray], shape: KernelShape,
                    figsize: Optional[tuple] = None, show: bool = True):
    """
    Display kernels in sheet layout (row-major).

    Weights use a diverging colormap: blue negative, red positive.
    """
    if figsize is None:
        figsize = (shape.cols * 2, shape.rows * 2)

    fig, axes = _grid_axes(shape.rows, shape.cols, figsize)

    for ax in axes.flat:
        ax.axis('off')

    for idx, kernel in enumerate(kernels):
        if idx >= shape.count:
            break
        r, c = idx // shape.cols, idx % shape.cols
        axes[r, c].imshow(kernel, cmap='coolwarm', vmin=-1.0, vmax=1.0)
        axes[r, c].set_title(f"Kernel {idx}", fontsize=8)

    plt.tight_layout()
    if show:
        plt.show()
    return fig


def display_results(results: Sequence[np.ndarray], shape: KernelShape,
                    scores: Optional[Sequence[float]] = None,
                    figsize: Optional[tuple] = None, show: bool = True):
    """
    Display convolution results in the same layout as their kernels.

    Args:
        results: One image per kernel
        shape: Layout of the kernels sheet
        scores: Optional mean absolute response per result
        figsize: Figure size
        show: Call plt.show()
    """
    if figsize is None:
        figsize = (shape.cols * 2.5, shape.rows * 2.5)

    fig, axes = _grid_axes(shape.rows, shape.cols, figsize)

    for ax in axes.flat:
        ax.axis('off')

    for idx, result in enumerate(results):
        if idx >= shape.count:
            break
        r, c = idx // shape.cols, idx % shape.cols
        axes[r, c].imshow(result, cmap='gray', vmin=0, vmax=255)

        title = f"#{idx}"
        if scores is not None and idx < len(scores):
            title = f"#{idx} ({scores[idx]:.3f})"
        axes[r, c].set_title(title, fontsize=8)

    plt.tight_layout()
    if show:
        plt.show()
    return fig


def save_figure(fig, output_path: str, dpi: int = 150) -> Path:
    """Save a figure created by one of the display functions."""
    output_dir = Path(output_path).parent
    if output_dir and str(output_dir) != '.':
        output_dir.mkdir(parents=True, exist_ok=True)

    fig.savefig(output_path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
    return Path(output_path)
