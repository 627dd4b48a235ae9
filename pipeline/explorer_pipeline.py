"""
Explorer Pipeline

Runs the whole explorer without a window:
1. Load slide and kernels sheet as grayscale
2. Split the sheet into kernels
3. Apply every kernel, keep results in kernel order
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import cv2
import numpy as np

from core.image_utils import load_grayscale
from core.shapes import DEFAULT_SHAPE, KernelShape
from core.splitting import shape_for_kernel_size, split_kernel_sheet
from filters.convolution import DEFAULT_BOUNDARY, run_all_scored
from filters.preview import build_preview


@dataclass
class Exploration:
    """Everything one explore() run produced, kernels and results in the same order."""
    slide: np.ndarray
    sheet: np.ndarray
    shape: KernelShape
    kernels: List[np.ndarray]
    results: List[np.ndarray]
    scores: List[float]

    @property
    def strongest(self) -> int:
        """Index of the kernel with the highest score."""
        return max(range(len(self.scores)), key=self.scores.__getitem__)


def load_and_split(sheet_path: str, shape: Optional[KernelShape] = None,
                   kernel_size: Optional[Tuple[int, int]] = None,
                   verbose: bool = True) -> Tuple[List[np.ndarray], np.ndarray, KernelShape]:
    """
    Load a kernels sheet and split it.

    Args:
        sheet_path: Path to the kernels sheet
        shape: Kernel count per column/row (default 3x6)
        kernel_size: (width, height) of one kernel; overrides shape
        verbose: Print progress info

    Returns:
        kernels: Weights in row-major order
        sheet: Decoded sheet
        shape: Kernel count actually used
    """
    sheet = load_grayscale(sheet_path)
    if verbose:
        print(f"Sheet: {sheet_path} ({sheet.shape[1]}x{sheet.shape[0]})")

    if kernel_size is not None:
        shape = shape_for_kernel_size(sheet, kernel_size[0], kernel_size[1])
    kernels = split_kernel_sheet(sheet, shape or DEFAULT_SHAPE)

    if verbose:
        kh, kw = kernels[0].shape
        print(f"Split into {len(kernels)} kernels of {kw}x{kh}")
    return kernels, sheet, shape or DEFAULT_SHAPE


def save_results(results: List[np.ndarray], output_dir: str,
                 preview_size: Optional[int] = None, stretch: bool = False,
                 verbose: bool = True) -> List[Path]:
    """Write each result as result_<index>.png, optionally downsized and contrast-stretched."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    paths = []
    for idx, result in enumerate(results):
        if preview_size or stretch:
            max_size = preview_size or max(result.shape)
            image = build_preview(result, max_size, stretch=stretch)
        else:
            image = result
        path = out / f"result_{idx:02d}.png"
        if not cv2.imwrite(str(path), np.ascontiguousarray(image)):
            raise OSError(f"Could not write {path}")
        paths.append(path)

    if verbose:
        print(f"\nSaved {len(paths)} results to: {out}")
    return paths


def explore(slide_path: str, sheet_path: str, shape: Optional[KernelShape] = None,
            kernel_size: Optional[Tuple[int, int]] = None,
            boundary: str = DEFAULT_BOUNDARY, output_dir: Optional[str] = None,
            preview_size: Optional[int] = None, stretch: bool = False,
            verbose: bool = True) -> Exploration:
    """
    Complete pipeline: load -> split -> convolve every kernel.

    Args:
        slide_path: Path to the slide image
        sheet_path: Path to the kernels sheet
        shape: Kernel count per column/row
        kernel_size: (width, height) of one kernel; overrides shape
        boundary: 'zero' or 'clamp'
        output_dir: Optional directory to save results in
        preview_size: Downsize saved results to this longest side
        stretch: Min-max stretch saved results to 0..255
        verbose: Print progress info

    Returns:
        Exploration with the decoded inputs, the shape used, kernels,
        results and scores
    """
    if verbose:
        print("\n" + "=" * 60)
        print("STEP 1: Load & Split")
        print("=" * 60)

    slide = load_grayscale(slide_path)
    if verbose:
        print(f"Slide: {slide_path} ({slide.shape[1]}x{slide.shape[0]})")

    kernels, sheet, shape = load_and_split(sheet_path, shape, kernel_size, verbose)

    if verbose:
        print("\n" + "=" * 60)
        print(f"STEP 2: Convolution ({boundary} boundary)")
        print("=" * 60)

    results, scores = run_all_scored(slide, kernels, boundary)

    if verbose:
        for idx, score in enumerate(scores):
            print(f"  Kernel {idx:2d}: mean |response| = {score:.5f}")

    if output_dir:
        save_results(results, output_dir, preview_size, stretch, verbose)

    return Exploration(slide=slide, sheet=sheet, shape=shape, kernels=kernels,
                       results=results, scores=scores)
