"""
Kernel correlation over a grayscale slide.

Kernels are applied as correlation (not flipped), anchored at
(height // 2, width // 2). Raw sums are computed on the 0..255 scale,
rounded and clamped to 0..255.
"""

from typing import List, Sequence, Tuple

import cv2
import numpy as np

from core.errors import EmptyInput


BOUNDARY_MODES = {
    'zero': cv2.BORDER_CONSTANT,
    'clamp': cv2.BORDER_REPLICATE,
}
DEFAULT_BOUNDARY = 'zero'


def _check_inputs(slide: np.ndarray, kernel: np.ndarray, boundary: str):
    if boundary not in BOUNDARY_MODES:
        raise ValueError(f"Unknown boundary mode: {boundary}")
    if slide.ndim != 2 or 0 in slide.shape:
        raise EmptyInput(f"Slide has no pixels (shape {slide.shape})")
    if kernel.ndim != 2 or 0 in kernel.shape:
        raise EmptyInput(f"Kernel has no weights (shape {kernel.shape})")


def correlate_raw(slide: np.ndarray, kernel: np.ndarray,
                  boundary: str = DEFAULT_BOUNDARY) -> np.ndarray:
    """
    Weighted neighbourhood sum without clamping.

    Args:
        slide: Grayscale image (uint8 or float)
        kernel: 2D weight matrix
        boundary: 'zero' (pad with zeros) or 'clamp' (replicate edge)

    Returns:
        float64 response, same size as slide

    Raises:
        EmptyInput: If slide or kernel has zero width or height
    """
    _check_inputs(slide, kernel, boundary)

    src = np.ascontiguousarray(slide, dtype=np.float64)
    weights = np.ascontiguousarray(kernel, dtype=np.float64)

    # filter2D is a correlation; default anchor is (kw // 2, kh // 2)
    return cv2.filter2D(src, cv2.CV_64F, weights,
                        borderType=BOUNDARY_MODES[boundary])


def clamp_response(response: np.ndarray) -> np.ndarray:
    """Round and clamp (never wrap) a raw response into a read-only uint8 image."""
    result = np.clip(np.rint(response), 0, 255).astype(np.uint8)
    result.setflags(write=False)
    return result


def score_response(response: np.ndarray) -> float:
    """Mean absolute response with intensities scaled to 0..1."""
    return float(np.mean(np.abs(response)) / 255.0)


def convolve(slide: np.ndarray, kernel: np.ndarray,
             boundary: str = DEFAULT_BOUNDARY) -> np.ndarray:
    """Apply one kernel to the slide."""
    return clamp_response(correlate_raw(slide, kernel, boundary))


def run_all_scored(slide: np.ndarray, kernels: Sequence[np.ndarray],
                   boundary: str = DEFAULT_BOUNDARY) -> Tuple[List[np.ndarray], List[float]]:
    """Like run_all, also returning the score of each kernel."""
    results, scores = [], []
    for kernel in kernels:
        response = correlate_raw(slide, kernel, boundary)
        results.append(clamp_response(response))
        scores.append(score_response(response))
    return results, scores


def run_all(slide: np.ndarray, kernels: Sequence[np.ndarray],
            boundary: str = DEFAULT_BOUNDARY) -> List[np.ndarray]:
    """
    Apply every kernel to the slide.

    Results keep the kernel order. If any kernel fails the whole run is
    aborted and nothing is returned.
    """
    return [convolve(slide, kernel, boundary) for kernel in kernels]
