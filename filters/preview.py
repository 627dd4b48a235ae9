"""Preview rendering for convolution results."""

import numpy as np

from core.image_utils import resize_nearest


PREVIEW_MAX_SIZE = 256


def preview_size(width, height, max_size=PREVIEW_MAX_SIZE):
    """Scale (width, height) down so the longest side fits max_size."""
    scale = min(max_size / max(width, height), 1.0)
    out_w = max(int(round(width * scale)), 1)
    out_h = max(int(round(height * scale)), 1)
    return out_w, out_h


def stretch_contrast(image: np.ndarray) -> np.ndarray:
    """Min-max stretch to 0..255. Flat images become black."""
    values = image.astype(np.float64)
    min_v, max_v = float(values.min()), float(values.max())
    value_range = max(max_v - min_v, 1e-6)
    stretched = (values - min_v) / value_range * 255.0
    return np.clip(stretched, 0, 255).astype(np.uint8)


def build_preview(result: np.ndarray, max_size: int = PREVIEW_MAX_SIZE,
                  stretch: bool = False) -> np.ndarray:
    """
    Build a display-sized copy of a result image.

    Args:
        result: Convolution result (uint8)
        max_size: Longest side of the preview; never upscales
        stretch: Min-max stretch the preview contrast

    Returns:
        uint8 preview image
    """
    height, width = result.shape[:2]
    out_w, out_h = preview_size(width, height, max_size)

    preview = result
    if (out_w, out_h) != (width, height):
        preview = resize_nearest(result, out_w, out_h)
    if stretch:
        preview = stretch_contrast(preview)
    return np.array(preview, dtype=np.uint8)
