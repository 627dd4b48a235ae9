"""Shared helpers for building test images in memory."""

import io

import numpy as np
from PIL import Image


def png_bytes(array):
    buf = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(array)).save(buf, format='PNG')
    return buf.getvalue()


def labelled_sheet(shape, kernel_h, kernel_w, step=10):
    """Sheet where kernel i is filled with i * step."""
    sheet = np.zeros((shape.rows * kernel_h, shape.cols * kernel_w), dtype=np.uint8)
    for r in range(shape.rows):
        for c in range(shape.cols):
            sheet[r * kernel_h:(r + 1) * kernel_h,
                  c * kernel_w:(c + 1) * kernel_w] = (r * shape.cols + c) * step
    return sheet
