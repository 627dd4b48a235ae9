"""Kernel sheet splitting."""

from typing import List

import numpy as np

from .errors import InvalidShape
from .shapes import KernelShape


MAX_INTENSITY = 255.0


def split_grid(image_data, rows, cols):
    """
    Split image into rows x cols equally sized cells.

    Trailing pixel rows/columns that do not fill a whole cell are dropped.

    Args:
        image_data: Input image as numpy array
        rows: Number of cells vertically
        cols: Number of cells horizontally

    Returns:
        List of cells in row-major order

    Raises:
        InvalidShape: If the grid does not fit the image
    """
    if rows < 1 or cols < 1:
        raise InvalidShape(f"Kernel shape must be positive, got {rows}x{cols}")

    height, width = image_data.shape[:2]
    cell_H = height // rows
    cell_W = width // cols
    if cell_H == 0 or cell_W == 0:
        raise InvalidShape(
            f"Shape {rows}x{cols} is larger than the {width}x{height} sheet"
        )

    cells = []
    for i in range(rows):
        for j in range(cols):
            y_start = i * cell_H
            y_end = (i + 1) * cell_H
            x_start = j * cell_W
            x_end = (j + 1) * cell_W

            cell = image_data[y_start:y_end, x_start:x_end].copy()
            cells.append(cell)

    return cells


def intensity_to_weights(cell: np.ndarray) -> np.ndarray:
    """Map 0..255 intensities to -1..+1 weights (mid-gray -> 0)."""
    weights = cell.astype(np.float64) / MAX_INTENSITY * 2.0 - 1.0
    weights.setflags(write=False)
    return weights


def split_kernel_sheet(sheet: np.ndarray, shape: KernelShape) -> List[np.ndarray]:
    """
    Split a kernel sheet into signed kernels.

    Args:
        sheet: Grayscale sheet (uint8)
        shape: Number of kernels per column and per row

    Returns:
        shape.rows * shape.cols float64 kernels in row-major order
    """
    return [intensity_to_weights(cell) for cell in split_grid(sheet, shape.rows, shape.cols)]


def shape_for_kernel_size(sheet: np.ndarray, kernel_width: int,
                          kernel_height: int) -> KernelShape:
    """
    Kernel count per column/row of a sheet packing kernels of a given size.

    The sheet must be an exact multiple of the kernel size.
    """
    if kernel_width < 1 or kernel_height < 1:
        raise InvalidShape(f"Kernel size must be positive, got {kernel_width}x{kernel_height}")

    height, width = sheet.shape[:2]
    if width % kernel_width != 0 or height % kernel_height != 0:
        raise InvalidShape(
            f"Kernel sheet size {width}x{height} is not divisible by "
            f"kernel size {kernel_width}x{kernel_height}."
        )

    return KernelShape(height // kernel_height, width // kernel_width)


def split_by_kernel_size(sheet: np.ndarray, kernel_width: int,
                         kernel_height: int) -> List[np.ndarray]:
    """Split a sheet given the size of one kernel instead of the kernel count."""
    return split_kernel_sheet(sheet, shape_for_kernel_size(sheet, kernel_width, kernel_height))


def kernel_to_image(kernel: np.ndarray) -> np.ndarray:
    """Map -1..+1 weights back to a 0..255 image for display."""
    raw = (np.asarray(kernel, dtype=np.float64) + 1.0) / 2.0 * MAX_INTENSITY
    return np.clip(np.rint(raw), 0, 255).astype(np.uint8)
