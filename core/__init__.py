"""Core image processing utilities."""
from .errors import ExplorerError, DecodeError, InvalidShape, EmptyInput, MissingInput
from .shapes import KernelShape, PRESET_SHAPES, DEFAULT_SHAPE
from .image_utils import decode_grayscale, load_grayscale
from .splitting import split_grid, split_kernel_sheet, split_by_kernel_size, shape_for_kernel_size
