"""Visualization utilities for kernel exploration."""
from .display import (
    display_inputs,
    display_kernels,
    display_results,
    save_figure
)
