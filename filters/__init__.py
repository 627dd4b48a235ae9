"""Kernel filtering and preview modules."""
from .convolution import convolve, correlate_raw, score_response, run_all, run_all_scored, DEFAULT_BOUNDARY
from .preview import build_preview, PREVIEW_MAX_SIZE
