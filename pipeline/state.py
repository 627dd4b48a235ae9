"""
Explorer State

The whole application state lives in one frozen dataclass. Every user
action is a function taking the current state and returning a new one:

    load_image -> split -> run_all_convolutions -> select

Actions that fail raise an ExplorerError and leave the caller's state
untouched, so the previous kernels/results stay visible.
"""

from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Tuple

import numpy as np

from core.errors import DecodeError, ExplorerError, MissingInput
from core.image_utils import decode_grayscale
from core.shapes import DEFAULT_SHAPE, KernelShape
from core.splitting import split_kernel_sheet
from filters.convolution import DEFAULT_BOUNDARY, run_all_scored


SLIDE = 'slide'
SHEET = 'sheet'

INITIAL_STATUS = ("Load two PNG files: first the slide, "
                  "then the kernels sheet.")


@dataclass(frozen=True)
class LoadedImage:
    """A decoded grayscale image and the file it came from."""
    name: str
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]


@dataclass(frozen=True)
class ExplorerState:
    """
    Immutable application state.

    Attributes:
        slide: Image the kernels are applied to
        sheet: Image packing the kernels
        shape: Kernel count per column/row in the sheet
        boundary: Edge policy used for every convolution
        kernels: Weights split from the sheet, row-major
        results: One result per kernel, same order
        scores: Mean absolute response per kernel
        selected: Index of the previewed result
        status: Last message for the user
    """
    slide: Optional[LoadedImage] = None
    sheet: Optional[LoadedImage] = None
    shape: KernelShape = DEFAULT_SHAPE
    boundary: str = DEFAULT_BOUNDARY
    kernels: Tuple[np.ndarray, ...] = field(default_factory=tuple)
    results: Tuple[np.ndarray, ...] = field(default_factory=tuple)
    scores: Tuple[float, ...] = field(default_factory=tuple)
    selected: int = 0
    status: str = INITIAL_STATUS

    @property
    def selected_result(self) -> Optional[np.ndarray]:
        if not self.results:
            return None
        return self.results[self.selected]

    @property
    def selected_score(self) -> Optional[float]:
        if not self.scores:
            return None
        return self.scores[self.selected]


def reset(boundary: str = DEFAULT_BOUNDARY) -> ExplorerState:
    """Fresh state with nothing loaded."""
    return ExplorerState(boundary=boundary)


def load_image(state: ExplorerState, data: bytes, name: str, slot: str) -> ExplorerState:
    """
    Decode an image into the slide or sheet slot.

    Kernels and results are discarded since they no longer match.

    Raises:
        DecodeError: If the bytes are not an image
    """
    if slot not in (SLIDE, SHEET):
        raise ValueError(f"Unknown image slot: {slot}")

    loaded = LoadedImage(name=name, pixels=decode_grayscale(data))
    changes = {slot: loaded}
    label = "Slide" if slot == SLIDE else "Kernels sheet"
    return replace(
        state, kernels=(), results=(), scores=(), selected=0,
        status=(f"{label} loaded: {name} ({loaded.width}x{loaded.height}). "
                "Choose kernel shape and press Split kernels."),
        **changes
    )


def drop_files(state: ExplorerState, files: Iterable[Tuple[str, bytes]]) -> ExplorerState:
    """
    Load files in order: the slide slot first, then the sheet slot.

    A file that fails to decode stops the drop and its error becomes the
    status; files loaded before it are kept.
    """
    for name, data in files:
        slot = SLIDE if state.slide is None else SHEET if state.sheet is None else None
        if slot is not None:
            try:
                state = load_image(state, data, name, slot)
            except DecodeError as e:
                return report_error(state, DecodeError(f"{name}: {e}"))
        else:
            state = replace(state, status=("Both image slots are already filled. "
                                           "Use Reset to load different files."))
    return state


def set_shape(state: ExplorerState, shape: KernelShape) -> ExplorerState:
    if shape == state.shape:
        return state
    return replace(state, shape=shape, kernels=(), results=(), scores=(), selected=0,
                   status=f"Kernel shape set to {shape.label}.")


def split(state: ExplorerState) -> ExplorerState:
    """
    Split the sheet into kernels using the current shape.

    Raises:
        MissingInput: If no sheet is loaded
        InvalidShape: If the shape does not fit the sheet
    """
    if state.sheet is None:
        raise MissingInput("Load the kernels sheet first.")

    kernels = tuple(split_kernel_sheet(state.sheet.pixels, state.shape))
    kh, kw = kernels[0].shape
    return replace(
        state, kernels=kernels, results=(), scores=(), selected=0,
        status=(f"Split into {len(kernels)} kernels "
                f"({state.shape.rows} rows x {state.shape.cols} cols, {kw}x{kh} each).")
    )


def run_all_convolutions(state: ExplorerState) -> ExplorerState:
    """
    Apply every kernel to the slide.

    Raises:
        MissingInput: If the slide or the kernels are missing
        EmptyInput: If the slide or a kernel has no pixels
    """
    if state.slide is None:
        raise MissingInput("Load the slide first.")
    if not state.kernels:
        raise MissingInput("Split kernels first.")

    slide = state.slide.pixels
    results, scores = run_all_scored(slide, state.kernels, state.boundary)
    return replace(state, results=tuple(results), scores=tuple(scores), selected=0,
                   status=f"Computed {len(results)} convolution maps.")


def select(state: ExplorerState, index: int) -> ExplorerState:
    """Select a preview; the index is clamped to the available results."""
    if not state.results:
        return replace(state, selected=0)
    index = min(max(int(index), 0), len(state.results) - 1)
    return replace(state, selected=index)


def finish_run(current: ExplorerState, started_from: ExplorerState,
               finished: ExplorerState) -> ExplorerState:
    """
    Apply the outcome of a background run.

    If the state changed while the run was going (shape, images, reset),
    the results belong to stale inputs and are dropped.
    """
    if current is not started_from:
        return replace(current, status="Inputs changed while running; results discarded.")
    return finished


def report_error(state: ExplorerState, error: Exception) -> ExplorerState:
    """Keep everything, only show the error."""
    if isinstance(error, ExplorerError):
        return replace(state, status=str(error))
    return replace(state, status=f"Unexpected error: {type(error).__name__}: {error}")
