"""Tests for explorer state actions."""

import sys
import os
from dataclasses import FrozenInstanceError, replace

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.errors import DecodeError, EmptyInput, InvalidShape, MissingInput
from core.shapes import KernelShape
from pipeline import state as actions
from helpers import labelled_sheet, png_bytes


SHAPE = KernelShape(3, 6)


@pytest.fixture
def slide_png():
    rng = np.random.default_rng(11)
    return png_bytes(rng.integers(0, 256, size=(10, 12), dtype=np.uint8))


@pytest.fixture
def sheet_png():
    return png_bytes(labelled_sheet(SHAPE, kernel_h=3, kernel_w=3))


@pytest.fixture
def loaded(slide_png, sheet_png):
    return actions.drop_files(actions.reset(), [("slide.png", slide_png),
                                                ("sheet.png", sheet_png)])


def test_initial_state():
    state = actions.reset()
    assert state.slide is None and state.sheet is None
    assert state.shape == SHAPE
    assert state.boundary == 'zero'
    assert state.selected_result is None
    assert state.selected_score is None


def test_state_is_frozen():
    with pytest.raises(FrozenInstanceError):
        actions.reset().selected = 3


def test_drop_fills_slide_then_sheet(loaded):
    assert loaded.slide.name == "slide.png"
    assert (loaded.slide.height, loaded.slide.width) == (10, 12)
    assert loaded.sheet.name == "sheet.png"
    assert "Kernels sheet loaded" in loaded.status


def test_drop_when_both_slots_full(loaded, slide_png):
    state = actions.drop_files(loaded, [("third.png", slide_png)])
    assert state.slide is loaded.slide
    assert state.sheet is loaded.sheet
    assert "already filled" in state.status


def test_drop_bad_file_keeps_earlier_files(slide_png):
    state = actions.drop_files(actions.reset(), [("slide.png", slide_png),
                                                 ("broken.png", b"garbage")])
    assert state.slide.name == "slide.png"
    assert state.sheet is None
    assert "broken.png" in state.status


def test_load_image_bad_bytes_raises():
    with pytest.raises(DecodeError):
        actions.load_image(actions.reset(), b"garbage", "x.png", actions.SLIDE)


def test_split_requires_sheet(slide_png):
    state = actions.load_image(actions.reset(), slide_png, "slide.png", actions.SLIDE)
    with pytest.raises(MissingInput):
        actions.split(state)


def test_split_produces_row_major_kernels(loaded):
    state = actions.split(loaded)
    assert len(state.kernels) == 18
    assert all(k.shape == (3, 3) for k in state.kernels)
    assert np.allclose(state.kernels[7], 70 / 255.0 * 2.0 - 1.0)
    assert loaded.kernels == ()


def test_split_invalid_shape_keeps_previous_kernels(loaded):
    state = actions.split(loaded)
    too_many = replace(state, shape=KernelShape(20, 1))

    with pytest.raises(InvalidShape):
        actions.split(too_many)

    failed = actions.report_error(too_many, InvalidShape("bad shape"))
    assert len(failed.kernels) == 18
    assert failed.status == "bad shape"


def test_set_shape_discards_kernels(loaded):
    state = actions.split(loaded)
    state = actions.set_shape(state, KernelShape(6, 3))
    assert state.shape == KernelShape(6, 3)
    assert state.kernels == ()
    assert actions.set_shape(state, KernelShape(6, 3)) is state


def test_run_requires_slide_and_kernels(loaded, sheet_png):
    with pytest.raises(MissingInput):
        actions.run_all_convolutions(loaded)

    no_slide = actions.split(actions.load_image(actions.reset(), sheet_png, "s.png",
                                                actions.SHEET))
    with pytest.raises(MissingInput):
        actions.run_all_convolutions(no_slide)


def test_run_all_results_match_kernels(loaded):
    state = actions.run_all_convolutions(actions.split(loaded))
    assert len(state.results) == len(state.kernels) == len(state.scores)
    assert all(r.shape == (10, 12) for r in state.results)
    # Kernel 0 is all black (-1 weights): everything clamps to 0
    assert not state.results[0].any()
    assert state.selected_result is state.results[0]


def test_run_with_empty_slide_raises(loaded):
    state = actions.split(loaded)
    empty = replace(state, slide=actions.LoadedImage("empty", np.zeros((0, 0), dtype=np.uint8)))
    with pytest.raises(EmptyInput):
        actions.run_all_convolutions(empty)


def test_new_slide_discards_results(loaded, slide_png):
    state = actions.run_all_convolutions(actions.split(loaded))
    state = actions.load_image(state, slide_png, "other.png", actions.SLIDE)
    assert state.results == ()
    assert state.kernels == ()
    assert state.sheet is loaded.sheet


def test_select_clamps_index(loaded):
    state = actions.run_all_convolutions(actions.split(loaded))
    assert actions.select(state, 5).selected == 5
    assert actions.select(state, 100).selected == 17
    assert actions.select(state, -3).selected == 0
    assert actions.select(loaded, 4).selected == 0


def test_selected_score_follows_index(loaded):
    state = actions.select(actions.run_all_convolutions(actions.split(loaded)), 9)
    assert state.selected_score == state.scores[9]
    assert state.selected_result is state.results[9]


def test_finish_run_applies_results_when_state_unchanged(loaded):
    started_from = actions.split(loaded)
    finished = actions.run_all_convolutions(started_from)

    state = actions.finish_run(started_from, started_from, finished)

    assert state is finished
    assert len(state.results) == 18


def test_finish_run_drops_results_after_shape_change(loaded):
    started_from = actions.split(loaded)
    finished = actions.run_all_convolutions(started_from)
    # shape changed on the Tk thread while the worker was running
    current = actions.set_shape(started_from, KernelShape(6, 3))

    state = actions.finish_run(current, started_from, finished)

    assert state.shape == KernelShape(6, 3)
    assert state.kernels == () and state.results == ()
    assert "discarded" in state.status


def test_report_error_names_unexpected_errors(loaded):
    state = actions.report_error(loaded, MemoryError("out of memory"))
    assert state.status == "Unexpected error: MemoryError: out of memory"
    assert state.sheet is loaded.sheet
