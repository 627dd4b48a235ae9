"""Tests for kernel correlation."""

import sys
import os

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.errors import EmptyInput
from core.shapes import KernelShape
from core.splitting import split_kernel_sheet
from filters.convolution import (
    convolve,
    correlate_raw,
    run_all,
    run_all_scored,
)


def reference_correlation(slide, kernel, pad_mode):
    """Straightforward loop with the same anchor: (kh // 2, kw // 2)."""
    kh, kw = kernel.shape
    top, left = kh // 2, kw // 2
    padded = np.pad(slide.astype(np.float64),
                    ((top, kh - 1 - top), (left, kw - 1 - left)), mode=pad_mode)
    out = np.zeros(slide.shape, dtype=np.float64)
    for y in range(slide.shape[0]):
        for x in range(slide.shape[1]):
            out[y, x] = np.sum(padded[y:y + kh, x:x + kw] * kernel)
    return out


@pytest.fixture
def slide():
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, size=(9, 11), dtype=np.uint8)


def test_zero_kernel_gives_black_image(slide):
    result = convolve(slide, np.zeros((3, 3)))
    assert result.shape == slide.shape
    assert not result.any()


def test_identity_kernel_reproduces_slide(slide):
    assert np.array_equal(convolve(slide, np.ones((1, 1))), slide)

    centred = np.zeros((3, 3))
    centred[1, 1] = 1.0
    assert np.array_equal(convolve(slide, centred), slide)


def test_kernel_is_not_flipped(slide):
    # Weight right of the anchor picks the right neighbour
    kernel = np.array([[0.0, 0.0, 1.0]])
    result = convolve(slide, kernel)
    assert np.array_equal(result[:, :-1], slide[:, 1:])
    assert not result[:, -1].any()


@pytest.mark.parametrize("kernel_shape", [(3, 3), (6, 3), (3, 6), (2, 2)])
def test_zero_padding_matches_reference(slide, kernel_shape):
    rng = np.random.default_rng(1)
    kernel = rng.uniform(-1.0, 1.0, size=kernel_shape)
    expected = reference_correlation(slide, kernel, 'constant')
    assert np.allclose(correlate_raw(slide, kernel), expected)


@pytest.mark.parametrize("kernel_shape", [(3, 3), (6, 3)])
def test_clamp_padding_matches_reference(slide, kernel_shape):
    rng = np.random.default_rng(2)
    kernel = rng.uniform(-1.0, 1.0, size=kernel_shape)
    expected = reference_correlation(slide, kernel, 'edge')
    assert np.allclose(correlate_raw(slide, kernel, boundary='clamp'), expected)


def test_zero_padding_darkens_border():
    flat = np.full((4, 4), 100, dtype=np.uint8)
    box = np.full((3, 3), 1.0 / 9.0)

    result = convolve(flat, box)

    assert result[0, 0] == 44      # 4 of 9 samples inside
    assert result[0, 1] == 67      # 6 of 9 samples inside
    assert result[1, 1] == 100


def test_clamp_padding_keeps_flat_border():
    flat = np.full((4, 4), 100, dtype=np.uint8)
    box = np.full((3, 3), 1.0 / 9.0)
    assert np.all(convolve(flat, box, boundary='clamp') == 100)


def test_corner_under_clamp_replicates_corner_sample():
    slide = np.zeros((5, 5), dtype=np.uint8)
    slide[0, 0] = 90
    # Footprint of the top-left pixel only sees the corner sample (replicated)
    kernel = np.zeros((3, 3))
    kernel[0, 0] = 1.0
    assert convolve(slide, kernel, boundary='clamp')[0, 0] == 90
    assert convolve(slide, kernel, boundary='zero')[0, 0] == 0


def test_result_is_clamped_not_wrapped():
    bright = np.full((3, 3), 200, dtype=np.uint8)
    assert np.all(convolve(bright, np.array([[2.0]])) == 255)
    assert np.all(convolve(bright, np.array([[-1.0]])) == 0)


def test_negative_and_positive_unit_kernels_on_flat_slide():
    slide = np.full((4, 4), 100, dtype=np.uint8)
    sheet = np.array([[0, 255]], dtype=np.uint8)
    negative, positive = split_kernel_sheet(sheet, KernelShape(1, 2))

    assert negative.tolist() == [[-1.0]]
    assert positive.tolist() == [[1.0]]
    assert np.all(convolve(slide, negative) == 0)
    assert np.all(convolve(slide, positive) == 100)


def test_empty_inputs_raise():
    with pytest.raises(EmptyInput):
        convolve(np.zeros((0, 4), dtype=np.uint8), np.ones((1, 1)))
    with pytest.raises(EmptyInput):
        convolve(np.zeros((4, 4), dtype=np.uint8), np.zeros((3, 0)))


def test_unknown_boundary_raises(slide):
    with pytest.raises(ValueError, match="boundary"):
        convolve(slide, np.ones((1, 1)), boundary='wrap')


def test_result_is_read_only(slide):
    result = convolve(slide, np.ones((1, 1)))
    assert result.dtype == np.uint8
    assert not result.flags.writeable


def test_run_all_preserves_order(slide):
    kernels = [np.full((1, 1), w) for w in (0.0, 0.5, 1.0, -1.0)]

    results = run_all(slide, kernels)

    assert len(results) == len(kernels)
    for kernel, result in zip(kernels, results):
        assert np.array_equal(result, convolve(slide, kernel))


def test_run_all_aborts_on_empty_kernel(slide):
    with pytest.raises(EmptyInput):
        run_all(slide, [np.ones((1, 1)), np.zeros((0, 0))])


def test_scores():
    white = np.full((2, 2), 255, dtype=np.uint8)
    _, scores = run_all_scored(white, [np.array([[1.0]]), np.array([[-1.0]])])
    assert scores == [pytest.approx(1.0), pytest.approx(1.0)]

    results, scores = run_all_scored(white, [np.array([[0.5]]), np.zeros((1, 1))])
    assert len(results) == len(scores) == 2
    assert scores[0] == pytest.approx(0.5)
    assert scores[1] == 0.0
