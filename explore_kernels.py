#!/usr/bin/env python
"""
Kernel Explorer (command line)

Usage:
    python explore_kernels.py <slide> <sheet> [--shape RxC] [--output <dir>]

Examples:
    python explore_kernels.py slide.png kernels.png
    python explore_kernels.py slide.png kernels.png --shape 6x3 --output ./debug/results
    python explore_kernels.py slide.png kernels.png --kernel-size 3x6 --no-display
    python explore_kernels.py slide.png kernels.png --stretch --save-figures ./debug --no-display

Steps:
    1: Load both images as grayscale, split the sheet into kernels
    2: Correlate every kernel with the slide, clamp to 0..255
"""

import argparse
import os
import sys

from core.errors import ExplorerError
from core.shapes import DEFAULT_SHAPE, KernelShape
from filters.convolution import BOUNDARY_MODES, DEFAULT_BOUNDARY
from pipeline import explore


def parse_kernel_size(text):
    """Parse 'WxH' (width first) into (width, height)."""
    parts = text.lower().replace(' ', '').split('x')
    try:
        width, height = (int(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected WxH, got '{text}'")
    if width < 1 or height < 1:
        raise argparse.ArgumentTypeError(f"Kernel size must be positive, got '{text}'")
    return width, height


def save_figures(exploration, output_dir, verbose=True):
    """Save the inputs, kernels and results figures as PNGs."""
    from visualization import display_inputs, display_kernels, display_results, save_figure

    figures = {
        'inputs.png': display_inputs(exploration.slide, exploration.sheet, exploration.shape,
                                     show=False),
        'kernels.png': display_kernels(exploration.kernels, exploration.shape, show=False),
        'results.png': display_results(exploration.results, exploration.shape,
                                       exploration.scores, show=False),
    }
    paths = [save_figure(fig, os.path.join(output_dir, name)) for name, fig in figures.items()]
    if verbose:
        print(f"Saved figures to: {output_dir}")
    return paths


def build_parser():
    parser = argparse.ArgumentParser(
        description="Apply every kernel of a kernels sheet to a slide",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Kernel weights are mapped from sheet intensities:
  weight = pixel / 255 * 2 - 1   (black -1, mid-gray 0, white +1)
Results are correlations (kernel not flipped), clamped to 0..255.
        """
    )
    parser.add_argument("slide", help="Path to the slide image")
    parser.add_argument("sheet", help="Path to the kernels sheet image")
    parser.add_argument("--shape", "-s", default=DEFAULT_SHAPE.label.replace(' ', ''),
                        help="Kernels per column x per row, e.g. 3x6 (default: %(default)s)")
    parser.add_argument("--kernel-size", "-k", type=parse_kernel_size,
                        help="Size of one kernel as WxH; overrides --shape")
    parser.add_argument("--boundary", "-b", choices=sorted(BOUNDARY_MODES),
                        default=DEFAULT_BOUNDARY, help="Edge policy (default: %(default)s)")
    parser.add_argument("--output", "-o", help="Directory to save result images in")
    parser.add_argument("--preview-size", type=int,
                        help="Downsize saved results so the longest side fits")
    parser.add_argument("--stretch", action="store_true",
                        help="Min-max stretch the contrast of saved results")
    parser.add_argument("--save-figures", metavar="DIR",
                        help="Save inputs/kernels/results figures as PNGs in DIR")
    parser.add_argument("--quiet", "-q", action="store_true", help="Suppress output")
    parser.add_argument("--no-display", action="store_true", help="Don't display results")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    for path in (args.slide, args.sheet):
        if not os.path.exists(path):
            print(f"Error: Image not found: {path}")
            return 1

    verbose = not args.quiet

    try:
        exploration = explore(
            args.slide,
            args.sheet,
            shape=KernelShape.parse(args.shape),
            kernel_size=args.kernel_size,
            boundary=args.boundary,
            output_dir=args.output,
            preview_size=args.preview_size,
            stretch=args.stretch,
            verbose=verbose
        )
    except ExplorerError as e:
        print(f"Error: {e}")
        return 1

    if verbose:
        best = exploration.strongest
        print(f"\nKernels: {len(exploration.kernels)} ({exploration.shape.label})")
        print(f"Strongest response: kernel {best} ({exploration.scores[best]:.5f})")

    if args.save_figures:
        save_figures(exploration, args.save_figures, verbose)

    if not args.no_display:
        from visualization import display_inputs, display_kernels, display_results
        display_inputs(exploration.slide, exploration.sheet, exploration.shape, show=False)
        display_kernels(exploration.kernels, exploration.shape, show=False)
        display_results(exploration.results, exploration.shape, exploration.scores)

    return 0


if __name__ == "__main__":
    sys.exit(main())
