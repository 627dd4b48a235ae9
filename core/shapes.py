"""Kernel sheet shapes."""

from dataclasses import dataclass

from .errors import InvalidShape


@dataclass(frozen=True)
class KernelShape:
    """
    Number of kernels packed in a sheet.

    Attributes:
        rows: Kernels stacked vertically
        cols: Kernels side by side
    """
    rows: int
    cols: int

    def __post_init__(self):
        if self.rows < 1 or self.cols < 1:
            raise InvalidShape(f"Kernel shape must be positive, got {self.rows}x{self.cols}")

    @property
    def count(self) -> int:
        return self.rows * self.cols

    @property
    def label(self) -> str:
        return f"{self.rows} x {self.cols}"

    @classmethod
    def parse(cls, text: str) -> 'KernelShape':
        """Parse 'RxC' (e.g. '3x6') into a shape."""
        parts = text.lower().replace(' ', '').split('x')
        if len(parts) != 2:
            raise InvalidShape(f"Expected ROWSxCOLS, got: {text!r}")
        try:
            rows, cols = int(parts[0]), int(parts[1])
        except ValueError:
            raise InvalidShape(f"Expected ROWSxCOLS, got: {text!r}") from None
        return cls(rows, cols)


PRESET_SHAPES = (KernelShape(3, 6), KernelShape(6, 3))
DEFAULT_SHAPE = PRESET_SHAPES[0]
