"""Errors raised by the kernel explorer."""


class ExplorerError(ValueError):
    """Base class for all user-facing explorer errors."""


class DecodeError(ExplorerError):
    """Image bytes could not be decoded."""


class InvalidShape(ExplorerError):
    """Kernel shape does not fit the kernel sheet."""


class EmptyInput(ExplorerError):
    """Slide or kernel has zero width or height."""


class MissingInput(ExplorerError):
    """An action needs an image or kernel list that is not loaded yet."""
