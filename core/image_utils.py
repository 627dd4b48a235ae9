"""Low-level image operations."""

import io
from pathlib import Path

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import DecodeError


def decode_grayscale(data: bytes) -> np.ndarray:
    """
    Decode image bytes into a read-only grayscale array.

    Any mode Pillow understands is converted with its 'L' mode
    (ITU-R 601-2 luma: L = R*299/1000 + G*587/1000 + B*114/1000).

    Args:
        data: Raw file contents (PNG expected)

    Returns:
        uint8 array of shape (height, width)

    Raises:
        DecodeError: If the bytes are not a decodable image
    """
    if not data:
        raise DecodeError("Empty file")
    try:
        with Image.open(io.BytesIO(data)) as pic:
            gray = _to_luma(pic)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"Failed to decode image: {e}") from e

    gray.setflags(write=False)
    return gray


def _to_luma(pic):
    if pic.mode in ('I;16', 'I;16B', 'I;16L', 'I'):
        # Wide integer modes: scale to 8 bit before luma conversion
        wide = np.asarray(pic, dtype=np.float64)
        peak = 65535.0 if pic.mode.startswith('I;16') or wide.max() > 255 else 255.0
        return np.clip(np.rint(wide / peak * 255.0), 0, 255).astype(np.uint8)
    if pic.mode in ('RGBA', 'LA', 'P', 'PA'):
        pic = pic.convert('RGB')
    return np.array(pic.convert('L'), dtype=np.uint8)


def load_grayscale(file_path) -> np.ndarray:
    """Read a file from disk and decode it as grayscale."""
    try:
        data = Path(file_path).read_bytes()
    except OSError as e:
        raise DecodeError(f"Could not read file: {file_path}") from e
    return decode_grayscale(data)


def encode_png(image: np.ndarray) -> bytes:
    """Encode a grayscale array as PNG bytes."""
    ok, buf = cv2.imencode('.png', np.ascontiguousarray(image))
    if not ok:
        raise ValueError("Could not encode image as PNG")
    return buf.tobytes()


def resize_nearest(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resize using nearest-neighbour sampling (keeps exact pixel values)."""
    return cv2.resize(image, (width, height), interpolation=cv2.INTER_NEAREST)
