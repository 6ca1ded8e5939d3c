"""Image preprocessing into the FaceNet input layout."""
from __future__ import annotations

from typing import Any

import numpy as np
from PIL import Image

from facenet_lite.core.validation import validate_image, validate_positive_int

# Resampling filter for the square resize; embeddings are only reproducible
# against a reference computed with the same filter.
RESIZE_FILTER = Image.Resampling.BILINEAR

_SCALE = np.float32(127.5)
_SHIFT = np.float32(1.0)


def resize_square(image: Any, side: int) -> Image.Image:
    """Resize an image to ``side x side`` RGB with bilinear filtering.

    Args:
        image: PIL image or uint8 numpy array.
        side: Target width and height in pixels.

    Returns:
        Resized PIL Image in RGB mode.

    Raises:
        ValidationError: If the image or side is invalid.
    """
    validate_positive_int("side", side)
    rgb = validate_image(image)
    return rgb.resize((side, side), RESIZE_FILTER)


def normalize_pixels(rgb_uint8: np.ndarray) -> np.ndarray:
    """Map uint8 channel values to float32 via ``value / 127.5 - 1.0``.

    0 maps to exactly -1.0 and 255 to exactly 1.0.
    """
    return rgb_uint8.astype(np.float32) / _SCALE - _SHIFT


def preprocess_image(image: Any, side: int) -> np.ndarray:
    """Resize and normalize an image for the embedding model.

    Args:
        image: PIL image or uint8 numpy array of any size.
        side: Model input side in pixels.

    Returns:
        Array with shape (side, side, 3), dtype float32, RGB order, values in [-1, 1].
    """
    resized = resize_square(image, side)
    # Row-major (H, W, C) with channels interleaved R, G, B
    pixels = np.asarray(resized, dtype=np.uint8)
    return normalize_pixels(pixels)


def to_input_tensor(image: Any, side: int) -> np.ndarray:
    """Preprocess an image and add the batch dimension.

    Returns:
        Contiguous float32 array with shape (1, side, side, 3).
    """
    x = preprocess_image(image, side)
    return np.ascontiguousarray(x.reshape(1, side, side, 3))


def to_input_buffer(image: Any, side: int) -> bytes:
    """Preprocess an image into raw native-order float32 bytes.

    The result is always ``4 * side * side * 3`` bytes long.
    """
    return to_input_tensor(image, side).tobytes()
