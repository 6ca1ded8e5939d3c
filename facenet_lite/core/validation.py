"""Input validation utilities for facenet-lite."""

from __future__ import annotations

from typing import Any

import numpy as np
from PIL import Image

from facenet_lite.config import EmbedderConfig
from facenet_lite.core.exceptions import ValidationError


def validate_positive_int(name: str, value: Any) -> bool:
    """Validate that a setting is a positive integer.

    Args:
        name: Setting name used in the error message.
        value: Value to validate.

    Returns:
        True if valid.

    Raises:
        ValidationError: If value is not a positive integer.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")

    if value <= 0:
        raise ValidationError(f"{name} must be greater than 0")

    return True


def validate_config(config: EmbedderConfig) -> bool:
    """Validate an embedder configuration.

    Args:
        config: Configuration to validate.

    Returns:
        True if valid.

    Raises:
        ValidationError: If any size or thread count is invalid.
    """
    validate_positive_int("input_size", config.input_size)
    validate_positive_int("embedding_size", config.embedding_size)
    validate_positive_int("num_threads", config.num_threads)

    if config.use_gpu and not config.delegate_path:
        raise ValidationError("delegate_path cannot be empty when use_gpu is set")

    return True


def validate_image(image: Any) -> Image.Image:
    """Validate an input image and return it as an RGB PIL image.

    Accepts a PIL image in any mode, or a uint8 numpy array shaped
    (H, W), (H, W, 3) or (H, W, 4). Alpha is dropped.

    Args:
        image: Image to validate.

    Returns:
        PIL Image in RGB mode.

    Raises:
        ValidationError: If the image is empty or of an unsupported type.
    """
    if image is None:
        raise ValidationError("image cannot be None")

    if isinstance(image, np.ndarray):
        if image.dtype != np.uint8:
            raise ValidationError(f"image array must be uint8, got {image.dtype}")
        if image.ndim == 3 and image.shape[2] not in (3, 4):
            raise ValidationError(
                f"image array must have 3 or 4 channels, got {image.shape[2]}"
            )
        if image.ndim not in (2, 3):
            raise ValidationError(f"image array must be 2D or 3D, got {image.ndim}D")
        if image.size == 0:
            raise ValidationError(f"image array has no pixels {image.shape}")
        image = Image.fromarray(image)

    if not isinstance(image, Image.Image):
        raise ValidationError(
            f"image must be a PIL Image or numpy array, got {type(image).__name__}"
        )

    width, height = image.size
    if width <= 0 or height <= 0:
        raise ValidationError(f"image has no pixels ({width}x{height})")

    if image.mode != "RGB":
        image = image.convert("RGB")

    return image
