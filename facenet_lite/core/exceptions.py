"""Custom exceptions for facenet-lite.

These are raised inside the embedder and converted into load and
inference outcomes at its public boundary.
"""

from __future__ import annotations


class FaceNetLiteError(Exception):
    """Base exception for all facenet-lite errors."""

    pass


class ModelLoadError(FaceNetLiteError):
    """Error locating, mapping or building the TensorFlow Lite model."""

    pass


class BackendError(FaceNetLiteError):
    """Acceleration delegate could not be loaded or attached."""

    pass


class InferenceError(FaceNetLiteError):
    """Error while running the session or reading its output."""

    pass


class ValidationError(FaceNetLiteError):
    """Input validation error."""

    pass
