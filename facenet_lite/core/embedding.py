"""Embedding vector helpers."""
from __future__ import annotations

import numpy as np


def l2_normalize(embedding: np.ndarray) -> np.ndarray:
    """Scale an embedding to unit L2 norm.

    A zero vector is returned unchanged.

    Args:
        embedding: 1-D float array.

    Returns:
        New float32 array with norm 1.0.
    """
    vec = np.asarray(embedding, dtype=np.float32)
    norm = float(np.linalg.norm(vec))
    if norm > 0:
        return (vec / norm).astype(np.float32)
    return vec.copy()


def is_embedding_quality_good(embedding: np.ndarray, tolerance: float = 0.1) -> bool:
    """Check that an embedding is finite and L2-normalized.

    Args:
        embedding: 1-D float array.
        tolerance: Allowed deviation of the norm from 1.0.

    Returns:
        True if no NaN/inf values and ``|norm - 1| < tolerance``.
    """
    vec = np.asarray(embedding, dtype=np.float64)
    if vec.size == 0 or not np.all(np.isfinite(vec)):
        return False
    norm = float(np.linalg.norm(vec))
    return abs(norm - 1.0) < tolerance
