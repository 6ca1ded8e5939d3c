"""Result and status types for the face embedder."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


class EmbedderState(Enum):
    """Lifecycle states of a face embedder."""

    UNLOADED = "unloaded"
    LOADED = "loaded"
    RELEASED = "released"  # Terminal


class LoadStatus(Enum):
    """Outcome kinds of a model load."""

    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class LoadOutcome:
    """Result of loading the embedding model.

    Attributes:
        status: Whether the session was built.
        backend: Backend name when loaded, e.g. ``cpu:4``.
        reason: Failure description when not loaded.
    """

    status: LoadStatus
    backend: Optional[str] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is LoadStatus.LOADED

    @classmethod
    def loaded(cls, backend: str) -> "LoadOutcome":
        return cls(status=LoadStatus.LOADED, backend=backend)

    @classmethod
    def failed(cls, reason: str) -> "LoadOutcome":
        return cls(status=LoadStatus.FAILED, reason=reason)


@dataclass(frozen=True)
class InferenceOutcome:
    """Result of a single embedding extraction.

    Attributes:
        embedding: 1-D float32 embedding on success, None otherwise.
        reason: Failure description when no embedding was produced.
    """

    embedding: Optional[np.ndarray] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.embedding is not None

    @classmethod
    def success(cls, embedding: np.ndarray) -> "InferenceOutcome":
        return cls(embedding=embedding)

    @classmethod
    def failed(cls, reason: str) -> "InferenceOutcome":
        return cls(reason=reason)


@dataclass(frozen=True)
class EngineStatus:
    """Snapshot of the embedder for diagnostics.

    Attributes:
        state: Current lifecycle state.
        model_loaded: Whether a session is attached.
        backend: Active backend name, None when not loaded.
        input_size: Model input side in pixels.
        embedding_size: Embedding length.
        model_path: Model file in use.
        load_error: Reason of the last failed load, if any.
    """

    state: EmbedderState
    model_loaded: bool
    backend: Optional[str]
    input_size: int
    embedding_size: int
    model_path: str
    load_error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "model_loaded": self.model_loaded,
            "backend": self.backend,
            "input_size": self.input_size,
            "embedding_size": self.embedding_size,
            "model_path": self.model_path,
            "load_error": self.load_error,
        }


@dataclass(frozen=True)
class BenchmarkMetrics:
    """Mean timings of repeated embedding extraction.

    Attributes:
        runs: Number of timed runs.
        preprocess_ms: Mean preprocessing time in milliseconds.
        inference_ms: Mean session run time in milliseconds.
        total_ms: Sum of the two means.
        embedding_size: Length of the produced embedding (0 if none).
        backend: Backend the runs used.
        failures: Runs that produced no embedding.
    """

    runs: int
    preprocess_ms: float
    inference_ms: float
    total_ms: float
    embedding_size: int
    backend: Optional[str]
    failures: int = 0

    def to_dict(self) -> dict:
        return {
            "runs": self.runs,
            "preprocess_ms": round(self.preprocess_ms, 3),
            "inference_ms": round(self.inference_ms, 3),
            "total_ms": round(self.total_ms, 3),
            "embedding_size": self.embedding_size,
            "backend": self.backend,
            "failures": self.failures,
        }
