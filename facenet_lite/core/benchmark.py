"""Timing of embedding extraction."""
from __future__ import annotations

import time
from typing import Any

from facenet_lite.core.face_embed import FaceEmbedder
from facenet_lite.core.logger import get_logger
from facenet_lite.core.preprocess import to_input_tensor
from facenet_lite.core.types import BenchmarkMetrics
from facenet_lite.core.validation import validate_positive_int

logger = get_logger("benchmark")


def benchmark(embedder: FaceEmbedder, image: Any, runs: int = 10) -> BenchmarkMetrics:
    """Time preprocessing and inference separately over repeated runs.

    Each run preprocesses the image once and feeds that tensor to the
    session, so both phases are measured directly.

    Args:
        embedder: Embedder to measure.
        image: Face image passed to every run.
        runs: Number of timed runs.

    Returns:
        BenchmarkMetrics with mean timings in milliseconds.

    Raises:
        ValidationError: If runs is not a positive integer or the image is invalid.
    """
    validate_positive_int("runs", runs)

    side = embedder.config.input_size
    preprocess_total = 0.0
    inference_total = 0.0
    failures = 0
    embedding_size = 0

    for _ in range(runs):
        start = time.perf_counter()
        x = to_input_tensor(image, side)
        preprocess_total += time.perf_counter() - start

        start = time.perf_counter()
        outcome = embedder.extract_from_tensor(x)
        inference_total += time.perf_counter() - start

        if outcome.ok:
            embedding_size = int(outcome.embedding.size)
        else:
            failures += 1

    preprocess_ms = preprocess_total / runs * 1000.0
    inference_ms = inference_total / runs * 1000.0
    metrics = BenchmarkMetrics(
        runs=runs,
        preprocess_ms=preprocess_ms,
        inference_ms=inference_ms,
        total_ms=preprocess_ms + inference_ms,
        embedding_size=embedding_size,
        backend=embedder.status().backend,
        failures=failures,
    )
    logger.info(
        f"Benchmark: {runs} runs, {metrics.total_ms:.2f} ms/run on {metrics.backend}"
    )
    return metrics
