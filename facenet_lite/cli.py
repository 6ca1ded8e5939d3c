"""Command-line interface for inspecting and running the face embedder."""
from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Iterator, Optional

import typer
from PIL import Image

from facenet_lite.config import (
    EmbedderConfig,
    Paths,
    get_embedder_config_from_env,
    resolve_model_path,
)
from facenet_lite.core.benchmark import benchmark as run_benchmark
from facenet_lite.core.embedding import is_embedding_quality_good
from facenet_lite.core.exceptions import ValidationError
from facenet_lite.core.face_embed import FaceEmbedder
from facenet_lite.core.logger import get_logger, setup_logging

IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".bmp", ".webp"}

app = typer.Typer(help="FaceNet TFLite face embedding tools.")
logger = get_logger("cli")


@app.callback()
def main(
    log_level: str = typer.Option("INFO", envvar="LOG_LEVEL", help="Logging level."),
    log_file: Optional[Path] = typer.Option(
        None, envvar="LOG_FILE", help="Also write logs to this rotating file."
    ),
) -> None:
    """FaceNet TFLite face embedding tools."""
    try:
        setup_logging(log_level, log_file)
    except ValidationError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


def _iter_image_paths(path: Path) -> Iterator[Path]:
    """Yield ``path`` if it is an image file, else every image below it, sorted."""
    if path.is_file():
        if path.suffix.lower() in IMAGE_EXTS:
            yield path
        return
    if not path.is_dir():
        return
    for p in sorted(path.rglob("*")):
        if p.is_file() and p.suffix.lower() in IMAGE_EXTS:
            yield p


def _load_image(path: Path) -> Image.Image:
    """Decode an image file fully into RGB.

    Raises:
        OSError: If the file is missing or not a decodable image.
        ValueError: If Pillow rejects the image contents.
    """
    with Image.open(path) as img:
        return img.convert("RGB")


def _build_config(
    model: Optional[Path],
    data_dir: Optional[Path],
    use_gpu: Optional[bool],
    num_threads: Optional[int],
    normalize: Optional[bool] = None,
) -> EmbedderConfig:
    config = get_embedder_config_from_env()
    overrides = {}
    if model is not None:
        overrides["model_path"] = model
    elif data_dir is not None:
        overrides["model_path"] = resolve_model_path(Paths(data_dir=data_dir))
    if use_gpu is not None:
        overrides["use_gpu"] = use_gpu
    if num_threads is not None:
        overrides["num_threads"] = num_threads
    if normalize is not None:
        overrides["l2_normalize"] = normalize
    return replace(config, **overrides)


@app.command()
def status(
    model: Optional[Path] = None,
    data_dir: Optional[Path] = None,
    use_gpu: Optional[bool] = None,
    num_threads: Optional[int] = None,
) -> None:
    """Load the model and report which backend it runs on."""
    config = _build_config(model, data_dir, use_gpu, num_threads)
    with FaceEmbedder(config) as embedder:
        info = embedder.status()
    typer.echo(json.dumps(info.to_dict(), indent=2))
    if not info.model_loaded:
        raise typer.Exit(code=1)


@app.command()
def embed(
    images: Path,
    model: Optional[Path] = None,
    data_dir: Optional[Path] = None,
    use_gpu: Optional[bool] = None,
    num_threads: Optional[int] = None,
    normalize: Optional[bool] = None,
    output_json: Optional[Path] = None,
) -> None:
    """Embed face images: load -> resize -> normalize -> run -> output vectors."""
    config = _build_config(model, data_dir, use_gpu, num_threads, normalize)
    results = []
    with FaceEmbedder(config) as embedder:
        if not embedder.is_model_loaded():
            typer.echo(f"❌ Model not loaded: {embedder.status().load_error}", err=True)
            raise typer.Exit(code=1)

        for path in _iter_image_paths(images):
            try:
                image = _load_image(path)
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping unreadable image {path}: {e}")
                results.append(
                    {"image_path": str(path), "error": f"{type(e).__name__}: {e}"}
                )
                continue

            outcome = embedder.extract(image)
            if outcome.ok:
                results.append(
                    {
                        "image_path": str(path),
                        "embedding": outcome.embedding.tolist(),
                        "quality_ok": is_embedding_quality_good(outcome.embedding),
                    }
                )
            else:
                results.append({"image_path": str(path), "error": outcome.reason})

    if output_json:
        output_json.parent.mkdir(parents=True, exist_ok=True)
        output_json.write_text(json.dumps(results, indent=2), encoding="utf-8")
        typer.echo(f"Wrote results to: {output_json}")
    else:
        typer.echo(json.dumps(results, indent=2))


@app.command()
def benchmark(
    image: Path,
    runs: int = 10,
    model: Optional[Path] = None,
    data_dir: Optional[Path] = None,
    use_gpu: Optional[bool] = None,
    num_threads: Optional[int] = None,
) -> None:
    """Time preprocessing and inference on one image."""
    try:
        face = _load_image(image)
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Cannot read image {image}: {e}", err=True)
        raise typer.Exit(code=1)

    config = _build_config(model, data_dir, use_gpu, num_threads)
    with FaceEmbedder(config) as embedder:
        if not embedder.is_model_loaded():
            typer.echo(f"❌ Model not loaded: {embedder.status().load_error}", err=True)
            raise typer.Exit(code=1)
        metrics = run_benchmark(embedder, face, runs=runs)
    typer.echo(json.dumps(metrics.to_dict(), indent=2))


if __name__ == "__main__":
    app()
