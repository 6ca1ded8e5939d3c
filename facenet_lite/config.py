"""Configuration paths and model resolution for facenet-lite."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MODEL_FILE = "face_feature_model.tflite"
DEFAULT_GPU_DELEGATE = "libtensorflowlite_gpu_delegate.so"
DEFAULT_INPUT_SIZE = 160
DEFAULT_EMBEDDING_SIZE = 512
DEFAULT_NUM_THREADS = 4


@dataclass(frozen=True)
class Paths:
    """Configuration paths for data directory structure.

    Attributes:
        data_dir: Root data directory containing models.
    """

    data_dir: Path

    @property
    def models_dir(self) -> Path:
        """Return path to models directory."""
        return self.data_dir / "models"


@dataclass(frozen=True)
class EmbedderConfig:
    """Settings for loading and running the face embedding model.

    Attributes:
        model_path: Path to the .tflite model file.
        input_size: Side of the square model input, in pixels.
        embedding_size: Length of the embedding the model emits.
        num_threads: CPU thread count when no delegate is attached.
        use_gpu: Whether to probe for an acceleration delegate.
        delegate_path: Shared library of the acceleration delegate.
        l2_normalize: Whether to L2-normalize embeddings before returning them.
    """

    model_path: Path
    input_size: int = DEFAULT_INPUT_SIZE
    embedding_size: int = DEFAULT_EMBEDDING_SIZE
    num_threads: int = DEFAULT_NUM_THREADS
    use_gpu: bool = True
    delegate_path: str = DEFAULT_GPU_DELEGATE
    l2_normalize: bool = False

    @property
    def input_buffer_size(self) -> int:
        """Return the size in bytes of one preprocessed float32 input."""
        return 4 * self.input_size * self.input_size * 3


def get_data_dir_from_env(default: str = "./data") -> Path:
    """Get data directory path from environment variable.

    Args:
        default: Default path if DATA_DIR is not set.

    Returns:
        Path to data directory.
    """
    return Path(os.getenv("DATA_DIR", default))


def resolve_model_path(paths: Paths, model_file: str = DEFAULT_MODEL_FILE) -> Path:
    """Resolve the embedding model file inside the data directory.

    Args:
        paths: Configuration paths object.
        model_file: File name of the model under ``models/``.

    Returns:
        Path to the model file.
    """
    return paths.models_dir / model_file


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def get_embedder_config_from_env() -> EmbedderConfig:
    """Build an embedder configuration from environment variables.

    FACENET_MODEL overrides the model location; otherwise the model is
    resolved under DATA_DIR.

    Returns:
        EmbedderConfig populated from the environment.
    """
    model_env = os.getenv("FACENET_MODEL")
    if model_env:
        model_path = Path(model_env)
    else:
        model_path = resolve_model_path(Paths(data_dir=get_data_dir_from_env()))

    return EmbedderConfig(
        model_path=model_path,
        input_size=_env_int("FACENET_INPUT_SIZE", DEFAULT_INPUT_SIZE),
        embedding_size=_env_int("FACENET_EMBEDDING_SIZE", DEFAULT_EMBEDDING_SIZE),
        num_threads=_env_int("FACENET_NUM_THREADS", DEFAULT_NUM_THREADS),
        use_gpu=_env_bool("FACENET_USE_GPU", True),
        delegate_path=os.getenv("FACENET_DELEGATE", DEFAULT_GPU_DELEGATE),
        l2_normalize=_env_bool("FACENET_L2_NORMALIZE", False),
    )
