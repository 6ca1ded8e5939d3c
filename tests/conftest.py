"""Pytest fixtures and test configuration for facenet-lite tests."""
from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Callable, Generator

import numpy as np
import pytest
from PIL import Image

from facenet_lite.config import EmbedderConfig
from facenet_lite.core.runtime import InferenceRuntime

# Minimal flatbuffer header: root offset followed by the TFLite file identifier
FAKE_MODEL_BYTES = b"\x1c\x00\x00\x00TFL3" + bytes(range(256)) * 4


class FakeDelegate:
    """Stand-in for a loaded delegate handle."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1


class FakeInterpreter:
    """In-process interpreter that emits the input mean as every feature."""

    def __init__(
        self,
        model_content: bytes,
        experimental_delegates=None,
        num_threads=None,
        *,
        state: "FakeRuntimeState",
    ) -> None:
        if model_content[4:8] != b"TFL3":
            raise ValueError("Model provided has model identifier 'junk'")
        if experimental_delegates and state.delegate_rejects_model:
            raise RuntimeError("Failed to apply delegate")
        self.model_content = model_content
        self.delegates = experimental_delegates or []
        self.num_threads = num_threads
        self.state = state
        self.closed = False
        self.allocated = False
        self._tensors: dict[int, np.ndarray] = {}
        state.interpreters.append(self)

    def allocate_tensors(self) -> None:
        self.allocated = True

    def get_input_details(self):
        side = self.state.input_side
        return [
            {
                "index": 0,
                "shape": np.array([1, side, side, 3], dtype=np.int32),
                "dtype": self.state.input_dtype,
                "quantization": self.state.input_quantization,
            }
        ]

    def get_output_details(self):
        return [
            {
                "index": 1,
                "shape": np.array([1, self.state.output_size], dtype=np.int32),
                "dtype": np.float32,
                "quantization": (0.0, 0),
            }
        ]

    def set_tensor(self, index: int, value: np.ndarray) -> None:
        expected = tuple(self.get_input_details()[0]["shape"])
        if value.shape != expected:
            raise ValueError(f"Cannot set tensor: got {value.shape}, expected {expected}")
        if value.dtype != self.state.input_dtype:
            raise ValueError(
                f"Cannot set tensor: got {value.dtype}, expected {np.dtype(self.state.input_dtype)}"
            )
        self._tensors[index] = np.array(value, copy=True)

    def invoke(self) -> None:
        if self.state.invoke_error:
            raise RuntimeError(self.state.invoke_error)
        self.state.invocations += 1
        mean = float(self._tensors[0].mean())
        self._tensors[1] = np.full((1, self.state.output_size), mean, dtype=np.float32)

    def get_tensor(self, index: int) -> np.ndarray:
        return self._tensors[index]

    @property
    def last_input(self) -> np.ndarray:
        return self._tensors[0]

    def close(self) -> None:
        self.closed = True


class FakeRuntimeState:
    """Knobs and call records shared by a fake runtime."""

    def __init__(
        self,
        gpu_available: bool = False,
        delegate_rejects_model: bool = False,
        input_side: int = 160,
        output_size: int = 512,
        input_dtype=np.float32,
        input_quantization: tuple[float, int] = (0.0, 0),
    ) -> None:
        self.gpu_available = gpu_available
        self.delegate_rejects_model = delegate_rejects_model
        self.input_side = input_side
        self.output_size = output_size
        self.input_dtype = input_dtype
        self.input_quantization = input_quantization
        self.invoke_error: str | None = None
        self.invocations = 0
        self.interpreters: list[FakeInterpreter] = []
        self.delegates: list[FakeDelegate] = []

    def load_delegate(self, path: str) -> FakeDelegate:
        if not self.gpu_available:
            raise ValueError(f"Failed to load delegate from {path}")
        delegate = FakeDelegate(path)
        self.delegates.append(delegate)
        return delegate

    def runtime(self) -> InferenceRuntime:
        def factory(**kwargs):
            return FakeInterpreter(state=self, **kwargs)

        return InferenceRuntime(
            interpreter_factory=factory, load_delegate=self.load_delegate, name="fake"
        )


@pytest.fixture
def temp_data_dir() -> Generator[Path, None, None]:
    """Create a temporary data directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        data_dir = Path(tmpdir)
        (data_dir / "models").mkdir(parents=True)
        yield data_dir


@pytest.fixture
def model_file(temp_data_dir: Path) -> Path:
    """Write a fake TFLite model under the data directory."""
    path = temp_data_dir / "models" / "face_feature_model.tflite"
    path.write_bytes(FAKE_MODEL_BYTES)
    return path


@pytest.fixture
def config(model_file: Path) -> EmbedderConfig:
    """Embedder configuration pointing at the fake model."""
    return EmbedderConfig(model_path=model_file)


@pytest.fixture
def runtime_state() -> FakeRuntimeState:
    """Fake runtime on a device without GPU support."""
    return FakeRuntimeState()


@pytest.fixture
def make_runtime_state() -> Callable[..., FakeRuntimeState]:
    """Factory for fake runtimes with custom capabilities."""
    return FakeRuntimeState


@pytest.fixture
def face_image() -> Image.Image:
    """Create a non-square RGB test image with a gradient."""
    w, h = 200, 240
    xs = np.linspace(0, 255, w, dtype=np.float32)
    ys = np.linspace(0, 255, h, dtype=np.float32)
    r = np.tile(xs, (h, 1))
    g = np.tile(ys[:, None], (1, w))
    b = np.full((h, w), 128, dtype=np.float32)
    arr = np.stack([r, g, b], axis=-1).astype(np.uint8)
    return Image.fromarray(arr)


@pytest.fixture
def face_image_file(temp_data_dir: Path, face_image: Image.Image) -> Path:
    """Save the gradient test image as a JPEG."""
    images_dir = temp_data_dir / "faces"
    images_dir.mkdir()
    path = images_dir / "face.jpg"
    face_image.save(path, format="JPEG")
    return path


@pytest.fixture
def model_bytes() -> bytes:
    """Serialized fake model accepted by the fake interpreter."""
    return FAKE_MODEL_BYTES


@pytest.fixture(autouse=True)
def reset_package_logging() -> Generator[None, None, None]:
    """Drop handlers installed by setup_logging so tests stay isolated."""
    yield
    logger = logging.getLogger("facenet_lite")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)
