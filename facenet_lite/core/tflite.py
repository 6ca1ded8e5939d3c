"""TensorFlow Lite session with CPU or delegate backend."""
from __future__ import annotations

from typing import Any, Optional

import numpy as np

from facenet_lite.core.backend import (
    AcceleratedBackend,
    Backend,
    ThreadedCpuBackend,
    close_delegate,
)
from facenet_lite.core.exceptions import InferenceError, ModelLoadError
from facenet_lite.core.logger import get_logger
from facenet_lite.core.runtime import InferenceRuntime

logger = get_logger("tflite")


class EmbeddingSession:
    """Loaded TFLite interpreter bound to one backend.

    The session owns the interpreter and, on the accelerated backend, the
    delegate. Both are released by ``close``.
    """

    def __init__(self, interpreter: Any, backend: Backend) -> None:
        self._interpreter: Optional[Any] = interpreter
        self.backend = backend
        self._input_details = interpreter.get_input_details()[0]
        self._output_details = interpreter.get_output_details()[0]

    @classmethod
    def create(
        cls,
        runtime: InferenceRuntime,
        model_content: bytes,
        backend: Backend,
        fallback_threads: int,
    ) -> "EmbeddingSession":
        """Build an interpreter from model bytes and allocate tensors.

        Args:
            runtime: Interpreter library entry points.
            model_content: Serialized .tflite model.
            backend: Backend selected for this session.
            fallback_threads: CPU thread count used if the delegate fails.

        Returns:
            Ready-to-run session.

        Note:
            If the delegate loads but cannot be attached to this model, the
            delegate is released and the session is rebuilt on the CPU.

        Raises:
            ModelLoadError: If the interpreter cannot be built.
        """
        if isinstance(backend, AcceleratedBackend):
            try:
                return cls._build(runtime, model_content, backend)
            except ModelLoadError as e:
                logger.warning(
                    f"{e}; falling back to CPU with {fallback_threads} threads"
                )
                close_delegate(backend.delegate)
                backend = ThreadedCpuBackend(num_threads=fallback_threads)
        return cls._build(runtime, model_content, backend)

    @classmethod
    def _build(
        cls, runtime: InferenceRuntime, model_content: bytes, backend: Backend
    ) -> "EmbeddingSession":
        try:
            interpreter = runtime.interpreter_factory(
                model_content=model_content, **backend.interpreter_options()
            )
            interpreter.allocate_tensors()
        except Exception as e:
            raise ModelLoadError(
                f"Cannot build interpreter on {backend.name} "
                f"({type(e).__name__}: {e})"
            ) from e
        return cls(interpreter, backend)

    @property
    def closed(self) -> bool:
        return self._interpreter is None

    @property
    def input_shape(self) -> tuple[int, ...]:
        """Get the input tensor shape.

        Returns:
            Tuple representing input tensor dimensions.
        """
        return tuple(int(d) for d in self._input_details["shape"])

    @property
    def output_shape(self) -> tuple[int, ...]:
        return tuple(int(d) for d in self._output_details["shape"])

    def _quantize_input(
        self, input_float: np.ndarray, scale: float, zero_point: int
    ) -> np.ndarray:
        """Round and saturate a float tensor into the model's integer input type."""
        dtype = np.dtype(self._input_details.get("dtype", np.uint8))
        info = np.iinfo(dtype)
        q = np.round(input_float / scale + zero_point)
        return np.clip(q, info.min, info.max).astype(dtype)

    def run(self, input_float: np.ndarray, output: np.ndarray) -> np.ndarray:
        """Run inference and copy the first output tensor into ``output``.

        Quantized inputs and outputs are converted automatically.

        Args:
            input_float: Input tensor as float32 array.
            output: Preallocated float32 container for the result.

        Returns:
            ``output``, filled.

        Raises:
            InferenceError: If the session is closed, the interpreter fails,
                or the output size does not match the container.
        """
        if self._interpreter is None:
            raise InferenceError("session is closed")

        tensor_index = self._input_details["index"]
        in_scale, in_zero = self._input_details.get("quantization", (0.0, 0))

        try:
            if in_scale and in_scale > 0:
                self._interpreter.set_tensor(
                    tensor_index, self._quantize_input(input_float, in_scale, in_zero)
                )
            else:
                self._interpreter.set_tensor(tensor_index, input_float)

            self._interpreter.invoke()

            out = self._interpreter.get_tensor(self._output_details["index"]).copy()
        except Exception as e:
            raise InferenceError(f"{type(e).__name__}: {e}") from e

        out_scale, out_zero = self._output_details.get("quantization", (0.0, 0))
        if out_scale and out_scale > 0:
            out = out_scale * (out.astype(np.float32) - out_zero)

        if out.size != output.size:
            raise InferenceError(
                f"model produced {out.size} values, expected {output.size}"
            )
        output[...] = out.reshape(output.shape)
        return output

    def close(self) -> None:
        """Drop the interpreter, then release the delegate."""
        interpreter, self._interpreter = self._interpreter, None
        if interpreter is None:
            return
        try:
            close = getattr(interpreter, "close", None)
            if callable(close):
                close()
        finally:
            if isinstance(self.backend, AcceleratedBackend):
                close_delegate(self.backend.delegate)
