"""TensorFlow Lite runtime resolution."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from facenet_lite.core.logger import get_logger

logger = get_logger("runtime")


@dataclass(frozen=True)
class InferenceRuntime:
    """Entry points of the interpreter library.

    Attributes:
        interpreter_factory: Callable building an interpreter; receives
            ``model_content`` plus ``experimental_delegates`` or ``num_threads``.
        load_delegate: Callable loading a delegate from a shared library path.
        name: Distribution the entry points come from.
    """

    interpreter_factory: Callable[..., Any]
    load_delegate: Callable[[str], Any]
    name: str = "tflite_runtime"


def get_default_runtime() -> InferenceRuntime:
    """Resolve the installed TensorFlow Lite interpreter.

    Prefers the standalone ``tflite_runtime`` wheel and uses the interpreter
    bundled with TensorFlow where that wheel is not available.

    Returns:
        InferenceRuntime for the installed distribution.

    Raises:
        ImportError: If neither tflite_runtime nor tensorflow is installed.
    """
    try:
        from tflite_runtime.interpreter import Interpreter, load_delegate

        return InferenceRuntime(Interpreter, load_delegate, "tflite_runtime")
    except ImportError:
        logger.debug("tflite_runtime not installed, trying tensorflow.lite")

    import tensorflow as tf

    return InferenceRuntime(
        tf.lite.Interpreter, tf.lite.experimental.load_delegate, "tensorflow"
    )
