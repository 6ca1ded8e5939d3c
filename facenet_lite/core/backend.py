"""Compute backend selection for the embedding session."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from facenet_lite.core.exceptions import BackendError
from facenet_lite.core.logger import get_logger
from facenet_lite.core.runtime import InferenceRuntime

logger = get_logger("backend")


@dataclass(frozen=True)
class AcceleratedBackend:
    """Session runs on a hardware delegate (GPU, Edge TPU).

    Attributes:
        delegate: Loaded delegate handle, owned together with the session.
        delegate_path: Library the delegate was loaded from.
    """

    delegate: Any
    delegate_path: str

    @property
    def name(self) -> str:
        return f"delegate:{self.delegate_path}"

    def interpreter_options(self) -> dict[str, Any]:
        return {"experimental_delegates": [self.delegate]}


@dataclass(frozen=True)
class ThreadedCpuBackend:
    """Session runs on the CPU with a fixed thread pool.

    Attributes:
        num_threads: Number of interpreter threads.
    """

    num_threads: int

    @property
    def name(self) -> str:
        return f"cpu:{self.num_threads}"

    def interpreter_options(self) -> dict[str, Any]:
        return {"num_threads": self.num_threads}


Backend = Union[AcceleratedBackend, ThreadedCpuBackend]


def probe_delegate_support(runtime: InferenceRuntime, delegate_path: str) -> Any:
    """Check whether this device can run the given delegate.

    The probe loads the delegate library; the loaded handle is returned so
    it is not loaded twice.

    Args:
        runtime: Interpreter library entry points.
        delegate_path: Shared library of the delegate.

    Returns:
        Loaded delegate handle.

    Raises:
        BackendError: If the delegate library cannot be loaded.
    """
    try:
        delegate = runtime.load_delegate(delegate_path)
    except Exception as e:
        raise BackendError(
            f"Delegate {delegate_path} not available ({type(e).__name__}: {e})"
        ) from e
    logger.info(f"Delegate {delegate_path} loaded successfully")
    return delegate


def select_backend(
    runtime: InferenceRuntime,
    use_gpu: bool,
    delegate_path: str,
    num_threads: int,
) -> Backend:
    """Pick the accelerated backend when supported, else the CPU backend.

    Args:
        runtime: Interpreter library entry points.
        use_gpu: Whether acceleration should be probed at all.
        delegate_path: Shared library of the delegate.
        num_threads: Thread count for the CPU fallback.

    Returns:
        Selected backend variant.
    """
    if use_gpu:
        try:
            delegate = probe_delegate_support(runtime, delegate_path)
            return AcceleratedBackend(delegate=delegate, delegate_path=delegate_path)
        except BackendError as e:
            logger.warning(f"{e}, running on CPU with {num_threads} threads")
    return ThreadedCpuBackend(num_threads=num_threads)


def close_delegate(delegate: Optional[Any]) -> None:
    """Release a delegate handle if it exposes a close method."""
    if delegate is None:
        return
    close = getattr(delegate, "close", None)
    if callable(close):
        close()
