"""Face embedding generation using a FaceNet TFLite model."""
from __future__ import annotations

from typing import Any, Optional

import numpy as np

from facenet_lite.config import EmbedderConfig
from facenet_lite.core.backend import select_backend
from facenet_lite.core.embedding import l2_normalize
from facenet_lite.core.exceptions import FaceNetLiteError, ModelLoadError
from facenet_lite.core.logger import get_logger
from facenet_lite.core.model_asset import ModelAsset, map_model_asset
from facenet_lite.core.preprocess import to_input_tensor
from facenet_lite.core.runtime import InferenceRuntime, get_default_runtime
from facenet_lite.core.tflite import EmbeddingSession
from facenet_lite.core.types import (
    EmbedderState,
    EngineStatus,
    InferenceOutcome,
    LoadOutcome,
)
from facenet_lite.core.validation import validate_config

logger = get_logger("face_embed")


class FaceEmbedder:
    """Face embedding generator backed by a TFLite session.

    The model is loaded on construction unless ``autoload`` is False.
    Failures never raise: a failed load leaves the embedder unloaded and
    ``extract_features`` then returns None. One instance is meant to be
    used from one thread at a time.
    """

    def __init__(
        self,
        config: EmbedderConfig,
        runtime: Optional[InferenceRuntime] = None,
        asset: Optional[ModelAsset] = None,
        autoload: bool = True,
    ) -> None:
        """Initialize the embedder.

        Args:
            config: Model and backend settings.
            runtime: Interpreter library; resolved from the installed
                distribution when None.
            asset: Model location; defaults to the whole of ``config.model_path``.
            autoload: Whether to load the model immediately.
        """
        self.config = config
        self.asset = asset or ModelAsset(path=config.model_path)
        self._runtime = runtime
        self._session: Optional[EmbeddingSession] = None
        self._state = EmbedderState.UNLOADED
        self._load_error: Optional[str] = None

        if autoload:
            self.load()

    @property
    def state(self) -> EmbedderState:
        return self._state

    def load(self) -> LoadOutcome:
        """Map the model, pick a backend and build the session.

        Returns:
            LoadOutcome describing the active backend or the failure reason.
        """
        if self._state is EmbedderState.RELEASED:
            return self._fail_load("embedder was released")
        if self._session is not None:
            return LoadOutcome.loaded(self._session.backend.name)

        try:
            validate_config(self.config)
            with map_model_asset(self.asset) as mapped:
                model_content = mapped.content()

            runtime = self._runtime or get_default_runtime()
            backend = select_backend(
                runtime,
                use_gpu=self.config.use_gpu,
                delegate_path=self.config.delegate_path,
                num_threads=self.config.num_threads,
            )
            session = EmbeddingSession.create(
                runtime,
                model_content,
                backend,
                fallback_threads=self.config.num_threads,
            )
            self._check_input_shape(session)
        except (FaceNetLiteError, ImportError) as e:
            return self._fail_load(str(e))
        except Exception as e:
            return self._fail_load(f"{type(e).__name__}: {e}")

        self._session = session
        self._state = EmbedderState.LOADED
        self._load_error = None
        logger.info(
            f"Model loaded from {self.asset.path} on {session.backend.name}"
        )
        return LoadOutcome.loaded(session.backend.name)

    def _check_input_shape(self, session: EmbeddingSession) -> None:
        side = self.config.input_size
        expected = (1, side, side, 3)
        if session.input_shape != expected:
            session.close()
            raise ModelLoadError(
                f"Model expects input {session.input_shape}, configured {expected}"
            )

    def _not_loaded(self) -> InferenceOutcome:
        reason = f"model not loaded ({self._state.value})"
        logger.warning(f"Feature extraction skipped: {reason}")
        return InferenceOutcome.failed(reason)

    def _fail_load(self, reason: str) -> LoadOutcome:
        self._load_error = reason
        logger.error(f"Model load failed: {reason}")
        return LoadOutcome.failed(reason)

    def extract(self, image: Any) -> InferenceOutcome:
        """Generate an embedding for a face image.

        Args:
            image: PIL image or uint8 numpy array of any size.

        Returns:
            InferenceOutcome holding a float32 vector of length
            ``config.embedding_size``, or the failure reason.
        """
        if self._session is None:
            return self._not_loaded()

        try:
            x = to_input_tensor(image, self.config.input_size)
        except FaceNetLiteError as e:
            logger.error(f"Feature extraction failed: {e}")
            return InferenceOutcome.failed(str(e))
        except Exception as e:
            logger.exception("Preprocessing failed")
            return InferenceOutcome.failed(f"{type(e).__name__}: {e}")
        return self.extract_from_tensor(x)

    def extract_from_tensor(self, x: np.ndarray) -> InferenceOutcome:
        """Run the session on an already preprocessed input tensor.

        Args:
            x: Float32 array with shape (1, side, side, 3) from ``to_input_tensor``.

        Returns:
            InferenceOutcome holding the embedding, or the failure reason.
        """
        session = self._session
        if session is None:
            return self._not_loaded()

        try:
            output = np.zeros((1, self.config.embedding_size), dtype=np.float32)
            session.run(x, output)
        except FaceNetLiteError as e:
            logger.error(f"Feature extraction failed: {e}")
            return InferenceOutcome.failed(str(e))
        except Exception as e:
            logger.exception("Feature extraction failed")
            return InferenceOutcome.failed(f"{type(e).__name__}: {e}")

        embedding = output[0]
        if self.config.l2_normalize:
            embedding = l2_normalize(embedding)
        logger.debug(f"Feature extraction succeeded, size: {embedding.size}")
        return InferenceOutcome.success(embedding)

    def extract_features(self, image: Any) -> Optional[np.ndarray]:
        """Generate an embedding, or None on any failure.

        Args:
            image: PIL image or uint8 numpy array of any size.

        Returns:
            Float32 array with shape (embedding_size,), or None.
        """
        return self.extract(image).embedding

    def is_model_loaded(self) -> bool:
        return self._session is not None

    def release(self) -> None:
        """Tear down the session and delegate. Safe to call repeatedly."""
        session, self._session = self._session, None
        self._state = EmbedderState.RELEASED
        if session is None:
            return
        try:
            session.close()
            logger.info("TFLite resources released")
        except Exception:
            logger.exception("Error while releasing TFLite resources")

    def status(self) -> EngineStatus:
        """Return a diagnostic snapshot of the embedder."""
        session = self._session
        return EngineStatus(
            state=self._state,
            model_loaded=session is not None,
            backend=session.backend.name if session is not None else None,
            input_size=self.config.input_size,
            embedding_size=self.config.embedding_size,
            model_path=str(self.asset.path),
            load_error=self._load_error,
        )

    def __enter__(self) -> "FaceEmbedder":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()
