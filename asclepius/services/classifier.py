"""ONNX classifier holding the process-wide model session.

The model is loaded once at startup from a fixed local path. If that load
fails the service stays unavailable until the process restarts; nothing
retries it. After a successful load the session is only read, so every
request can share it.
"""

import time
from pathlib import Path

import numpy as np
import onnxruntime as ort

from asclepius.config import settings
from asclepius.errors import InferenceError, ModelLoadError, ModelUnavailable
from asclepius.logging_config import get_logger

logger = get_logger(__name__)


class ClassifierService:
    """Binary image classifier backed by ONNX Runtime.

    The service only runs inference. Thresholds and labels belong to
    PredictionPipeline.
    """

    def __init__(self, providers: list[str] | None = None):
        """Initialize an unloaded classifier.

        Args:
            providers: ONNX Runtime execution providers.
                      Defaults to ['CPUExecutionProvider'].
        """
        self.providers = providers or ["CPUExecutionProvider"]
        self._session: ort.InferenceSession | None = None
        self._input_name: str | None = None
        self._output_name: str | None = None
        self.model_path: Path | None = None
        self.load_error: str | None = None

    @property
    def is_ready(self) -> bool:
        return self._session is not None

    def load(self, model_path: Path | str) -> None:
        """Load the model into an inference session.

        Args:
            model_path: Path to the .onnx model file

        Raises:
            ModelLoadError: If the file is missing or not a loadable model
        """
        path = Path(model_path)
        self.model_path = path

        if not path.exists():
            self.load_error = f"Model file not found: {path}"
            raise ModelLoadError(self.load_error)

        try:
            sess_options = ort.SessionOptions()
            sess_options.log_severity_level = 3  # Error level only
            session = ort.InferenceSession(
                str(path),
                sess_options=sess_options,
                providers=self.providers,
            )
        except Exception as e:
            self.load_error = f"Failed to load model: {e}"
            raise ModelLoadError(self.load_error) from e

        self._input_name = session.get_inputs()[0].name
        self._output_name = session.get_outputs()[0].name
        self._session = session
        self.load_error = None

        logger.info(
            "Model loaded",
            extra={
                "extra_fields": {
                    "model_path": str(path),
                    "input": self._input_name,
                    "output": self._output_name,
                    "providers": session.get_providers(),
                }
            },
        )

    def predict(self, tensor: np.ndarray) -> np.ndarray:
        """Run the model on a prepared batch.

        Args:
            tensor: Float batch shaped (N, 224, 224, 3)

        Returns:
            The model's first output as a numpy array

        Raises:
            ModelUnavailable: If no model has been loaded
            InferenceError: If ONNX Runtime fails
        """
        if self._session is None:
            raise ModelUnavailable(self.load_error or "Model has not been loaded")

        try:
            start_time = time.perf_counter()
            outputs = self._session.run(
                [self._output_name],
                {self._input_name: tensor.astype(np.float32, copy=False)},
            )
            inference_time_ms = (time.perf_counter() - start_time) * 1000
        except Exception as e:
            raise InferenceError(f"Inference failed: {e}") from e

        logger.debug(
            "Inference finished",
            extra={"extra_fields": {"inference_time_ms": round(inference_time_ms, 2)}},
        )
        return np.asarray(outputs[0])


# Singleton instance for dependency injection
_classifier_service: ClassifierService | None = None


def get_classifier_service() -> ClassifierService:
    """Get the process-wide classifier.

    Returns a singleton ClassifierService by default.
    Can be overridden for testing.
    """
    global _classifier_service
    if _classifier_service is None:
        _classifier_service = ClassifierService(providers=settings.onnx_providers)
    return _classifier_service


def set_classifier_service(service: ClassifierService) -> None:
    """Set the classifier instance (for testing)."""
    global _classifier_service
    _classifier_service = service


def reset_classifier_service() -> None:
    """Reset the classifier to None (for testing cleanup)."""
    global _classifier_service
    _classifier_service = None
