"""Prediction pipeline: from validated image bytes to a PredictionRecord.

Steps run in a fixed order: readiness check, decode, resize, normalize,
batch, infer, score, classify, suggest, build record. Any failure along
the way is logged in full and surfaced to the caller as PredictionFailed,
with a fixed message. There are no retries; inference is synchronous and
deterministic per call.
"""

import numpy as np

from asclepius.errors import ModelUnavailable, PredictionFailed
from asclepius.logging_config import get_logger
from asclepius.schemas.prediction import PredictionLabel, PredictionRecord
from asclepius.services.classifier import ClassifierService
from asclepius.services.preprocessing import prepare_image

logger = get_logger(__name__)

# Scores strictly above the threshold are Cancer; exactly 0.58 is NonCancer
CANCER_THRESHOLD = 0.58
SCORE_DECIMALS = 3

SUGGESTIONS: dict[PredictionLabel, str] = {
    PredictionLabel.CANCER: "Segera periksa ke dokter!",
    PredictionLabel.NON_CANCER: "Penyakit kanker tidak terdeteksi.",
}


def extract_score(output: np.ndarray) -> float:
    """Take the first element of the model output, rounded to 3 decimals."""
    raw = float(np.asarray(output).reshape(-1)[0])
    return round(raw, SCORE_DECIMALS)


def classify_score(score: float) -> PredictionLabel:
    if score > CANCER_THRESHOLD:
        return PredictionLabel.CANCER
    return PredictionLabel.NON_CANCER


def suggestion_for(label: PredictionLabel) -> str:
    return SUGGESTIONS[label]


class PredictionPipeline:
    """Turns uploaded image bytes into a PredictionRecord."""

    def __init__(self, classifier: ClassifierService):
        self.classifier = classifier

    def score(self, image_bytes: bytes) -> float:
        """Run the image through the model and return its rounded score.

        Raises:
            ModelUnavailable: If the classifier has no loaded model
            DecodeError: If the bytes are not an image
            InferenceError: If the model fails
        """
        if not self.classifier.is_ready:
            raise ModelUnavailable(self.classifier.load_error or "Model has not been loaded")

        tensor = prepare_image(image_bytes)
        logger.debug(
            "Image tensor prepared",
            extra={"extra_fields": {"shape": tensor.shape}},
        )

        output = self.classifier.predict(tensor)
        score = extract_score(output)
        logger.debug(
            "Model scored image",
            extra={
                "extra_fields": {
                    "raw_score": float(np.asarray(output).reshape(-1)[0]),
                    "score": score,
                }
            },
        )
        return score

    def predict(self, image_bytes: bytes) -> PredictionRecord:
        """Classify an image and build the record for it.

        Raises:
            PredictionFailed: On any failure in the pipeline
        """
        try:
            score = self.score(image_bytes)
            result = classify_score(score)
            record = PredictionRecord(result=result, suggestion=suggestion_for(result))
        except Exception as e:
            logger.exception(
                "Error during prediction",
                extra={"extra_fields": {"error_type": type(e).__name__}},
            )
            raise PredictionFailed() from e

        logger.info(
            "Prediction made",
            extra={
                "extra_fields": {
                    "prediction_id": record.id,
                    "score": score,
                    "result": record.result.value,
                }
            },
        )
        return record
