"""Services layer for business logic."""

from asclepius.services.classifier import (
    ClassifierService,
    get_classifier_service,
    reset_classifier_service,
    set_classifier_service,
)
from asclepius.services.history import (
    HistoryStore,
    JsonFileHistoryStore,
    format_history,
    get_history_store,
    set_history_store,
)
from asclepius.services.pipeline import (
    CANCER_THRESHOLD,
    PredictionPipeline,
    classify_score,
    suggestion_for,
)
from asclepius.services.upload_gate import AcceptedUpload, accept_upload

__all__ = [
    # Classifier
    "ClassifierService",
    "get_classifier_service",
    "reset_classifier_service",
    "set_classifier_service",
    # History
    "HistoryStore",
    "JsonFileHistoryStore",
    "format_history",
    "get_history_store",
    "set_history_store",
    # Pipeline
    "CANCER_THRESHOLD",
    "PredictionPipeline",
    "classify_score",
    "suggestion_for",
    # Upload gate
    "AcceptedUpload",
    "accept_upload",
]
