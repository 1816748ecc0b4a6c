"""API dependencies."""

from typing import Annotated

from fastapi import Depends

from asclepius.services.classifier import ClassifierService, get_classifier_service
from asclepius.services.history import HistoryStore, get_history_store
from asclepius.services.pipeline import PredictionPipeline

# Process-wide classifier dependency
ClassifierDep = Annotated[ClassifierService, Depends(get_classifier_service)]

# History store dependency
HistoryDep = Annotated[HistoryStore, Depends(get_history_store)]


def get_prediction_pipeline(classifier: ClassifierDep) -> PredictionPipeline:
    """Build a pipeline around the injected classifier."""
    return PredictionPipeline(classifier)


PipelineDep = Annotated[PredictionPipeline, Depends(get_prediction_pipeline)]
