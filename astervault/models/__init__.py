"""SQLAlchemy models package."""

from .base import Base
from .model_record import MODEL_STATUSES, ModelRecord
from .dataset import Dataset, DatasetExample
from .prediction_log import PredictionLog
from .embedding import EmbeddingRecord
from .metric_snapshot import MetricSnapshot

__all__ = [
    "Base",
    "MODEL_STATUSES",
    "ModelRecord",
    "Dataset",
    "DatasetExample",
    "PredictionLog",
    "EmbeddingRecord",
    "MetricSnapshot",
]
