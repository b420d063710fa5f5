"""Prediction Ledger — append-only log of inference events."""

import json
from datetime import datetime
from typing import Optional

from ..database import BackingStore
from ..errors import ValidationError
from ..models.prediction_log import PredictionLog
from ..utils.logging import get_logger
from ..utils.timeutils import to_storage, utcnow

logger = get_logger("monitoring.prediction_ledger")


class PredictionLedger:
    """Appends prediction events. Reads go through the MetricsEngine."""

    def __init__(self, store: BackingStore):
        self._store = store

    async def append(
        self,
        model_id: str,
        version: str,
        input_text: str,
        predicted_label: str,
        confidence: float,
        latency_ms: float,
        ground_truth: Optional[str] = None,
        metadata: Optional[dict] = None,
        timestamp: Optional[datetime | str] = None,
    ) -> None:
        """Record one prediction.

        ``correct`` is derived here and only when ground truth is given.
        Confidence is stored as-is, even outside [0, 1].
        """
        if not model_id or predicted_label is None:
            raise ValidationError("log_prediction", "model_id and predicted_label are required")

        recorded_at = to_storage(timestamp, "log_prediction") if timestamp is not None else utcnow()

        correct = None
        if ground_truth is not None:
            correct = predicted_label == ground_truth

        async with self._store.session("log_prediction") as session:
            session.add(
                PredictionLog(
                    model_id=model_id,
                    version=version,
                    input_text=input_text,
                    predicted_label=predicted_label,
                    confidence=float(confidence),
                    ground_truth=ground_truth,
                    correct=correct,
                    latency_ms=float(latency_ms),
                    timestamp=recorded_at,
                    metadata_json=json.dumps(metadata or {}),
                )
            )
            await self._store.commit(session)

        logger.debug(
            "prediction_logged",
            model_id=model_id,
            version=version,
            predicted_label=predicted_label,
            correct=correct,
        )
