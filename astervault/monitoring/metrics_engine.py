"""Metrics Engine — on-demand aggregates over the prediction ledger.

All reductions run client-side over raw rows. Null and NaN values are filtered
before averaging so mixed or missing inputs never reach an aggregate.
Nothing here writes to the store.
"""

import math
from collections import Counter
from typing import Any, Optional

from sqlalchemy import func, select

from ..database import BackingStore
from ..models.prediction_log import PredictionLog
from ..utils.logging import get_logger
from .drift import DEFAULT_EPSILON, DEFAULT_THRESHOLD, score_drift
from .windows import parse_window, require_window

logger = get_logger("monitoring.metrics_engine")


def _finite(values) -> list[float]:
    return [float(v) for v in values if v is not None and math.isfinite(v)]


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def summarize_rows(rows) -> dict:
    """Reduce ledger rows to the metrics dict.

    ``accuracy`` is only present when at least one row carries ground truth.
    """
    confidences = _finite(r.confidence for r in rows)
    latencies = _finite(r.latency_ms for r in rows)
    labelled = [r.correct for r in rows if r.ground_truth is not None and r.correct is not None]
    per_label = Counter(r.predicted_label for r in rows if r.predicted_label is not None)

    metrics: dict[str, Any] = {
        "total_predictions": len(rows),
        "avg_confidence": _mean(confidences),
        "avg_latency_ms": _mean(latencies),
        "predictions_per_label": dict(per_label),
    }
    if labelled:
        metrics["accuracy"] = sum(1 for c in labelled if c) / len(labelled)
    return metrics


class MetricsEngine:
    """Read-only analytics over the prediction ledger."""

    def __init__(
        self,
        store: BackingStore,
        drift_threshold: float = DEFAULT_THRESHOLD,
        drift_epsilon: float = DEFAULT_EPSILON,
    ):
        self._store = store
        self._drift_threshold = drift_threshold
        self._drift_epsilon = drift_epsilon

    async def compute_metrics(
        self,
        model_id: str,
        time_range: Optional[Any] = None,
        version: Optional[str] = None,
    ) -> dict:
        window = parse_window(time_range, "get_model_metrics")

        query = select(
            PredictionLog.predicted_label,
            PredictionLog.confidence,
            PredictionLog.latency_ms,
            PredictionLog.ground_truth,
            PredictionLog.correct,
        ).where(PredictionLog.model_id == model_id)
        if version:
            query = query.where(PredictionLog.version == version)
        if window is not None:
            start, end = window.bounds()
            query = query.where(PredictionLog.timestamp >= start, PredictionLog.timestamp <= end)

        async with self._store.session("get_model_metrics") as session:
            result = await self._store.execute(session, query)
            rows = result.all()

        metrics = summarize_rows(rows)
        logger.info(
            "metrics_computed",
            model_id=model_id,
            total=metrics["total_predictions"],
            has_accuracy="accuracy" in metrics,
        )
        return metrics

    async def compute_confusion_matrix(
        self,
        model_id: str,
        time_range: Optional[Any] = None,
    ) -> dict[str, dict[str, int]]:
        """``matrix[ground_truth][predicted_label] = count``; absent cells are zero."""
        window = parse_window(time_range, "get_confusion_matrix")

        query = (
            select(
                PredictionLog.ground_truth,
                PredictionLog.predicted_label,
                func.count().label("count"),
            )
            .where(
                PredictionLog.model_id == model_id,
                PredictionLog.ground_truth.is_not(None),
            )
            .group_by(PredictionLog.ground_truth, PredictionLog.predicted_label)
        )
        if window is not None:
            start, end = window.bounds()
            query = query.where(PredictionLog.timestamp >= start, PredictionLog.timestamp <= end)

        async with self._store.session("get_confusion_matrix") as session:
            result = await self._store.execute(session, query)
            rows = result.all()

        matrix: dict[str, dict[str, int]] = {}
        for truth, predicted, count in rows:
            matrix.setdefault(truth, {})[predicted] = int(count)
        return matrix

    async def _label_counts(self, session, model_id: str, window) -> dict[str, int]:
        start, end = window.bounds()
        result = await self._store.execute(
            session,
            select(PredictionLog.predicted_label, func.count())
            .where(
                PredictionLog.model_id == model_id,
                PredictionLog.timestamp >= start,
                PredictionLog.timestamp <= end,
            )
            .group_by(PredictionLog.predicted_label),
        )
        return {label: int(count) for label, count in result.all()}

    async def detect_drift(
        self,
        model_id: str,
        baseline_window: Any,
        current_window: Any,
    ) -> dict:
        """Compare predicted-label distributions of two windows via KL divergence."""
        baseline = require_window(baseline_window, "detect_drift", "baseline_window")
        current = require_window(current_window, "detect_drift", "current_window")

        async with self._store.session("detect_drift") as session:
            baseline_counts = await self._label_counts(session, model_id, baseline)
            current_counts = await self._label_counts(session, model_id, current)

        analysis = score_drift(
            baseline_counts,
            current_counts,
            threshold=self._drift_threshold,
            epsilon=self._drift_epsilon,
        )
        analysis["baseline_count"] = sum(baseline_counts.values())
        analysis["current_count"] = sum(current_counts.values())

        log = logger.warning if analysis["drift_detected"] else logger.info
        log(
            "drift_computed",
            model_id=model_id,
            drift_score=round(analysis["drift_score"], 6),
            drift_detected=analysis["drift_detected"],
        )
        return analysis
