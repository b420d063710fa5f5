"""Metric History — freezes computed metrics into per-window snapshots."""

from typing import Any, Optional

from sqlalchemy import select

from ..database import BackingStore
from ..models.metric_snapshot import MetricSnapshot
from ..utils.logging import get_logger
from ..utils.timeutils import to_iso
from .windows import parse_window

logger = get_logger("monitoring.metric_history")

SNAPSHOT_FIELDS = ("accuracy", "avg_confidence", "avg_latency_ms", "total_predictions")


class MetricHistory:
    """Stores and reads MetricSnapshot rows."""

    def __init__(self, store: BackingStore):
        self._store = store

    async def record(
        self,
        model_id: str,
        metrics: dict,
        version: Optional[str] = None,
        time_range: Optional[Any] = None,
    ) -> int:
        """Persist the scalar fields of a metrics dict. Returns rows written."""
        window = parse_window(time_range, "record_metrics")
        start, end = window.bounds() if window is not None else (None, None)
        sample_count = int(metrics.get("total_predictions", 0))

        snapshots = [
            MetricSnapshot(
                model_id=model_id,
                version=version,
                metric_name=name,
                metric_value=float(metrics[name]),
                window_start=start,
                window_end=end,
                sample_count=sample_count,
            )
            for name in SNAPSHOT_FIELDS
            if metrics.get(name) is not None
        ]

        async with self._store.session("record_metrics") as session:
            session.add_all(snapshots)
            await self._store.commit(session)

        logger.info("metrics_recorded", model_id=model_id, count=len(snapshots))
        return len(snapshots)

    async def history(self, model_id: str, metric_name: Optional[str] = None) -> list[dict]:
        """Snapshots for a model, oldest first."""
        query = select(MetricSnapshot).where(MetricSnapshot.model_id == model_id)
        if metric_name:
            query = query.where(MetricSnapshot.metric_name == metric_name)
        query = query.order_by(MetricSnapshot.recorded_at.asc(), MetricSnapshot.id.asc())

        async with self._store.session("metric_history") as session:
            result = await self._store.execute(session, query)
            return [
                {
                    "model_id": s.model_id,
                    "version": s.version,
                    "metric_name": s.metric_name,
                    "metric_value": s.metric_value,
                    "window_start": to_iso(s.window_start),
                    "window_end": to_iso(s.window_end),
                    "sample_count": s.sample_count,
                    "recorded_at": to_iso(s.recorded_at),
                }
                for s in result.scalars().all()
            ]
