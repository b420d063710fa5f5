"""Monitoring routes — metrics, confusion matrix, drift and metric history."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ...dependencies import get_metric_history, get_metrics_engine
from ...errors import ValidationError
from ...monitoring.metric_history import MetricHistory
from ...monitoring.metrics_engine import MetricsEngine
from ...monitoring.windows import TimeRange, parse_window

router = APIRouter(prefix="/monitoring", tags=["monitoring"])


class DriftRequest(BaseModel):
    baseline_window: dict
    current_window: dict


class SnapshotRequest(BaseModel):
    version: Optional[str] = None
    time_range: Optional[dict] = None


def _window(start: Optional[datetime], end: Optional[datetime], operation: str) -> Optional[TimeRange]:
    if start is None and end is None:
        return None
    if start is None or end is None:
        raise ValidationError(operation, "start and end must be given together")
    return parse_window({"start": start, "end": end}, operation)


@router.get("/{model_id}/metrics")
async def get_model_metrics(
    model_id: str,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    version: Optional[str] = Query(None),
    engine: MetricsEngine = Depends(get_metrics_engine),
):
    window = _window(start, end, "get_model_metrics")
    return await engine.compute_metrics(model_id, window, version=version)


@router.get("/{model_id}/confusion-matrix")
async def get_confusion_matrix(
    model_id: str,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    engine: MetricsEngine = Depends(get_metrics_engine),
):
    window = _window(start, end, "get_confusion_matrix")
    matrix = await engine.compute_confusion_matrix(model_id, window)
    return {"model_id": model_id, "matrix": matrix}


@router.post("/{model_id}/drift")
async def detect_drift(
    model_id: str,
    body: DriftRequest,
    engine: MetricsEngine = Depends(get_metrics_engine),
):
    return await engine.detect_drift(model_id, body.baseline_window, body.current_window)


@router.post("/{model_id}/snapshots", status_code=201)
async def record_snapshot(
    model_id: str,
    body: SnapshotRequest,
    engine: MetricsEngine = Depends(get_metrics_engine),
    history: MetricHistory = Depends(get_metric_history),
):
    """Compute metrics now and freeze them into the metric history."""
    metrics = await engine.compute_metrics(model_id, body.time_range, version=body.version)
    written = await history.record(
        model_id, metrics, version=body.version, time_range=body.time_range
    )
    return {"model_id": model_id, "metrics": metrics, "snapshots_written": written}


@router.get("/{model_id}/history")
async def get_metric_history(
    model_id: str,
    metric_name: Optional[str] = Query(None),
    history: MetricHistory = Depends(get_metric_history),
):
    return await history.history(model_id, metric_name)
