"""Prediction ledger routes — append inference events."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...dependencies import get_prediction_ledger
from ...monitoring.prediction_ledger import PredictionLedger

router = APIRouter(prefix="/predictions", tags=["predictions"])


class LogPredictionRequest(BaseModel):
    model_id: str = Field(min_length=1, max_length=200)
    version: str = Field(default="in-memory", max_length=100)
    input_text: str
    predicted_label: str
    confidence: float
    latency_ms: float = 0.0
    ground_truth: Optional[str] = None
    metadata: Optional[dict] = None
    timestamp: Optional[datetime] = None


@router.post("/", status_code=201)
async def log_prediction(
    body: LogPredictionRequest,
    ledger: PredictionLedger = Depends(get_prediction_ledger),
):
    await ledger.append(
        model_id=body.model_id,
        version=body.version,
        input_text=body.input_text,
        predicted_label=body.predicted_label,
        confidence=body.confidence,
        latency_ms=body.latency_ms,
        ground_truth=body.ground_truth,
        metadata=body.metadata,
        timestamp=body.timestamp,
    )
    return {"success": True}
