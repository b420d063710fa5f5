"""Prediction Log — append-only ledger of inference events."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..utils.timeutils import utcnow
from .base import Base


class PredictionLog(Base):
    __tablename__ = "predictions"
    __table_args__ = (
        Index("ix_predictions_model_time", "model_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    model_id: Mapped[str] = mapped_column(String(200), nullable=False)
    version: Mapped[str] = mapped_column(String(100), nullable=False)
    input_text: Mapped[str] = mapped_column(Text, nullable=False)
    predicted_label: Mapped[str] = mapped_column(String(200), nullable=False)
    # NaN is stored as NULL by SQLite; aggregates skip NULLs
    confidence: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    ground_truth: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    correct: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)  # set iff ground_truth
    latency_ms: Mapped[Optional[float]] = mapped_column(Float, nullable=True, default=0.0)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False, index=True
    )
    metadata_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
