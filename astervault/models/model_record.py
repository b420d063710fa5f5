"""Model Record — one persisted version of a trained ELM model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..utils.timeutils import utcnow
from .base import Base

MODEL_STATUSES = ("active", "archived", "deprecated")


class ModelRecord(Base):
    __tablename__ = "models"
    __table_args__ = (
        UniqueConstraint("model_id", "version", name="uq_model_version"),
        Index("ix_models_model_status", "model_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    model_id: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    version: Mapped[str] = mapped_column(String(100), nullable=False)
    config_json: Mapped[str] = mapped_column(Text, nullable=False)
    weights_b64: Mapped[str] = mapped_column(Text, nullable=False)
    categories_json: Mapped[str] = mapped_column(Text, nullable=False)
    # Python-side default keeps microseconds; "latest" ordering depends on it
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    trained_on: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    tags_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    metadata_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active"
    )  # active, archived, deprecated
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
