"""Dataset — immutable snapshot of labeled training examples.

Examples live in their own table with explicitly typed ``text`` and
``label`` columns so the nested shape can never round-trip as empty objects.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..utils.timeutils import utcnow
from .base import Base


class Dataset(Base):
    __tablename__ = "datasets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dataset_id: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    metadata_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    examples: Mapped[list["DatasetExample"]] = relationship(
        back_populates="dataset",
        order_by="DatasetExample.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class DatasetExample(Base):
    __tablename__ = "dataset_examples"
    __table_args__ = (
        UniqueConstraint("dataset_pk", "position", name="uq_dataset_example_position"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dataset_pk: Mapped[int] = mapped_column(
        Integer, ForeignKey("datasets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    label: Mapped[str] = mapped_column(String(200), nullable=False)

    dataset: Mapped[Dataset] = relationship(back_populates="examples")
