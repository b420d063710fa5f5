"""Dataset Registry — named, immutable snapshots of labeled training examples."""

import json
from typing import Any, Optional

from sqlalchemy import func, select

from ..database import BackingStore
from ..errors import NotFoundError, ValidationError
from ..models.dataset import Dataset, DatasetExample
from ..utils.logging import get_logger
from ..utils.timeutils import to_iso

logger = get_logger("registry.dataset_registry")


def coerce_examples(examples: Any, operation: str = "store_dataset") -> list[dict]:
    """Coerce every example to ``{"text": str, "label": str}``.

    A missing or null field is rejected. Empty strings pass through.
    """
    if not isinstance(examples, (list, tuple)):
        raise ValidationError(operation, "examples must be a list of {text, label} objects")

    coerced = []
    for index, example in enumerate(examples):
        if not isinstance(example, dict):
            raise ValidationError(operation, f"example {index} is not an object")
        for key in ("text", "label"):
            if example.get(key) is None:
                raise ValidationError(operation, f"example {index} is missing '{key}'")
        coerced.append({"text": str(example["text"]), "label": str(example["label"])})
    return coerced


class DatasetRegistry:
    """Stores and loads training datasets through the backing store."""

    def __init__(self, store: BackingStore):
        self._store = store

    async def store(
        self,
        dataset_id: str,
        examples: list[dict],
        metadata: Optional[dict] = None,
    ) -> dict:
        """Persist a dataset. Raises ConflictError if ``dataset_id`` exists."""
        if not dataset_id:
            raise ValidationError("store_dataset", "dataset_id is required")
        rows = coerce_examples(examples)

        suspicious = sum(1 for row in rows if not row["text"] or not row["label"])
        if suspicious:
            logger.warning("dataset_empty_fields", dataset_id=dataset_id, count=suspicious)

        async with self._store.session("store_dataset") as session:
            dataset = Dataset(
                dataset_id=dataset_id,
                size=len(rows),
                metadata_json=json.dumps(metadata or {}),
                examples=[
                    DatasetExample(position=position, text=row["text"], label=row["label"])
                    for position, row in enumerate(rows)
                ],
            )
            session.add(dataset)
            await self._store.commit(session)
            record_id = dataset.id

        logger.info("dataset_stored", dataset_id=dataset_id, size=len(rows))
        return {"record_id": record_id, "dataset_id": dataset_id, "size": len(rows)}

    async def load(self, dataset_id: str) -> dict:
        """Load a dataset with its examples in original order."""
        async with self._store.session("load_dataset") as session:
            result = await self._store.execute(
                session, select(Dataset).where(Dataset.dataset_id == dataset_id)
            )
            dataset = result.scalar_one_or_none()
            if dataset is None:
                raise NotFoundError("load_dataset", f"dataset '{dataset_id}' not found")
            data = self._to_dict(dataset)

        logger.info("dataset_loaded", dataset_id=dataset_id, size=data["size"])
        return data

    async def exists(self, dataset_id: str) -> bool:
        async with self._store.session("dataset_exists") as session:
            result = await self._store.execute(
                session,
                select(func.count()).select_from(Dataset).where(Dataset.dataset_id == dataset_id),
            )
            return result.scalar_one() > 0

    async def list_datasets(self) -> list[dict]:
        """Summaries of every dataset, newest first, without examples."""
        async with self._store.session("list_datasets") as session:
            result = await self._store.execute(
                session,
                select(Dataset.dataset_id, Dataset.size, Dataset.created_at, Dataset.metadata_json)
                .order_by(Dataset.created_at.desc(), Dataset.id.desc()),
            )
            rows = result.all()

        return [
            {
                "dataset_id": row.dataset_id,
                "size": row.size,
                "created_at": to_iso(row.created_at),
                "metadata": json.loads(row.metadata_json) if row.metadata_json else {},
            }
            for row in rows
        ]

    @staticmethod
    def _to_dict(dataset: Dataset) -> dict:
        examples = [{"text": ex.text, "label": ex.label} for ex in dataset.examples]
        if len(examples) != dataset.size:
            logger.error(
                "dataset_size_mismatch",
                dataset_id=dataset.dataset_id,
                stored_size=dataset.size,
                examples=len(examples),
            )
        return {
            "dataset_id": dataset.dataset_id,
            "examples": examples,
            "size": len(examples),
            "created_at": to_iso(dataset.created_at),
            "metadata": json.loads(dataset.metadata_json) if dataset.metadata_json else {},
        }
