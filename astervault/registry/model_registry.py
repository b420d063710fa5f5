"""Model Registry — versioned storage of trained ELM model artifacts."""

import base64
import binascii
import json
import warnings
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select

from ..database import BackingStore
from ..errors import ConsistencyWarning, NotFoundError, ValidationError
from ..models.dataset import Dataset
from ..models.model_record import MODEL_STATUSES, ModelRecord
from ..utils.logging import get_logger
from ..utils.timeutils import to_iso, to_storage
from .weights import normalize_config

logger = get_logger("registry.model_registry")


class ModelRegistry:
    """Create/read access to persisted model versions.

    Records are written once. The only later change is the status
    transition used for soft deletion.
    """

    def __init__(self, store: BackingStore):
        self._store = store

    async def store(
        self,
        model_id: str,
        version: str,
        config: dict,
        weights: bytes,
        categories: list[str],
        trained_on: Optional[str] = None,
        tags: Optional[list[str]] = None,
        description: Optional[str] = None,
        metadata: Optional[dict] = None,
        created_at: Optional[datetime | str] = None,
    ) -> dict:
        """Persist one model version.

        Raises ConflictError when ``(model_id, version)`` already exists.
        A ``trained_on`` id that does not resolve is reported as a
        ConsistencyWarning and does not block the write.
        """
        if not model_id or not version:
            raise ValidationError("store_model", "model_id and version are required")
        if not isinstance(weights, (bytes, bytearray)):
            raise ValidationError("store_model", "weights must be bytes")
        if not isinstance(categories, list) or not all(isinstance(c, str) for c in categories):
            raise ValidationError("store_model", "categories must be a list of strings")
        normalized = normalize_config(config, "store_model")
        stored_at = to_storage(created_at, "store_model") if created_at is not None else None

        warnings_out: list[str] = []
        async with self._store.session("store_model") as session:
            if trained_on:
                found = await self._store.execute(
                    session,
                    select(func.count()).select_from(Dataset).where(Dataset.dataset_id == trained_on),
                )
                if found.scalar_one() == 0:
                    message = f"trained_on dataset '{trained_on}' does not exist"
                    warnings.warn(ConsistencyWarning("store_model", message), stacklevel=2)
                    logger.warning("unresolved_trained_on", model_id=model_id, trained_on=trained_on)
                    warnings_out.append(message)

            record = ModelRecord(
                model_id=model_id,
                version=version,
                config_json=json.dumps(normalized),
                weights_b64=base64.b64encode(bytes(weights)).decode("ascii"),
                categories_json=json.dumps(categories),
                trained_on=trained_on,
                tags_json=json.dumps(sorted(set(tags or []))),
                metadata_json=json.dumps(metadata or {}),
                status="active",
                description=description,
            )
            if stored_at is not None:
                record.created_at = stored_at
            session.add(record)
            await self._store.commit(session)
            record_id = record.id

        logger.info("model_stored", model_id=model_id, version=version, record_id=record_id)
        return {
            "record_id": record_id,
            "model_id": model_id,
            "version": version,
            "warnings": warnings_out,
        }

    async def load(self, model_id: str, version: Optional[str] = None) -> dict:
        """Load a model version, or the latest active one when ``version`` is omitted."""
        query = select(ModelRecord).where(
            ModelRecord.model_id == model_id,
            ModelRecord.status == "active",
        )
        if version:
            query = query.where(ModelRecord.version == version)
        else:
            query = query.order_by(ModelRecord.created_at.desc(), ModelRecord.id.desc())

        async with self._store.session("load_model") as session:
            result = await self._store.execute(session, query.limit(1))
            record = result.scalar_one_or_none()
            if record is None:
                target = f"version '{version}'" if version else "active version"
                raise NotFoundError("load_model", f"model '{model_id}' has no {target}")
            data = self._to_dict(record)

        logger.info("model_loaded", model_id=model_id, version=data["version"])
        return data

    async def list_versions(self, model_id: str) -> list[dict]:
        """Version summaries for a model, newest first."""
        async with self._store.session("list_model_versions") as session:
            result = await self._store.execute(
                session,
                select(ModelRecord)
                .where(ModelRecord.model_id == model_id)
                .order_by(ModelRecord.created_at.desc(), ModelRecord.id.desc()),
            )
            records = result.scalars().all()
            return [self._summary(r) for r in records]

    async def set_status(self, model_id: str, version: str, status: str) -> dict:
        """Move a version between active, archived and deprecated."""
        if status not in MODEL_STATUSES:
            raise ValidationError("set_model_status", f"status must be one of {list(MODEL_STATUSES)}")

        async with self._store.session("set_model_status") as session:
            result = await self._store.execute(
                session,
                select(ModelRecord).where(
                    ModelRecord.model_id == model_id,
                    ModelRecord.version == version,
                ),
            )
            record = result.scalar_one_or_none()
            if record is None:
                raise NotFoundError(
                    "set_model_status", f"model '{model_id}' version '{version}' not found"
                )
            old_status = record.status
            record.status = status
            await self._store.commit(session)
            summary = self._summary(record)

        logger.info("model_status_changed", model_id=model_id, version=version, old=old_status, new=status)
        return summary

    @staticmethod
    def _summary(record: ModelRecord) -> dict:
        return {
            "version": record.version,
            "created_at": to_iso(record.created_at),
            "categories": json.loads(record.categories_json),
            "status": record.status,
            "description": record.description,
            "tags": json.loads(record.tags_json) if record.tags_json else [],
            "trained_on": record.trained_on,
            "metadata": json.loads(record.metadata_json) if record.metadata_json else {},
        }

    @staticmethod
    def _to_dict(record: ModelRecord) -> dict:
        try:
            weights = base64.b64decode(record.weights_b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError(
                "load_model", f"stored weights for '{record.model_id}' are corrupt: {exc}"
            ) from exc
        return {
            "record_id": record.id,
            "model_id": record.model_id,
            "version": record.version,
            "config": json.loads(record.config_json),
            "weights": weights,
            "categories": json.loads(record.categories_json),
            "created_at": to_iso(record.created_at),
            "trained_on": record.trained_on,
            "tags": json.loads(record.tags_json) if record.tags_json else [],
            "metadata": json.loads(record.metadata_json) if record.metadata_json else {},
            "status": record.status,
            "description": record.description,
        }
