"""Model Manager — in-memory registry of live model instances."""

from datetime import datetime, timezone
from typing import Any, Optional

from ..errors import ConflictError, NotFoundError, ValidationError
from ..utils.logging import get_logger

logger = get_logger("runtime.model_manager")

MODEL_TYPES = ("classifier", "online", "kernel", "deep", "embedding")


class ModelManager:
    """Holds trained model instances by id, with lightweight metadata.

    Nothing here touches the backing store; persisted versions live in the
    ModelRegistry.
    """

    def __init__(self):
        self._models: dict[str, dict[str, Any]] = {}

    def create(
        self,
        model_id: str,
        instance: Any,
        model_type: str = "classifier",
        config: Optional[dict] = None,
        categories: Optional[list[str]] = None,
        description: Optional[str] = None,
        version: Optional[str] = None,
    ) -> Any:
        if model_id in self._models:
            raise ConflictError("create_model", f"model '{model_id}' already exists")
        if model_type not in MODEL_TYPES:
            raise ValidationError("create_model", f"model_type must be one of {list(MODEL_TYPES)}")

        now = datetime.now(timezone.utc)
        self._models[model_id] = {
            "metadata": {
                "id": model_id,
                "type": model_type,
                "created": now,
                "last_used": now,
                "categories": list(categories) if categories else None,
                "description": description,
                "version": version,
                "config": dict(config) if config else {},
            },
            "instance": instance,
        }
        logger.info("model_registered", model_id=model_id, type=model_type, version=version)
        return instance

    def get(self, model_id: str) -> Any:
        entry = self._models.get(model_id)
        if entry is None:
            raise NotFoundError("get_model", f"model '{model_id}' is not loaded")
        entry["metadata"]["last_used"] = datetime.now(timezone.utc)
        return entry["instance"]

    def has(self, model_id: str) -> bool:
        return model_id in self._models

    def delete(self, model_id: str) -> bool:
        removed = self._models.pop(model_id, None) is not None
        if removed:
            logger.info("model_unloaded", model_id=model_id)
        return removed

    def list_models(self) -> list[dict]:
        return [self._public(entry["metadata"]) for entry in self._models.values()]

    def get_metadata(self, model_id: str) -> dict:
        entry = self._models.get(model_id)
        if entry is None:
            raise NotFoundError("get_metadata", f"model '{model_id}' is not loaded")
        return entry["metadata"]

    def update_metadata(self, model_id: str, **updates: Any) -> dict:
        metadata = self.get_metadata(model_id)
        metadata.update(updates)
        return metadata

    def clear(self) -> None:
        self._models.clear()

    @staticmethod
    def _public(metadata: dict) -> dict:
        return {
            **{k: v for k, v in metadata.items() if k not in ("created", "last_used", "config")},
            "created": metadata["created"].isoformat(),
            "last_used": metadata["last_used"].isoformat(),
        }
