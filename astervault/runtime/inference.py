"""Inference path — runs live models, logs predictions, persists and restores versions.

The numerical ELM library is external. Models only need to satisfy
``ELMModel`` and restoration goes through a ``ModelFactory``.
"""

import importlib
import time
from datetime import datetime, timezone
from typing import Any, Optional, Protocol, Sequence

from ..errors import ConflictError, ValidationError
from ..monitoring.prediction_ledger import PredictionLedger
from ..registry.model_registry import ModelRegistry
from ..registry.weights import WeightPayload, normalize_config, pack_weights, unpack_weights
from ..utils.logging import get_logger
from .model_manager import ModelManager

logger = get_logger("runtime.inference")

IN_MEMORY_VERSION = "in-memory"


class ELMModel(Protocol):
    def predict(self, text: str, top_k: int) -> Sequence[Any]: ...

    def embed(self, text: str) -> Sequence[float]: ...

    def export_weights(self) -> dict: ...


class ModelFactory(Protocol):
    def restore(self, config: dict, categories: list[str], payload: WeightPayload) -> ELMModel: ...


def load_model_factory(path: str) -> ModelFactory:
    """Resolve a ``"package.module:attribute"`` path to a model factory.

    The attribute may be a factory object, a factory class, or a
    zero-argument callable that builds one.
    """
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ValidationError("load_model_factory", f"expected 'module:attribute', got {path!r}")
    try:
        target = getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as exc:
        raise ValidationError("load_model_factory", f"cannot import {path!r}: {exc}") from exc

    builds_factory = isinstance(target, type) or not hasattr(target, "restore")
    factory = target() if builds_factory and callable(target) else target
    if not callable(getattr(factory, "restore", None)):
        raise ValidationError("load_model_factory", f"{path!r} does not provide restore()")
    logger.info("model_factory_loaded", path=path)
    return factory


def normalize_predictions(raw: Sequence[Any]) -> list[dict]:
    """Accept ``(label, score)`` pairs or ``{label, prob}`` dicts from the library."""
    predictions = []
    for item in raw:
        if isinstance(item, dict):
            label = item.get("label", item.get("category"))
            score = item.get("prob", item.get("confidence", item.get("score")))
        else:
            label, score = item
        predictions.append({"category": str(label), "confidence": float(score)})
    return predictions


class InferenceService:
    def __init__(
        self,
        manager: ModelManager,
        ledger: PredictionLedger,
        registry: ModelRegistry,
        factory: Optional[ModelFactory] = None,
        log_predictions: bool = False,
        default_top_k: int = 3,
    ):
        self._manager = manager
        self._ledger = ledger
        self._registry = registry
        self._factory = factory
        self._log_predictions = log_predictions
        self._default_top_k = default_top_k

    async def predict(
        self,
        model_id: str,
        text: str,
        top_k: Optional[int] = None,
        ground_truth: Optional[str] = None,
        log_prediction: Optional[bool] = None,
    ) -> dict:
        """Classify ``text`` and, when enabled, append the top result to the ledger."""
        k = top_k or self._default_top_k
        model = self._manager.get(model_id)

        started = time.perf_counter()
        predictions = normalize_predictions(model.predict(text, k))
        latency_ms = (time.perf_counter() - started) * 1000.0

        if not predictions:
            raise ValidationError("predict", f"model '{model_id}' returned no predictions")

        should_log = self._log_predictions if log_prediction is None else log_prediction
        if should_log:
            version = self._manager.get_metadata(model_id).get("version") or IN_MEMORY_VERSION
            top = predictions[0]
            await self._ledger.append(
                model_id=model_id,
                version=version,
                input_text=text,
                predicted_label=top["category"],
                confidence=top["confidence"],
                latency_ms=latency_ms,
                ground_truth=ground_truth,
            )

        return {"predictions": predictions, "latency_ms": latency_ms, "logged": should_log}

    def embed(self, model_id: str, text: str) -> dict:
        model = self._manager.get(model_id)
        vector = [float(v) for v in model.embed(text)]
        return {"embedding": vector, "dimension": len(vector)}

    async def persist(
        self,
        model_id: str,
        version: Optional[str] = None,
        trained_on: Optional[str] = None,
        tags: Optional[list[str]] = None,
        description: Optional[str] = None,
    ) -> dict:
        """Store a live model as a new version. ``version`` defaults to an ISO timestamp."""
        model = self._manager.get(model_id)
        metadata = self._manager.get_metadata(model_id)
        config = normalize_config(metadata.get("config") or {}, "store_model")

        exported = dict(model.export_weights())
        try:
            W, b, beta = exported.pop("W"), exported.pop("b"), exported.pop("beta")
        except KeyError as exc:
            raise ValidationError("store_model", f"model export is missing {exc}") from exc
        blob = pack_weights(W, b, beta, config["encoder"], **exported)

        version = version or datetime.now(timezone.utc).isoformat()
        result = await self._registry.store(
            model_id=model_id,
            version=version,
            config=config,
            weights=blob,
            categories=list(metadata.get("categories") or []),
            trained_on=trained_on,
            tags=tags,
            description=description or metadata.get("description"),
        )
        self._manager.update_metadata(model_id, version=version)
        return result

    async def restore(self, model_id: str, version: Optional[str] = None, replace: bool = False) -> dict:
        """Load a persisted version back into memory through the model factory."""
        if self._factory is None:
            raise ValidationError("load_model", "no model factory configured for restoring models")
        if self._manager.has(model_id) and not replace:
            raise ConflictError("load_model", f"model '{model_id}' is already loaded")

        record = await self._registry.load(model_id, version)
        payload = unpack_weights(record["weights"], record["config"])
        instance = self._factory.restore(record["config"], record["categories"], payload)

        if replace:
            self._manager.delete(model_id)
        self._manager.create(
            model_id,
            instance,
            config=record["config"],
            categories=record["categories"],
            description=record["description"],
            version=record["version"],
        )
        logger.info("model_restored", model_id=model_id, version=record["version"])
        return {
            "model_id": model_id,
            "version": record["version"],
            "categories": record["categories"],
        }
