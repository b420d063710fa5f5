"""Tests for the InferenceService — predict, embed, persist and restore."""

import sys
import types

import numpy as np
import pytest

import astervault.dependencies as dep_mod
from astervault.config import AsterVaultConfig
from astervault.errors import ConflictError, NotFoundError, ValidationError
from astervault.runtime.inference import (
    IN_MEMORY_VERSION,
    InferenceService,
    load_model_factory,
    normalize_predictions,
)

CONFIG = {"hiddenUnits": 2, "maxLen": 16, "useTokenizer": False}


def _load(model_manager, model_cls, model_id="clf", **kwargs):
    model = model_cls()
    model_manager.create(model_id, model, config=CONFIG, categories=["positive", "negative"], **kwargs)
    return model


class TestNormalizePredictions:
    def test_tuples(self):
        assert normalize_predictions([("a", 0.6)]) == [{"category": "a", "confidence": 0.6}]

    def test_dicts(self):
        raw = [{"label": "a", "prob": 0.6}, {"category": "b", "confidence": 0.4}]
        assert normalize_predictions(raw) == [
            {"category": "a", "confidence": 0.6},
            {"category": "b", "confidence": 0.4},
        ]


class TestPredict:
    @pytest.mark.asyncio
    async def test_predict_logs_top_prediction(self, inference_service, model_manager, metrics_engine, fake_elm):
        model = _load(model_manager, fake_elm)
        result = await inference_service.predict("clf", "loved it", ground_truth="positive")

        assert result["predictions"][0] == {"category": "positive", "confidence": 0.75}
        assert result["logged"] is True
        assert result["latency_ms"] >= 0
        assert model.calls == [("loved it", 2)]

        metrics = await metrics_engine.compute_metrics("clf", version=IN_MEMORY_VERSION)
        assert metrics["total_predictions"] == 1
        assert metrics["accuracy"] == 1.0

    @pytest.mark.asyncio
    async def test_logged_version_follows_metadata(self, inference_service, model_manager, metrics_engine, fake_elm):
        _load(model_manager, fake_elm, version="3.1.0")
        await inference_service.predict("clf", "x")
        metrics = await metrics_engine.compute_metrics("clf", version="3.1.0")
        assert metrics["total_predictions"] == 1

    @pytest.mark.asyncio
    async def test_logging_can_be_disabled(self, inference_service, model_manager, metrics_engine, fake_elm):
        _load(model_manager, fake_elm)
        result = await inference_service.predict("clf", "x", top_k=1, log_prediction=False)
        assert result["logged"] is False
        assert len(result["predictions"]) == 1
        assert (await metrics_engine.compute_metrics("clf"))["total_predictions"] == 0

    @pytest.mark.asyncio
    async def test_unknown_model(self, inference_service):
        with pytest.raises(NotFoundError):
            await inference_service.predict("ghost", "x")

    def test_embed(self, inference_service, model_manager, fake_elm):
        _load(model_manager, fake_elm)
        result = inference_service.embed("clf", "abcd")
        assert result == {"embedding": [4.0, 1.0, 0.0], "dimension": 3}


class TestPersistRestore:
    @pytest.mark.asyncio
    async def test_persist_then_restore(self, inference_service, model_manager, model_factory, model_registry, fake_elm):
        _load(model_manager, fake_elm, description="sentiment")
        stored = await inference_service.persist("clf", version="1.0.0", tags=["prod"])
        assert stored["version"] == "1.0.0"
        assert model_manager.get_metadata("clf")["version"] == "1.0.0"

        record = await model_registry.load("clf")
        assert record["config"]["encoder"] == {"mode": "char", "maxLen": 16, "useTokenizer": False}
        assert record["description"] == "sentiment"

        model_manager.delete("clf")
        restored = await inference_service.restore("clf")
        assert restored == {"model_id": "clf", "version": "1.0.0", "categories": ["positive", "negative"]}

        _, categories, payload = model_factory.restored[0]
        assert categories == ["positive", "negative"]
        np.testing.assert_allclose(payload.W, [[0.1, 0.2], [0.3, 0.4]])
        assert payload.aux == {"charSet": "abc"}
        assert model_manager.get("clf").char_set == "abc"

    @pytest.mark.asyncio
    async def test_persist_defaults_version_to_timestamp(self, inference_service, model_manager, fake_elm):
        _load(model_manager, fake_elm)
        stored = await inference_service.persist("clf")
        assert stored["version"].endswith("+00:00")

    @pytest.mark.asyncio
    async def test_restore_refuses_to_shadow_loaded_model(self, inference_service, model_manager, fake_elm):
        _load(model_manager, fake_elm)
        await inference_service.persist("clf", version="1")
        with pytest.raises(ConflictError):
            await inference_service.restore("clf")

        await inference_service.restore("clf", replace=True)
        assert model_manager.get_metadata("clf")["version"] == "1"

    @pytest.mark.asyncio
    async def test_restore_requires_factory(self, model_manager, ledger, model_registry):
        service = InferenceService(model_manager, ledger, model_registry)
        with pytest.raises(ValidationError):
            await service.restore("clf")

    @pytest.mark.asyncio
    async def test_persist_rejects_incomplete_export(self, inference_service, model_manager, fake_elm):
        model = _load(model_manager, fake_elm)
        model.export_weights = lambda: {"W": [[1.0]]}
        with pytest.raises(ValidationError) as exc_info:
            await inference_service.persist("clf")
        assert exc_info.value.operation == "store_model"


class TestLoadModelFactory:
    @pytest.fixture
    def fake_library(self, monkeypatch):
        module = types.ModuleType("fake_elm_library")
        monkeypatch.setitem(sys.modules, "fake_elm_library", module)
        return module

    def test_factory_object(self, fake_library, model_factory):
        fake_library.factory = model_factory
        assert load_model_factory("fake_elm_library:factory") is model_factory

    def test_factory_class_is_instantiated(self, fake_library, model_factory):
        fake_library.Factory = type(model_factory)
        factory = load_model_factory("fake_elm_library:Factory")
        assert isinstance(factory, type(model_factory))

    def test_builder_callable(self, fake_library, model_factory):
        fake_library.build = lambda: model_factory
        assert load_model_factory("fake_elm_library:build") is model_factory

    def test_malformed_path(self):
        with pytest.raises(ValidationError) as exc_info:
            load_model_factory("fake_elm_library")
        assert exc_info.value.operation == "load_model_factory"

    def test_missing_module(self):
        with pytest.raises(ValidationError):
            load_model_factory("no_such_module_here:factory")

    def test_attribute_without_restore(self, fake_library):
        fake_library.thing = 42
        with pytest.raises(ValidationError):
            load_model_factory("fake_elm_library:thing")

    def test_configured_path_reaches_inference_service(self, fake_library, model_factory, monkeypatch, tmp_path):
        fake_library.factory = model_factory
        config = AsterVaultConfig(
            _env_file=None,
            database_url="sqlite+aiosqlite:///:memory:",
            log_dir=str(tmp_path),
            model_factory="fake_elm_library:factory",
        )
        for name in (
            "_backing_store", "_model_registry", "_prediction_ledger",
            "_model_manager", "_inference_service", "_model_factory",
        ):
            monkeypatch.setattr(dep_mod, name, None)
        monkeypatch.setattr(dep_mod, "_config_instance", config)

        service = dep_mod.get_inference_service()
        assert service._factory is model_factory
