"""API test fixtures — in-memory app and async client."""

import os
import tempfile

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Force test config BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="astervault-logs-")

import astervault.dependencies as dep_mod
from astervault.config import AsterVaultConfig


def _reset_singletons():
    """Reset module-level singletons so each test gets a fresh database."""
    dep_mod._config_instance = None
    dep_mod._backing_store = None
    dep_mod._model_registry = None
    dep_mod._dataset_registry = None
    dep_mod._prediction_ledger = None
    dep_mod._metrics_engine = None
    dep_mod._metric_history = None
    dep_mod._vector_index = None
    dep_mod._model_manager = None
    dep_mod._inference_service = None
    dep_mod._model_factory = None


@pytest_asyncio.fixture
async def client():
    _reset_singletons()
    dep_mod._config_instance = AsterVaultConfig(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        log_dir=os.environ["LOG_DIR"],
        log_predictions=True,
    )
    from astervault.main import app

    store = dep_mod.get_backing_store()
    await store.connect()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    await store.disconnect()
    _reset_singletons()
