"""Shared test fixtures — in-memory backing store and its services."""

import pytest
import pytest_asyncio

from astervault.config import AsterVaultConfig
from astervault.database import BackingStore
from astervault.monitoring.metric_history import MetricHistory
from astervault.monitoring.metrics_engine import MetricsEngine
from astervault.monitoring.prediction_ledger import PredictionLedger
from astervault.registry.dataset_registry import DatasetRegistry
from astervault.registry.model_registry import ModelRegistry
from astervault.vector.index import VectorIndex

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def memory_config(tmp_path):
    """Config pointing at a private in-memory SQLite database."""
    return AsterVaultConfig(
        _env_file=None,
        database_url=MEMORY_URL,
        log_dir=str(tmp_path / "logs"),
    )


@pytest_asyncio.fixture
async def store(memory_config):
    backing = BackingStore(memory_config)
    await backing.connect()
    yield backing
    await backing.disconnect()


@pytest.fixture
def model_registry(store):
    return ModelRegistry(store)


@pytest.fixture
def dataset_registry(store):
    return DatasetRegistry(store)


@pytest.fixture
def ledger(store):
    return PredictionLedger(store)


@pytest.fixture
def metrics_engine(store):
    return MetricsEngine(store)


@pytest.fixture
def metric_history(store):
    return MetricHistory(store)


@pytest.fixture
def vector_index(store):
    return VectorIndex(store)


@pytest.fixture
def elm_config():
    """A typical classifier config as the training library emits it."""
    return {
        "hiddenUnits": 64,
        "activation": "relu",
        "weightInit": "xavier",
        "ridgeLambda": 0.01,
        "maxLen": 20,
        "useTokenizer": False,
        "categories": ["positive", "negative"],
    }
