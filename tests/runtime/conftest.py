"""Runtime fixtures — a stand-in for the numerical ELM library."""

import pytest

from astervault.runtime.inference import InferenceService
from astervault.runtime.model_manager import ModelManager


class FakeELM:
    """Deterministic classifier with the same surface as the real library."""

    def __init__(self, W=None, b=None, beta=None, char_set="abc"):
        self.W = W if W is not None else [[0.1, 0.2], [0.3, 0.4]]
        self.b = b if b is not None else [0.0, 0.1]
        self.beta = beta if beta is not None else [[1.0, 0.0], [0.0, 1.0]]
        self.char_set = char_set
        self.calls = []

    def predict(self, text, top_k):
        self.calls.append((text, top_k))
        ranked = [{"label": "positive", "prob": 0.75}, {"label": "negative", "prob": 0.25}]
        return ranked[:top_k]

    def embed(self, text):
        return [float(len(text)), 1.0, 0.0]

    def export_weights(self):
        return {"W": self.W, "b": self.b, "beta": self.beta, "charSet": self.char_set}


class FakeFactory:
    def __init__(self):
        self.restored = []

    def restore(self, config, categories, payload):
        self.restored.append((config, categories, payload))
        return FakeELM(
            W=payload.W.tolist(),
            b=payload.b.tolist(),
            beta=payload.beta.tolist(),
            char_set=payload.aux.get("charSet"),
        )


@pytest.fixture
def model_manager():
    return ModelManager()


@pytest.fixture
def model_factory():
    return FakeFactory()


@pytest.fixture
def inference_service(model_manager, ledger, model_registry, model_factory):
    return InferenceService(
        manager=model_manager,
        ledger=ledger,
        registry=model_registry,
        factory=model_factory,
        log_predictions=True,
        default_top_k=2,
    )


@pytest.fixture
def fake_elm():
    """The fake model class, for tests that build instances themselves."""
    return FakeELM
