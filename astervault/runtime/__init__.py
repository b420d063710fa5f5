"""AsterVault runtime — live model instances and the inference path."""

from .inference import ELMModel, InferenceService, ModelFactory, load_model_factory, normalize_predictions
from .model_manager import ModelManager

__all__ = [
    "ELMModel",
    "InferenceService",
    "ModelFactory",
    "load_model_factory",
    "normalize_predictions",
    "ModelManager",
]
