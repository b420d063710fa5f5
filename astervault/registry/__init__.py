"""AsterVault registries — versioned models, datasets and the weight codec."""

from .dataset_registry import DatasetRegistry, coerce_examples
from .model_registry import ModelRegistry
from .weights import EncoderConfig, ModelConfig, WeightPayload, pack_weights, unpack_weights

__all__ = [
    "DatasetRegistry",
    "coerce_examples",
    "ModelRegistry",
    "EncoderConfig",
    "ModelConfig",
    "WeightPayload",
    "pack_weights",
    "unpack_weights",
]
