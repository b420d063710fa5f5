"""FastAPI dependency injection providers."""

from .config import AsterVaultConfig, get_config
from .database import BackingStore
from .monitoring.metric_history import MetricHistory
from .monitoring.metrics_engine import MetricsEngine
from .monitoring.prediction_ledger import PredictionLedger
from .registry.dataset_registry import DatasetRegistry
from .registry.model_registry import ModelRegistry
from .runtime.inference import InferenceService, ModelFactory, load_model_factory
from .runtime.model_manager import ModelManager
from .vector.index import VectorIndex

_config_instance: AsterVaultConfig | None = None
_backing_store: BackingStore | None = None
_model_registry: ModelRegistry | None = None
_dataset_registry: DatasetRegistry | None = None
_prediction_ledger: PredictionLedger | None = None
_metrics_engine: MetricsEngine | None = None
_metric_history: MetricHistory | None = None
_vector_index: VectorIndex | None = None
_model_manager: ModelManager | None = None
_inference_service: InferenceService | None = None
_model_factory: ModelFactory | None = None


def get_app_config() -> AsterVaultConfig:
    """Get the application config singleton."""
    global _config_instance
    if _config_instance is None:
        _config_instance = get_config()
    return _config_instance


def get_backing_store() -> BackingStore:
    global _backing_store
    if _backing_store is None:
        _backing_store = BackingStore(get_app_config())
    return _backing_store


def get_model_registry() -> ModelRegistry:
    global _model_registry
    if _model_registry is None:
        _model_registry = ModelRegistry(get_backing_store())
    return _model_registry


def get_dataset_registry() -> DatasetRegistry:
    global _dataset_registry
    if _dataset_registry is None:
        _dataset_registry = DatasetRegistry(get_backing_store())
    return _dataset_registry


def get_prediction_ledger() -> PredictionLedger:
    global _prediction_ledger
    if _prediction_ledger is None:
        _prediction_ledger = PredictionLedger(get_backing_store())
    return _prediction_ledger


def get_metrics_engine() -> MetricsEngine:
    global _metrics_engine
    if _metrics_engine is None:
        config = get_app_config()
        _metrics_engine = MetricsEngine(
            get_backing_store(),
            drift_threshold=config.drift_threshold,
            drift_epsilon=config.drift_epsilon,
        )
    return _metrics_engine


def get_metric_history() -> MetricHistory:
    global _metric_history
    if _metric_history is None:
        _metric_history = MetricHistory(get_backing_store())
    return _metric_history


def get_vector_index() -> VectorIndex:
    global _vector_index
    if _vector_index is None:
        _vector_index = VectorIndex(get_backing_store())
    return _vector_index


def get_model_manager() -> ModelManager:
    global _model_manager
    if _model_manager is None:
        _model_manager = ModelManager()
    return _model_manager


def set_model_factory(factory: ModelFactory | None) -> None:
    """Install the numerical library's factory used to restore persisted models."""
    global _model_factory, _inference_service
    _model_factory = factory
    _inference_service = None


def get_inference_service() -> InferenceService:
    global _inference_service
    if _inference_service is None:
        config = get_app_config()
        factory = _model_factory
        if factory is None and config.model_factory:
            factory = load_model_factory(config.model_factory)
        _inference_service = InferenceService(
            manager=get_model_manager(),
            ledger=get_prediction_ledger(),
            registry=get_model_registry(),
            factory=factory,
            log_predictions=config.log_predictions,
            default_top_k=config.default_top_k,
        )
    return _inference_service
