"""AsterVault monitoring — prediction ledger, metrics, drift and metric history."""

from .drift import kl_divergence, label_distribution, score_drift
from .metric_history import MetricHistory
from .metrics_engine import MetricsEngine, summarize_rows
from .prediction_ledger import PredictionLedger
from .windows import TimeRange, parse_window

__all__ = [
    "kl_divergence",
    "label_distribution",
    "score_drift",
    "MetricHistory",
    "MetricsEngine",
    "summarize_rows",
    "PredictionLedger",
    "TimeRange",
    "parse_window",
]
