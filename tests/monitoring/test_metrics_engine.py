"""Tests for the MetricsEngine — accuracy, confidence, latency and confusion matrix."""

import pytest

from astervault.errors import ValidationError
from astervault.monitoring.metrics_engine import summarize_rows
from astervault.monitoring.windows import TimeRange


async def _seed(ledger, rows, model_id="clf", version="1"):
    for predicted, truth, confidence, latency, ts in rows:
        await ledger.append(
            model_id, version, "text", predicted, confidence, latency,
            ground_truth=truth, timestamp=ts,
        )


class TestComputeMetrics:
    @pytest.mark.asyncio
    async def test_no_rows(self, metrics_engine):
        metrics = await metrics_engine.compute_metrics("clf")
        assert metrics == {
            "total_predictions": 0,
            "avg_confidence": 0.0,
            "avg_latency_ms": 0.0,
            "predictions_per_label": {},
        }
        assert "accuracy" not in metrics

    @pytest.mark.asyncio
    async def test_half_correct(self, metrics_engine, ledger):
        await _seed(ledger, [
            ("a", "a", 0.9, 10.0, None),
            ("b", "a", 0.1, 20.0, None),
        ])
        metrics = await metrics_engine.compute_metrics("clf")
        assert metrics["total_predictions"] == 2
        assert metrics["accuracy"] == pytest.approx(0.5)
        assert metrics["avg_confidence"] == pytest.approx(0.5)
        assert metrics["avg_latency_ms"] == pytest.approx(15.0)
        assert metrics["predictions_per_label"] == {"a": 1, "b": 1}

    @pytest.mark.asyncio
    async def test_accuracy_only_over_labelled_rows(self, metrics_engine, ledger):
        await _seed(ledger, [
            ("a", "a", 0.8, 1.0, None),
            ("a", None, 0.8, 1.0, None),
            ("b", None, 0.8, 1.0, None),
        ])
        metrics = await metrics_engine.compute_metrics("clf")
        assert metrics["total_predictions"] == 3
        assert metrics["accuracy"] == 1.0

    @pytest.mark.asyncio
    async def test_no_ground_truth_omits_accuracy(self, metrics_engine, ledger):
        await _seed(ledger, [("a", None, 0.8, 1.0, None)])
        metrics = await metrics_engine.compute_metrics("clf")
        assert "accuracy" not in metrics

    @pytest.mark.asyncio
    async def test_window_is_inclusive(self, metrics_engine, ledger):
        await _seed(ledger, [
            ("a", None, 0.5, 1.0, "2024-01-01T00:00:00Z"),
            ("a", None, 0.5, 1.0, "2024-01-02T00:00:00Z"),
            ("a", None, 0.5, 1.0, "2024-01-03T00:00:00Z"),
        ])
        window = {"start": "2024-01-01T00:00:00Z", "end": "2024-01-02T00:00:00Z"}
        metrics = await metrics_engine.compute_metrics("clf", window)
        assert metrics["total_predictions"] == 2

    @pytest.mark.asyncio
    async def test_version_and_model_filters(self, metrics_engine, ledger):
        await _seed(ledger, [("a", None, 0.5, 1.0, None)], version="1")
        await _seed(ledger, [("a", None, 0.5, 1.0, None)] * 2, version="2")
        await _seed(ledger, [("a", None, 0.5, 1.0, None)], model_id="other")

        assert (await metrics_engine.compute_metrics("clf"))["total_predictions"] == 3
        assert (await metrics_engine.compute_metrics("clf", version="2"))["total_predictions"] == 2

    @pytest.mark.asyncio
    async def test_reversed_window_rejected(self, metrics_engine):
        with pytest.raises(ValidationError) as exc_info:
            await metrics_engine.compute_metrics(
                "clf", {"start": "2024-02-01T00:00:00Z", "end": "2024-01-01T00:00:00Z"}
            )
        assert exc_info.value.operation == "get_model_metrics"

    def test_summarize_rows_skips_nulls(self):
        class Row:
            def __init__(self, confidence, latency_ms):
                self.predicted_label = "a"
                self.confidence = confidence
                self.latency_ms = latency_ms
                self.ground_truth = None
                self.correct = None

        metrics = summarize_rows([Row(0.4, None), Row(None, 8.0), Row(0.6, 2.0)])
        assert metrics["avg_confidence"] == pytest.approx(0.5)
        assert metrics["avg_latency_ms"] == pytest.approx(5.0)


class TestConfusionMatrix:
    @pytest.mark.asyncio
    async def test_counts_by_truth_then_prediction(self, metrics_engine, ledger):
        await _seed(ledger, [
            ("cat", "cat", 0.9, 1.0, None),
            ("cat", "cat", 0.9, 1.0, None),
            ("dog", "cat", 0.9, 1.0, None),
            ("dog", "dog", 0.9, 1.0, None),
            ("cat", None, 0.9, 1.0, None),
        ])
        matrix = await metrics_engine.compute_confusion_matrix("clf")
        assert matrix == {"cat": {"cat": 2, "dog": 1}, "dog": {"dog": 1}}

    @pytest.mark.asyncio
    async def test_empty_when_no_ground_truth(self, metrics_engine, ledger):
        await _seed(ledger, [("cat", None, 0.9, 1.0, None)])
        assert await metrics_engine.compute_confusion_matrix("clf") == {}

    @pytest.mark.asyncio
    async def test_window_accepts_time_range(self, metrics_engine, ledger):
        await _seed(ledger, [
            ("cat", "cat", 0.9, 1.0, "2024-01-01T00:00:00Z"),
            ("dog", "cat", 0.9, 1.0, "2024-05-01T00:00:00Z"),
        ])
        window = TimeRange(start="2024-04-01T00:00:00Z", end="2024-06-01T00:00:00Z")
        matrix = await metrics_engine.compute_confusion_matrix("clf", window)
        assert matrix == {"cat": {"dog": 1}}
