"""Tests for MetricHistory snapshots."""

import pytest


class TestMetricHistory:
    @pytest.mark.asyncio
    async def test_records_scalar_fields(self, metric_history):
        metrics = {
            "total_predictions": 10,
            "avg_confidence": 0.8,
            "avg_latency_ms": 4.0,
            "accuracy": 0.7,
            "predictions_per_label": {"a": 10},
        }
        written = await metric_history.record(
            "clf", metrics, version="1",
            time_range={"start": "2024-01-01T00:00:00Z", "end": "2024-01-02T00:00:00Z"},
        )
        assert written == 4

        history = await metric_history.history("clf")
        assert {h["metric_name"] for h in history} == {
            "accuracy", "avg_confidence", "avg_latency_ms", "total_predictions",
        }
        assert all(h["sample_count"] == 10 for h in history)
        assert history[0]["window_start"] == "2024-01-01T00:00:00+00:00"

    @pytest.mark.asyncio
    async def test_missing_accuracy_is_not_recorded(self, metric_history):
        written = await metric_history.record(
            "clf", {"total_predictions": 0, "avg_confidence": 0.0, "avg_latency_ms": 0.0}
        )
        assert written == 3
        assert await metric_history.history("clf", "accuracy") == []

    @pytest.mark.asyncio
    async def test_history_filtered_and_ordered(self, metric_history):
        await metric_history.record("clf", {"total_predictions": 1, "accuracy": 0.5})
        await metric_history.record("clf", {"total_predictions": 2, "accuracy": 0.75})
        await metric_history.record("other", {"total_predictions": 3, "accuracy": 1.0})

        history = await metric_history.history("clf", "accuracy")
        assert [h["metric_value"] for h in history] == [0.5, 0.75]
        assert all(h["window_start"] is None for h in history)
