"""Tests for the DatasetRegistry — immutable training snapshots."""

import pytest

from astervault.errors import ConflictError, NotFoundError, ValidationError
from astervault.registry.dataset_registry import coerce_examples


class TestCoerceExamples:
    def test_non_string_values_become_strings(self):
        rows = coerce_examples([{"text": 42, "label": True}])
        assert rows == [{"text": "42", "label": "True"}]

    def test_extra_keys_are_dropped(self):
        rows = coerce_examples([{"text": "hi", "label": "greet", "source": "chat"}])
        assert rows == [{"text": "hi", "label": "greet"}]

    def test_empty_strings_pass(self):
        assert coerce_examples([{"text": "", "label": ""}]) == [{"text": "", "label": ""}]

    def test_missing_label_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            coerce_examples([{"text": "ok", "label": "a"}, {"text": "no label"}])
        assert "example 1" in exc_info.value.reason
        assert "label" in exc_info.value.reason

    def test_null_text_rejected(self):
        with pytest.raises(ValidationError):
            coerce_examples([{"text": None, "label": "a"}])

    def test_non_list_rejected(self):
        with pytest.raises(ValidationError):
            coerce_examples({"text": "a", "label": "b"})


class TestDatasetRegistry:
    @pytest.mark.asyncio
    async def test_round_trip_preserves_order(self, dataset_registry):
        examples = [
            {"text": "I love this", "label": "positive"},
            {"text": "Terrible", "label": "negative"},
        ]
        result = await dataset_registry.store("reviews-v1", examples, {"source": "survey"})
        assert result["dataset_id"] == "reviews-v1"
        assert result["size"] == 2

        loaded = await dataset_registry.load("reviews-v1")
        assert loaded["examples"] == examples
        assert loaded["size"] == 2
        assert loaded["metadata"] == {"source": "survey"}
        assert loaded["created_at"] is not None

    @pytest.mark.asyncio
    async def test_repeated_loads_return_identical_datasets(self, dataset_registry):
        await dataset_registry.store(
            "reviews", [{"text": "a", "label": "b"}, {"text": "c", "label": "d"}], {"v": 1}
        )
        first = await dataset_registry.load("reviews")
        second = await dataset_registry.load("reviews")
        assert first == second

    @pytest.mark.asyncio
    async def test_large_dataset_order(self, dataset_registry):
        examples = [{"text": f"t{i}", "label": f"l{i % 3}"} for i in range(250)]
        await dataset_registry.store("bulk", examples)
        loaded = await dataset_registry.load("bulk")
        assert [e["text"] for e in loaded["examples"]] == [f"t{i}" for i in range(250)]

    @pytest.mark.asyncio
    async def test_empty_dataset(self, dataset_registry):
        result = await dataset_registry.store("empty", [])
        assert result["size"] == 0
        assert (await dataset_registry.load("empty"))["examples"] == []

    @pytest.mark.asyncio
    async def test_duplicate_id_conflicts(self, dataset_registry):
        await dataset_registry.store("reviews", [{"text": "a", "label": "b"}])
        with pytest.raises(ConflictError) as exc_info:
            await dataset_registry.store("reviews", [{"text": "c", "label": "d"}])
        assert exc_info.value.operation == "store_dataset"

        loaded = await dataset_registry.load("reviews")
        assert loaded["examples"] == [{"text": "a", "label": "b"}]

    @pytest.mark.asyncio
    async def test_invalid_example_writes_nothing(self, dataset_registry):
        with pytest.raises(ValidationError):
            await dataset_registry.store("broken", [{"text": "a", "label": "b"}, {"label": "c"}])
        assert await dataset_registry.exists("broken") is False

    @pytest.mark.asyncio
    async def test_load_missing(self, dataset_registry):
        with pytest.raises(NotFoundError) as exc_info:
            await dataset_registry.load("nope")
        assert exc_info.value.operation == "load_dataset"

    @pytest.mark.asyncio
    async def test_exists_and_list(self, dataset_registry):
        await dataset_registry.store("one", [{"text": "a", "label": "b"}])
        await dataset_registry.store("two", [{"text": "a", "label": "b"}, {"text": "c", "label": "d"}])

        assert await dataset_registry.exists("one") is True
        assert await dataset_registry.exists("three") is False

        listing = await dataset_registry.list_datasets()
        assert {d["dataset_id"]: d["size"] for d in listing} == {"one": 1, "two": 2}
        assert "examples" not in listing[0]
