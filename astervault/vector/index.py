"""Vector Index — named embedding collections with cosine top-k retrieval."""

import json
from typing import Any

from sqlalchemy import func, select

from ..database import BackingStore
from ..errors import ValidationError
from ..models.embedding import EmbeddingRecord
from ..utils.logging import get_logger
from .similarity import cosine_similarity

logger = get_logger("vector.index")


def _validate_items(items: Any) -> dict[str, dict]:
    """Check items and collapse duplicate ids inside one batch (last wins)."""
    if not isinstance(items, (list, tuple)):
        raise ValidationError("store_embeddings", "items must be a list")

    batch: dict[str, dict] = {}
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError("store_embeddings", f"item {index} is not an object")
        item_id = item.get("item_id")
        if item_id is None or str(item_id) == "":
            raise ValidationError("store_embeddings", f"item {index} is missing 'item_id'")
        embedding = item.get("embedding")
        if not isinstance(embedding, (list, tuple)) or not embedding:
            raise ValidationError("store_embeddings", f"item '{item_id}' needs a non-empty embedding")
        try:
            vector = [float(v) for v in embedding]
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                "store_embeddings", f"item '{item_id}' embedding is not numeric"
            ) from exc
        batch[str(item_id)] = {
            "text": "" if item.get("text") is None else str(item["text"]),
            "embedding": vector,
            "metadata": item.get("metadata") or {},
        }
    return batch


class VectorIndex:
    """Upserting embedding store with brute-force cosine search."""

    def __init__(self, store: BackingStore):
        self._store = store

    async def insert_many(self, collection_name: str, items: list[dict]) -> int:
        """Upsert items into a collection. Returns the number of items written.

        Re-inserting an existing ``item_id`` replaces its text, vector and
        metadata but keeps its original ``created_at``, so search tie-breaks
        stay stable across re-indexing.
        """
        if not collection_name:
            raise ValidationError("store_embeddings", "collection_name is required")
        batch = _validate_items(items)
        if not batch:
            return 0

        async with self._store.session("store_embeddings") as session:
            result = await self._store.execute(
                session,
                select(EmbeddingRecord).where(
                    EmbeddingRecord.collection_name == collection_name,
                    EmbeddingRecord.item_id.in_(list(batch)),
                ),
            )
            existing = {rec.item_id: rec for rec in result.scalars().all()}

            for item_id, item in batch.items():
                record = existing.get(item_id)
                if record is None:
                    session.add(
                        EmbeddingRecord(
                            collection_name=collection_name,
                            item_id=item_id,
                            text=item["text"],
                            embedding_json=json.dumps(item["embedding"]),
                            metadata_json=json.dumps(item["metadata"]),
                        )
                    )
                else:
                    record.text = item["text"]
                    record.embedding_json = json.dumps(item["embedding"])
                    record.metadata_json = json.dumps(item["metadata"])
            await self._store.commit(session)

        logger.info(
            "embeddings_stored",
            collection=collection_name,
            count=len(batch),
            updated=len(existing),
        )
        return len(batch)

    async def search_similar(
        self,
        collection_name: str,
        query_embedding: list[float],
        top_k: int = 5,
    ) -> list[dict]:
        """Top-k records by cosine similarity, ties broken by insertion order."""
        if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k < 1:
            raise ValidationError("search_similar", "top_k must be a positive integer")
        if not isinstance(query_embedding, (list, tuple)) or not query_embedding:
            raise ValidationError("search_similar", "query_embedding must be a non-empty list")
        try:
            query = [float(v) for v in query_embedding]
        except (TypeError, ValueError) as exc:
            raise ValidationError("search_similar", "query_embedding is not numeric") from exc

        async with self._store.session("search_similar") as session:
            result = await self._store.execute(
                session,
                select(EmbeddingRecord)
                .where(EmbeddingRecord.collection_name == collection_name)
                .order_by(EmbeddingRecord.created_at.asc(), EmbeddingRecord.id.asc()),
            )
            records = result.scalars().all()

        scored = [
            (cosine_similarity(query, json.loads(rec.embedding_json)), rec)
            for rec in records
        ]
        # sorted() is stable, so equal scores keep insertion order
        ranked = sorted(scored, key=lambda pair: -pair[0])[:top_k]

        return [
            {
                "item_id": rec.item_id,
                "text": rec.text,
                "similarity": similarity,
                "metadata": json.loads(rec.metadata_json) if rec.metadata_json else {},
            }
            for similarity, rec in ranked
        ]

    async def list_collections(self) -> list[dict]:
        async with self._store.session("list_collections") as session:
            result = await self._store.execute(
                session,
                select(EmbeddingRecord.collection_name, func.count())
                .group_by(EmbeddingRecord.collection_name)
                .order_by(EmbeddingRecord.collection_name),
            )
            return [{"collection_name": name, "count": int(count)} for name, count in result.all()]
