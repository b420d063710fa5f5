"""Embedding routes — upsert vectors and run similarity search."""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...dependencies import get_vector_index
from ...vector.index import VectorIndex

router = APIRouter(prefix="/embeddings", tags=["embeddings"])


class EmbeddingItem(BaseModel):
    item_id: str = Field(min_length=1, max_length=200)
    text: str = ""
    embedding: list[float]
    metadata: Optional[dict[str, Any]] = None


class StoreEmbeddingsRequest(BaseModel):
    items: list[EmbeddingItem]


class SearchRequest(BaseModel):
    query_embedding: list[float]
    top_k: int = Field(default=5, ge=1, le=1000)


@router.get("/")
async def list_collections(index: VectorIndex = Depends(get_vector_index)):
    return await index.list_collections()


@router.post("/{collection_name}", status_code=201)
async def store_embeddings(
    collection_name: str,
    body: StoreEmbeddingsRequest,
    index: VectorIndex = Depends(get_vector_index),
):
    count = await index.insert_many(collection_name, [item.model_dump() for item in body.items])
    return {"success": True, "count": count}


@router.post("/{collection_name}/search")
async def search_similar(
    collection_name: str,
    body: SearchRequest,
    index: VectorIndex = Depends(get_vector_index),
):
    results = await index.search_similar(collection_name, body.query_embedding, body.top_k)
    return {"collection_name": collection_name, "results": results}
