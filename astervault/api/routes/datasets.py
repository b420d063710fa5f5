"""Dataset routes — store and load training datasets."""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...dependencies import get_dataset_registry
from ...registry.dataset_registry import DatasetRegistry

router = APIRouter(prefix="/datasets", tags=["datasets"])


class StoreDatasetRequest(BaseModel):
    dataset_id: str = Field(min_length=1, max_length=200)
    # Loose item type: coercion and field checks happen in the registry
    examples: list[dict[str, Any]]
    metadata: Optional[dict] = None


@router.post("/", status_code=201)
async def store_dataset(
    body: StoreDatasetRequest,
    registry: DatasetRegistry = Depends(get_dataset_registry),
):
    return await registry.store(body.dataset_id, body.examples, body.metadata)


@router.get("/")
async def list_datasets(registry: DatasetRegistry = Depends(get_dataset_registry)):
    return await registry.list_datasets()


@router.get("/{dataset_id}")
async def load_dataset(
    dataset_id: str,
    registry: DatasetRegistry = Depends(get_dataset_registry),
):
    return await registry.load(dataset_id)
