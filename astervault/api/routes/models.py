"""Model registry routes — persist, load, list and retire model versions."""

import base64
import binascii
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ...dependencies import get_model_registry
from ...registry.model_registry import ModelRegistry

router = APIRouter(prefix="/models", tags=["models"])


# --- Request bodies ---

class StoreModelRequest(BaseModel):
    model_id: str = Field(min_length=1, max_length=200)
    version: str = Field(min_length=1, max_length=100)
    config: dict
    weights: str = Field(description="Base64-encoded weights blob")
    categories: list[str]
    trained_on: Optional[str] = None
    tags: Optional[list[str]] = None
    description: Optional[str] = Field(default=None, max_length=5000)
    metadata: Optional[dict] = None
    created_at: Optional[datetime] = None


class UpdateStatusRequest(BaseModel):
    status: str = Field(pattern=r"^(active|archived|deprecated)$")


# --- Endpoints ---

@router.post("/", status_code=201)
async def store_model(
    body: StoreModelRequest,
    registry: ModelRegistry = Depends(get_model_registry),
):
    """Persist a model version. 409 if the (model_id, version) pair exists."""
    try:
        weights = base64.b64decode(body.weights, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=422, detail="weights must be valid base64")

    return await registry.store(
        model_id=body.model_id,
        version=body.version,
        config=body.config,
        weights=weights,
        categories=body.categories,
        trained_on=body.trained_on,
        tags=body.tags,
        description=body.description,
        metadata=body.metadata,
        created_at=body.created_at,
    )


@router.get("/{model_id}")
async def load_model(
    model_id: str,
    version: Optional[str] = Query(None),
    registry: ModelRegistry = Depends(get_model_registry),
):
    """Load a version, or the latest active one."""
    record = await registry.load(model_id, version)
    record["weights"] = base64.b64encode(record["weights"]).decode("ascii")
    return record


@router.get("/{model_id}/versions")
async def list_model_versions(
    model_id: str,
    registry: ModelRegistry = Depends(get_model_registry),
):
    versions = await registry.list_versions(model_id)
    return {"model_id": model_id, "versions": versions, "total": len(versions)}


@router.patch("/{model_id}/versions/{version}/status")
async def update_model_status(
    model_id: str,
    version: str,
    body: UpdateStatusRequest,
    registry: ModelRegistry = Depends(get_model_registry),
):
    return await registry.set_status(model_id, version, body.status)
