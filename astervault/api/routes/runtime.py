"""Runtime routes — predict, embed, persist and restore live models."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...dependencies import get_inference_service, get_model_manager
from ...runtime.inference import InferenceService
from ...runtime.model_manager import ModelManager

router = APIRouter(prefix="/runtime", tags=["runtime"])


class PredictRequest(BaseModel):
    text: str
    top_k: Optional[int] = Field(default=None, ge=1, le=100)
    ground_truth: Optional[str] = None
    log_prediction: Optional[bool] = None


class EmbedRequest(BaseModel):
    text: str


class PersistRequest(BaseModel):
    version: Optional[str] = Field(default=None, max_length=100)
    trained_on: Optional[str] = None
    tags: Optional[list[str]] = None
    description: Optional[str] = None


class RestoreRequest(BaseModel):
    version: Optional[str] = None
    replace: bool = False


@router.get("/models")
async def list_loaded_models(manager: ModelManager = Depends(get_model_manager)):
    return {"models": manager.list_models()}


@router.delete("/models/{model_id}")
async def unload_model(model_id: str, manager: ModelManager = Depends(get_model_manager)):
    removed = manager.delete(model_id)
    return {"success": removed, "model_id": model_id}


@router.post("/models/{model_id}/predict")
async def predict(
    model_id: str,
    body: PredictRequest,
    service: InferenceService = Depends(get_inference_service),
):
    return await service.predict(
        model_id,
        body.text,
        top_k=body.top_k,
        ground_truth=body.ground_truth,
        log_prediction=body.log_prediction,
    )


@router.post("/models/{model_id}/embed")
async def embed(
    model_id: str,
    body: EmbedRequest,
    service: InferenceService = Depends(get_inference_service),
):
    return service.embed(model_id, body.text)


@router.post("/models/{model_id}/persist", status_code=201)
async def persist(
    model_id: str,
    body: PersistRequest,
    service: InferenceService = Depends(get_inference_service),
):
    return await service.persist(
        model_id,
        version=body.version,
        trained_on=body.trained_on,
        tags=body.tags,
        description=body.description,
    )


@router.post("/models/{model_id}/restore")
async def restore(
    model_id: str,
    body: RestoreRequest,
    service: InferenceService = Depends(get_inference_service),
):
    return await service.restore(model_id, version=body.version, replace=body.replace)
