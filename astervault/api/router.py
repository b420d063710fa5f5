"""Master API router — includes all sub-routers."""

from fastapi import APIRouter

from .routes.datasets import router as datasets_router
from .routes.embeddings import router as embeddings_router
from .routes.models import router as models_router
from .routes.monitoring import router as monitoring_router
from .routes.predictions import router as predictions_router
from .routes.runtime import router as runtime_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(models_router)
api_router.include_router(datasets_router)
api_router.include_router(predictions_router)
api_router.include_router(monitoring_router)
api_router.include_router(embeddings_router)
api_router.include_router(runtime_router)
