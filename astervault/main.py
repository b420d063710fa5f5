"""AsterVault — persistence, monitoring and retrieval for ELM text classifiers.

FastAPI entry point with lifespan management.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from . import __version__
from .api.router import api_router
from .dependencies import get_app_config, get_backing_store, get_inference_service
from .middleware.error_handler import register_error_handlers
from .middleware.request_id import RequestIDMiddleware
from .utils.logging import get_logger, setup_logging

config = get_app_config()
setup_logging(
    app_name=config.app_name,
    debug=config.debug,
    log_dir=config.log_dir,
    log_max_bytes=config.log_max_bytes,
    log_backup_count=config.log_backup_count,
)
logger = get_logger("astervault.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: connect the backing store, dispose it on shutdown."""
    logger.info("astervault_starting", host=config.host, port=config.port)
    store = get_backing_store()
    await store.connect()
    if config.model_factory:
        # Resolve the factory import path now so a bad path stops startup
        get_inference_service()
    logger.info("astervault_started", database=store.engine.dialect.name)

    yield

    logger.info("astervault_shutting_down")
    await store.disconnect()


app = FastAPI(
    title="ASTERVAULT",
    description="Model registry, prediction ledger, metrics and vector search for ELM classifiers",
    version=__version__,
    lifespan=lifespan,
)

register_error_handlers(app)

# Added last so it runs first
app.add_middleware(RequestIDMiddleware)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"name": config.app_name, "version": __version__, "status": "operational"}


@app.get("/health")
async def health():
    """Backing store health."""
    store_status = await get_backing_store().health_check()
    return {
        "status": "healthy" if store_status["healthy"] else "degraded",
        "version": __version__,
        "backing_store": store_status,
    }


def main():
    """Run the AsterVault server."""
    uvicorn.run(
        "astervault.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )


if __name__ == "__main__":
    main()
