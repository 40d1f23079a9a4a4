import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api import devices, users
from app.config.settings import get_settings
from app.core.exceptions import NotFound, StoreQueryFailed, ValidationFailed
from app.core.redis_client import (
    close_redis_client,
    get_redis_client,
    store_reachable,
)

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await get_redis_client()
    logger.info(f"Telemetry dashboard started (store: {get_settings().redis_url})")
    yield
    await close_redis_client()
    logger.info("Telemetry dashboard stopped")


app = FastAPI(title="Telemetry Dashboard", version="1.0.0", lifespan=lifespan)

app.include_router(devices.router, prefix="/api", tags=["devices"])
app.include_router(users.router, prefix="/api", tags=["users"])


@app.get("/health")
async def health_check():
    status = "healthy" if await store_reachable() else "degraded"
    return {"status": status, "service": "telemetry-dashboard"}


@app.exception_handler(StoreQueryFailed)
async def store_error_handler(request: Request, exc: StoreQueryFailed):
    logger.error(f"Error in {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(ValidationFailed)
async def validation_error_handler(request: Request, exc: ValidationFailed):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"error": str(exc)})
