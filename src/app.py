"""Storefront engine FastAPI application.

Serves the cart, scheduling, delivery and checkout API for every tenant
registered in the store directory.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api import router as storefront_router
from storefront.config import get_settings
from storefront.stores import get_directory
from storefront.utils.logging import add_context, clear_context, configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    settings = get_settings()
    if settings.stores_path:
        get_directory().load(settings.stores_path)
    logger.info("storefront_engine_started", env=settings.env)
    yield


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Engine API",
    description="Cart, scheduling, delivery pricing and order submission for storefront tenants",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def tenant_log_context(request: Request, call_next):
    """Bind the tenant of storefront requests to every log line they produce."""
    parts = request.url.path.strip("/").split("/")
    if len(parts) >= 2 and parts[0] == "storefront":
        add_context(business_id=parts[1])
    try:
        return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(storefront_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "env": get_settings().env})
