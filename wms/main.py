"""
Warehouse management service

Products, per-product stock levels and orders whose shipment deducts stock
in one all-or-nothing batch.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from pathlib import Path
import subprocess

from wms.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from wms.core_settings import get_settings
from wms.api.errors import register_exception_handlers
from wms.api.products import router as products_router
from wms.api.inventory import router as inventory_router
from wms.api.orders import router as orders_router
from wms.infrastructure.db import engine, init_models

settings = get_settings()

SERVICE_DESCRIPTION = "Warehouse management service"
PROJECT_ROOT = Path(__file__).resolve().parent.parent

setup_logging(service_name=settings.SERVICE_NAME, level=settings.LOG_LEVEL)

logger = get_logger(__name__)

def run_migrations() -> None:
    if not (PROJECT_ROOT / "alembic.ini").exists():
        logger.warning("alembic.ini not found, skipping migrations")
        return
    logger.info("Running database migrations")
    try:
        result = subprocess.run(
            ["alembic", "upgrade", "head"],
            cwd=PROJECT_ROOT,
            capture_output=True,
            text=True,
            check=False
        )
    except OSError as e:
        logger.error(f"Migration error: {e}")
        return
    if result.returncode != 0:
        logger.warning(f"Migration output: {result.stderr}")
    else:
        logger.info("Database migrations completed")

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.SERVICE_NAME} version {settings.SERVICE_VERSION}")

    if settings.RUN_MIGRATIONS:
        run_migrations()

    try:
        init_models()
        logger.info("Database models initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database models: {e}")
        raise

    logger.info(f"{settings.SERVICE_NAME} started successfully")

    yield

    logger.info(f"Shutting down {settings.SERVICE_NAME}")

def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.SERVICE_NAME,
        description=SERVICE_DESCRIPTION,
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    health_service = ServiceHealth(settings.SERVICE_NAME, engine, settings.SERVICE_VERSION)
    app.include_router(health_service.create_health_router())

    for router in (products_router, inventory_router, orders_router):
        app.include_router(router, prefix=settings.API_PREFIX)

    @app.get("/")
    async def root():
        return {
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "status": "running",
            "docs": "/api/docs"
        }

    @app.get("/info")
    async def info():
        return {
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "description": SERVICE_DESCRIPTION,
            "environment": settings.ENVIRONMENT,
            "endpoints": {
                "health": "/health",
                "ready": "/health/ready",
                "live": "/health/live",
                "metrics": "/metrics",
                "docs": "/api/docs",
                "api": settings.API_PREFIX,
            }
        }

    return app

app = create_app()
