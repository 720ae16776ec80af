from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.admin.routes import admin_statistics
from app.admin.schemas.admin_statistics import HealthResponse, ServiceInfoResponse
from app.core import firebase as firebase_module
from app.core.config import settings
from app.core.datetime_utils import to_iso_string
from app.core.exceptions import register_exception_handlers
from app.core.log_config import RequestLoggingMiddleware, setup_logging

setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.STORE_BACKEND == "firestore":
        logger.info("initializing_firebase")
        firebase_module.init_firebase()

    logger.info(
        "service_started",
        environment=settings.ENVIRONMENT,
        store_backend=settings.STORE_BACKEND,
        firebase_initialized=firebase_module.is_initialized(),
    )

    yield

    logger.info("service_shutting_down")


app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="Cross-user financial statistics for the Payvost admin dashboard",
    version=settings.VERSION,
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(admin_statistics.router)


@app.get("/", response_model=ServiceInfoResponse)
async def root() -> ServiceInfoResponse:
    return ServiceInfoResponse(
        service="Payvost Admin Stats Service",
        version=settings.VERSION,
        endpoints={
            "health": "GET /health",
            "stats": "GET /stats",
            "volumeOverTime": "GET /volume-over-time",
            "transactions": "GET /transactions",
            "currencyDistribution": "GET /currency-distribution",
        },
    )


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        service=settings.SERVICE_NAME,
        timestamp=to_iso_string(datetime.now(UTC)),
        firebase_initialized=firebase_module.is_initialized(),
    )


def run() -> None:
    """Console entry point: serve the app with uvicorn on PORT."""
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)
