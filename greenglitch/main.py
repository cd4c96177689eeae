"""
Main FastAPI application for the GreenGlitch API.
Serves health, the climate catalog, image generation and metrics.
"""
import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from greenglitch import __version__
from greenglitch.api.routes import generate, health
from greenglitch.core.config import settings
from greenglitch.core.exceptions import AggregationContractError, InvalidInputError
from greenglitch.core.logging import configure_logging
from greenglitch.utils.metrics import router as metrics_router

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Unknown providers or a broken catalog fail here, before any request is served.
    orchestrator = generate.get_orchestrator()
    logger.info("providers_configured", extra={"providers": orchestrator.provider_names})
    yield
    orchestrator.close()
    generate.get_orchestrator.cache_clear()


app = FastAPI(
    title="GreenGlitch API",
    description="Climate awareness images from several image generation providers",
    version=__version__,
    lifespan=lifespan,
)

# CORS
origins = settings.cors_origins_list
if not origins:
    origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = request.headers.get(settings.request_id_header) or uuid.uuid4().hex
    request.state.request_id = request_id
    started = time.monotonic()
    response = await call_next(request)
    response.headers[settings.request_id_header] = request_id
    logger.info(
        "http_request",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
            "latency_ms": int((time.monotonic() - started) * 1000),
        },
    )
    return response


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(AggregationContractError)
async def contract_error_handler(request: Request, exc: AggregationContractError) -> JSONResponse:
    logger.error(
        "aggregation_contract_violated",
        extra={"request_id": getattr(request.state, "request_id", None), "error": str(exc)},
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Routers
app.include_router(health.router, tags=["health"])
app.include_router(generate.router)
app.include_router(metrics_router)
