from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from course_registry.api.health import health as _health_handler
from course_registry.api.routers.courses import router as courses_router
from course_registry.config import get_settings
from course_registry.courses.service import get_course_service
from course_registry.metrics import MetricsMiddleware, metrics_app

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, str(settings.log_level).upper(), logging.INFO)
    )
    logger.info(
        "course registry starting (backend=%s, index=%s)",
        settings.course_store_backend,
        settings.course_index_key,
    )
    try:
        yield
    finally:
        if get_course_service.cache_info().currsize:
            get_course_service().close()
            get_course_service.cache_clear()


app = FastAPI(title="Course Registry", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def _malformed_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("rejected malformed %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "request body must be a JSON object"},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(MetricsMiddleware)

app.include_router(courses_router)
app.add_api_route(
    "/health",
    _health_handler,
    methods=["GET"],
    response_model=None,
    tags=["health"],
)


_metrics_router = APIRouter()


@_metrics_router.get("/metrics", include_in_schema=False)
async def _metrics_endpoint(request: Request):
    return await metrics_app(request)


app.include_router(_metrics_router)
