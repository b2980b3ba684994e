import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from classtime.api.routes import classrooms, health, scheduling
from classtime.core.config import get_settings
from classtime.core.exceptions import AppError
from classtime.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from classtime.db.bootstrap import ensure_runtime_schema_compatibility

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.schema_bootstrap_on_startup:
        ensure_runtime_schema_compatibility()
    else:
        logger.info("Skipping runtime schema bootstrap")
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware, settings=settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(scheduling.router, prefix=f"{settings.api_prefix}/scheduling", tags=["scheduling"])
app.include_router(classrooms.router, prefix=f"{settings.api_prefix}/classrooms", tags=["classrooms"])
