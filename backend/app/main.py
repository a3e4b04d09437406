from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import conflicts, generator, health, timetable
from app.core.config import get_settings
from app.core.exceptions import AppError
from app.core.logging import configure_logging
from app.core.middleware import RequestLoggingMiddleware, RequestSizeLimitMiddleware
from app.db.bootstrap import ensure_runtime_schema_compatibility

settings = get_settings()
configure_logging(settings)


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_runtime_schema_compatibility()
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )

app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(generator.router, prefix=settings.api_prefix, tags=["generator"])
app.include_router(timetable.router, prefix=f"{settings.api_prefix}/timetable/entries", tags=["timetable"])
app.include_router(conflicts.router, prefix=f"{settings.api_prefix}/conflicts", tags=["conflicts"])
