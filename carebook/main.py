from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from carebook.api.middleware import request_context_middleware
from carebook.api.v1.api import api_router
from carebook.core.config import settings
from carebook.core.database import close_db, init_db
from carebook.core.exceptions import CarebookError, error_body
from carebook.core.logging import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info(
        "Starting application",
        project=settings.PROJECT_NAME,
        environment=settings.ENVIRONMENT,
    )
    await init_db()
    yield
    await close_db()
    logger.info("Application stopped")


async def carebook_error_handler(request: Request, exc: CarebookError):
    logger.info(
        "Request rejected",
        path=request.url.path,
        code=exc.kind,
        message=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.to_dict()))


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [
        str(part)
        for part in first.get("loc", ())
        if part not in ("body", "query", "path", "header")
    ]
    error = {
        "message": first.get("msg", "Invalid request"),
        "code": "validation_error",
    }
    if location:
        error["field"] = ".".join(location)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content=error_body(error)
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_context_middleware)

    app.add_exception_handler(CarebookError, carebook_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)
    return app


app = create_app()
