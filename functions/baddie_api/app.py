"""
FastAPI application entry point for the Daily Baddie API.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from baddie_api.config import Settings, get_settings
from baddie_api.dependencies import ServiceContext, build_context
from baddie_api.errors import BaddieApiError
from baddie_api.routes import router

logger = logging.getLogger(__name__)

LIVENESS_MESSAGE = "Daily Baddie API is running!"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def handle_api_error(request: Request, exc: BaddieApiError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message)


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


async def handle_validation_error(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    )
    return _error(422, details or "Invalid request")


async def handle_generic_exception(request: Request, exc: Exception):
    logger.exception("Unhandled exception for %s %s", request.method, request.url.path)
    return _error(500, str(exc))


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if app.state.owns_context:
        app.state.context.close()


def create_app(
    settings: Optional[Settings] = None, context: Optional[ServiceContext] = None
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Daily Baddie API", version="0.1.0", lifespan=lifespan)
    # Contexts passed in by the caller stay open on shutdown.
    app.state.owns_context = context is None
    app.state.context = context or build_context(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(BaddieApiError, handle_api_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_generic_exception)

    @app.get("/")
    def liveness():
        return {"message": LIVENESS_MESSAGE}

    app.include_router(router, prefix=settings.api_prefix)
    return app
