"""
CRUD Scaffold Application Factory

Builds a FastAPI application that mounts one router per registered CRUD controller.
"""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from crud_scaffold.api.crud import CrudController, error_response
from crud_scaffold.common.errors import AppError
from crud_scaffold.config import get_settings
from crud_scaffold.db.session import init_db
from crud_scaffold.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application Lifecycle Management

    Creates the tables of every imported entity on startup.
    """
    await init_db()
    yield


def _allowed_origins() -> list[str]:
    settings = get_settings()
    allowed_origins_str = settings.ALLOWED_ORIGINS.strip()
    if allowed_origins_str:
        return [origin.strip() for origin in allowed_origins_str.split(",") if origin.strip()]
    # In development mode with DEBUG=True, allow localhost origins
    if settings.DEBUG:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]
    return []


def create_app(*controllers: CrudController) -> FastAPI:
    """
    Create the application

    Args:
        controllers: CRUD controllers to mount under API_PREFIX

    Returns:
        FastAPI: Configured application
    """
    setup_logging()
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Generic CRUD endpoints with filtering and pagination",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        """
        Handle application custom exceptions

        Same rendering as the CRUD routes: server-side details only in DEBUG mode.
        """
        return error_response(exc)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """
        Handle uncaught exceptions

        Stack traces are logged but never returned to clients outside DEBUG mode.
        """
        logger.error(
            "Uncaught exception: %s\nPath: %s\nTraceback:\n%s",
            str(exc),
            request.url.path,
            traceback.format_exc(),
        )
        if get_settings().DEBUG:
            return JSONResponse(
                status_code=500,
                content={
                    "error": {
                        "message": str(exc),
                        "type": type(exc).__name__,
                        "code": "internal_error",
                    }
                },
            )
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "message": "Server Error",
                    "type": "server_error",
                    "code": "internal_error",
                }
            },
        )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    for controller in controllers:
        app.include_router(controller.router, prefix=settings.API_PREFIX)
        logger.info(
            "Registered CRUD routes for %s at %s%s",
            controller.config.name, settings.API_PREFIX, controller.router.prefix,
        )

    return app
