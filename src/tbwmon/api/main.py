"""
Main application entry point for the tbwmon API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..core.exceptions import DeviceNotFoundError, TbwmonError
from .dependencies import get_config, get_service, reset_service
from .routes import devices, samples

logger = logging.getLogger(__name__)


def create_app(start_scheduler: bool = True) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        start_scheduler: Start the TBW scheduler on application startup

    Returns:
        FastAPI: Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if start_scheduler:
            try:
                logger.info("Starting TBW scheduler")
                get_service().scheduler.start()
            except Exception as e:
                logger.error(f"Failed to start TBW scheduler: {e}")
        yield
        if start_scheduler:
            logger.info("Stopping TBW scheduler")
            reset_service()

    app = FastAPI(
        title="tbwmon API",
        description="SSD Total Bytes Written monitoring",
        version=__version__,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_config().api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail}
        )

    @app.exception_handler(DeviceNotFoundError)
    async def not_found_handler(request: Request, exc: DeviceNotFoundError) -> JSONResponse:
        """Handle requests addressing unknown drives."""
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": exc.message, "details": exc.details}
        )

    @app.exception_handler(TbwmonError)
    async def tbwmon_error_handler(request: Request, exc: TbwmonError) -> JSONResponse:
        """Handle engine errors."""
        logger.error(f"Request failed: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": exc.message}
        )

    app.include_router(devices.router, prefix="/api/devices", tags=["Devices"])
    app.include_router(samples.router, prefix="/api/samples", tags=["Samples"])

    @app.get("/health")
    def health_check():
        return {"status": "healthy"}

    return app
