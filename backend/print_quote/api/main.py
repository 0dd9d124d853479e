# api/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette import status

from .. import __version__
from ..config import Settings, get_settings, setup_logging
from ..core.exceptions import (
    FileFormatError, FileTooLargeError, MaterialNotFoundError, PrintQuoteError,
    QuoteValidationError, RecordNotFoundError,
)
from ..processes.print_3d.processor import Print3DProcessor
from ..services.quote_service import QuoteService
from .routers import files, materials, quotes

logger = logging.getLogger(__name__)

# First match wins; anything else derived from PrintQuoteError is a 400
ERROR_STATUS_CODES = (
    (QuoteValidationError, status.HTTP_400_BAD_REQUEST),
    (RecordNotFoundError, status.HTTP_404_NOT_FOUND),
    (MaterialNotFoundError, status.HTTP_404_NOT_FOUND),
    (FileTooLargeError, 413),
    (FileFormatError, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
)

def status_code_for(exc: PrintQuoteError) -> int:
    for exc_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_400_BAD_REQUEST

def build_quote_service(settings: Settings) -> QuoteService:
    """Creates the processor and service from settings."""
    processor = Print3DProcessor(rates=settings.pricing_rates(), materials_file=settings.materials_file)
    return QuoteService(
        processor,
        max_upload_size_bytes=settings.max_upload_size_bytes,
        quote_validity_days=settings.quote_validity_days,
    )

# --- FastAPI App Initialization --- #

def create_app(settings: Optional[Settings] = None, service: Optional[QuoteService] = None) -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.

    Args:
        settings: Settings to build the service from. Defaults to the loaded settings.
        service: Prebuilt service to serve; built from settings when omitted.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Print Quote API...")
        yield
        logger.info("Shutting down Print Quote API...")

    app = FastAPI(
        title="Print Quote API",
        description="Analyzes STL models and returns instant 3D printing quotes.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.quote_service = service or build_quote_service(settings)

    # Allow all origins for now, restrict in production
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Include Routers --- #
    app.include_router(materials.router)
    app.include_router(files.router)
    app.include_router(quotes.router)

    # --- General Endpoints --- #
    @app.get("/", tags=["General"])
    def get_root():
        """Returns basic API information."""
        return {
            "service": "Print Quote API",
            "version": __version__,
            "status": "operational",
        }

    @app.get("/health", tags=["General"])
    def get_health(request: Request):
        """Health check endpoint."""
        material_count = len(request.app.state.quote_service.processor.materials)
        return {"status": "ok", "checks": {"materials_loaded": material_count}}

    # --- Exception Handlers --- #
    @app.exception_handler(PrintQuoteError)
    async def print_quote_exception_handler(request: Request, exc: PrintQuoteError):
        status_code = status_code_for(exc)
        logger.warning(f"{type(exc).__name__} on {request.url.path} -> {status_code}: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    # Generic handler for unexpected errors
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception caught at application level")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": f"Internal server error: {type(exc).__name__}"},
        )

    logger.info("Print Quote API configured.")
    return app
