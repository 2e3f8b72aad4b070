"""FastAPI application.

Usage:
    python -m app.server
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.routes import MISSING_VIDEO_URL, router
from app.core.configs import app_config
from app.core.deps import logger
from app.core.services.video_extraction import VideoExtractionService


def create_app(service: VideoExtractionService | None = None) -> FastAPI:
    """Build the application around an extraction service.

    The service's browser is launched on startup and closed on shutdown.
    A launch failure aborts startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        extraction_service = service or VideoExtractionService()
        await extraction_service.start()
        app.state.extraction_service = extraction_service
        logger.info('Extraction service ready', dispatch_mode=app_config.DISPATCH_MODE)
        try:
            yield
        finally:
            await extraction_service.stop()
            logger.info('Extraction service stopped')

    app = FastAPI(title=app_config.PROJECT_NAME, lifespan=lifespan)
    app.include_router(router)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_request: Request, exc: RequestValidationError):
        logger.warning('Rejected request body', errors=exc.errors())
        return JSONResponse(status_code=400, content={'error': MISSING_VIDEO_URL})

    return app
