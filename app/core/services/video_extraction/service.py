"""Video extraction service - process-wide entry point.

Owns the shared browser, the extraction coordinator and the dispatcher that
serializes access to them.
"""

import asyncio
from typing import Literal, Optional

import structlog

from app.core.configs import app_config
from app.core.services.video_extraction.base_dispatcher import ExtractionDispatcher, ExtractionRunner
from app.core.services.video_extraction.browser_client import BrowserSession
from app.core.services.video_extraction.exceptions import ExtractionTimeoutError
from app.core.services.video_extraction.extractor import VideoExtractor
from app.core.services.video_extraction.queue import DirectDispatcher, SerialExtractionQueue
from app.core.services.video_extraction.schemas import ExtractionResult, QueueStatus

logger = structlog.get_logger(__name__)


def create_dispatcher(mode: Literal['serial', 'direct'], runner: ExtractionRunner) -> ExtractionDispatcher:
    """Build the dispatcher for a dispatch mode.

    Raises:
        ValueError: If the mode is unsupported
    """
    if mode == 'serial':
        return SerialExtractionQueue(runner)
    if mode == 'direct':
        return DirectDispatcher(runner)
    raise ValueError(f'Unsupported dispatch mode: {mode}')


class VideoExtractionService:
    """Service for resolving direct video URLs from web pages."""

    def __init__(
        self,
        session: Optional[BrowserSession] = None,
        extractor: Optional[VideoExtractor] = None,
        dispatch_mode: Literal['serial', 'direct'] | None = None,
        timeout: float | None = None,
    ):
        """Initialize extraction service.

        Args:
            session: Browser session, created from config if not provided
            extractor: Coordinator, created for ``session`` if not provided
            dispatch_mode: 'serial' or 'direct', defaults to DISPATCH_MODE
            timeout: Per-request deadline in seconds, defaults to EXTRACTION_TIMEOUT_SECONDS
        """
        self.session = session or BrowserSession()
        self.extractor = extractor or VideoExtractor(self.session)
        self.timeout = timeout if timeout is not None else app_config.EXTRACTION_TIMEOUT_SECONDS
        self.dispatcher = create_dispatcher(dispatch_mode or app_config.DISPATCH_MODE, self._run)

    async def __aenter__(self):
        """Context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        await self.stop()

    async def start(self):
        """Launch the shared browser.

        Raises:
            LaunchError: If the browser fails to start
        """
        if not self.session.is_running:
            await self.session.launch()

    async def stop(self):
        """Stop admitting requests, then close the browser."""
        await self.dispatcher.close()
        await self.session.close()

    async def extract(self, target_url: str) -> ExtractionResult:
        """Resolve the direct video URL behind ``target_url``.

        Requests are admitted through the dispatcher, so with the serial
        policy this waits for every earlier request first.

        Raises:
            NavigationError: If the page does not load
            DiscoveryError: If no video URL is found
            ExtractionTimeoutError: If the optional deadline expires
        """
        logger.info('Starting extraction', url=target_url)
        return await self.dispatcher.submit(target_url)

    async def _run(self, target_url: str) -> ExtractionResult:
        # Deadline covers the run only, not time spent waiting in the queue
        if self.timeout is None:
            return await self.extractor.run(target_url)

        try:
            return await asyncio.wait_for(self.extractor.run(target_url), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ExtractionTimeoutError(target_url, self.timeout) from e

    def status(self) -> QueueStatus:
        return self.dispatcher.status()


# Singleton instance
_service_instance: Optional[VideoExtractionService] = None


def get_video_extraction_service() -> VideoExtractionService:
    """Get the video extraction service (singleton).

    Returns:
        VideoExtractionService instance
    """
    global _service_instance
    if _service_instance is None:
        _service_instance = VideoExtractionService()
    return _service_instance


def reset_video_extraction_service():
    """Reset the singleton service (useful for testing)."""
    global _service_instance
    _service_instance = None
