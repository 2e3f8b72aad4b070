"""Dispatch policies for extraction requests.

``SerialExtractionQueue`` admits one extraction at a time in arrival order,
which is what a single shared browser needs. ``DirectDispatcher`` runs every
request as soon as it arrives.
"""

import asyncio
from collections import deque

import structlog

from app.core.services.video_extraction.base_dispatcher import ExtractionDispatcher, ExtractionRunner
from app.core.services.video_extraction.exceptions import QueueClosedError
from app.core.services.video_extraction.schemas import ExtractionRequest, ExtractionResult, QueueStatus

logger = structlog.get_logger(__name__)


class SerialExtractionQueue(ExtractionDispatcher):
    """FIFO queue with at most one extraction in flight."""

    def __init__(self, runner: ExtractionRunner):
        super().__init__(runner)
        self._pending: deque[tuple[ExtractionRequest, asyncio.Future]] = deque()
        self._current: ExtractionRequest | None = None
        self._draining = False
        self._closed = False
        self._worker: asyncio.Task | None = None

    @property
    def is_processing(self) -> bool:
        return self._current is not None

    async def submit(self, target_url: str) -> ExtractionResult:
        if self._closed:
            raise QueueClosedError('Extraction queue is closed')

        request = ExtractionRequest(target_url=target_url)
        future = asyncio.get_running_loop().create_future()
        self._pending.append((request, future))
        logger.info('Request queued', url=target_url, position=len(self._pending))

        if not self._draining:
            # Set before the task starts so a second submit cannot spawn another worker
            self._draining = True
            self._worker = asyncio.create_task(self._drain())

        return await future

    async def _drain(self) -> None:
        try:
            while self._pending:
                request, future = self._pending.popleft()
                if future.done():
                    # Caller went away before its turn
                    continue

                self._current = request
                logger.info('Processing request', url=request.target_url, remaining=len(self._pending))
                try:
                    result = await self.runner(request.target_url)
                except Exception as e:
                    logger.warning('Request failed', url=request.target_url, error=str(e))
                    if not future.done():
                        future.set_exception(e)
                else:
                    logger.info('Request completed', url=request.target_url)
                    if not future.done():
                        future.set_result(result)
                finally:
                    self._current = None
        finally:
            self._draining = False
            self._worker = None

    def status(self) -> QueueStatus:
        return QueueStatus(
            queue_length=len(self._pending),
            is_processing=self.is_processing,
            currently_processing=self._current.target_url if self._current else None,
        )

    async def close(self) -> None:
        """Reject waiting requests and let the in-flight one finish."""
        self._closed = True
        while self._pending:
            request, future = self._pending.popleft()
            if not future.done():
                future.set_exception(QueueClosedError(f'Service shut down before {request.target_url} was processed'))
        if self._worker is not None:
            await asyncio.gather(self._worker, return_exceptions=True)


class DirectDispatcher(ExtractionDispatcher):
    """Runs every request immediately, without queueing."""

    def __init__(self, runner: ExtractionRunner):
        super().__init__(runner)
        self._in_flight: list[ExtractionRequest] = []

    async def submit(self, target_url: str) -> ExtractionResult:
        request = ExtractionRequest(target_url=target_url)
        self._in_flight.append(request)
        try:
            return await self.runner(target_url)
        finally:
            self._in_flight.remove(request)

    def status(self) -> QueueStatus:
        return QueueStatus(
            queue_length=0,
            is_processing=bool(self._in_flight),
            currently_processing=self._in_flight[0].target_url if self._in_flight else None,
        )

    async def close(self) -> None:
        return None
