from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from app.core.services.video_extraction.schemas import ExtractionResult, QueueStatus

ExtractionRunner = Callable[[str], Awaitable[ExtractionResult]]


class ExtractionDispatcher(ABC):
    """Interface for admitting extraction requests to the shared browser."""

    def __init__(self, runner: ExtractionRunner):
        """
        Args:
            runner: Coroutine function performing one extraction for a URL
        """
        self.runner = runner

    @abstractmethod
    async def submit(self, target_url: str) -> ExtractionResult:
        """Run an extraction for ``target_url`` and wait for its result.

        Raises:
            Whatever the runner raises for this request
        """
        raise NotImplementedError

    @abstractmethod
    def status(self) -> QueueStatus:
        """Snapshot of pending and in-flight work. Never mutates state."""
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        """Stop admitting work."""
        raise NotImplementedError
