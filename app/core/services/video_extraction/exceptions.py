"""Errors raised while resolving a page's direct video URL."""

from pathlib import Path


class VideoExtractionError(Exception):
    """Base class for extraction failures."""


class NavigationError(VideoExtractionError):
    """The page did not finish loading."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f'Failed to load {url}: {reason}')


class DiscoveryError(VideoExtractionError):
    """No detection strategy produced a direct video URL."""

    def __init__(self, url: str):
        self.url = url
        super().__init__('Could not find video URL')


class ExtractionTimeoutError(VideoExtractionError):
    """An extraction exceeded the configured per-request deadline."""

    def __init__(self, url: str, seconds: float):
        self.url = url
        self.seconds = seconds
        super().__init__(f'Extraction of {url} timed out after {seconds:g}s')


class QueueClosedError(VideoExtractionError):
    """The dispatcher shut down before the request was processed."""


class LaunchError(VideoExtractionError):
    """The browser process failed to start."""


class ExtensionUnpackError(VideoExtractionError):
    """The extension archive could not be unpacked."""

    def __init__(self, archive: Path, reason: str):
        self.archive = archive
        self.reason = reason
        super().__init__(f'Error extracting {archive}: {reason}')
