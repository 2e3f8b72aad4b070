"""Direct video URL extraction.

Drives a shared headless browser to a page, provokes playback and recovers the
direct media URL together with the cookies, referer and user agent needed to
download it.
"""

from app.core.services.video_extraction.exceptions import (
    DiscoveryError,
    ExtensionUnpackError,
    ExtractionTimeoutError,
    LaunchError,
    NavigationError,
    QueueClosedError,
    VideoExtractionError,
)
from app.core.services.video_extraction.schemas import ExtractionRequest, ExtractionResult, QueueStatus
from app.core.services.video_extraction.service import (
    VideoExtractionService,
    get_video_extraction_service,
    reset_video_extraction_service,
)

__all__ = [
    'DiscoveryError',
    'ExtensionUnpackError',
    'ExtractionRequest',
    'ExtractionResult',
    'ExtractionTimeoutError',
    'LaunchError',
    'NavigationError',
    'QueueClosedError',
    'QueueStatus',
    'VideoExtractionError',
    'VideoExtractionService',
    'get_video_extraction_service',
    'reset_video_extraction_service',
]
