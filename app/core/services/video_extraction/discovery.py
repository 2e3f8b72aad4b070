"""Direct media URL discovery strategies.

Three strategies run against a loaded page, in fixed priority:

1. Network observation: every response URL containing ``.mp4`` is recorded by
   :class:`MediaCapture`; the earliest one wins whenever it exists.
2. Interaction probe: clicks the video element and likely play buttons to
   provoke playback, then reports the video element's ``src``.
3. DOM/script scan: reads ``video``/``source`` elements and inline scripts.
"""

from typing import Any

import structlog
from playwright.async_api import Page

from app.core.services.video_extraction.schemas import ProbeResult

logger = structlog.get_logger(__name__)

MEDIA_MARKER = '.mp4'

INTERACTION_PROBE_JS = """
() => {
    const clickElement = (element) => {
        if (!element) return false;
        const rect = element.getBoundingClientRect();
        const event = new MouseEvent('click', {
            bubbles: true,
            cancelable: true,
            view: window,
            clientX: rect.left + rect.width / 2,
            clientY: rect.top + rect.height / 2,
        });
        element.dispatchEvent(event);
        return true;
    };

    const video = document.querySelector('video');
    const videoContainer = document.querySelector(
        ".video-container, .player-container, [id*='player']"
    );
    const playButtons = document.querySelectorAll(
        '[class*="play-button"], .ytp-play-button, .play, .jw-video'
    );

    const actions = [];

    if (video) {
        clickElement(video);
        try {
            const pending = video.play();
            if (pending && pending.catch) pending.catch(() => {});
        } catch (e) {}
        actions.push('Video element clicked and play() called');
    }

    if (videoContainer) {
        clickElement(videoContainer);
        actions.push('Video container clicked');
    }

    if (playButtons.length > 0) {
        playButtons.forEach((btn) => clickElement(btn));
        actions.push(`${playButtons.length} play button(s) clicked`);
    }

    return {
        actions,
        videoSrc: (video && video.src) || null,
    };
}
"""

DOM_SCAN_JS = """
() => {
    const video = document.querySelector('video');
    if (video && video.src) return video.src;

    for (const source of document.querySelectorAll('source')) {
        if (source.src) return source.src;
    }

    for (const script of document.querySelectorAll('script')) {
        const content = script.textContent;
        if (!content) continue;
        const match = content.match(/["'](https?:\\/\\/[^"']+\\.mp4)["']/);
        if (match) return match[1];
    }

    return null;
}
"""


class MediaCapture:
    """Accumulates media URLs seen in network responses for one page.

    URLs are kept in first-seen order with exact-match de-duplication.
    ``first_url`` is the earliest match and never changes once set.
    """

    def __init__(self, marker: str = MEDIA_MARKER):
        self.marker = marker
        self._urls: dict[str, None] = {}

    @property
    def urls(self) -> list[str]:
        return list(self._urls)

    @property
    def first_url(self) -> str | None:
        return next(iter(self._urls), None)

    def add(self, url: str) -> bool:
        """Record ``url`` if it is a media URL not seen before."""
        if self.marker not in url or url in self._urls:
            return False
        self._urls[url] = None
        logger.info('Found video URL', url=url)
        return True

    def observe(self, response: Any) -> None:
        """Response listener for ``page.on('response', ...)``."""
        self.add(response.url)


async def trigger_playback(page: Page) -> ProbeResult:
    """Click the video element and play controls to start playback."""
    logger.info('Looking for video element...')
    raw = await page.evaluate(INTERACTION_PROBE_JS)
    result = ProbeResult.model_validate(raw or {})
    logger.info('Video play attempts', actions=result.actions)
    return result


async def scan_page(page: Page) -> str | None:
    """Read video/source elements, then inline scripts, for a media URL."""
    url = await page.evaluate(DOM_SCAN_JS)
    if url:
        logger.info('Found video URL from page content', url=url)
    return url or None
