"""Runs one extraction against the shared browser."""

import asyncio
from collections.abc import Iterable, Mapping

import structlog
from playwright.async_api import Error as PlaywrightError, Page, TimeoutError as PlaywrightTimeoutError

from app.core.configs import app_config
from app.core.services.video_extraction.browser_client import USER_AGENT, VIEWPORT, BrowserSession
from app.core.services.video_extraction.discovery import MediaCapture, scan_page, trigger_playback
from app.core.services.video_extraction.exceptions import DiscoveryError, NavigationError
from app.core.services.video_extraction.schemas import ExtractionResult

logger = structlog.get_logger(__name__)


def build_cookie_header(cookies: Iterable[Mapping[str, str]]) -> str:
    """Join browser cookies into a ``Cookie`` header value, keeping their order."""
    return '; '.join(f'{cookie["name"]}={cookie["value"]}' for cookie in cookies)


class NetworkQuiescence:
    """Tracks in-flight requests on a page and waits for them to settle.

    Settled means at most ``max_inflight`` requests stayed open for a whole
    ``idle_window``, the same rule as Puppeteer's ``networkidle2``.
    """

    def __init__(self, max_inflight: int = 2, idle_window: float = 0.5):
        self.max_inflight = max_inflight
        self.idle_window = idle_window
        self._inflight: set = set()
        self._busy = asyncio.Event()
        self._quiet = asyncio.Event()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def attach(self, page: Page) -> None:
        page.on('request', self._started)
        page.on('requestfinished', self._finished)
        page.on('requestfailed', self._finished)

    def _started(self, request) -> None:
        self._inflight.add(request)
        if self.inflight > self.max_inflight:
            self._busy.set()

    def _finished(self, request) -> None:
        self._inflight.discard(request)
        if self.inflight <= self.max_inflight:
            self._quiet.set()

    async def wait(self, timeout: float) -> None:
        """Wait until the network settles.

        Raises:
            asyncio.TimeoutError: If it does not settle within ``timeout`` seconds
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise asyncio.TimeoutError()

            if self.inflight > self.max_inflight:
                self._quiet.clear()
                await asyncio.wait_for(self._quiet.wait(), timeout=remaining)
                continue

            # Quiet now; any burst above the threshold restarts the window
            self._busy.clear()
            try:
                await asyncio.wait_for(self._busy.wait(), timeout=min(self.idle_window, remaining))
            except asyncio.TimeoutError:
                if self.idle_window <= remaining:
                    return
                raise


class VideoExtractor:
    """Resolves the direct video URL behind a page plus its session context."""

    def __init__(
        self,
        session: BrowserSession,
        wait_until: str | None = None,
        navigation_timeout_ms: int | None = None,
        settle_window: float | None = None,
        max_inflight: int | None = None,
        idle_window_ms: int | None = None,
    ):
        self.session = session
        self.wait_until = wait_until or app_config.NAVIGATION_WAIT_UNTIL
        self.navigation_timeout_ms = navigation_timeout_ms or app_config.NAVIGATION_TIMEOUT_MS
        self.settle_window = app_config.SETTLE_WINDOW_SECONDS if settle_window is None else settle_window
        self.max_inflight = app_config.NAVIGATION_MAX_INFLIGHT if max_inflight is None else max_inflight
        self.idle_window_ms = app_config.NAVIGATION_IDLE_MS if idle_window_ms is None else idle_window_ms

    async def run(self, target_url: str) -> ExtractionResult:
        """Extract the download URL, cookies, referer and user agent for a page.

        Strategy priority: a network-observed media URL, then the video
        element's ``src`` reported by the play probe, then a DOM/script scan.

        Args:
            target_url: Page URL hosting the video

        Returns:
            ExtractionResult for the page

        Raises:
            NavigationError: If the page does not finish loading
            DiscoveryError: If no strategy yields a URL
        """
        log = logger.bind(url=target_url)

        async with self.session.open_page(user_agent=USER_AGENT, viewport=VIEWPORT) as page:
            capture = MediaCapture()
            page.on('response', capture.observe)
            network = NetworkQuiescence(self.max_inflight, self.idle_window_ms / 1000)
            network.attach(page)

            log.info('Opening video page')
            await self._navigate(page, target_url, network)
            log.info('Page loaded successfully')

            probe = await trigger_playback(page)

            if capture.first_url is None:
                log.info('Waiting for video to load...', seconds=self.settle_window)
                await asyncio.sleep(self.settle_window)

            download_url = capture.first_url
            if download_url:
                log.info('Resolved from network', download_url=download_url, captured=len(capture.urls))
            elif probe.video_src:
                download_url = probe.video_src
                log.info('Resolved from video element', download_url=download_url)
            else:
                download_url = await scan_page(page)

            if not download_url:
                log.warning('All strategies failed', captured=len(capture.urls))
                raise DiscoveryError(target_url)

            log.info('Extracting cookies...')
            referer = page.url
            cookies = await page.context.cookies([referer])
            log.info('Found cookies', count=len(cookies))

            return ExtractionResult(
                user_agent=USER_AGENT,
                cookie_header=build_cookie_header(cookies),
                referer=referer,
                download_url=download_url,
            )

    async def _navigate(self, page: Page, target_url: str, network: NetworkQuiescence) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            await page.goto(target_url, wait_until=self.wait_until, timeout=self.navigation_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationError(target_url, f'timed out after {self.navigation_timeout_ms}ms') from e
        except PlaywrightError as e:
            raise NavigationError(target_url, e.message) from e

        remaining = self.navigation_timeout_ms / 1000 - (loop.time() - started)
        try:
            await network.wait(timeout=remaining)
        except asyncio.TimeoutError as e:
            raise NavigationError(
                target_url,
                f'network did not settle to {self.max_inflight} open requests within {self.navigation_timeout_ms}ms',
            ) from e
