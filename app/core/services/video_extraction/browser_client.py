"""Shared headless browser used by every extraction."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import structlog
from playwright.async_api import Browser, BrowserContext, Error as PlaywrightError, Page, Playwright, async_playwright

from app.core.configs import app_config
from app.core.services.video_extraction.exceptions import ExtensionUnpackError, LaunchError
from app.core.services.video_extraction.extension import unpack_extension

logger = structlog.get_logger(__name__)

# Fixed browser fingerprint presented to every page
USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/102.0.5005.63 Safari/537.36'
)
VIEWPORT = {'width': 1920, 'height': 1080}

BASE_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--autoplay-policy=no-user-gesture-required',
    '--disable-blink-features=AutomationControlled',
]


def build_launch_args(extension_dir: Path | None = None) -> list[str]:
    """Chromium command-line flags, with extension flags when one is loaded."""
    args = list(BASE_ARGS)
    if extension_dir is not None:
        args.extend(
            [
                f'--disable-extensions-except={extension_dir}',
                f'--load-extension={extension_dir}',
            ]
        )
    return args


class BrowserSession:
    """One Chromium process shared for the lifetime of the service.

    Without an extension a plain browser is launched and every page gets a
    private context. Chromium only loads extensions into a persistent
    context, so with an extension all pages share that context instead.
    """

    def __init__(
        self,
        headless: bool | None = None,
        executable_path: str | None = None,
        channel: str | None = None,
        extension_archive: Path | None = None,
        extension_dir: Path | None = None,
        user_data_dir: Path | None = None,
    ):
        self.headless = app_config.BROWSER_HEADLESS if headless is None else headless
        self.executable_path = executable_path or app_config.browser_executable
        self.channel = channel or app_config.BROWSER_CHANNEL
        self.extension_archive = extension_archive or app_config.EXTENSION_ARCHIVE_PATH
        self.extension_dir = extension_dir or app_config.EXTENSION_DIR
        self.user_data_dir = user_data_dir
        self.ready_markers = app_config.EXTENSION_READY_MARKERS
        self.ready_timeout = app_config.EXTENSION_READY_TIMEOUT_SECONDS

        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None

    async def __aenter__(self):
        """Context manager entry - launch browser."""
        await self.launch()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - close browser."""
        await self.close()

    @property
    def is_running(self) -> bool:
        return self.browser is not None or self.context is not None

    def _prepare_extension(self) -> Path | None:
        """Unpack the configured extension; a failure only disables it."""
        if not self.extension_archive:
            return None
        try:
            return unpack_extension(Path(self.extension_archive), Path(self.extension_dir))
        except ExtensionUnpackError as e:
            logger.error('Continuing without extension', error=str(e))
            return None

    async def launch(self):
        """Launch the browser.

        Raises:
            LaunchError: If Chromium fails to start
        """
        extension_dir = self._prepare_extension()
        args = build_launch_args(extension_dir)
        options = {
            'headless': self.headless,
            'executable_path': self.executable_path,
            'channel': self.channel,
            'args': args,
        }

        logger.info(
            'Launching browser...',
            executable=self.executable_path or 'bundled',
            extension=str(extension_dir) if extension_dir else None,
        )

        try:
            self.playwright = await async_playwright().start()
            if extension_dir is None:
                self.browser = await self.playwright.chromium.launch(**options)
            else:
                user_data_dir = self.user_data_dir or extension_dir.parent / '.browser-profile'
                self.context = await self.playwright.chromium.launch_persistent_context(
                    str(user_data_dir),
                    user_agent=USER_AGENT,
                    viewport=VIEWPORT,
                    **options,
                )
        except PlaywrightError as e:
            await self.close()
            raise LaunchError(f'Failed to launch browser: {e.message}') from e

        if self.context is not None:
            await self._wait_for_extension()

        logger.info('Browser launched')

    async def _wait_for_extension(self):
        """Poll open pages until the extension's welcome page shows up."""
        logger.info('Waiting for extension to load...')
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.ready_timeout

        while loop.time() < deadline:
            for page in self.context.pages:
                try:
                    title = await page.title()
                except PlaywrightError:
                    continue
                if any(marker in title or marker in page.url for marker in self.ready_markers):
                    logger.info('Extension fully loaded', url=page.url)
                    return
            await asyncio.sleep(1)

        logger.info('Extension loading timeout reached, proceeding anyway')

    async def close(self):
        """Close browser instance."""
        if self.context:
            await self.context.close()
            self.context = None
        if self.browser:
            await self.browser.close()
            self.browser = None
        if self.playwright:
            await self.playwright.stop()
            self.playwright = None
        logger.debug('Browser closed')

    @asynccontextmanager
    async def open_page(self, user_agent: str = USER_AGENT, viewport: dict | None = None) -> AsyncIterator[Page]:
        """Open a fresh page, closing it on every exit path.

        Args:
            user_agent: User agent for a private context. Ignored for the
                shared extension context, which was launched with USER_AGENT.
            viewport: Viewport size, defaults to 1920x1080
        """
        viewport = viewport or VIEWPORT

        if self.context is not None:
            page = await self.context.new_page()
            try:
                await page.set_viewport_size(viewport)
                yield page
            finally:
                await page.close()
            return

        if self.browser is None:
            raise RuntimeError("Browser not launched. Use 'async with' or call launch()")

        context = await self.browser.new_context(user_agent=user_agent, viewport=viewport)
        try:
            page = await context.new_page()
            yield page
        finally:
            await context.close()
