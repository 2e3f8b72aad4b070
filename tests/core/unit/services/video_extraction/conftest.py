"""In-memory stand-ins for the Playwright page and browser session."""

from collections import defaultdict
from contextlib import asynccontextmanager

import pytest

from app.core.services.video_extraction.browser_client import USER_AGENT, VIEWPORT
from app.core.services.video_extraction.discovery import DOM_SCAN_JS, INTERACTION_PROBE_JS


class FakeResponse:
    def __init__(self, url: str):
        self.url = url


class FakeContext:
    def __init__(self, cookies: list[dict]):
        self._cookies = cookies
        self.requested_urls: list[str] | None = None

    async def cookies(self, urls=None):
        self.requested_urls = urls
        return list(self._cookies)


class FakePage:
    """Scripted page.

    ``network_urls`` arrive during navigation, ``click_urls`` when the play
    probe runs. ``open_requests`` start during navigation and never
    finish. ``probe_src`` and ``scan_url`` are what the in-page scripts return.
    """

    def __init__(
        self,
        network_urls=(),
        click_urls=(),
        probe_src=None,
        scan_url=None,
        final_url=None,
        cookies=(),
        goto_error=None,
        open_requests=(),
        finished_requests=(),
    ):
        self.network_urls = list(network_urls)
        self.click_urls = list(click_urls)
        self.probe_src = probe_src
        self.scan_url = scan_url
        self.final_url = final_url
        self.context = FakeContext(list(cookies))
        self.goto_error = goto_error
        self.open_requests = list(open_requests)
        self.finished_requests = list(finished_requests)

        self.url = 'about:blank'
        self.listeners = defaultdict(list)
        self.goto_calls: list[tuple] = []
        self.scripts: list[str] = []
        self.closed = False

    def on(self, event, handler):
        self.listeners[event].append(handler)

    def emit(self, event, payload):
        for handler in self.listeners[event]:
            handler(payload)

    def emit_response(self, url: str):
        self.emit('response', FakeResponse(url))

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append((url, wait_until, timeout))
        if self.goto_error is not None:
            raise self.goto_error
        self.url = self.final_url or url
        for request in self.open_requests + self.finished_requests:
            self.emit('request', request)
        for request in self.finished_requests:
            self.emit('requestfinished', request)
        for network_url in self.network_urls:
            self.emit_response(network_url)

    async def evaluate(self, script):
        self.scripts.append(script)
        if script == INTERACTION_PROBE_JS:
            for network_url in self.click_urls:
                self.emit_response(network_url)
            actions = ['Video element clicked and play() called'] if self.probe_src else []
            return {'actions': actions, 'videoSrc': self.probe_src}
        if script == DOM_SCAN_JS:
            return self.scan_url
        raise AssertionError(f'Unexpected script: {script[:40]}')


class FakeSession:
    def __init__(self, page: FakePage):
        self.page = page
        self.opened: list[tuple] = []
        self.is_running = True

    @asynccontextmanager
    async def open_page(self, user_agent=USER_AGENT, viewport=None):
        self.opened.append((user_agent, viewport or VIEWPORT))
        try:
            yield self.page
        finally:
            self.page.closed = True


@pytest.fixture
def page_url(faker) -> str:
    return faker.url() + 'watch/' + faker.slug()


@pytest.fixture
def build_page():
    return FakePage


@pytest.fixture
def build_session():
    return FakeSession
