"""Tests for the extraction coordinator."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from app.core.services.video_extraction.browser_client import USER_AGENT, VIEWPORT
from app.core.services.video_extraction.discovery import DOM_SCAN_JS
from app.core.services.video_extraction.exceptions import DiscoveryError, NavigationError
from app.core.services.video_extraction.extractor import NetworkQuiescence, VideoExtractor, build_cookie_header

SLEEP = 'app.core.services.video_extraction.extractor.asyncio.sleep'


def make_extractor(session, **kwargs) -> VideoExtractor:
    kwargs.setdefault('settle_window', 0)
    kwargs.setdefault('idle_window_ms', 0)
    return VideoExtractor(session, **kwargs)


class TestBuildCookieHeader:
    def test_joins_name_value_pairs(self):
        cookies = [{'name': 'sid', 'value': 'abc'}, {'name': 'theme', 'value': 'dark'}]
        assert build_cookie_header(cookies) == 'sid=abc; theme=dark'

    def test_empty(self):
        assert build_cookie_header([]) == ''

    def test_split_reconstructs_cookies_in_order(self, faker):
        cookies = [{'name': f'c{i}', 'value': faker.pystr()} for i in range(6)]
        header = build_cookie_header(cookies)
        assert header.split('; ') == [f'{c["name"]}={c["value"]}' for c in cookies]


class TestVideoExtractor:
    """Tests for VideoExtractor.run."""

    @pytest.mark.asyncio
    async def test_network_url_wins_over_dom(self, build_page, build_session, page_url):
        page = build_page(
            network_urls=['https://cdn.example.com/app.js', 'https://cdn.example.com/stream.mp4'],
            probe_src='https://cdn.example.com/element.mp4',
            scan_url='https://cdn.example.com/scan.mp4',
        )
        result = await make_extractor(build_session(page)).run(page_url)

        assert result.download_url == 'https://cdn.example.com/stream.mp4'
        assert DOM_SCAN_JS not in page.scripts

    @pytest.mark.asyncio
    async def test_earliest_network_url_is_kept(self, build_page, build_session, page_url):
        page = build_page(
            network_urls=['https://cdn.example.com/first.mp4'],
            click_urls=['https://cdn.example.com/second.mp4'],
        )
        result = await make_extractor(build_session(page)).run(page_url)
        assert result.download_url == 'https://cdn.example.com/first.mp4'

    @pytest.mark.asyncio
    async def test_settle_window_skipped_when_network_url_present(self, build_page, build_session, page_url):
        page = build_page(network_urls=['https://cdn.example.com/stream.mp4'])
        with patch(SLEEP, new_callable=AsyncMock) as mock_sleep:
            await make_extractor(build_session(page), settle_window=5).run(page_url)
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_network_url_seen_during_settle_window(self, build_page, build_session, page_url):
        """A lazily started stream beats the DOM scan."""
        page = build_page(scan_url='https://cdn.example.com/scan.mp4')

        def arrive(_seconds):
            page.emit_response('https://cdn.example.com/lazy.mp4')

        with patch(SLEEP, new=AsyncMock(side_effect=arrive)) as mock_sleep:
            result = await make_extractor(build_session(page), settle_window=5).run(page_url)

        mock_sleep.assert_awaited_once_with(5)
        assert result.download_url == 'https://cdn.example.com/lazy.mp4'
        assert DOM_SCAN_JS not in page.scripts

    @pytest.mark.asyncio
    async def test_video_src_after_probe(self, build_page, build_session, page_url):
        page = build_page(probe_src='https://cdn.example.com/element.mp4', scan_url='https://cdn.example.com/scan.mp4')
        result = await make_extractor(build_session(page)).run(page_url)

        assert result.download_url == 'https://cdn.example.com/element.mp4'
        assert DOM_SCAN_JS not in page.scripts

    @pytest.mark.asyncio
    async def test_dom_scan_fallback(self, build_page, build_session, page_url):
        page = build_page(scan_url='https://cdn.example.com/scan.mp4')
        result = await make_extractor(build_session(page)).run(page_url)
        assert result.download_url == 'https://cdn.example.com/scan.mp4'

    @pytest.mark.asyncio
    async def test_no_url_raises_and_closes_page(self, build_page, build_session, page_url):
        page = build_page()
        with pytest.raises(DiscoveryError, match='Could not find video URL'):
            await make_extractor(build_session(page)).run(page_url)
        assert page.closed is True

    @pytest.mark.asyncio
    async def test_result_carries_session_context(self, build_page, build_session, page_url):
        page = build_page(
            network_urls=['https://cdn.example.com/stream.mp4'],
            final_url='https://www.example.com/watch/final',
            cookies=[{'name': 'sid', 'value': '1'}, {'name': 'cf', 'value': 'x=y'}],
        )
        session = build_session(page)
        result = await make_extractor(session).run(page_url)

        assert result.user_agent == USER_AGENT
        assert result.referer == 'https://www.example.com/watch/final'
        assert result.cookie_header == 'sid=1; cf=x=y'
        assert page.context.requested_urls == ['https://www.example.com/watch/final']
        assert session.opened == [(USER_AGENT, VIEWPORT)]
        assert page.closed is True

    @pytest.mark.asyncio
    async def test_navigation_uses_quiescence_wait(self, build_page, build_session, page_url):
        page = build_page(network_urls=['https://cdn.example.com/stream.mp4'])
        extractor = make_extractor(build_session(page), wait_until='load', navigation_timeout_ms=1234)
        await extractor.run(page_url)
        assert page.goto_calls == [(page_url, 'load', 1234)]

    @pytest.mark.asyncio
    async def test_navigation_timeout(self, build_page, build_session, page_url):
        page = build_page(goto_error=PlaywrightTimeoutError('Timeout 30000ms exceeded.'))
        with pytest.raises(NavigationError, match='timed out'):
            await make_extractor(build_session(page), navigation_timeout_ms=30000).run(page_url)
        assert page.closed is True

    @pytest.mark.asyncio
    async def test_navigation_failure(self, build_page, build_session, page_url):
        page = build_page(goto_error=PlaywrightError('net::ERR_NAME_NOT_RESOLVED'))
        with pytest.raises(NavigationError, match='ERR_NAME_NOT_RESOLVED'):
            await make_extractor(build_session(page)).run(page_url)
        assert page.closed is True

    @pytest.mark.asyncio
    async def test_navigation_tolerates_two_open_requests(self, build_page, build_session, page_url):
        """A long-lived stream or beacon does not block navigation."""
        page = build_page(
            open_requests=[object(), object()],
            finished_requests=[object(), object(), object()],
            network_urls=['https://cdn.example.com/stream.mp4'],
        )
        extractor = make_extractor(build_session(page), idle_window_ms=20, navigation_timeout_ms=2000)

        result = await extractor.run(page_url)
        assert result.download_url == 'https://cdn.example.com/stream.mp4'

    @pytest.mark.asyncio
    async def test_navigation_fails_when_network_never_settles(self, build_page, build_session, page_url):
        page = build_page(open_requests=[object(), object(), object()])
        extractor = make_extractor(build_session(page), idle_window_ms=20, navigation_timeout_ms=100)

        with pytest.raises(NavigationError, match='network did not settle'):
            await extractor.run(page_url)
        assert page.closed is True


class TestNetworkQuiescence:
    """Tests for the in-flight request tracker."""

    @pytest.mark.asyncio
    async def test_settles_with_requests_at_threshold(self, build_page):
        page = build_page()
        network = NetworkQuiescence(max_inflight=2, idle_window=0.01)
        network.attach(page)
        page.emit('request', 'a')
        page.emit('request', 'b')

        await network.wait(timeout=1)
        assert network.inflight == 2

    @pytest.mark.asyncio
    async def test_settles_after_requests_finish(self, build_page):
        page = build_page()
        network = NetworkQuiescence(max_inflight=2, idle_window=0.01)
        network.attach(page)
        for request in ('a', 'b', 'c', 'd'):
            page.emit('request', request)

        waiter = asyncio.create_task(network.wait(timeout=1))
        await asyncio.sleep(0.02)
        assert not waiter.done()

        page.emit('requestfinished', 'a')
        page.emit('requestfailed', 'b')
        await waiter
        assert network.inflight == 2

    @pytest.mark.asyncio
    async def test_burst_restarts_idle_window(self, build_page):
        page = build_page()
        network = NetworkQuiescence(max_inflight=0, idle_window=0.05)
        network.attach(page)

        loop = asyncio.get_running_loop()
        started = loop.time()
        waiter = asyncio.create_task(network.wait(timeout=1))
        await asyncio.sleep(0.02)
        page.emit('request', 'late')
        await asyncio.sleep(0.02)
        page.emit('requestfinished', 'late')
        await waiter

        # Window restarted at ~0.04s, so settling takes well over one window
        assert loop.time() - started >= 0.08

    @pytest.mark.asyncio
    async def test_times_out(self, build_page):
        page = build_page()
        network = NetworkQuiescence(max_inflight=0, idle_window=0.01)
        network.attach(page)
        page.emit('request', 'stuck')

        with pytest.raises(asyncio.TimeoutError):
            await network.wait(timeout=0.05)
