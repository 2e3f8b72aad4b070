#!/usr/bin/env python3
"""Debug script to see which media requests and elements a page exposes.

Usage:
    python scripts/debug_page_media.py <page_url> [--wait SECONDS]
"""

import argparse
import asyncio
import os
import sys

from playwright.async_api import async_playwright

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.services.video_extraction.browser_client import USER_AGENT, VIEWPORT, build_launch_args  # noqa: E402
from app.core.services.video_extraction.discovery import DOM_SCAN_JS, INTERACTION_PROBE_JS  # noqa: E402

MEDIA_HINTS = (".mp4", ".m3u8", ".webm", "video", "media")

PAGE_STATE_JS = """
() => Array.from(document.querySelectorAll('video')).map(v => ({
    src: v.src,
    currentSrc: v.currentSrc,
    paused: v.paused,
    sources: Array.from(v.querySelectorAll('source')).map(s => ({src: s.src, type: s.type})),
}))
"""


async def main(url: str, wait: float):
    print(f"Monitoring network for: {url}\n")

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True, args=build_launch_args())
        context = await browser.new_context(user_agent=USER_AGENT, viewport=VIEWPORT)
        page = await context.new_page()

        media_urls = []

        def handle_response(response):
            if any(hint in response.url.lower() for hint in MEDIA_HINTS):
                media_urls.append((response.status, response.url))
                print(f"[MEDIA] {response.status} {response.url[:120]}")

        page.on("response", handle_response)

        try:
            await page.goto(url, wait_until="networkidle", timeout=30000)
            print("✓ Page loaded (networkidle)")

            probe = await page.evaluate(INTERACTION_PROBE_JS)
            print(f"✓ Play attempts: {probe['actions']}")
            print(f"✓ Video src after probe: {probe['videoSrc']}")

            await asyncio.sleep(wait)

            print(f"\n📹 Video elements: {await page.evaluate(PAGE_STATE_JS)}")
            print(f"📹 DOM/script scan: {await page.evaluate(DOM_SCAN_JS)}")

            cookies = await context.cookies([page.url])
            print(f"🍪 Cookies: {len(cookies)}")
            print(f"↪  Final URL: {page.url}")

            print(f"\n{'='*60}")
            print(f"Found {len(media_urls)} media-like responses")
            print(f"{'='*60}")
        finally:
            await browser.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("url")
    parser.add_argument("--wait", type=float, default=5.0, help="Seconds to keep watching after the play probe")
    args = parser.parse_args()

    asyncio.run(main(args.url, args.wait))
