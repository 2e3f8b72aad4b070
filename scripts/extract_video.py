#!/usr/bin/env python
"""Resolve the direct video URL behind a page without running the server.

Usage:
    python scripts/extract_video.py <page_url> [--headed]

Examples:
    python scripts/extract_video.py "https://example.com/watch/123"

    # Watch the browser while it works
    python scripts/extract_video.py "https://example.com/watch/123" --headed
"""

import argparse
import asyncio
import json
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


async def main(page_url: str, headless: bool) -> int:
    # Import here so --help works without the full setup
    import app.core.deps  # noqa: F401  configures logging
    from app.core.services.video_extraction import VideoExtractionError, VideoExtractionService
    from app.core.services.video_extraction.browser_client import BrowserSession

    print("\n🚀 Starting video extraction...")
    print(f"   URL: {page_url}\n")

    async with VideoExtractionService(session=BrowserSession(headless=headless)) as service:
        try:
            result = await service.extract(page_url)
        except VideoExtractionError as e:
            print(f"\n❌ {e}")
            return 1

    print("✅ Extraction complete!\n")
    print(json.dumps(result.model_dump(by_alias=True), indent=2))
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("page_url", help="Page hosting the video")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.page_url, headless=not args.headed)))
