import sys
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BeforeValidator, computed_field
from pydantic_settings import NoDecode

from app.core.configs.base_config import BaseConfig

# Default Chromium locations per platform, checked in order
_PLATFORM_BROWSERS: dict[str, tuple[str, ...]] = {
    'linux': ('/usr/bin/chromium-browser', '/usr/bin/chromium'),
    'darwin': ('/Applications/Google Chrome.app/Contents/MacOS/Google Chrome',),
    'win32': (
        r'C:\Program Files\Google\Chrome\Application\chrome.exe',
        r'C:\Program Files (x86)\Google\Chrome\Application\chrome.exe',
    ),
}


class AppConfig(BaseConfig):
    ENVIRONMENT: Literal['local', 'staging', 'production', 'testing'] = 'local'
    PROJECT_NAME: str = 'Video URL Extractor'

    # Server
    HOST: str = '0.0.0.0'
    PORT: int = 3000

    # Logging
    LOG_LEVEL: str = 'INFO'
    LOG_HANDLERS: Annotated[list[Literal['stream', 'file']], NoDecode, BeforeValidator(BaseConfig._parse_list)] = [
        'stream',
        'file',
    ]
    LOG_DIR: Path | None = None

    # Browser
    BROWSER_EXECUTABLE_PATH: str | None = None
    BROWSER_HEADLESS: bool = True
    BROWSER_CHANNEL: str | None = None

    # Optional packaged extension, unpacked before launch
    EXTENSION_ARCHIVE_PATH: Path | None = None
    EXTENSION_DIR: Path = Path('./extension')
    EXTENSION_READY_MARKERS: Annotated[list[str], NoDecode, BeforeValidator(BaseConfig._parse_list)] = [
        'Thank you for installing AdGuard',
        'welcome.adguard.com/v2/thankyou.html',
    ]
    EXTENSION_READY_TIMEOUT_SECONDS: float = 30.0

    # Extraction
    # Page load event, then at most NAVIGATION_MAX_INFLIGHT open requests for NAVIGATION_IDLE_MS
    NAVIGATION_WAIT_UNTIL: Literal['load', 'domcontentloaded', 'networkidle', 'commit'] = 'load'
    NAVIGATION_TIMEOUT_MS: int = 30000
    NAVIGATION_MAX_INFLIGHT: int = 2
    NAVIGATION_IDLE_MS: int = 500
    SETTLE_WINDOW_SECONDS: float = 5.0
    DISPATCH_MODE: Literal['serial', 'direct'] = 'serial'
    # No deadline by default: a stuck navigation holds the queue until its own timeout
    EXTRACTION_TIMEOUT_SECONDS: float | None = None

    @computed_field  # type: ignore[misc]
    @property
    def browser_executable(self) -> str | None:
        """Explicit executable path, else the platform default when installed."""
        if self.BROWSER_EXECUTABLE_PATH:
            return self.BROWSER_EXECUTABLE_PATH
        for candidate in _PLATFORM_BROWSERS.get(sys.platform, ()):
            if Path(candidate).exists():
                return candidate
        # Fall back to the Chromium bundled with Playwright
        return None


app_config = AppConfig()
