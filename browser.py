import logging
import os
import sys
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from playwright.sync_api import sync_playwright

from errors import BrowserConnectionError, BrowserLaunchError, NoBrowserFoundError

logger = logging.getLogger(__name__)

DEBUG_HOST = "127.0.0.1"
DEBUG_PORT = 9222

# Probed in order, first existing path wins
CHROME_PATHS: Dict[str, List[str]] = {
    "darwin": [
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        "/Applications/Chromium.app/Contents/MacOS/Chromium",
        "/Applications/Google Chrome Canary.app/Contents/MacOS/Google Chrome Canary",
    ],
    "linux": [
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/snap/bin/chromium",
    ],
    "win32": [
        r"C:\Program Files\Google\Chrome\Application\chrome.exe",
        r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
        r"C:\Program Files\Chromium\Application\chrome.exe",
    ],
}

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    f"--remote-debugging-port={DEBUG_PORT}",
]


@dataclass(frozen=True)
class BrowserEndpoint:
    address: str
    version: str


def _platform_key(platform: str) -> str:
    if platform.startswith("linux"):
        return "linux"
    return platform


def find_chrome(platform: Optional[str] = None, exists: Callable[[str], bool] = os.path.exists) -> str:
    key = _platform_key(platform or sys.platform)
    candidates = CHROME_PATHS.get(key, [])
    for path in candidates:
        if exists(path):
            return path
    raise NoBrowserFoundError(
        f"No Chrome/Chromium installation found (checked {len(candidates)} locations for {key}).",
        remedy="Install Google Chrome, or pass --chrome-endpoint to use a remote browser.",
    )


class BrowserSession:
    """
    Owns the browser for one run: connects to a remote debugging endpoint or
    launches a local headless Chrome, and closes it again.

    release() is idempotent and never raises, so it can sit in a finally
    block after a failed or partial acquire().
    """

    def __init__(
        self,
        playwright_factory=sync_playwright,
        chrome_finder: Callable[[], str] = find_chrome,
    ):
        self._playwright_factory = playwright_factory
        self._chrome_finder = chrome_finder
        self._playwright = None
        self._browser = None
        self.endpoint: Optional[BrowserEndpoint] = None

    def acquire(self, explicit_endpoint: Optional[str] = None) -> BrowserEndpoint:
        try:
            self._playwright = self._playwright_factory().start()
            if explicit_endpoint:
                address = self._connect(explicit_endpoint)
            else:
                address = self._launch()
            self.endpoint = BrowserEndpoint(address=address, version=self._browser.version)
        except BaseException:
            self.release()
            raise
        return self.endpoint

    def _connect(self, endpoint: str) -> str:
        logger.info("Connecting to Chrome at %s", endpoint)
        try:
            self._browser = self._playwright.chromium.connect_over_cdp(endpoint)
        except Exception as e:
            raise BrowserConnectionError(
                f"Could not connect to Chrome at {endpoint}: {e}",
                remedy="Check that the endpoint is reachable and exposes the remote debugging protocol.",
            ) from e
        return endpoint

    def _launch(self) -> str:
        executable = self._chrome_finder()
        logger.info("Launching headless Chrome from %s", executable)
        try:
            self._browser = self._playwright.chromium.launch(
                executable_path=executable,
                headless=True,
                chromium_sandbox=False,
                args=LAUNCH_ARGS,
            )
        except Exception as e:
            raise BrowserLaunchError(f"Failed to launch Chrome from {executable}: {e}") from e
        return f"http://{DEBUG_HOST}:{DEBUG_PORT}/"

    def release(self) -> None:
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None

        if browser is not None:
            try:
                browser.close()
            except Exception as e:
                logger.warning("Failed to close browser: %s", e)

        if playwright is not None:
            try:
                playwright.stop()
            except Exception as e:
                logger.warning("Failed to stop Playwright: %s", e)

    def __enter__(self) -> "BrowserSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
