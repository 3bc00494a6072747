import logging

import pytest

from browser import CHROME_PATHS, BrowserSession, find_chrome
from errors import BrowserConnectionError, BrowserLaunchError, NoBrowserFoundError, SetupError


class FakeBrowser:
    def __init__(self, version="120.0.6099.109", close_error=None):
        self.version = version
        self.close_error = close_error
        self.close_count = 0

    def close(self):
        self.close_count += 1
        if self.close_error:
            raise self.close_error


class FakeChromium:
    def __init__(self, browser, connect_error=None, launch_error=None):
        self.browser = browser
        self.connect_error = connect_error
        self.launch_error = launch_error
        self.connect_calls = []
        self.launch_calls = []

    def connect_over_cdp(self, endpoint):
        self.connect_calls.append(endpoint)
        if self.connect_error:
            raise self.connect_error
        return self.browser

    def launch(self, **kwargs):
        self.launch_calls.append(kwargs)
        if self.launch_error:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    def __init__(self, chromium):
        self.chromium = chromium
        self.stop_count = 0

    def stop(self):
        self.stop_count += 1


class FakeFactory:
    """Mimics sync_playwright(): calling it returns something with start()."""

    def __init__(self, playwright):
        self.playwright = playwright

    def __call__(self):
        return self

    def start(self):
        return self.playwright


def make_session(browser=None, chrome="/usr/bin/google-chrome", **chromium_kwargs):
    browser = browser or FakeBrowser()
    playwright = FakePlaywright(FakeChromium(browser, **chromium_kwargs))

    def finder():
        if chrome is None:
            raise NoBrowserFoundError("No Chrome/Chromium installation found")
        return chrome

    return BrowserSession(playwright_factory=FakeFactory(playwright), chrome_finder=finder), playwright, browser


def test_connects_to_explicit_endpoint():
    session, playwright, _ = make_session()

    endpoint = session.acquire("wss://chrome.example.app")

    assert endpoint.address == "wss://chrome.example.app"
    assert endpoint.version == "120.0.6099.109"
    assert playwright.chromium.connect_calls == ["wss://chrome.example.app"]
    assert playwright.chromium.launch_calls == []


def test_connection_failure_is_a_setup_error_and_cleans_up():
    session, playwright, _ = make_session(connect_error=RuntimeError("ECONNREFUSED"))

    with pytest.raises(BrowserConnectionError) as exc:
        session.acquire("ws://127.0.0.1:9999/devtools/browser/x")

    assert isinstance(exc.value, ConnectionError)
    assert isinstance(exc.value, SetupError)
    assert "ECONNREFUSED" in str(exc.value)
    assert playwright.stop_count == 1


def test_launches_local_chrome_headless_without_sandbox():
    session, playwright, _ = make_session()

    endpoint = session.acquire()

    (kwargs,) = playwright.chromium.launch_calls
    assert kwargs["executable_path"] == "/usr/bin/google-chrome"
    assert kwargs["headless"] is True
    assert "--no-sandbox" in kwargs["args"]
    assert "--remote-debugging-port=9222" in kwargs["args"]
    assert ":9222/" in endpoint.address
    assert endpoint.address == "http://127.0.0.1:9222/"


def test_no_local_browser():
    session, playwright, _ = make_session(chrome=None)

    with pytest.raises(NoBrowserFoundError):
        session.acquire()

    assert playwright.chromium.launch_calls == []
    assert playwright.stop_count == 1


def test_launch_failure():
    session, playwright, _ = make_session(launch_error=RuntimeError("Executable doesn't exist"))

    with pytest.raises(BrowserLaunchError):
        session.acquire()
    assert playwright.stop_count == 1


def test_release_is_idempotent():
    session, playwright, browser = make_session()
    session.acquire()

    session.release()
    session.release()

    assert browser.close_count == 1
    assert playwright.stop_count == 1


def test_release_before_acquire_is_safe():
    session, playwright, browser = make_session()
    session.release()
    assert browser.close_count == 0
    assert playwright.stop_count == 0


def test_release_logs_close_failure_and_still_stops_playwright(caplog):
    session, playwright, browser = make_session(browser=FakeBrowser(close_error=RuntimeError("target closed")))
    session.acquire()

    with caplog.at_level(logging.WARNING, logger="browser"):
        session.release()

    assert browser.close_count == 1
    assert playwright.stop_count == 1
    assert "target closed" in caplog.text


def test_context_manager_releases():
    session, playwright, browser = make_session()
    with session:
        session.acquire()
    assert browser.close_count == 1
    assert playwright.stop_count == 1


def test_find_chrome_uses_priority_order():
    present = {"/usr/bin/chromium", "/usr/bin/google-chrome"}
    assert find_chrome("linux", exists=present.__contains__) == "/usr/bin/google-chrome"


def test_find_chrome_falls_through_to_later_paths():
    present = {"/usr/bin/chromium"}
    assert find_chrome("linux", exists=present.__contains__) == "/usr/bin/chromium"


def test_find_chrome_per_platform():
    mac = CHROME_PATHS["darwin"][0]
    assert find_chrome("darwin", exists=lambda p: p == mac) == mac


@pytest.mark.parametrize("platform", ["linux", "win32", "sunos5"])
def test_find_chrome_nothing_installed(platform):
    with pytest.raises(NoBrowserFoundError) as exc:
        find_chrome(platform, exists=lambda p: False)
    assert "--chrome-endpoint" in exc.value.remedy
