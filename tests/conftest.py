"""
Shared fixtures and fakes. No real browser or Lighthouse binary is needed.
"""

import pytest

from browser import BrowserEndpoint
from config import AuditConfig

ENV_VARS = ["LIGHTHOUSE_PATH", "CHROME_ENDPOINT", "AUDIT_CONCURRENCY", "AUDIT_OUTPUT_DIR", "AUDIT_TIMEOUT"]


class FakeSession:
    """Stands in for BrowserSession; counts acquire/release calls."""

    def __init__(self, endpoint=None, acquire_error=None):
        self.endpoint = endpoint or BrowserEndpoint("ws://127.0.0.1:9222/devtools/browser", "HeadlessChrome/120.0")
        self.acquire_error = acquire_error
        self.acquired_with = []
        self.release_count = 0

    def acquire(self, explicit_endpoint=None):
        self.acquired_with.append(explicit_endpoint)
        if self.acquire_error:
            raise self.acquire_error
        return self.endpoint

    def release(self):
        self.release_count += 1


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def endpoint():
    return BrowserEndpoint("ws://127.0.0.1:9222/devtools/browser", "HeadlessChrome/120.0")


@pytest.fixture
def config(tmp_path):
    return AuditConfig(output_dir=str(tmp_path / "reports"))


@pytest.fixture
def fake_session():
    return FakeSession()
