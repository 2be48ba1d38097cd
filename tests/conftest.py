"""Pytest configuration and fixtures."""

import os
import tempfile
from contextlib import asynccontextmanager

# Keep the module-level app from writing into the working directory
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "steprunner-tests.log"))

import pytest

from app.config import Settings
from app.services.registry import RunRegistry
from app.services.run_log import RunLog
from app.worker import StepExecutor


class FakeTimeoutError(Exception):
    """Stands in for playwright's TimeoutError."""


class FakeLocator:
    def __init__(self, page, kind, key):
        self.page = page
        self.kind = kind
        self.key = key

    def _resolve(self, action, timeout):
        self.page.calls.append((action, self.kind, self.key, timeout))
        if self.key not in self.page.elements:
            raise FakeTimeoutError(
                f"Locator.{action}: Timeout {timeout}ms exceeded.\n"
                f"Call log:\n  - waiting for {self.kind} {self.key!r}"
            )

    async def click(self, timeout=None):
        self._resolve("click", timeout)

    async def fill(self, value, timeout=None):
        self._resolve("fill", timeout)
        self.page.filled[self.key] = value

    async def wait_for(self, state="visible", timeout=None):
        self._resolve("wait_for", timeout)


class FakePage:
    """Page exposing only the named elements; anything else times out."""

    def __init__(self, elements=(), screenshot_error=None, goto_error=None):
        self.elements = set(elements)
        self.screenshot_error = screenshot_error
        self.goto_error = goto_error
        self.calls = []
        self.filled = {}
        self.screenshots = 0

    async def goto(self, url, timeout=None):
        self.calls.append(("goto", url, timeout))
        if self.goto_error is not None:
            raise self.goto_error

    def get_by_role(self, role, name=None):
        return FakeLocator(self, role, name)

    def get_by_label(self, label):
        return FakeLocator(self, "label", label)

    def get_by_text(self, text):
        return FakeLocator(self, "text", text)

    async def screenshot(self, type=None, quality=None):
        if self.screenshot_error is not None:
            raise self.screenshot_error
        self.screenshots += 1
        return f"{type}:{quality}:{self.screenshots}".encode()


class FakeContext:
    def __init__(self, page, viewport):
        self.page = page
        self.viewport = viewport
        self.closed = False

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, name, page):
        self.name = name
        self.page = page
        self.contexts = []
        self.closed = False

    async def new_context(self, viewport=None):
        context = FakeContext(self.page, viewport)
        self.contexts.append(context)
        return context


class FakeLauncher:
    """Replacement for ``launch_browser`` that records every browser.

    ``on_close`` runs while the browser shuts down; ``close_error`` is
    raised from the shutdown.
    """

    def __init__(self, page=None, error=None, close_error=None, on_close=None):
        self.page = page or FakePage()
        self.error = error
        self.close_error = close_error
        self.on_close = on_close
        self.browsers = []

    @asynccontextmanager
    async def __call__(self, browser_name, headless=True):
        if self.error is not None:
            raise self.error
        browser = FakeBrowser(browser_name, self.page)
        self.browsers.append(browser)
        try:
            yield browser
        finally:
            browser.closed = True
            if self.on_close is not None:
                self.on_close()
            if self.close_error is not None:
                raise self.close_error


@pytest.fixture
def fake_page():
    return FakePage


@pytest.fixture
def fake_launcher():
    return FakeLauncher


@pytest.fixture
def timeout_error():
    return FakeTimeoutError


@pytest.fixture
def test_settings(tmp_path):
    """Settings isolated from the environment."""
    return Settings(_env_file=None, LOG_FILE=str(tmp_path / "runs.log"), STATIC_DIR=str(tmp_path / "static"))


@pytest.fixture
def run_log(test_settings):
    log = RunLog(test_settings.LOG_FILE)
    yield log
    log.close()


@pytest.fixture
def registry():
    return RunRegistry(ttl=600)


@pytest.fixture
def make_executor(registry, run_log, test_settings):
    """Build an executor around a fake launcher."""

    def _make(launcher):
        return StepExecutor(registry, run_log, settings=test_settings, launcher=launcher)

    return _make
