"""PageLens test configuration: shared fixtures for unit tests."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache(monkeypatch):
    """Clear the settings LRU cache between tests and zero the pre-work pause."""
    from pagelens.settings.config import get_settings

    monkeypatch.setenv("PAGELENS_BROWSER__PAUSE_MIN_MS", "0")
    monkeypatch.setenv("PAGELENS_BROWSER__PAUSE_MAX_MS", "0")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


# ---------------------------------------------------------------------------
# Fake Playwright objects
# ---------------------------------------------------------------------------


def make_fake_page(url: str = "https://example.com/", *, status: int | None = 200, title: str = "Example") -> MagicMock:
    """A ``Page`` stand-in whose async methods are ``AsyncMock``s."""
    page = MagicMock(name="page")
    page.url = url
    page.goto = AsyncMock(return_value=MagicMock(status=status) if status is not None else None)
    page.title = AsyncMock(return_value=title)
    page.eval_on_selector_all = AsyncMock(return_value=[])
    page.evaluate = AsyncMock(return_value={"width": 1280, "height": 720})
    page.screenshot = AsyncMock(return_value=b"\x89PNG\r\n")
    page.wait_for_load_state = AsyncMock()
    return page


def make_fake_browser() -> MagicMock:
    """A ``Browser`` stand-in recording every context it creates."""
    browser = MagicMock(name="browser")
    browser.contexts_created = []

    async def new_context(**kwargs: Any) -> MagicMock:
        context = MagicMock(name="context")
        context.options = kwargs
        context.add_init_script = AsyncMock()
        context.new_page = AsyncMock(return_value=make_fake_page())
        context.close = AsyncMock()
        browser.contexts_created.append(context)
        return context

    browser.new_context = AsyncMock(side_effect=new_context)
    browser.close = AsyncMock()
    return browser


class FakeLauncher:
    """Launcher that hands out fake browsers and records each launch."""

    def __init__(self, *, fail: Exception | None = None, gate: asyncio.Event | None = None) -> None:
        self.fail = fail
        self.gate = gate
        self.configs: list[Any] = []
        self.browsers: list[MagicMock] = []

    @property
    def calls(self) -> int:
        return len(self.configs)

    async def __call__(self, config: Any) -> MagicMock:
        self.configs.append(config)
        # Yield so concurrent first callers overlap with the launch.
        await asyncio.sleep(0)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail is not None:
            raise self.fail
        browser = make_fake_browser()
        self.browsers.append(browser)
        return browser


class FakeManager:
    """Session manager stand-in that runs work against one fixed page."""

    def __init__(self, page: MagicMock) -> None:
        self.page = page
        self.sessions = 0

    async def with_session(self, work):
        self.sessions += 1
        return await work(self.page)


@pytest.fixture()
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture()
def manager(launcher):
    from pagelens.browser.fingerprint import FingerprintPool
    from pagelens.browser.session import SessionManager
    from pagelens.browser.stealth import StealthConfiguration

    return SessionManager(
        config=StealthConfiguration(),
        pool=FingerprintPool(),
        launcher=launcher,
        pause_range_ms=(0, 0),
    )


@pytest.fixture()
def fake_page() -> MagicMock:
    return make_fake_page()


# ---------------------------------------------------------------------------
# Raw DOM records
# ---------------------------------------------------------------------------


def raw_element(
    tag: str,
    ordinal: int = 0,
    *,
    category: int = -1,
    visible: bool = True,
    rect: tuple[float, float, float, float] = (10, 10, 100, 30),
    text: str = "",
    **attrs: Any,
) -> dict[str, Any]:
    """One entry shaped like the in-page projection's output.

    ``rect`` is ``(left, top, width, height)``; ``attrs`` use the
    projection's camelCase keys (``dataTestid``, ``ariaLabel``, ...).
    """
    left, top, width, height = rect
    entry: dict[str, Any] = {
        "ordinal": ordinal,
        "tag": tag,
        "type": None,
        "id": None,
        "name": None,
        "placeholder": None,
        "href": None,
        "className": None,
        "dataTestid": None,
        "ariaLabel": None,
        "role": None,
        "tabindex": None,
        "text": text,
        "category": category,
        "visible": visible,
        "rect": {"left": left, "top": top, "width": width, "height": height},
    }
    entry.update(attrs)
    return entry


@pytest.fixture()
def make_launcher():
    """Factory for ``FakeLauncher`` instances, e.g. ones that fail to launch."""
    return FakeLauncher


@pytest.fixture()
def raw():
    """Factory for raw DOM records; see :func:`raw_element`."""
    return raw_element


@pytest.fixture()
def fake_manager(fake_page) -> FakeManager:
    return FakeManager(fake_page)


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that require external services or real I/O")
