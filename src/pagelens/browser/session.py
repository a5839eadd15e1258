"""Stealth session lifecycle: one shared browser process, one context per request.

``SessionManager`` owns a single lazily launched Chromium process and hands
out isolated, single-use browsing contexts on top of it.

- The process is launched at most once per configuration.  Concurrent first
  callers share one in-flight launch task instead of racing to launch.
- ``configure()`` replaces the ``StealthConfiguration`` and retires the
  current process.  Contexts already open on a retired process keep working;
  the process is closed when the last of them is released.
- Each context gets its own fingerprint and stealth patches and is closed
  on every exit path, including errors raised by the caller's work.

Usage::

    manager = SessionManager()
    async with manager.session() as page:
        await page.goto("https://example.com")

    # or
    title = await manager.with_session(lambda page: page.title())
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from pagelens.browser.fingerprint import FingerprintPool, default_pool
from pagelens.browser.stealth import (
    STEALTH_INIT_SCRIPT,
    StealthConfiguration,
    build_launch_args,
    build_session_profile,
)
from pagelens.exceptions import SessionClosedError
from pagelens.settings import get_settings

if TYPE_CHECKING:
    from playwright.async_api import Browser, Page, Playwright

logger = logging.getLogger(__name__)

T = TypeVar("T")

Launcher = Callable[[StealthConfiguration], Awaitable["Browser"]]


class ProcessState(str, Enum):
    """Lifecycle of one browser process."""

    LAUNCHING = "launching"
    READY = "ready"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass(eq=False)
class BrowserProcess:
    """Handle for one launched (or launching) browser process.

    ``config`` is fixed for the lifetime of the process.  ``active`` counts
    contexts currently open on it.
    """

    config: StealthConfiguration
    launch: asyncio.Future[Any] | None = None
    state: ProcessState = ProcessState.LAUNCHING
    browser: Browser | None = None
    active: int = 0
    retired: bool = False


class SessionManager:
    """Creates and tears down stealth browsing sessions.

    Args:
        config: Initial stealth configuration.  Defaults to the ``stealth``
            settings section.
        pool: Fingerprint rotation tables.  Defaults to the process-wide pool.
        launcher: Coroutine function that launches a browser for a given
            configuration.  Defaults to Playwright Chromium.
        pause_range_ms: ``(min, max)`` randomized pause before running work.
            Defaults to the ``browser.pause_*`` settings.
        timeout_ms: Default action timeout applied to every page.
    """

    def __init__(
        self,
        *,
        config: StealthConfiguration | None = None,
        pool: FingerprintPool | None = None,
        launcher: Launcher | None = None,
        pause_range_ms: tuple[int, int] | None = None,
        timeout_ms: int | None = None,
    ) -> None:
        s = get_settings().browser

        self._config = config if config is not None else StealthConfiguration.from_settings()
        self._pool = pool if pool is not None else default_pool()
        self._launcher: Launcher = launcher or self._launch_chromium
        self._pause_range_ms = pause_range_ms or (s.pause_min_ms, s.pause_max_ms)
        self._timeout_ms = timeout_ms or s.navigation_timeout_ms

        self._process: BrowserProcess | None = None
        self._retired: set[BrowserProcess] = set()
        self._playwright: Playwright | None = None
        self._closed = False
        self._playwright_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> StealthConfiguration:
        return self._config

    @property
    def process(self) -> BrowserProcess | None:
        """The process new sessions will use, or ``None`` before first use."""
        return self._process

    async def configure(self, config: StealthConfiguration) -> None:
        """Replace the stealth configuration and retire the current process.

        Fields not set on *config* are not inherited from the previous
        configuration.  The next session launches a fresh process.
        """
        self._config = config
        process = self._process
        if process is not None:
            logger.info("Stealth configuration replaced; retiring browser process")
            await self._retire(process)
        else:
            logger.info("Stealth configuration replaced")

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Page]:
        """Open one isolated context and yield its single page.

        The context is closed when the block exits, whether normally or by
        an exception.  The browser process stays up for later sessions.
        """
        process = await self._acquire()
        try:
            profile = build_session_profile(process.config, self._pool)
            context = await process.browser.new_context(**profile.context_args)
            logger.debug("Context opened (ua=%s)", profile.user_agent or "default")
            try:
                await context.add_init_script(STEALTH_INIT_SCRIPT)
                page = await context.new_page()
                page.set_default_timeout(self._timeout_ms)
                await asyncio.sleep(self._pause_seconds())
                yield page
            finally:
                await context.close()
                logger.debug("Context closed")
        finally:
            await self._release(process)

    async def with_session(self, work: Callable[[Page], Awaitable[T]]) -> T:
        """Run *work* exactly once against a fresh session page and return its result."""
        async with self.session() as page:
            return await work(page)

    async def close(self) -> None:
        """Close every browser process and stop Playwright.  Safe to call repeatedly.

        A launch still in flight is awaited and its browser closed.  Later
        sessions raise ``SessionClosedError``.
        """
        self._closed = True
        process, self._process = self._process, None
        if process is not None:
            self._retired.add(process)
        for proc in list(self._retired):
            proc.retired = True
            await self._shutdown(proc)
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
            logger.info("Playwright stopped")

    # ------------------------------------------------------------------
    # Process lifecycle
    # ------------------------------------------------------------------

    async def _acquire(self) -> BrowserProcess:
        """Return a ready, non-retired process with its session count bumped."""
        while True:
            if self._closed:
                raise SessionClosedError("session manager is closed")
            process = self._process
            if process is None:
                process = BrowserProcess(config=self._config)
                process.launch = asyncio.ensure_future(self._launch(process))
                self._process = process

            try:
                # shield: a caller timing out must not cancel a launch others await
                await asyncio.shield(process.launch)
            except Exception:
                if self._process is process:
                    self._process = None
                process.state = ProcessState.CLOSED
                raise

            if process.retired:
                # Retired while launching: loop to the replacement, or raise if closed.
                continue
            process.active += 1
            return process

    async def _launch(self, process: BrowserProcess) -> Browser:
        browser = await self._launcher(process.config)
        process.browser = browser
        if process.state is ProcessState.LAUNCHING:
            process.state = ProcessState.READY
        return browser

    async def _release(self, process: BrowserProcess) -> None:
        process.active -= 1
        if process.retired and process.active == 0:
            await self._shutdown(process)

    async def _retire(self, process: BrowserProcess) -> None:
        process.retired = True
        if self._process is process:
            self._process = None
        if process.active == 0:
            await self._shutdown(process)
        else:
            self._retired.add(process)
            logger.info("Browser process retired with %d session(s) still open", process.active)

    async def _shutdown(self, process: BrowserProcess) -> None:
        if process.state in (ProcessState.CLOSING, ProcessState.CLOSED):
            return
        process.state = ProcessState.CLOSING
        try:
            if process.launch is not None and not process.launch.done():
                await asyncio.wait([process.launch])
            if process.browser is not None:
                try:
                    await process.browser.close()
                except Exception as e:
                    logger.warning("Browser close error (non-fatal): %s", e)
                logger.info("Browser process closed")
        finally:
            process.state = ProcessState.CLOSED
            self._retired.discard(process)

    async def _launch_chromium(self, config: StealthConfiguration) -> Browser:
        """Default launcher: Playwright Chromium with stealth launch flags."""
        from playwright.async_api import async_playwright

        async with self._playwright_lock:
            if self._playwright is None:
                self._playwright = await async_playwright().start()
        launch_args = build_launch_args(config)
        logger.info("Launching Chromium (headless=%s, proxy=%s)", launch_args["headless"], config.proxy or "none")
        return await self._playwright.chromium.launch(**launch_args)

    def _pause_seconds(self) -> float:
        low, high = self._pause_range_ms
        return random.uniform(low, high) / 1000
