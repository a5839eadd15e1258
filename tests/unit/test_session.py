"""Unit tests for the stealth session manager.

A fake launcher stands in for Playwright so the lifecycle can be checked
without a browser: lazy launch, shared in-flight launch, per-session
contexts, cleanup on error, and process replacement on reconfiguration.
"""

from __future__ import annotations

import asyncio

import pytest

from pagelens.browser.fingerprint import USER_AGENTS, FingerprintPool
from pagelens.browser.session import ProcessState, SessionManager
from pagelens.browser.stealth import STEALTH_INIT_SCRIPT, StealthConfiguration
from pagelens.exceptions import SessionClosedError
from pagelens.models import Viewport


@pytest.fixture()
def gated(make_launcher):
    """A manager whose first launch blocks until the returned event is set."""
    gate = asyncio.Event()
    launcher = make_launcher(gate=gate)
    manager = SessionManager(
        config=StealthConfiguration(), pool=FingerprintPool(), launcher=launcher, pause_range_ms=(0, 0)
    )
    return manager, launcher, gate


async def _until_launching(launcher) -> None:
    while launcher.calls == 0:
        await asyncio.sleep(0)


class TestLaunch:
    @pytest.mark.anyio
    async def test_no_launch_before_first_session(self, manager, launcher):
        assert manager.process is None
        assert launcher.calls == 0

    @pytest.mark.anyio
    async def test_launch_is_lazy_and_reused(self, manager, launcher):
        await manager.with_session(lambda page: page.title())
        await manager.with_session(lambda page: page.title())
        assert launcher.calls == 1
        assert len(launcher.browsers[0].contexts_created) == 2
        assert manager.process.state is ProcessState.READY

    @pytest.mark.anyio
    async def test_concurrent_first_use_launches_once(self, manager, launcher):
        results = await asyncio.gather(*(manager.with_session(lambda page: page.title()) for _ in range(5)))
        assert results == ["Example"] * 5
        assert launcher.calls == 1
        assert len(launcher.browsers[0].contexts_created) == 5

    @pytest.mark.anyio
    async def test_launch_uses_current_config(self, launcher):
        config = StealthConfiguration(proxy="http://proxy.local:3128")
        manager = SessionManager(config=config, pool=FingerprintPool(), launcher=launcher, pause_range_ms=(0, 0))
        await manager.with_session(lambda page: page.title())
        assert launcher.configs == [config]

    @pytest.mark.anyio
    async def test_launch_failure_propagates_and_next_call_retries(self, make_launcher):
        launcher = make_launcher(fail=RuntimeError("chromium missing"))
        manager = SessionManager(
            config=StealthConfiguration(), pool=FingerprintPool(), launcher=launcher, pause_range_ms=(0, 0)
        )
        with pytest.raises(RuntimeError, match="chromium missing"):
            await manager.with_session(lambda page: page.title())
        assert manager.process is None

        launcher.fail = None
        assert await manager.with_session(lambda page: page.title()) == "Example"
        assert launcher.calls == 2


class TestSessionContext:
    @pytest.mark.anyio
    async def test_context_prepared_and_closed(self, manager, launcher):
        async with manager.session() as page:
            page.set_default_timeout.assert_called_once_with(30_000)

        context = launcher.browsers[0].contexts_created[0]
        context.add_init_script.assert_awaited_once_with(STEALTH_INIT_SCRIPT)
        context.new_page.assert_awaited_once()
        context.close.assert_awaited_once()
        assert manager.process.active == 0

    @pytest.mark.anyio
    async def test_context_closed_once_when_work_raises(self, manager, launcher):
        async def boom(page):
            raise ValueError("work failed")

        with pytest.raises(ValueError, match="work failed"):
            await manager.with_session(boom)

        browser = launcher.browsers[0]
        browser.contexts_created[0].close.assert_awaited_once()
        browser.close.assert_not_awaited()
        assert manager.process.active == 0

    @pytest.mark.anyio
    async def test_work_runs_exactly_once(self, manager):
        calls = []

        async def work(page):
            calls.append(page)
            return len(calls)

        assert await manager.with_session(work) == 1
        assert len(calls) == 1

    @pytest.mark.anyio
    async def test_user_agent_rotation_order(self, launcher):
        manager = SessionManager(
            config=StealthConfiguration(rotate_user_agent=True),
            pool=FingerprintPool(),
            launcher=launcher,
            pause_range_ms=(0, 0),
        )
        for _ in range(6):
            await manager.with_session(lambda page: page.title())

        agents = [ctx.options["user_agent"] for ctx in launcher.browsers[0].contexts_created]
        assert agents == [USER_AGENTS[i % 4] for i in range(6)]

    @pytest.mark.anyio
    async def test_fixed_viewport_on_every_context(self, launcher):
        manager = SessionManager(
            config=StealthConfiguration(viewport=Viewport(width=800, height=600)),
            pool=FingerprintPool(),
            launcher=launcher,
            pause_range_ms=(0, 0),
        )
        for _ in range(3):
            await manager.with_session(lambda page: page.title())

        viewports = [ctx.options["viewport"] for ctx in launcher.browsers[0].contexts_created]
        assert viewports == [{"width": 800, "height": 600}] * 3

    def test_pause_within_configured_range(self, launcher):
        manager = SessionManager(launcher=launcher, pause_range_ms=(500, 1500))
        for _ in range(20):
            assert 0.5 <= manager._pause_seconds() <= 1.5


class TestConfigure:
    @pytest.mark.anyio
    async def test_configure_without_process(self, manager, launcher):
        config = StealthConfiguration(user_agent="UA/1.0")
        await manager.configure(config)
        assert manager.config == config
        assert manager.process is None
        assert launcher.calls == 0

    @pytest.mark.anyio
    async def test_configure_replaces_process(self, manager, launcher):
        await manager.with_session(lambda page: page.title())
        old = manager.process

        new_config = StealthConfiguration(proxy="http://proxy.local:3128")
        await manager.configure(new_config)
        launcher.browsers[0].close.assert_awaited_once()
        assert old.state is ProcessState.CLOSED
        assert manager.process is None

        await manager.with_session(lambda page: page.title())
        assert manager.process is not old
        assert launcher.calls == 2
        assert launcher.configs[-1] == new_config

    @pytest.mark.anyio
    async def test_configure_does_not_inherit_fields(self, manager):
        await manager.configure(StealthConfiguration(proxy="http://p:1", user_agent="UA/1.0"))
        await manager.configure(StealthConfiguration(rotate_user_agent=True))
        assert manager.config.proxy is None
        assert manager.config.user_agent is None

    @pytest.mark.anyio
    async def test_in_flight_session_survives_reconfiguration(self, manager, launcher):
        started = asyncio.Event()
        release = asyncio.Event()

        async def work(page):
            started.set()
            await release.wait()
            return await page.title()

        task = asyncio.ensure_future(manager.with_session(work))
        await started.wait()

        old_browser = launcher.browsers[0]
        await manager.configure(StealthConfiguration(user_agent="UA/2.0"))
        assert manager.process is None
        old_browser.close.assert_not_awaited()

        release.set()
        assert await task == "Example"
        old_browser.contexts_created[0].close.assert_awaited_once()
        old_browser.close.assert_awaited_once()

    @pytest.mark.anyio
    async def test_reconfigure_during_launch(self, gated):
        manager, launcher, gate = gated
        task = asyncio.ensure_future(manager.with_session(lambda page: page.title()))
        await _until_launching(launcher)
        old = manager.process
        assert old.state is ProcessState.LAUNCHING

        new_config = StealthConfiguration(user_agent="UA/2.0")
        reconfigure = asyncio.ensure_future(manager.configure(new_config))
        await asyncio.sleep(0)
        assert old.retired
        assert manager.process is None

        gate.set()
        await reconfigure
        assert await task == "Example"

        assert launcher.calls == 2
        assert launcher.configs[1] == new_config
        launcher.browsers[0].close.assert_awaited_once()
        assert old.state is ProcessState.CLOSED
        assert launcher.browsers[0].contexts_created == []
        (context,) = launcher.browsers[1].contexts_created
        assert context.options["user_agent"] == "UA/2.0"
        assert manager.process.state is ProcessState.READY


class TestClose:
    @pytest.mark.anyio
    async def test_close_is_idempotent(self, manager, launcher):
        await manager.with_session(lambda page: page.title())
        await manager.close()
        await manager.close()
        launcher.browsers[0].close.assert_awaited_once()
        assert manager.process is None

    @pytest.mark.anyio
    async def test_close_before_use(self, manager):
        await manager.close()
        assert manager.process is None

    @pytest.mark.anyio
    async def test_browser_close_error_is_not_raised(self, manager, launcher):
        await manager.with_session(lambda page: page.title())
        launcher.browsers[0].close.side_effect = RuntimeError("already gone")
        await manager.close()
        assert manager.process is None

    @pytest.mark.anyio
    async def test_session_after_close_raises(self, manager, launcher):
        await manager.close()
        with pytest.raises(SessionClosedError):
            await manager.with_session(lambda page: page.title())
        assert launcher.calls == 0

    @pytest.mark.anyio
    async def test_close_during_launch_leaves_no_browser(self, gated):
        manager, launcher, gate = gated
        task = asyncio.ensure_future(manager.with_session(lambda page: page.title()))
        await _until_launching(launcher)

        closing = asyncio.ensure_future(manager.close())
        await asyncio.sleep(0)
        gate.set()
        await closing

        with pytest.raises(SessionClosedError):
            await task
        assert launcher.calls == 1
        launcher.browsers[0].close.assert_awaited_once()
        launcher.browsers[0].new_context.assert_not_awaited()
        assert manager.process is None
