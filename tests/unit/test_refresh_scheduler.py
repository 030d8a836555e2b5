# tests/unit/test_refresh_scheduler.py
"""Unit tests for RefreshScheduler: overlap guard, pause holders, error handling."""
import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from src.lp_listing.application.scheduler import RefreshScheduler


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_runs_refresh(self):
        refresh = AsyncMock()
        scheduler = RefreshScheduler(refresh, 60)

        assert await scheduler.run_once() is True
        refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_overlapping_run_skipped(self):
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_refresh():
            started.set()
            await release.wait()

        scheduler = RefreshScheduler(slow_refresh, 60)
        first = asyncio.create_task(scheduler.run_once())
        await started.wait()

        assert scheduler.in_flight is True
        assert await scheduler.run_once() is False

        release.set()
        assert await first is True
        assert scheduler.in_flight is False

    @pytest.mark.asyncio
    async def test_failure_logged_and_next_run_proceeds(self, caplog):
        refresh = AsyncMock(side_effect=[RuntimeError("rpc down"), None])
        scheduler = RefreshScheduler(refresh, 60)

        with caplog.at_level(logging.ERROR):
            assert await scheduler.run_once() is False
        assert "Listing refresh failed" in caplog.text
        assert await scheduler.run_once() is True


class TestPause:
    @pytest.mark.asyncio
    async def test_paused_skips_refresh(self):
        refresh = AsyncMock()
        scheduler = RefreshScheduler(refresh, 60)

        scheduler.pause("buy-dialog")

        assert scheduler.paused is True
        assert await scheduler.run_once() is False
        refresh.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_resume_after_all_holders_release(self):
        refresh = AsyncMock()
        scheduler = RefreshScheduler(refresh, 60)
        scheduler.pause("buy-dialog")
        scheduler.pause("list-dialog")

        scheduler.resume("buy-dialog")
        assert scheduler.holders == frozenset({"list-dialog"})
        assert await scheduler.run_once() is False

        scheduler.resume("list-dialog")
        assert await scheduler.run_once() is True

    def test_resume_unknown_holder_is_harmless(self):
        scheduler = RefreshScheduler(AsyncMock(), 60)
        scheduler.resume("nobody")
        assert scheduler.paused is False


class TestLoop:
    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            RefreshScheduler(AsyncMock(), 0)

    @pytest.mark.asyncio
    async def test_start_runs_immediately_and_stop_cancels(self):
        refresh = AsyncMock()
        scheduler = RefreshScheduler(refresh, 3600)

        scheduler.start()
        scheduler.start()  # idempotent
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert scheduler.running is True
        refresh.assert_awaited_once()

        await scheduler.stop()
        assert scheduler.running is False
