"""Tests for the shutdown-aware scheduler."""

import asyncio
import time

import pytest

from salien.lib.realtime import Scheduler, ShutdownRequested


@pytest.mark.asyncio
async def test_sleep_completes() -> None:
    scheduler = Scheduler()
    start = time.monotonic()
    await scheduler.sleep(0.05)
    assert time.monotonic() - start >= 0.04


@pytest.mark.asyncio
async def test_stop_interrupts_sleep() -> None:
    scheduler = Scheduler()

    async def stop_soon() -> None:
        await asyncio.sleep(0.01)
        scheduler.stop("Signal SIGTERM")

    start = time.monotonic()
    stopper = asyncio.create_task(stop_soon())
    with pytest.raises(ShutdownRequested):
        await scheduler.sleep(30)
    await stopper

    assert time.monotonic() - start < 1
    assert scheduler.reason == "Signal SIGTERM"


@pytest.mark.asyncio
async def test_sleep_after_stop_raises() -> None:
    scheduler = Scheduler()
    scheduler.stop()
    scheduler.stop("ignored second reason")

    with pytest.raises(ShutdownRequested):
        await scheduler.sleep(0)
    assert scheduler.reason == "stop requested"
    assert await scheduler.wait() == "stop requested"
