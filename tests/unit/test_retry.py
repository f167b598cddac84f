"""Tests for RetryPolicy."""

import pytest

from salien.lib.retry import RetryPolicy


class Script:
    """Coroutine function that replays scripted outcomes."""

    def __init__(self, *outcomes: object) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        item = self.outcomes.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class Sleeps:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.mark.asyncio
async def test_succeeds_after_failures() -> None:
    sleeps = Sleeps()
    func = Script(ValueError("a"), ValueError("b"), "ok")

    result = await RetryPolicy(max_attempts=3, delay=5).call(func, sleep=sleeps)

    assert result == "ok"
    assert func.calls == 3
    assert sleeps.delays == [5, 5]


@pytest.mark.asyncio
async def test_reraises_last_failure() -> None:
    func = Script(ValueError("a"), ValueError("b"), ValueError("c"))

    with pytest.raises(ValueError, match="c"):
        await RetryPolicy(max_attempts=3, delay=0).call(func, sleep=Sleeps())
    assert func.calls == 3


@pytest.mark.asyncio
async def test_unclassified_failure_propagates_immediately() -> None:
    func = Script(KeyError("x"), "ok")

    with pytest.raises(KeyError):
        await RetryPolicy(max_attempts=3).call(
            func,
            retry_on=lambda exc: isinstance(exc, ValueError),
            sleep=Sleeps(),
        )
    assert func.calls == 1


@pytest.mark.asyncio
async def test_unbounded_with_until() -> None:
    sleeps = Sleeps()
    func = Script(1, ValueError("flaky"), 2, 3, 10)

    result = await RetryPolicy(max_attempts=None, delay=5).call(
        func, until=lambda value: value >= 10, sleep=sleeps
    )

    assert result == 10
    assert func.calls == 5
    assert len(sleeps.delays) == 4


@pytest.mark.asyncio
async def test_between_runs_before_each_retry() -> None:
    seen: list[int] = []
    func = Script(ValueError("a"), ValueError("b"), "ok")

    async def between() -> None:
        seen.append(func.calls)

    await RetryPolicy(max_attempts=3).call(func, between=between, sleep=Sleeps())

    assert seen == [1, 2]


@pytest.mark.asyncio
async def test_between_failure_aborts() -> None:
    func = Script(ValueError("a"), "ok")

    async def between() -> None:
        raise RuntimeError("abort")

    with pytest.raises(RuntimeError, match="abort"):
        await RetryPolicy(max_attempts=3).call(func, between=between, sleep=Sleeps())
    assert func.calls == 1
