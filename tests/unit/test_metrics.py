"""Tests for call metrics."""

import pytest

from salien.lib.metrics import get_metrics_summary, reset_metrics, tracked


@pytest.fixture(autouse=True)
def clean_metrics() -> None:
    reset_metrics()


@pytest.mark.asyncio
async def test_counts_calls_and_errors() -> None:
    @tracked("Probe")
    async def probe(fail: bool) -> str:
        if fail:
            raise ValueError("boom")
        return "ok"

    assert await probe(False) == "ok"
    with pytest.raises(ValueError):
        await probe(True)

    summary = get_metrics_summary()
    assert summary["total_calls"] == 2
    assert summary["total_errors"] == 1
    assert summary["by_endpoint"]["Probe"]["error_rate"] == "50.0%"
