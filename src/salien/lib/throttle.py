"""Request throttling shared by every account in the process.

Combines a cap on simultaneous requests (semaphore) with a minimum gap
between request starts, so a dozen accounts waking at the same time do
not burst the game service.

Example:
    from salien.lib.throttle import Throttle

    throttle = Throttle(max_concurrent=5, min_interval=0.1)

    async def call_api():
        async with throttle:
            return await http.get(url)
"""

import asyncio
import time
from types import TracebackType


class _LoopState:
    """Throttle state bound to one event loop."""

    __slots__ = ("semaphore", "last_request_time", "lock")

    def __init__(self, semaphore: asyncio.Semaphore) -> None:
        self.semaphore = semaphore
        self.last_request_time: float = 0.0
        self.lock = asyncio.Lock()


class Throttle:
    """Async context manager enforcing concurrency and request spacing.

    The asyncio primitives are created lazily per event loop, so a
    module-level instance survives the separate ``asyncio.run`` calls of
    the CLI and the test suite.

    Args:
        max_concurrent: Maximum simultaneous requests.
        min_interval: Minimum seconds between consecutive request starts.
            0.0 only limits concurrency.
    """

    def __init__(self, max_concurrent: int, min_interval: float = 0.0) -> None:
        self._max_concurrent = max_concurrent
        self._min_interval = min_interval
        self._state: dict[int, _LoopState] = {}

    def _get_state(self) -> _LoopState:
        loop_id = id(asyncio.get_running_loop())
        state = self._state.get(loop_id)
        if state is None:
            state = _LoopState(asyncio.Semaphore(self._max_concurrent))
            self._state[loop_id] = state
        return state

    async def __aenter__(self) -> None:
        state = self._get_state()
        await state.semaphore.acquire()
        if self._min_interval <= 0:
            return
        async with state.lock:
            if state.last_request_time > 0:
                remaining = self._min_interval - (
                    time.monotonic() - state.last_request_time
                )
                if remaining > 0:
                    await asyncio.sleep(remaining)
            state.last_request_time = time.monotonic()

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        self._get_state().semaphore.release()
