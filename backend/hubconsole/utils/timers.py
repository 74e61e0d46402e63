from __future__ import annotations

import asyncio
from typing import Any, Callable, Coroutine, Optional, Set


class Scheduler:
    """Owner of every timer and background task the engine creates.

    Everything scheduled through here is tracked until it fires or finishes,
    so ``close()`` can cancel whatever is still pending on teardown.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._timers: Set[asyncio.TimerHandle] = set()
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    @property
    def pending(self) -> int:
        return len(self._timers) + len(self._tasks)

    def time(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> asyncio.TimerHandle:
        if self._closed:
            raise RuntimeError("scheduler is closed")
        handle: Optional[asyncio.TimerHandle] = None

        def _fire() -> None:
            self._timers.discard(handle)  # type: ignore[arg-type]
            callback(*args)

        handle = self.loop.call_later(delay, _fire)
        self._timers.add(handle)
        return handle

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()
        self._timers.discard(handle)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> asyncio.Task:
        if self._closed:
            coro.close()
            raise RuntimeError("scheduler is closed")
        task = self.loop.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def close(self) -> None:
        self._closed = True
        for handle in list(self._timers):
            handle.cancel()
        self._timers.clear()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
