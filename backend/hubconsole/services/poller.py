from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Generic, Optional, Set, TypeVar

from ..utils.timers import Scheduler


log = logging.getLogger(__name__)

T = TypeVar("T")


class Poller(Generic[T]):
    """Repeat ``source`` every ``interval`` seconds and hand results to ``on_result``.

    The first fetch happens immediately. Each tick's fetch runs as its own
    task, so a stalled request never holds back the next tick. At most
    ``max_inflight`` fetches run at once; a tick that finds the cap reached
    is skipped. ``on_result`` always runs on the event loop, one call at a
    time; results that arrive late are applied in arrival order. A failed
    fetch is logged and dropped, leaving whatever the target already holds.
    """

    def __init__(
        self,
        name: str,
        source: Callable[[], Awaitable[T]],
        interval: float,
        on_result: Callable[[T], None],
        scheduler: Scheduler,
        max_inflight: int = 4,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if max_inflight < 1:
            raise ValueError("max_inflight must be at least 1")
        self.name = name
        self.interval = interval
        self.max_inflight = max_inflight
        self._source = source
        self._on_result = on_result
        self._scheduler = scheduler
        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()
        self._inflight: Set[asyncio.Task] = set()
        self.failures = 0
        self.skipped = 0
        self.last_error: Optional[str] = None
        self.last_success: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def in_flight(self) -> int:
        return len(self._inflight)

    async def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._task = self._scheduler.spawn(self._run(), name=f"poller:{self.name}")

    async def stop(self) -> None:
        self._stop.set()
        for task in list(self._inflight):
            task.cancel()
        pending = list(self._inflight)
        if self._task:
            pending.append(self._task)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._inflight.clear()

    async def _run(self) -> None:
        while not self._stop.is_set():
            self._launch()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue

    def _launch(self) -> None:
        if len(self._inflight) >= self.max_inflight:
            self.skipped += 1
            log.debug("%s: %d fetches still pending, skipping tick", self.name, len(self._inflight))
            return
        task = self._scheduler.spawn(self._tick(), name=f"poll:{self.name}")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def tick(self) -> None:
        """Run one fetch-and-merge cycle inline."""
        await self._tick()

    async def _tick(self) -> None:
        try:
            result = await self._source()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            self.failures += 1
            self.last_error = str(exc)
            log.debug("%s poll failed, keeping previous value: %s", self.name, exc)
            return
        if self._stop.is_set():
            return
        try:
            self._on_result(result)
        except Exception:  # noqa: BLE001
            log.exception("%s: failed to apply poll result", self.name)
            return
        self.last_success = time.time()
        self.last_error = None
