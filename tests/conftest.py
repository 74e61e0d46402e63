from __future__ import annotations

import asyncio
import heapq
import itertools
import threading
from typing import Any, Callable, Dict, List, Optional

import pytest

from hubconsole.errors import AgentError
from hubconsole.models.config import ConfigPayload, RemoteConfig
from hubconsole.models.status import (
    HostMetrics,
    InterfaceInfo,
    ReportedError,
    ThroughputSample,
    UsbDevice,
    WifiNetwork,
)
from hubconsole.services.engine import ConsoleEngine


class _Handle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Timer half of Scheduler driven by an explicit clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = itertools.count()
        self._heap: List[Any] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> _Handle:
        handle = _Handle()
        heapq.heappush(self._heap, (self.now + delay, next(self._seq), handle, callback, args))
        return handle

    def cancel(self, handle: _Handle) -> None:
        handle.cancel()

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h, _, _ in self._heap if not h.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._heap and self._heap[0][0] <= target:
            when, _, handle, callback, args = heapq.heappop(self._heap)
            self.now = when
            if not handle.cancelled:
                callback(*args)
        self.now = target


class FakeAgent:
    """In-memory stand-in for AgentClient."""

    base_url = "http://agent.test"

    def __init__(self) -> None:
        self.remote_config: Dict[str, Any] = {}
        self.version = "1.4.2"
        self.sample = ThroughputSample(rx=1.5, tx=0.25)
        self.devices: List[UsbDevice] = []
        self.interfaces: Dict[str, InterfaceInfo] = {}
        self.errors: List[ReportedError] = []
        self.metrics = HostMetrics(cpu=12, ram=40, uptime="0d 1h 5m")
        self.networks: List[WifiNetwork] = []
        self.put_calls: List[ConfigPayload] = []
        self.failing: set[str] = set()
        # calls named here block until their event is set
        self.gates: Dict[str, threading.Event] = {}
        self.closed = False

    def _check(self, name: str) -> None:
        gate = self.gates.get(name)
        if gate is not None:
            gate.wait()
        if name in self.failing:
            raise AgentError(f"/api/{name}", "connection refused")

    def get_config(self) -> RemoteConfig:
        self._check("config")
        return RemoteConfig.model_validate(self.remote_config)

    def put_config(self, payload: ConfigPayload) -> None:
        self.put_calls.append(payload)
        self._check("put_config")

    def get_version(self) -> str:
        self._check("version")
        return self.version

    def get_network(self) -> ThroughputSample:
        self._check("network")
        return self.sample

    def get_devices(self) -> List[UsbDevice]:
        self._check("devices")
        return list(self.devices)

    def get_interfaces(self) -> Dict[str, InterfaceInfo]:
        self._check("interfaces")
        return dict(self.interfaces)

    def get_errors(self) -> List[ReportedError]:
        self._check("errors")
        errors, self.errors = self.errors, []
        return errors

    def get_metrics(self) -> HostMetrics:
        self._check("metrics")
        return self.metrics

    def scan_wifi(self) -> List[WifiNetwork]:
        self._check("wifi_scan")
        return list(self.networks)

    def close(self) -> None:
        self.closed = True


async def eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


def device(busid: str, port: int, name: str = "", occupied: bool = False) -> UsbDevice:
    return UsbDevice(busid=busid, vendorId="0781", productId="5581", name=name, port=port, occupied=occupied)


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def agent() -> FakeAgent:
    return FakeAgent()


@pytest.fixture
async def engine(agent: FakeAgent):
    # long cadences: tests drive ticks by hand
    eng = ConsoleEngine(client=agent, intervals={k: 3600.0 for k in ("interfaces", "devices", "network", "errors", "metrics")})
    yield eng
    await eng.stop()
