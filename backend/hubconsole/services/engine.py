from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import ValidationError

from ..config import settings
from ..errors import AgentError, EditSessionClosedError
from ..models.config import ConfigPayload
from ..models.status import (
    HostMetrics,
    InterfaceInfo,
    LiveStatus,
    Notification,
    PortView,
    ReportedError,
    ThroughputSample,
    UsbDevice,
    WifiNetwork,
)
from ..utils.timers import Scheduler
from . import live_status
from .agent_client import AgentClient
from .config_store import ConfigStore, Subsystem
from .device_tree import build_port_views
from .notification_queue import NotificationQueue
from .poller import Poller
from .throughput import ThroughputHistory


log = logging.getLogger(__name__)

# Address label shown for an enabled subsystem whose interface has no IPv4 yet
PENDING_LABELS = {
    "ethernet": "Disconnected",
    "wifi": "Disconnected",
    "wireguard": "Connecting…",
    "tailscale": "Connecting…",
}


def signal_strength(signal: int) -> int:
    """Map a dBm reading to 1-4 bars."""
    if signal >= -55:
        return 4
    if signal >= -65:
        return 3
    if signal >= -75:
        return 2
    return 1


class ConsoleEngine:
    """Single owner of every piece of console state.

    Pollers fetch off-loop and post results back here; all mutation happens
    on the event loop, so nothing needs a lock. Each poller gets its own
    worker threads, so a hung endpoint only ever ties up its own poller.
    Configuration writes go through one sequential writer that always sends
    the newest payload. ``stop()`` tears down every poller, timer and
    pending request.
    """

    def __init__(
        self,
        client: Optional[AgentClient] = None,
        scheduler: Optional[Scheduler] = None,
        intervals: Optional[Mapping[str, float]] = None,
        notification_ttl: Optional[float] = None,
        throughput_capacity: Optional[int] = None,
    ) -> None:
        self._owns_client = client is None
        self.client = client or AgentClient()
        self.scheduler = scheduler or Scheduler()
        self.config = ConfigStore(persist=self._persist)
        self.notifications = NotificationQueue(
            self.scheduler,
            ttl=notification_ttl if notification_ttl is not None else settings.notification_ttl,
        )
        self.history = ThroughputHistory(throughput_capacity or settings.throughput_capacity)

        self.devices: List[UsbDevice] = []
        self.interfaces: Dict[str, InterfaceInfo] = {}
        self.metrics = HostMetrics()
        self.version = "..."
        self.wifi_networks: List[WifiNetwork] = []
        self.wifi_scanning = False

        self._max_inflight = settings.poll_max_inflight
        self._pools: Dict[str, ThreadPoolExecutor] = {
            # config load, version and wifi scan
            "oneshot": ThreadPoolExecutor(max_workers=2, thread_name_prefix="agent-oneshot"),
            "persist": ThreadPoolExecutor(max_workers=1, thread_name_prefix="agent-persist"),
        }
        self._outgoing: Optional[ConfigPayload] = None
        self._writer: Optional[asyncio.Task] = None

        cadence = {**settings.poll_intervals(), **(intervals or {})}
        self.pollers: Dict[str, Poller[Any]] = {
            "interfaces": self._poller("interfaces", self.client.get_interfaces, cadence, self._merge_interfaces),
            "devices": self._poller("devices", self.client.get_devices, cadence, self._merge_devices),
            "network": self._poller("network", self.client.get_network, cadence, self._merge_network),
            "errors": self._poller("errors", self.client.get_errors, cadence, self._merge_errors),
            "metrics": self._poller("metrics", self.client.get_metrics, cadence, self._merge_metrics),
        }
        self._started = False

    def _poller(
        self,
        name: str,
        fetch: Callable[[], Any],
        cadence: Mapping[str, float],
        on_result: Callable[[Any], None],
    ) -> Poller[Any]:
        pool = ThreadPoolExecutor(max_workers=self._max_inflight, thread_name_prefix=f"poll-{name}")
        self._pools[name] = pool
        return Poller(
            name,
            lambda: self._call(pool, fetch),
            cadence[name],
            on_result,
            self.scheduler,
            max_inflight=self._max_inflight,
        )

    @staticmethod
    async def _call(pool: ThreadPoolExecutor, fn: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.get_running_loop().run_in_executor(pool, fn, *args)

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.scheduler.spawn(self.load_config(), name="load-config")
        self.scheduler.spawn(self.fetch_version(), name="fetch-version")
        for poller in self.pollers.values():
            await poller.start()
        log.info("engine started against %s", self.client.base_url)

    async def stop(self) -> None:
        for poller in self.pollers.values():
            await poller.stop()
        self.notifications.close()
        await self.scheduler.close()
        for pool in self._pools.values():
            pool.shutdown(wait=False, cancel_futures=True)
        if self._owns_client:
            self.client.close()
        log.info("engine stopped")

    # -- one-shot fetches ----------------------------------------------------

    async def load_config(self) -> None:
        try:
            remote = await self._call(self._pools["oneshot"], self.client.get_config)
            self.config.load(remote)
        except (AgentError, ValidationError) as exc:
            log.warning("could not load configuration, keeping defaults: %s", exc)

    async def fetch_version(self) -> None:
        try:
            self.version = await self._call(self._pools["oneshot"], self.client.get_version)
        except AgentError as exc:
            log.debug("version unavailable: %s", exc)
            self.version = "unknown"

    # -- poll merges (event loop only) ---------------------------------------

    def _merge_interfaces(self, snapshot: Dict[str, InterfaceInfo]) -> None:
        self.interfaces = snapshot

    def _merge_devices(self, devices: List[UsbDevice]) -> None:
        self.devices = devices

    def _merge_network(self, sample: ThroughputSample) -> None:
        self.history.push(sample)

    def _merge_errors(self, errors: List[ReportedError]) -> None:
        for err in errors:
            self.notifications.push(err.message)

    def _merge_metrics(self, metrics: HostMetrics) -> None:
        self.metrics = metrics

    # -- persistence ---------------------------------------------------------

    def _persist(self, payload: ConfigPayload) -> None:
        # every payload is complete, so only the newest one still needs sending
        self._outgoing = payload
        if self._writer is None or self._writer.done():
            self._writer = self.scheduler.spawn(self._write_config(), name="persist-config")

    async def _write_config(self) -> None:
        while self._outgoing is not None:
            payload, self._outgoing = self._outgoing, None
            await self._put_config(payload)

    async def _put_config(self, payload: ConfigPayload) -> None:
        try:
            await self._call(self._pools["persist"], self.client.put_config, payload)
        except AgentError as exc:
            # optimistic: local state stays, the agent reports real failures via /api/errors
            log.warning("persisting configuration failed: %s", exc)

    # -- configuration actions -----------------------------------------------

    def begin_edit(self, kind: str) -> Subsystem[Any]:
        was_editing = self.config.get(kind).editing
        sub = self.config.begin_edit(kind)
        if kind == "wifi" and not was_editing:
            self.scan_wifi()
        return sub

    def cancel_edit(self, kind: str) -> Subsystem[Any]:
        sub = self.config.cancel_edit(kind)
        if kind == "wifi":
            self.wifi_networks = []
        return sub

    def update_draft(self, kind: str, patch: Mapping[str, Any]) -> Subsystem[Any]:
        return self.config.update_draft(kind, patch)

    def apply(self, kind: str) -> ConfigPayload:
        payload = self.config.apply(kind)
        if kind == "wifi":
            self.wifi_networks = []
        return payload

    def toggle_enabled(self, kind: str) -> ConfigPayload:
        return self.config.toggle_immediate(kind, "enabled")

    def toggle_port(self, port_id: int) -> ConfigPayload:
        # device list is left alone; the next device poll catches up
        return self.config.toggle_port(port_id)

    # -- wifi scan -----------------------------------------------------------

    def scan_wifi(self) -> None:
        if not self.config.get("wifi").editing:
            raise EditSessionClosedError("wifi")
        self.wifi_scanning = True
        self.scheduler.spawn(self._scan_wifi(), name="wifi-scan")

    async def _scan_wifi(self) -> None:
        try:
            networks = await self._call(self._pools["oneshot"], self.client.scan_wifi)
        except AgentError as exc:
            log.debug("wifi scan failed: %s", exc)
            networks = []
        finally:
            self.wifi_scanning = False
        if self.config.get("wifi").editing:
            self.wifi_networks = networks

    def select_wifi_network(self, ssid: str) -> Subsystem[Any]:
        for net in self.wifi_networks:
            if net.ssid == ssid:
                return self.config.update_draft("wifi", {"ssid": net.ssid, "security": net.security})
        raise KeyError(ssid)

    # -- notifications -------------------------------------------------------

    def dismiss_notification(self, nid: int) -> bool:
        return self.notifications.dismiss(nid)

    def active_notifications(self) -> List[Notification]:
        return self.notifications.list()

    # -- derived views -------------------------------------------------------

    def port_views(self) -> List[PortView]:
        return build_port_views(self.devices, self.config.ports)

    def live_status(self, category: str) -> LiveStatus:
        return live_status.describe(category, self.interfaces)

    def status_label(self, category: str) -> str:
        entry = live_status.resolve(live_status.patterns_for(category), self.interfaces)
        if category != "ethernet" and not self.config.get(category).confirmed.enabled:
            return "Disconnected"
        return live_status.address_label(entry, PENDING_LABELS[category])

    def subsystem_view(self, kind: str) -> Dict[str, Any]:
        view = self.config.get(kind).view()
        view["live"] = self.live_status(kind).model_dump()
        view["label"] = self.status_label(kind)
        return view

    def state(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "metrics": self.metrics.model_dump(),
            "throughput": {
                "latest": self.history.latest.model_dump(),
                "history": [s.model_dump() for s in self.history.samples()],
            },
            "ports": [p.model_dump() for p in self.port_views()],
            # blocked subsystems are hidden from the console
            "subsystems": {
                kind: self.subsystem_view(kind)
                for kind in self.config.kinds()
                if not self.config.get(kind).blocked
            },
            "wifi": {
                "scanning": self.wifi_scanning,
                "networks": [
                    {**n.model_dump(), "bars": signal_strength(n.signal)} for n in self.wifi_networks
                ],
            },
            "notifications": [n.model_dump(mode="json") for n in self.notifications.list()],
        }
