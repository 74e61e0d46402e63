from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, TypeVar

import requests
from pydantic import TypeAdapter, ValidationError

from ..config import settings
from ..errors import AgentError
from ..models.config import ConfigPayload, RemoteConfig
from ..models.status import (
    HostMetrics,
    InterfaceInfo,
    ReportedError,
    ThroughputSample,
    UsbDevice,
    WifiNetwork,
)


log = logging.getLogger(__name__)

T = TypeVar("T")

_devices = TypeAdapter(List[UsbDevice])
_interfaces = TypeAdapter(Dict[str, InterfaceInfo])
_networks = TypeAdapter(List[WifiNetwork])
_errors = TypeAdapter(List[ReportedError])
_sample = TypeAdapter(ThroughputSample)
_metrics = TypeAdapter(HostMetrics)
_remote_config = TypeAdapter(RemoteConfig)


class AgentClient:
    """Blocking JSON client for the hub agent's HTTP API.

    Every failure surfaces as ``AgentError``; callers decide whether to
    swallow it. Run these calls off the event loop.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or settings.agent_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.agent_timeout
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        try:
            r = self._session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
            r.raise_for_status()
        except requests.RequestException as exc:
            raise AgentError(path, str(exc)) from exc
        return r

    def _get(self, path: str, adapter: TypeAdapter[T], empty: Optional[T] = None) -> T:
        r = self._request("GET", path)
        if empty is not None and r.content.strip() in (b"", b"null"):
            return empty
        try:
            return adapter.validate_json(r.content)
        except ValidationError as exc:
            raise AgentError(path, f"unexpected payload: {exc.error_count()} error(s)") from exc

    def get_network(self) -> ThroughputSample:
        return self._get("/api/network", _sample)

    def get_devices(self) -> List[UsbDevice]:
        return self._get("/api/usb/devices", _devices, empty=[])

    def get_interfaces(self) -> Dict[str, InterfaceInfo]:
        return self._get("/api/interfaces", _interfaces)

    def get_errors(self) -> List[ReportedError]:
        # the agent drains its queue on every read and may answer null when empty
        return self._get("/api/errors", _errors, empty=[])

    def get_metrics(self) -> HostMetrics:
        return self._get("/api/metrics", _metrics)

    def get_version(self) -> str:
        r = self._request("GET", "/api/version")
        try:
            return str(r.json()["version"])
        except (ValueError, KeyError, TypeError) as exc:
            raise AgentError("/api/version", "unexpected payload") from exc

    def scan_wifi(self) -> List[WifiNetwork]:
        return self._get("/api/wifi/scan", _networks)

    def get_config(self) -> RemoteConfig:
        return self._get("/api/config", _remote_config)

    def put_config(self, payload: ConfigPayload) -> None:
        """Persistence bridge: store the complete configuration on the agent."""
        self._request(
            "PUT",
            "/api/config",
            data=payload.model_dump_json(),
            headers={"Content-Type": "application/json"},
        )
        log.debug("configuration persisted")

    def close(self) -> None:
        self._session.close()
