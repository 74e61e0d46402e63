from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


NetworkMode = Literal["dhcp", "static"]
WiFiSecurity = Literal["wpa2", "wpa", "open"]
VPNStatus = Literal["connected", "disconnected", "connecting"]


class SubsystemConfig(BaseModel):
    """Fields shared by every configurable subsystem payload."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    blocked: bool = False

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class EthernetConfig(SubsystemConfig):
    mode: NetworkMode = "dhcp"
    ip: Optional[str] = "192.168.1.142"
    mask: Optional[str] = None
    gateway: Optional[str] = "192.168.1.1"
    dns: Optional[str] = None


class WiFiConfig(SubsystemConfig):
    enabled: bool = False
    ssid: Optional[str] = "Home_Network_5G"
    password: Optional[str] = ""
    ip: Optional[str] = "192.168.1.143"
    security: Optional[WiFiSecurity] = None


class WireGuardConfig(SubsystemConfig):
    enabled: bool = False
    status: VPNStatus = "disconnected"
    config: Optional[str] = "[Interface]\nPrivateKey = ...\nAddress = 10.0.0.5/32"

    def to_wire(self) -> Dict[str, Any]:
        # status is runtime state, the agent only stores these
        return {"blocked": self.blocked, "enabled": self.enabled, "config": self.config}


class TailscaleConfig(SubsystemConfig):
    enabled: bool = False
    status: VPNStatus = "disconnected"
    preauthkey: Optional[str] = ""
    exit_node: bool = Field(False, alias="exitNode")
    server_url: Optional[str] = Field("https://controlplane.tailscale.com", alias="serverUrl")

    def to_wire(self) -> Dict[str, Any]:
        return {
            "blocked": self.blocked,
            "enabled": self.enabled,
            "preauthkey": self.preauthkey,
            "exitNode": self.exit_node,
            "serverUrl": self.server_url,
        }


SUBSYSTEM_MODELS = {
    "ethernet": EthernetConfig,
    "wifi": WiFiConfig,
    "wireguard": WireGuardConfig,
    "tailscale": TailscaleConfig,
}

# Fields flipped by the enable switches, applied without an edit session
TOGGLE_FIELDS = {
    "wifi": {"enabled"},
    "wireguard": {"enabled"},
    "tailscale": {"enabled"},
}


class Port(BaseModel):
    id: int = Field(ge=1, le=4)
    power: bool


def default_ports() -> List[Port]:
    return [
        Port(id=1, power=True),
        Port(id=2, power=True),
        Port(id=3, power=False),
        Port(id=4, power=True),
    ]


class ConfigPayload(BaseModel):
    """Body of PUT /api/config: always the complete configuration."""

    ports: List[Port]
    ethernet: Dict[str, Any]
    wifi: Dict[str, Any]
    wireguard: Dict[str, Any]
    tailscale: Dict[str, Any]


class RemoteConfig(BaseModel):
    """GET /api/config response; every section may be missing."""

    model_config = ConfigDict(extra="ignore")

    ports: Optional[List[Dict[str, Any]]] = None
    ethernet: Optional[Dict[str, Any]] = None
    wifi: Optional[Dict[str, Any]] = None
    wireguard: Optional[Dict[str, Any]] = None
    tailscale: Optional[Dict[str, Any]] = None
