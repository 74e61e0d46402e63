from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import Dict, List, Literal, Optional
from datetime import datetime


class ThroughputSample(BaseModel):
    rx: float = 0.0
    tx: float = 0.0


class UsbDevice(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    busid: str
    vendor_id: str = Field("", alias="vendorId")
    product_id: str = Field("", alias="productId")
    name: str = ""
    port: int = 0
    occupied: bool = False


class InterfaceInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ipv4: List[str] = Field(default_factory=list)
    ipv6: List[str] = Field(default_factory=list)
    hardware_address: str = Field("", alias="mac")


InterfaceSnapshot = Dict[str, InterfaceInfo]


class HostMetrics(BaseModel):
    cpu: int = 0
    ram: int = 0
    uptime: str = "..."


class WifiNetwork(BaseModel):
    ssid: str
    signal: int = -100  # dBm
    security: str = "open"


class ReportedError(BaseModel):
    """One entry of GET /api/errors."""

    message: str


class Notification(BaseModel):
    id: int
    message: str
    created_at: datetime


class DeviceNode(BaseModel):
    id: str
    name: str
    type: Literal["hub", "device"] = "device"
    vendor_id: Optional[str] = None
    product_id: Optional[str] = None
    is_busy: bool = False
    children: List["DeviceNode"] = Field(default_factory=list)


class PortView(BaseModel):
    id: int
    power: bool
    devices: List[DeviceNode] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def state(self) -> str:
        if not self.power:
            return "power_disabled"
        return "populated" if self.devices else "empty"


class DetailRow(BaseModel):
    label: str
    value: str


class LiveStatus(BaseModel):
    category: str
    interface: Optional[str] = None
    hardware_address: Optional[str] = None
    ipv4: List[str] = Field(default_factory=list)
    ipv6: List[str] = Field(default_factory=list)
    has_address: bool = False
    rows: List[DetailRow] = Field(default_factory=list)
