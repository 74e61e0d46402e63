from __future__ import annotations

from typing import Dict, Iterable, List

from ..models.config import Port
from ..models.status import DeviceNode, PortView, UsbDevice


def device_node(device: UsbDevice) -> DeviceNode:
    return DeviceNode(
        id=device.busid,
        name=device.name or device.busid,
        type="device",
        vendor_id=device.vendor_id,
        product_id=device.product_id,
        is_busy=device.occupied,
    )


def group_by_port(devices: Iterable[UsbDevice]) -> Dict[int, List[UsbDevice]]:
    groups: Dict[int, List[UsbDevice]] = {}
    for dev in devices:
        groups.setdefault(dev.port, []).append(dev)
    return groups


def build_port_views(devices: Iterable[UsbDevice], ports: Iterable[Port]) -> List[PortView]:
    """Rebuild the hub -> device view from the latest device poll.

    A powered-off port shows nothing even if the agent still reports devices
    on it; the device list lags behind the power switch.
    """
    groups = group_by_port(devices)
    views: List[PortView] = []
    for port in ports:
        nodes = [device_node(d) for d in groups.get(port.id, [])] if port.power else []
        views.append(PortView(id=port.id, power=port.power, devices=nodes))
    return views
