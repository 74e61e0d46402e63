from __future__ import annotations

import re
from typing import Dict, List, Optional, Pattern, Sequence, Tuple

from ..models.status import DetailRow, InterfaceInfo, InterfaceSnapshot, LiveStatus


# Interface names are volatile (predictable naming, renames after reboot), so
# categories are matched by prefix rules rather than fixed names.
CATEGORY_PATTERNS: Dict[str, List[Pattern[str]]] = {
    "ethernet": [re.compile(r"^eth\d"), re.compile(r"^en[opsx]?\d"), re.compile(r"^en\d")],
    "wifi": [re.compile(r"^wlan\d"), re.compile(r"^wlp\d"), re.compile(r"^wl\d")],
    "wireguard": [re.compile(r"^wg\d")],
    "tailscale": [re.compile(r"^tailscale")],
}

ResolvedInterface = Tuple[str, InterfaceInfo]


def patterns_for(category: str) -> List[Pattern[str]]:
    return CATEGORY_PATTERNS[category]


def resolve(patterns: Sequence[Pattern[str]], snapshot: InterfaceSnapshot) -> Optional[ResolvedInterface]:
    # First match in snapshot order wins; real hubs report at most one per category
    for name, info in snapshot.items():
        if any(p.search(name) for p in patterns):
            return name, info
    return None


def has_live_address(entry: Optional[ResolvedInterface]) -> bool:
    return entry is not None and len(entry[1].ipv4) > 0


def address_label(entry: Optional[ResolvedInterface], fallback: str) -> str:
    if not has_live_address(entry):
        return fallback
    return " · ".join(entry[1].ipv4)  # type: ignore[index]


def detail_rows(entry: ResolvedInterface) -> List[DetailRow]:
    name, info = entry
    rows = [DetailRow(label="iface", value=name)]
    if info.hardware_address:
        rows.append(DetailRow(label="MAC", value=info.hardware_address))
    rows.extend(DetailRow(label="IPv4" if i == 0 else "", value=ip) for i, ip in enumerate(info.ipv4))
    rows.extend(DetailRow(label="IPv6" if i == 0 else "", value=ip) for i, ip in enumerate(info.ipv6))
    return rows


def describe(category: str, snapshot: InterfaceSnapshot) -> LiveStatus:
    """Live status of one category, recomputed from the given snapshot."""
    entry = resolve(patterns_for(category), snapshot)
    if entry is None:
        return LiveStatus(category=category)
    name, info = entry
    return LiveStatus(
        category=category,
        interface=name,
        hardware_address=info.hardware_address or None,
        ipv4=list(info.ipv4),
        ipv6=list(info.ipv6),
        has_address=has_live_address(entry),
        rows=detail_rows(entry),
    )
