from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Type, TypeVar

from ..errors import (
    EditSessionClosedError,
    InvalidFieldError,
    NotDirtyError,
    SubsystemBlockedError,
    UnknownPortError,
    UnknownSubsystemError,
)
from ..models.config import (
    SUBSYSTEM_MODELS,
    TOGGLE_FIELDS,
    ConfigPayload,
    Port,
    RemoteConfig,
    SubsystemConfig,
    default_ports,
)


log = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=SubsystemConfig)


class Subsystem(Generic[PayloadT]):
    """Confirmed/draft pair for one configurable subsystem."""

    def __init__(self, kind: str, initial: PayloadT) -> None:
        self.kind = kind
        self.confirmed: PayloadT = initial
        self.draft: PayloadT = initial
        self.editing = False

    @property
    def model(self) -> Type[PayloadT]:
        return type(self.confirmed)

    @property
    def blocked(self) -> bool:
        return self.confirmed.blocked

    @property
    def dirty(self) -> bool:
        return self.draft != self.confirmed

    def view(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "confirmed": self.confirmed.model_dump(by_alias=True),
            "draft": self.draft.model_dump(by_alias=True),
            "editing": self.editing,
            "blocked": self.blocked,
            "dirty": self.dirty,
        }


def _normalize_patch(model: Type[SubsystemConfig], patch: Mapping[str, Any]) -> Dict[str, Any]:
    """Map field names in ``patch`` to wire aliases; reject unknown or locked fields."""
    aliases = {name: (f.alias or name) for name, f in model.model_fields.items()}
    known = set(aliases.values())
    out: Dict[str, Any] = {}
    for key, value in patch.items():
        wire = aliases.get(key, key)
        if wire not in known:
            raise InvalidFieldError(f"Unknown field for {model.__name__}: {key}")
        if wire == "blocked":
            raise InvalidFieldError("blocked is set by the agent and cannot be edited")
        out[wire] = value
    return out


class ConfigStore:
    """User intent for every subsystem plus hub port power.

    ``persist`` receives the complete configuration after every apply or
    immediate toggle. Local state is never rolled back if persisting fails.
    """

    def __init__(self, persist: Callable[[ConfigPayload], Any]) -> None:
        self._persist = persist
        self._subsystems: Dict[str, Subsystem[Any]] = {
            kind: Subsystem(kind, model()) for kind, model in SUBSYSTEM_MODELS.items()
        }
        self._ports: List[Port] = default_ports()

    # -- accessors -----------------------------------------------------------

    def get(self, kind: str) -> Subsystem[Any]:
        try:
            return self._subsystems[kind]
        except KeyError:
            raise UnknownSubsystemError(kind) from None

    def kinds(self) -> List[str]:
        return list(self._subsystems)

    @property
    def ports(self) -> List[Port]:
        return list(self._ports)

    def port(self, port_id: int) -> Port:
        for port in self._ports:
            if port.id == port_id:
                return port
        raise UnknownPortError(port_id)

    def payload(self) -> ConfigPayload:
        return ConfigPayload(
            ports=[Port(id=p.id, power=p.power) for p in self._ports],
            **{kind: sub.confirmed.to_wire() for kind, sub in self._subsystems.items()},
        )

    # -- bootstrap -----------------------------------------------------------

    def load(self, remote: RemoteConfig) -> None:
        """Adopt the agent's persisted configuration.

        Missing sections and missing fields keep their local values. An open
        edit session keeps its draft.
        """
        for kind, sub in self._subsystems.items():
            section: Optional[Dict[str, Any]] = getattr(remote, kind)
            if not section:
                continue
            merged = {**sub.confirmed.model_dump(by_alias=True), **section}
            sub.confirmed = sub.model.model_validate(merged)
            if not sub.editing:
                sub.draft = sub.confirmed
        if remote.ports:
            saved = {p.get("id"): p for p in remote.ports if isinstance(p, dict)}
            self._ports = [
                Port(id=p.id, power=bool(saved[p.id].get("power", p.power))) if p.id in saved else p
                for p in self._ports
            ]
        log.info("loaded configuration from agent")

    # -- edit sessions -------------------------------------------------------

    def begin_edit(self, kind: str) -> Subsystem[Any]:
        sub = self.get(kind)
        if sub.blocked:
            raise SubsystemBlockedError(kind)
        sub.editing = True
        return sub

    def cancel_edit(self, kind: str) -> Subsystem[Any]:
        sub = self.get(kind)
        sub.editing = False
        sub.draft = sub.confirmed
        return sub

    def toggle_edit(self, kind: str) -> Subsystem[Any]:
        if self.get(kind).editing:
            return self.cancel_edit(kind)
        return self.begin_edit(kind)

    def update_draft(self, kind: str, patch: Mapping[str, Any]) -> Subsystem[Any]:
        sub = self.get(kind)
        if not sub.editing:
            raise EditSessionClosedError(kind)
        merged = {**sub.draft.model_dump(by_alias=True), **_normalize_patch(sub.model, patch)}
        sub.draft = sub.model.model_validate(merged)
        return sub

    def apply(self, kind: str) -> ConfigPayload:
        sub = self.get(kind)
        if sub.blocked:
            raise SubsystemBlockedError(kind)
        if not sub.dirty:
            raise NotDirtyError(kind)
        sub.confirmed = sub.draft
        sub.editing = False
        log.info("applying %s", kind)
        return self._commit()

    # -- immediate actions ---------------------------------------------------

    def toggle_immediate(self, kind: str, field: str = "enabled") -> ConfigPayload:
        sub = self.get(kind)
        if field not in TOGGLE_FIELDS.get(kind, set()):
            raise InvalidFieldError(f"{kind}.{field} is not a toggle")
        if sub.blocked:
            raise SubsystemBlockedError(kind)
        value = not getattr(sub.confirmed, field)
        sub.confirmed = sub.confirmed.model_copy(update={field: value})
        if sub.editing:
            # keep the open session's other edits, but not dirty from the toggle itself
            sub.draft = sub.draft.model_copy(update={field: value})
        else:
            sub.draft = sub.confirmed
        log.info("%s.%s -> %s", kind, field, value)
        return self._commit()

    def toggle_port(self, port_id: int) -> ConfigPayload:
        current = self.port(port_id)
        self._ports = [
            Port(id=p.id, power=not p.power) if p.id == port_id else p for p in self._ports
        ]
        log.info("port %d power -> %s", port_id, not current.power)
        return self._commit()

    def _commit(self) -> ConfigPayload:
        payload = self.payload()
        self._persist(payload)
        return payload
