from __future__ import annotations

import itertools
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..models.status import Notification
from ..utils.timers import Scheduler


log = logging.getLogger(__name__)


class NotificationQueue:
    """Self-expiring queue of agent-reported failures.

    Every pushed message gets a fresh id and lives for exactly ``ttl`` seconds
    unless dismissed first. There is no dedup: the same message twice is two
    entries. The queue does not know which action caused a failure.
    """

    def __init__(self, scheduler: Scheduler, ttl: float = 15.0) -> None:
        self._scheduler = scheduler
        self._ttl = ttl
        self._ids = itertools.count(1)
        # dict keeps arrival order
        self._entries: Dict[int, Notification] = {}
        self._timers: Dict[int, Any] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def push(self, message: str) -> int:
        nid = next(self._ids)
        self._entries[nid] = Notification(
            id=nid, message=message, created_at=datetime.now(timezone.utc)
        )
        self._timers[nid] = self._scheduler.call_later(self._ttl, self._expire, nid)
        log.info("agent error #%d: %s", nid, message)
        return nid

    def dismiss(self, nid: int) -> bool:
        """Manual removal; cancels the pending expiry. False if already gone."""
        timer = self._timers.pop(nid, None)
        if timer is not None:
            self._scheduler.cancel(timer)
        return self._entries.pop(nid, None) is not None

    def evict(self, nid: int) -> bool:
        return self.dismiss(nid)

    def _expire(self, nid: int) -> None:
        self._timers.pop(nid, None)
        self._entries.pop(nid, None)

    def list(self) -> List[Notification]:
        return list(self._entries.values())

    def get(self, nid: int) -> Optional[Notification]:
        return self._entries.get(nid)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, nid: object) -> bool:
        return nid in self._entries

    def close(self) -> None:
        for timer in self._timers.values():
            self._scheduler.cancel(timer)
        self._timers.clear()
        self._entries.clear()
