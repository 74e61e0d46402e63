from __future__ import annotations

from collections import deque
from typing import Deque, List

from ..models.status import ThroughputSample


class ThroughputHistory:
    """Fixed-length rx/tx history, oldest sample first.

    Starts full of zero samples so the rate display never renders empty.
    """

    def __init__(self, capacity: int = 60) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._samples: Deque[ThroughputSample] = deque(
            (ThroughputSample() for _ in range(capacity)), maxlen=capacity
        )

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, sample: ThroughputSample) -> None:
        self._samples.append(sample)

    @property
    def latest(self) -> ThroughputSample:
        return self._samples[-1]

    def samples(self) -> List[ThroughputSample]:
        return list(self._samples)

    def __len__(self) -> int:
        return len(self._samples)
