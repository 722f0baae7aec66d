from __future__ import annotations

import numpy as np

from pricewatch.utils.types import PriceSample

class PriceSeries:
    """
    Capped, time-ordered price series for one symbol.
    Arrays:
      epoch_ms[int64], price[float64]  (ascending by epoch_ms)

    Out-of-order samples are inserted at their sorted position; once size
    exceeds capacity the lowest timestamps are dropped.
    """
    __slots__ = ("capacity", "epoch_ms", "price")

    def __init__(self, capacity: int = 1000):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = int(capacity)
        self.epoch_ms = np.empty(0, dtype=np.int64)
        self.price = np.empty(0, dtype=np.float64)

    @property
    def size(self) -> int:
        return int(self.epoch_ms.size)

    def append(self, sample: PriceSample) -> int:
        """Insert sample; return how many old entries were evicted."""
        # side="right" keeps arrival order among equal timestamps
        i = int(np.searchsorted(self.epoch_ms, sample.timestamp, side="right"))
        self.epoch_ms = np.insert(self.epoch_ms, i, sample.timestamp)
        self.price = np.insert(self.price, i, sample.price)
        excess = self.size - self.capacity
        if excess > 0:
            self.epoch_ms = self.epoch_ms[excess:]
            self.price = self.price[excess:]
            return excess
        return 0

    def since(self, cutoff_ms: int) -> list[PriceSample]:
        """All samples with epoch_ms >= cutoff_ms, ascending."""
        start = int(np.searchsorted(self.epoch_ms, cutoff_ms, side="left"))
        return [
            PriceSample(price=float(p), timestamp=int(t))
            for t, p in zip(self.epoch_ms[start:], self.price[start:])
        ]

    def last(self) -> PriceSample | None:
        if self.size == 0:
            return None
        return PriceSample(price=float(self.price[-1]), timestamp=int(self.epoch_ms[-1]))
