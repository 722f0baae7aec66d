from __future__ import annotations

import asyncio
from typing import Optional, Protocol

import structlog

from pricewatch.data.series import PriceSeries
from pricewatch.utils.time import hours_ago_ms
from pricewatch.utils.types import PriceSample

log = structlog.get_logger("history")

DEFAULT_CAP = 1000
DEFAULT_WINDOW_HOURS = 24


class HistoryStore(Protocol):
    async def append(self, symbol: str, sample: PriceSample) -> None: ...

    async def query(self, symbol: str, window_hours: float = DEFAULT_WINDOW_HOURS) -> list[PriceSample]: ...

    async def latest(self, symbol: str) -> Optional[PriceSample]: ...

    async def close(self) -> None: ...


class MemoryHistoryStore:
    """
    In-process history: one PriceSeries per symbol, appends serialized by a
    per-symbol asyncio.Lock so the cap trim never races.
    """
    def __init__(self, cap: int = DEFAULT_CAP):
        self.cap = int(cap)
        self._series: dict[str, PriceSeries] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _get(self, symbol: str) -> PriceSeries:
        s = self._series.get(symbol)
        if s is None:
            s = PriceSeries(self.cap)
            self._series[symbol] = s
        return s

    def _lock(self, symbol: str) -> asyncio.Lock:
        lk = self._locks.get(symbol)
        if lk is None:
            lk = asyncio.Lock()
            self._locks[symbol] = lk
        return lk

    async def append(self, symbol: str, sample: PriceSample) -> None:
        symbol = symbol.upper()
        async with self._lock(symbol):
            dropped = self._get(symbol).append(sample)
        if dropped:
            log.debug("history_trimmed", symbol=symbol, dropped=dropped)

    async def query(self, symbol: str, window_hours: float = DEFAULT_WINDOW_HOURS) -> list[PriceSample]:
        s = self._series.get(symbol.upper())
        if s is None:
            return []
        return s.since(hours_ago_ms(window_hours))

    async def latest(self, symbol: str) -> Optional[PriceSample]:
        s = self._series.get(symbol.upper())
        return s.last() if s is not None else None

    async def close(self) -> None:
        return None
