from __future__ import annotations

import time
from datetime import datetime, timezone

MS_PER_HOUR = 3_600_000

def utc_now_ms() -> int:
    """Unix epoch milliseconds (int)."""
    return time.time_ns() // 1_000_000

def hours_ago_ms(hours: float, now_ms: int | None = None) -> int:
    """Epoch ms cutoff `hours` before now (or before `now_ms`)."""
    now = utc_now_ms() if now_ms is None else now_ms
    return now - int(hours * MS_PER_HOUR)

def utc_dt_ms(ts_ms: int) -> datetime:
    """Epoch milliseconds -> timezone-aware UTC datetime."""
    return datetime.fromtimestamp(ts_ms / 1000.0, tz=timezone.utc)
