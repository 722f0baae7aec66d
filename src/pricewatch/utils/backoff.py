from __future__ import annotations

from itertools import islice
from typing import Iterator

def next_backoff(prev: float, cap: float) -> float:
    """Exponential backoff progression with cap (no jitter)."""
    return min(prev * 2.0, cap)

def backoff_iter(initial: float = 1.0, cap: float = 30.0) -> Iterator[float]:
    """
    Deterministic (no jitter) iterator of backoff values:
    1, 2, 4, 8, ... (capped).
    """
    v = initial
    while True:
        yield v
        v = next_backoff(v, cap)

def retry_delays(retries: int, initial: float = 1.0, cap: float = 30.0) -> list[float]:
    """Sleep before each retry: retry_delays(2) -> [1.0, 2.0]."""
    return list(islice(backoff_iter(initial, cap), max(0, retries)))
