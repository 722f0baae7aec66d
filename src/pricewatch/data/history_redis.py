# src/pricewatch/data/history_redis.py
from __future__ import annotations

import json
from typing import Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from pricewatch.data.history import DEFAULT_CAP, DEFAULT_WINDOW_HOURS
from pricewatch.errors import StorageError
from pricewatch.utils.time import hours_ago_ms
from pricewatch.utils.types import PriceSample

log = structlog.get_logger("history_redis")


def key(symbol: str) -> str:
    # price:{SYM}
    return f"price:{symbol.upper()}"


def encode(sample: PriceSample) -> str:
    return json.dumps({"price": sample.price, "timestamp": sample.timestamp})


def decode(member) -> PriceSample:
    if isinstance(member, bytes):
        member = member.decode("utf-8")
    d = json.loads(member) if isinstance(member, str) else member
    return PriceSample(price=float(d["price"]), timestamp=int(d["timestamp"]))


class RedisHistoryStore:
    """
    Sorted set per symbol: score = epoch ms, member = JSON {price, timestamp}.
    ZADD + ZREMRANGEBYRANK run in one MULTI/EXEC so the cap holds under
    concurrent appends.
    """
    def __init__(self, r: Redis, cap: int = DEFAULT_CAP):
        self._r = r
        self.cap = int(cap)

    @classmethod
    def from_url(cls, url: str, cap: int = DEFAULT_CAP) -> "RedisHistoryStore":
        return cls(Redis.from_url(url, decode_responses=True), cap=cap)

    async def append(self, symbol: str, sample: PriceSample) -> None:
        k = key(symbol)
        try:
            async with self._r.pipeline(transaction=True) as p:
                p.zadd(k, {encode(sample): sample.timestamp})
                # keep the `cap` highest scores; ranks are ascending by score
                p.zremrangebyrank(k, 0, -(self.cap + 1))
                await p.execute()
        except RedisError as e:
            raise StorageError(f"append {k} failed: {e}") from e

    async def query(self, symbol: str, window_hours: float = DEFAULT_WINDOW_HOURS) -> list[PriceSample]:
        k = key(symbol)
        cutoff = hours_ago_ms(window_hours)
        try:
            members = await self._r.zrangebyscore(k, cutoff, "+inf")
        except RedisError as e:
            raise StorageError(f"query {k} failed: {e}") from e
        return [decode(m) for m in members]

    async def latest(self, symbol: str) -> Optional[PriceSample]:
        k = key(symbol)
        try:
            members = await self._r.zrange(k, -1, -1)
        except RedisError as e:
            raise StorageError(f"latest {k} failed: {e}") from e
        if not members:
            return None
        return decode(members[0])

    async def close(self) -> None:
        try:
            await self._r.aclose()
        except RedisError as e:
            log.warning("redis_close_failed", err=str(e))
