from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import aiohttp
import structlog

from pricewatch.quotes.result import FetchFailed, PriceOk, QuoteResult, RateLimited
from pricewatch.utils.backoff import retry_delays

log = structlog.get_logger("alpha_vantage")

# Alpha Vantage answers throttled calls with HTTP 200 and one of these fields
RATE_LIMIT_FIELDS = ("Note", "Information")


@dataclass(slots=True)
class AlphaVantageConfig:
    api_key: Optional[str]
    base_url: str = "https://www.alphavantage.co/query"
    timeout_s: float = 10.0
    max_retries: int = 2              # additional attempts after the first
    initial_backoff_s: float = 1.0    # 1s, then 2s
    max_backoff_s: float = 8.0


class _Retryable(Exception):
    """Transient failure (network or 5xx); caller may try again."""


class AlphaVantageClient:
    """
    GLOBAL_QUOTE fetcher. Every outcome is normalized into a QuoteResult;
    only cancellation escapes fetch_price().

    Usage:
        client = AlphaVantageClient(AlphaVantageConfig(api_key=...))
        res = await client.fetch_price("AMZN")
        if res.price is not None: ...
        await client.close()
    """

    def __init__(
        self,
        cfg: AlphaVantageConfig,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.cfg = cfg
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.cfg.timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def fetch_price(self, symbol: str) -> QuoteResult:
        symbol = (symbol or "").strip().upper()
        if not symbol:
            return FetchFailed("symbol must be a non-empty ticker")
        if not self.cfg.api_key:
            log.warning("api_key_missing", symbol=symbol)
            return FetchFailed("ALPHA_VANTAGE_KEY not configured")

        delays = retry_delays(self.cfg.max_retries, self.cfg.initial_backoff_s, self.cfg.max_backoff_s)
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._fetch_once(symbol)
            except _Retryable as e:
                if attempt > len(delays):
                    log.error("fetch_give_up_after_retries", symbol=symbol, attempts=attempt, err=str(e))
                    return FetchFailed(str(e))
                wait = delays[attempt - 1]
                log.warning("fetch_retry", symbol=symbol, attempt=attempt, backoff_s=wait, err=str(e))
                await self._sleep(wait)

    async def _fetch_once(self, symbol: str) -> QuoteResult:
        params = {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.cfg.api_key}
        try:
            async with self._get_session().get(self.cfg.base_url, params=params) as resp:
                if resp.status == 429:
                    return RateLimited(f"HTTP 429 for {symbol}")
                if 500 <= resp.status < 600:
                    raise _Retryable(f"HTTP {resp.status}")
                if resp.status >= 400:
                    log.warning("fetch_client_error", symbol=symbol, status=resp.status)
                    return FetchFailed(f"HTTP {resp.status}")
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise _Retryable(f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            # body was not JSON
            return FetchFailed(f"invalid response body: {e}")

        return parse_global_quote(symbol, data)


def parse_global_quote(symbol: str, data) -> QuoteResult:
    """Map a decoded GLOBAL_QUOTE body onto a QuoteResult."""
    if not isinstance(data, dict):
        return FetchFailed(f"no quote data for {symbol}")

    for k in RATE_LIMIT_FIELDS:
        if data.get(k):
            log.warning("provider_rate_limited", symbol=symbol, note=str(data[k])[:200])
            return RateLimited(str(data[k]))

    quote = data.get("Global Quote") or {}
    raw = quote.get("05. price") if isinstance(quote, dict) else None
    if not raw:
        log.info("no_price_data", symbol=symbol)
        return FetchFailed(f"no quote data for {symbol}")
    try:
        px = float(raw)
    except (TypeError, ValueError):
        return FetchFailed(f"unparsable price for {symbol}: {raw!r}")
    if px <= 0:
        return FetchFailed(f"non-positive price for {symbol}: {px}")

    log.debug("price_fetched", symbol=symbol, price=px)
    return PriceOk(px)
