from __future__ import annotations

import random
from typing import Optional

import structlog

from pricewatch.quotes.result import FetchFailed, PriceOk, QuoteResult

log = structlog.get_logger("mock_quotes")

BASE_PRICES: dict[str, float] = {
    "AMZN": 210.0,
    "AAPL": 275.0,
}
DEFAULT_BASE = 100.0
DEFAULT_RANGE = 5.0

class MockQuoteSource:
    """
    Synthetic quotes for demo/testing: base ± uniform(range), rounded to cents.
    No network, never rate limited.
    """
    def __init__(
        self,
        base_prices: Optional[dict[str, float]] = None,
        variation: float = DEFAULT_RANGE,
        rng: Optional[random.Random] = None,
    ):
        self.base_prices = dict(BASE_PRICES if base_prices is None else base_prices)
        self.variation = float(variation)
        self._rng = rng or random.Random()

    def price_for(self, symbol: str) -> float:
        base = self.base_prices.get(symbol.upper(), DEFAULT_BASE)
        delta = (self._rng.random() - 0.5) * 2.0 * self.variation
        # keep strictly positive for tiny bases
        return max(0.01, round(base + delta, 2))

    async def fetch_price(self, symbol: str) -> QuoteResult:
        if not symbol or not symbol.strip():
            return FetchFailed("symbol must be a non-empty ticker")
        px = self.price_for(symbol.strip())
        log.debug("mock_price", symbol=symbol, price=px)
        return PriceOk(px)

    async def close(self) -> None:
        return None
