from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Union

@dataclass(frozen=True, slots=True)
class PriceOk:
    value: float

    @property
    def price(self) -> Optional[float]:
        return self.value

    @property
    def rate_limited(self) -> bool:
        return False

    @property
    def error(self) -> Optional[str]:
        return None

@dataclass(frozen=True, slots=True)
class RateLimited:
    """Provider refused the call because the quota is exhausted."""
    message: str = "rate limited"

    @property
    def price(self) -> Optional[float]:
        return None

    @property
    def rate_limited(self) -> bool:
        return True

    @property
    def error(self) -> Optional[str]:
        return self.message

@dataclass(frozen=True, slots=True)
class FetchFailed:
    """No usable quote: missing field, missing key, 4xx, or retries exhausted."""
    message: str

    @property
    def price(self) -> Optional[float]:
        return None

    @property
    def rate_limited(self) -> bool:
        return False

    @property
    def error(self) -> Optional[str]:
        return self.message

QuoteResult = Union[PriceOk, RateLimited, FetchFailed]

class QuoteSource(Protocol):
    async def fetch_price(self, symbol: str) -> QuoteResult: ...
