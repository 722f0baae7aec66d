from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

# ---- configuration ----

@dataclass(frozen=True, slots=True)
class StockConfig:
    """
    One watched ticker with its BUY/SELL band.
    Fire BUY below lower_threshold, SELL above upper_threshold.
    """
    symbol: str
    name: str
    lower_threshold: float
    upper_threshold: float
    enabled: bool = True

    def __post_init__(self):
        sym = (self.symbol or "").strip().upper()
        if not sym:
            raise ValueError("symbol must be a non-empty ticker")
        if self.upper_threshold <= self.lower_threshold:
            raise ValueError(
                f"{sym}: upper_threshold ({self.upper_threshold}) must be greater "
                f"than lower_threshold ({self.lower_threshold})"
            )
        # frozen: bypass __setattr__ to store the normalized ticker
        object.__setattr__(self, "symbol", sym)

# ---- history ----

@dataclass(frozen=True, slots=True)
class PriceSample:
    price: float
    timestamp: int  # epoch milliseconds

    def to_dict(self) -> dict:
        return {"price": self.price, "timestamp": self.timestamp}

# ---- alerting ----

AlertType = Literal["BUY", "SELL"]

@dataclass(slots=True)
class NotifyResult:
    success: bool
    issue_url: Optional[str] = None
    error: Optional[str] = None

@dataclass(slots=True)
class Alert:
    symbol: str
    price: float
    type: AlertType
    timestamp: int  # epoch milliseconds
    notified: bool = False
    issue_url: Optional[str] = None

    def to_dict(self) -> dict:
        out = {
            "symbol": self.symbol,
            "price": self.price,
            "type": self.type,
            "timestamp": self.timestamp,
            "notified": self.notified,
        }
        if self.issue_url:
            out["issueUrl"] = self.issue_url
        return out

@dataclass(slots=True)
class CycleResult:
    checked: int = 0
    alerts: list[Alert] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"checked": self.checked, "alerts": [a.to_dict() for a in self.alerts]}
