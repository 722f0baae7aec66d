# src/pricewatch/alerts/rules.py
from __future__ import annotations

from typing import Optional

from pricewatch.utils.types import AlertType, StockConfig

def evaluate_threshold(cfg: StockConfig, price: float) -> Optional[AlertType]:
    """
    Band check for one price:
      price <  lower_threshold → "BUY"
      price >  upper_threshold → "SELL"
      lower <= price <= upper  → None (boundaries are inside the band)
    """
    if price < cfg.lower_threshold:
        return "BUY"
    if price > cfg.upper_threshold:
        return "SELL"
    return None
