from __future__ import annotations
from datetime import datetime
from zoneinfo import ZoneInfo

from pricewatch.utils.types import AlertType, StockConfig

def _fmt_ts(ts_ms: int, tz_name: str) -> str:
    tz = ZoneInfo(tz_name)
    return datetime.fromtimestamp(ts_ms / 1000.0, tz).strftime("%Y-%m-%d %H:%M:%S %Z")

def format_alert_title(cfg: StockConfig, price: float, alert_type: AlertType) -> str:
    arrow = "↓" if alert_type == "BUY" else "↑"
    return f"[{alert_type}] {cfg.symbol} {arrow} ${price:.2f}"

def format_alert_body(
    cfg: StockConfig,
    price: float,
    alert_type: AlertType,
    ts_ms: int,
    tz_name: str = "UTC",
) -> str:
    if alert_type == "BUY":
        line = f"{cfg.name} ({cfg.symbol}) is trading at **${price:.2f}**, below the buy threshold of ${cfg.lower_threshold:.2f}."
    else:
        line = f"{cfg.name} ({cfg.symbol}) is trading at **${price:.2f}**, above the sell threshold of ${cfg.upper_threshold:.2f}."
    return (
        f"{line}\n\n"
        f"| | |\n|---|---|\n"
        f"| Signal | {alert_type} |\n"
        f"| Price | ${price:.2f} |\n"
        f"| Band | ${cfg.lower_threshold:.2f} – ${cfg.upper_threshold:.2f} |\n"
        f"| Time | {_fmt_ts(ts_ms, tz_name)} |\n"
    )

def format_alert_line(cfg: StockConfig, price: float, alert_type: AlertType) -> str:
    band = f"{cfg.lower_threshold:.2f}–{cfg.upper_threshold:.2f}"
    return f"{format_alert_title(cfg, price, alert_type)}  |  band {band}  ({cfg.name})"
