# src/pricewatch/config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from pricewatch.utils.types import StockConfig

DEFAULT_STOCKS: tuple[StockConfig, ...] = (
    StockConfig(symbol="AMZN", name="Amazon", lower_threshold=230, upper_threshold=240, enabled=True),
    StockConfig(symbol="AAPL", name="Apple", lower_threshold=180, upper_threshold=200, enabled=True),
)

_TRUTHY = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(slots=True)
class Settings:
    alpha_vantage_key: Optional[str] = None
    use_mock_data: bool = False
    redis_url: Optional[str] = None
    github_token: Optional[str] = None
    github_repo: Optional[str] = None      # "owner/name"
    pacing_delay_ms: int = 1500
    poll_interval_s: float = 300.0         # 0 disables the background poller
    history_cap: int = 1000
    http_timeout_s: float = 10.0
    log_level: str = "INFO"
    stocks: list[StockConfig] = field(default_factory=lambda: list(DEFAULT_STOCKS))

    @property
    def github_enabled(self) -> bool:
        return bool(self.github_token and self.github_repo)


def parse_stocks(entries: Iterable[dict]) -> list[StockConfig]:
    """
    Build StockConfig list from dicts. Accepts camelCase (lowerThreshold) or
    snake_case keys. Duplicate symbols are rejected.
    """
    out: list[StockConfig] = []
    seen: set[str] = set()
    for e in entries:
        cfg = StockConfig(
            symbol=str(e["symbol"]),
            name=str(e.get("name") or e["symbol"]),
            lower_threshold=float(e.get("lowerThreshold", e.get("lower_threshold"))),
            upper_threshold=float(e.get("upperThreshold", e.get("upper_threshold"))),
            enabled=bool(e.get("enabled", True)),
        )
        if cfg.symbol in seen:
            raise ValueError(f"duplicate stock symbol: {cfg.symbol}")
        seen.add(cfg.symbol)
        out.append(cfg)
    return out


def load_stocks(path: str | Path) -> list[StockConfig]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of stock configs")
    return parse_stocks(data)


def settings_from_env() -> Settings:
    """
    Read Settings from the process environment. Call load_dotenv() first if a
    .env file should be honoured.
    """
    stocks_file = os.getenv("STOCKS_FILE")
    stocks = load_stocks(stocks_file) if stocks_file else list(DEFAULT_STOCKS)

    return Settings(
        alpha_vantage_key=os.getenv("ALPHA_VANTAGE_KEY") or None,
        use_mock_data=_env_flag("USE_MOCK_DATA"),
        redis_url=os.getenv("REDIS_URL") or None,
        github_token=os.getenv("GITHUB_TOKEN") or None,
        github_repo=os.getenv("GITHUB_REPO") or None,
        pacing_delay_ms=int(_env_float("PACING_DELAY_MS", 1500)),
        poll_interval_s=_env_float("POLL_INTERVAL_S", 300.0),
        history_cap=int(_env_float("HISTORY_CAP", 1000)),
        http_timeout_s=_env_float("HTTP_TIMEOUT_S", 10.0),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        stocks=stocks,
    )
