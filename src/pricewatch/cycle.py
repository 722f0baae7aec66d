# src/pricewatch/cycle.py
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, Optional

import structlog

from pricewatch.alerts.notifiers import Notifier
from pricewatch.alerts.rules import evaluate_threshold
from pricewatch.data.history import HistoryStore
from pricewatch.quotes.result import QuoteSource
from pricewatch.utils.time import utc_now_ms
from pricewatch.utils.types import Alert, CycleResult, PriceSample, StockConfig

log = structlog.get_logger("cycle")

PACING_DELAY_S = 1.5


class Monitor:
    """
    One pass over the enabled stocks: fetch → store → threshold → notify.

    Symbols are processed strictly in order with a fixed pause between fetches
    (not after the last). A failure while handling one symbol is logged and the
    pass continues with the next. Overlapping run_cycle() calls on the same
    Monitor queue up behind an asyncio.Lock.
    """

    def __init__(
        self,
        *,
        quotes: QuoteSource,
        history: HistoryStore,
        notifier: Notifier,
        pacing_delay_s: float = PACING_DELAY_S,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now_ms: Callable[[], int] = utc_now_ms,
    ):
        self.quotes = quotes
        self.history = history
        self.notifier = notifier
        self.pacing_delay_s = pacing_delay_s
        self._sleep = sleep
        self._now_ms = now_ms
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def run_cycle(self, configs: Iterable[StockConfig]) -> CycleResult:
        enabled = [c for c in configs if c.enabled]
        if self._lock.locked():
            log.info("cycle_waiting_for_previous")
        async with self._lock:
            result = CycleResult(checked=len(enabled))
            for i, cfg in enumerate(enabled):
                try:
                    alert = await self._check_one(cfg)
                    if alert is not None:
                        result.alerts.append(alert)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    log.error("symbol_failed", symbol=cfg.symbol, err=str(e), exc_info=True)

                if i < len(enabled) - 1 and self.pacing_delay_s > 0:
                    await self._sleep(self.pacing_delay_s)

            log.info("cycle_done", checked=result.checked, alerts=len(result.alerts))
            return result

    async def _check_one(self, cfg: StockConfig) -> Optional[Alert]:
        res = await self.quotes.fetch_price(cfg.symbol)
        if res.price is None:
            if res.rate_limited:
                log.warning("skip_rate_limited", symbol=cfg.symbol, err=res.error)
            else:
                log.info("skip_no_price", symbol=cfg.symbol, err=res.error)
            return None

        price = res.price
        ts = self._now_ms()
        log.info("price", symbol=cfg.symbol, price=price)

        try:
            await self.history.append(cfg.symbol, PriceSample(price=price, timestamp=ts))
        except Exception as e:
            log.error("history_write_failed", symbol=cfg.symbol, err=str(e))

        alert_type = evaluate_threshold(cfg, price)
        if alert_type is None:
            return None

        log.info(
            "threshold_breach",
            symbol=cfg.symbol,
            type=alert_type,
            price=price,
            lower=cfg.lower_threshold,
            upper=cfg.upper_threshold,
        )
        alert = Alert(symbol=cfg.symbol, price=price, type=alert_type, timestamp=ts)
        try:
            nres = await self.notifier.notify(cfg, price, alert_type)
            alert.notified = nres.success
            alert.issue_url = nres.issue_url
        except Exception as e:
            log.error("notify_failed", symbol=cfg.symbol, err=str(e))
        return alert
