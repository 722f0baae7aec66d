from __future__ import annotations

import asyncio
from typing import Optional, Sequence

import structlog

from pricewatch.cycle import Monitor
from pricewatch.utils.types import CycleResult, StockConfig

log = structlog.get_logger("poller")


class Poller:
    """
    Background polling session: one asyncio.Task owns the loop
    (run cycle → sleep interval_s → repeat). start() is a no-op while that
    task is alive; stop() cancels and awaits it.
    """
    def __init__(self, monitor: Monitor, configs: Sequence[StockConfig], interval_s: float):
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self.monitor = monitor
        self.configs = list(configs)
        self.interval_s = float(interval_s)
        self.last_result: Optional[CycleResult] = None
        self.cycles = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            log.info("poller_already_running")
            return
        self._task = asyncio.create_task(self._loop(), name="pricewatch-poller")
        log.info("poller_started", interval_s=self.interval_s, symbols=[c.symbol for c in self.configs])

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        log.info("poller_stopped", cycles=self.cycles)

    async def _loop(self) -> None:
        while True:
            try:
                self.last_result = await self.monitor.run_cycle(self.configs)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.error("poll_cycle_failed", err=str(e), exc_info=True)
            self.cycles += 1
            await asyncio.sleep(self.interval_s)
