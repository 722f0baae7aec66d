from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pricewatch.alerts.notifiers import ConsoleNotifier, GitHubConfig, GitHubIssueNotifier, Notifier
from pricewatch.config import Settings
from pricewatch.cycle import Monitor
from pricewatch.data.history import HistoryStore, MemoryHistoryStore
from pricewatch.data.history_redis import RedisHistoryStore
from pricewatch.errors import PriceWatchError, StorageError
from pricewatch.poller import Poller
from pricewatch.quotes.alpha_vantage import AlphaVantageClient, AlphaVantageConfig
from pricewatch.quotes.mock import MockQuoteSource
from pricewatch.quotes.result import QuoteSource
from pricewatch.routes import router

log = structlog.get_logger("app")


@dataclass(slots=True)
class Services:
    settings: Settings
    quotes: QuoteSource
    history: HistoryStore
    notifier: Notifier
    monitor: Monitor
    poller: Optional[Poller] = None

    async def aclose(self) -> None:
        if self.poller is not None:
            await self.poller.stop()
        for obj in (self.quotes, self.notifier, self.history):
            close = getattr(obj, "close", None)
            if close is None:
                continue
            try:
                await close()
            except Exception as e:
                log.warning("close_failed", component=type(obj).__name__, err=str(e))


def build_services(
    settings: Settings,
    *,
    quotes: Optional[QuoteSource] = None,
    history: Optional[HistoryStore] = None,
    notifier: Optional[Notifier] = None,
) -> Services:
    """Wire collaborators from settings; explicit arguments win (tests inject fakes)."""
    if quotes is None:
        if settings.use_mock_data:
            quotes = MockQuoteSource()
        else:
            quotes = AlphaVantageClient(
                AlphaVantageConfig(api_key=settings.alpha_vantage_key, timeout_s=settings.http_timeout_s)
            )
    if history is None:
        if settings.redis_url:
            history = RedisHistoryStore.from_url(settings.redis_url, cap=settings.history_cap)
        else:
            history = MemoryHistoryStore(cap=settings.history_cap)
    if notifier is None:
        if settings.github_enabled:
            notifier = GitHubIssueNotifier(
                GitHubConfig(token=settings.github_token, repo=settings.github_repo, timeout_s=settings.http_timeout_s)
            )
        else:
            notifier = ConsoleNotifier()

    monitor = Monitor(
        quotes=quotes,
        history=history,
        notifier=notifier,
        pacing_delay_s=settings.pacing_delay_ms / 1000.0,
    )
    poller = None
    if settings.poll_interval_s > 0:
        poller = Poller(monitor, settings.stocks, settings.poll_interval_s)

    log.info(
        "services_built",
        quotes=type(quotes).__name__,
        history=type(history).__name__,
        notifier=type(notifier).__name__,
        poll_interval_s=settings.poll_interval_s,
    )
    return Services(settings=settings, quotes=quotes, history=history, notifier=notifier, monitor=monitor, poller=poller)


def create_app(settings: Settings, **overrides) -> FastAPI:
    services = build_services(settings, **overrides)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if services.poller is not None:
            await services.poller.start()
        yield
        await services.aclose()

    app = FastAPI(
        title="pricewatch",
        version="0.1.0",
        description="Stock price threshold monitor with bounded price history.",
        lifespan=lifespan,
    )
    app.state.services = services

    @app.exception_handler(PriceWatchError)
    async def _handle_error(request: Request, exc: PriceWatchError):
        if isinstance(exc, StorageError):
            log.error("storage_error", path=request.url.path, err=str(exc))
            return JSONResponse(status_code=exc.status_code, content={"error": "Failed to access price history"})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    app.include_router(router)
    return app
