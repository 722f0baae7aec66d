# src/pricewatch/alerts/notifiers.py
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol

import aiohttp
import structlog

from pricewatch.alerts.formatting import format_alert_body, format_alert_line, format_alert_title
from pricewatch.errors import NotifyError
from pricewatch.utils.backoff import retry_delays
from pricewatch.utils.time import utc_now_ms
from pricewatch.utils.types import AlertType, NotifyResult, StockConfig

log = structlog.get_logger("notifier")


class Notifier(Protocol):
    async def notify(self, cfg: StockConfig, price: float, alert_type: AlertType) -> NotifyResult: ...

    async def close(self) -> None: ...


class ConsoleNotifier:
    """Writes the alert to the log only; used when no tracker is configured."""
    def __init__(self, format_fn: Optional[Callable[[StockConfig, float, AlertType], str]] = None):
        self._format_fn = format_fn or format_alert_line

    async def notify(self, cfg: StockConfig, price: float, alert_type: AlertType) -> NotifyResult:
        log.info("alert", symbol=cfg.symbol, type=alert_type, price=price, text=self._format_fn(cfg, price, alert_type))
        return NotifyResult(success=False)

    async def close(self) -> None:
        return None


@dataclass(slots=True)
class GitHubConfig:
    token: str
    repo: str                         # "owner/name"
    api_url: str = "https://api.github.com"
    labels: tuple[str, ...] = ("stock-alert",)
    timeout_s: float = 10.0
    max_retries: int = 2
    initial_backoff_s: float = 1.0
    max_backoff_s: float = 8.0
    tz_name: str = "UTC"


class GitHubIssueNotifier:
    """
    Opens one GitHub issue per alert. Retries 5xx and network errors with
    backoff; other 4xx give up immediately. Raises NotifyError when the issue
    could not be created.
    """
    def __init__(
        self,
        cfg: GitHubConfig,
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

    async def notify(self, cfg: StockConfig, price: float, alert_type: AlertType) -> NotifyResult:
        url = f"{self.cfg.api_url.rstrip('/')}/repos/{self.cfg.repo}/issues"
        payload = {
            "title": format_alert_title(cfg, price, alert_type),
            "body": format_alert_body(cfg, price, alert_type, utc_now_ms(), self.cfg.tz_name),
            "labels": list(self.cfg.labels),
        }
        headers = {
            "Authorization": f"Bearer {self.cfg.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        delays = retry_delays(self.cfg.max_retries, self.cfg.initial_backoff_s, self.cfg.max_backoff_s)
        last_err = "no attempt made"
        for attempt in range(1, len(delays) + 2):
            try:
                async with self._get_session().post(url, json=payload, headers=headers) as resp:
                    if resp.status == 201:
                        data = await resp.json(content_type=None)
                        issue_url = data.get("html_url") if isinstance(data, dict) else None
                        log.info("issue_created", symbol=cfg.symbol, type=alert_type, url=issue_url)
                        return NotifyResult(success=True, issue_url=issue_url)
                    detail = await _maybe_text(resp)
                    last_err = f"HTTP {resp.status}"
                    log.warning("issue_create_failed", status=resp.status, body=detail[:300], attempt=attempt)
                    if not 500 <= resp.status < 600:
                        # 4xx: bad token, missing repo, validation; retrying won't help
                        break
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_err = f"{type(e).__name__}: {e}"
                log.warning("github_network_error", err=str(e), attempt=attempt)
            if attempt <= len(delays):
                await self._sleep(delays[attempt - 1])
        raise NotifyError(f"could not create issue for {cfg.symbol}: {last_err}")


async def _maybe_text(resp: aiohttp.ClientResponse) -> str:
    try:
        return await resp.text()
    except Exception:
        return "<no body>"
