# src/pricewatch/routes.py
from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from pricewatch.errors import InvalidParameter, MissingParameter
from pricewatch.data.history import DEFAULT_WINDOW_HOURS
from pricewatch.utils.time import utc_now_ms
from pricewatch.utils.types import PriceSample

log = structlog.get_logger("api")

router = APIRouter()


def _require_symbol(symbol: Optional[str]) -> str:
    if symbol is None or not symbol.strip():
        raise MissingParameter("Missing required query parameter: symbol")
    return symbol.strip().upper()


def _parse_hours(raw: Optional[str]) -> int:
    if raw is None or raw == "":
        return DEFAULT_WINDOW_HOURS
    try:
        hours = int(raw)
    except ValueError:
        raise InvalidParameter(f"hours must be a positive integer, got {raw!r}") from None
    if hours <= 0:
        raise InvalidParameter(f"hours must be a positive integer, got {raw!r}")
    return hours


@router.get("/check-stocks")
async def check_stocks(request: Request):
    svc = request.app.state.services
    result = await svc.monitor.run_cycle(svc.settings.stocks)
    return result.to_dict()


@router.get("/price")
async def price(request: Request, symbol: Optional[str] = None):
    sym = _require_symbol(symbol)
    svc = request.app.state.services
    try:
        res = await svc.quotes.fetch_price(sym)
    except Exception as e:
        log.error("price_route_error", symbol=sym, err=str(e), exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    if res.rate_limited:
        return JSONResponse(
            status_code=429,
            content={"error": f"Quote provider rate limit reached for symbol: {sym}", "detail": res.error},
        )
    if res.price is None:
        return JSONResponse(
            status_code=502,
            content={"error": f"Failed to fetch price for symbol: {sym}", "detail": res.error},
        )

    ts = utc_now_ms()
    try:
        await svc.history.append(sym, PriceSample(price=res.price, timestamp=ts))
    except Exception as e:
        log.error("history_write_failed", symbol=sym, err=str(e))
    return {"symbol": sym, "price": res.price, "timestamp": ts}


@router.get("/history")
async def history(request: Request, symbol: Optional[str] = None, hours: Optional[str] = None):
    sym = _require_symbol(symbol)
    window = _parse_hours(hours)
    svc = request.app.state.services
    samples = await svc.history.query(sym, window)
    return [s.to_dict() for s in samples]


@router.get("/latest")
async def latest(request: Request, symbol: Optional[str] = None):
    sym = _require_symbol(symbol)
    svc = request.app.state.services
    sample = await svc.history.latest(sym)
    if sample is None:
        return JSONResponse(status_code=404, content={"error": f"No price history for symbol: {sym}"})
    return {"symbol": sym, **sample.to_dict()}


@router.get("/health")
async def health(request: Request):
    s = request.app.state.services.settings
    return {
        "message": "API works",
        "timestamp": utc_now_ms(),
        "hasApiKey": bool(s.alpha_vantage_key),
        "hasGithubToken": bool(s.github_token),
        "mock": s.use_mock_data,
    }
