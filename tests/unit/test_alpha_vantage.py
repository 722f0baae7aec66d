import pytest

from pricewatch.quotes.alpha_vantage import AlphaVantageClient, AlphaVantageConfig, parse_global_quote
from pricewatch.quotes.result import FetchFailed, PriceOk, RateLimited
from tests.helpers.fake_http import FakeResponse, FakeSession, RecordingSleep, network_error, quote_body, timeout_error


def _client(script, api_key="demo-key"):
    session = FakeSession(script)
    sleep = RecordingSleep()
    client = AlphaVantageClient(AlphaVantageConfig(api_key=api_key), session=session, sleep=sleep)
    return client, session, sleep


@pytest.mark.asyncio
async def test_success_sends_global_quote_request():
    client, session, sleep = _client([FakeResponse(200, quote_body(231.25))])
    res = await client.fetch_price("amzn")

    assert res == PriceOk(231.25)
    assert res.price == 231.25 and res.rate_limited is False and res.error is None
    method, url, kwargs = session.calls[0]
    assert method == "GET"
    assert url == "https://www.alphavantage.co/query"
    assert kwargs["params"] == {"function": "GLOBAL_QUOTE", "symbol": "AMZN", "apikey": "demo-key"}
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_fails_twice_then_succeeds_on_third_attempt():
    client, session, sleep = _client([
        network_error(),
        FakeResponse(503, "unavailable"),
        FakeResponse(200, quote_body(199.5)),
    ])
    res = await client.fetch_price("AAPL")

    assert res.price == 199.5
    assert len(session.calls) == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_persistent_network_failure_gives_up_after_two_retries():
    client, session, sleep = _client([timeout_error()])
    res = await client.fetch_price("AAPL")

    assert isinstance(res, FetchFailed)
    assert res.price is None and res.rate_limited is False
    assert "TimeoutError" in res.error
    assert len(session.calls) == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_4xx_is_not_retried():
    client, session, sleep = _client([FakeResponse(403, "forbidden")])
    res = await client.fetch_price("AAPL")

    assert res == FetchFailed("HTTP 403")
    assert len(session.calls) == 1
    assert sleep.delays == []


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"Note": "Thank you for using Alpha Vantage! Our standard API call frequency is 5 calls per minute."},
    {"Information": "We have detected your API key and our standard API rate limit is 25 requests per day."},
])
async def test_throttle_fields_mean_rate_limited(body):
    client, session, _ = _client([FakeResponse(200, body)])
    res = await client.fetch_price("AMZN")

    assert isinstance(res, RateLimited)
    assert res.rate_limited is True and res.price is None
    assert len(session.calls) == 1


@pytest.mark.asyncio
async def test_http_429_is_rate_limited():
    client, session, sleep = _client([FakeResponse(429, "slow down")])
    res = await client.fetch_price("AMZN")
    assert res.rate_limited is True
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_missing_quote_is_soft_failure_not_rate_limit():
    client, _, _ = _client([FakeResponse(200, {"Global Quote": {}})])
    res = await client.fetch_price("ZZZZ")
    assert res.price is None
    assert res.rate_limited is False
    assert "no quote data" in res.error


@pytest.mark.asyncio
async def test_missing_api_key_makes_no_request():
    client, session, _ = _client([FakeResponse(200, quote_body(1.0))], api_key=None)
    res = await client.fetch_price("AMZN")
    assert res == FetchFailed("ALPHA_VANTAGE_KEY not configured")
    assert session.calls == []


@pytest.mark.asyncio
async def test_empty_symbol_rejected():
    client, session, _ = _client([FakeResponse(200, quote_body(1.0))])
    res = await client.fetch_price("  ")
    assert res.price is None and not res.rate_limited
    assert session.calls == []


@pytest.mark.asyncio
async def test_non_json_body_is_failure():
    client, _, _ = _client([FakeResponse(200, "<html>oops</html>")])
    res = await client.fetch_price("AMZN")
    assert isinstance(res, FetchFailed)


@pytest.mark.asyncio
async def test_injected_session_is_not_closed():
    client, session, _ = _client([FakeResponse(200, quote_body(1.0))])
    await client.close()
    assert session.closed is False


def test_parse_global_quote_variants():
    assert parse_global_quote("X", {"Global Quote": {"05. price": "12.3400"}}) == PriceOk(12.34)
    assert isinstance(parse_global_quote("X", {"Global Quote": {"05. price": "abc"}}), FetchFailed)
    assert isinstance(parse_global_quote("X", {"Global Quote": {"05. price": "0.0000"}}), FetchFailed)
    assert isinstance(parse_global_quote("X", []), FetchFailed)
    assert isinstance(parse_global_quote("X", {}), FetchFailed)
