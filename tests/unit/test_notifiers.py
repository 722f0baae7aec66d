import pytest

from pricewatch.alerts.formatting import format_alert_body, format_alert_title
from pricewatch.alerts.notifiers import ConsoleNotifier, GitHubConfig, GitHubIssueNotifier
from pricewatch.errors import NotifyError
from pricewatch.utils.types import StockConfig
from tests.helpers.fake_http import FakeResponse, FakeSession, RecordingSleep, network_error

AMZN = StockConfig(symbol="AMZN", name="Amazon", lower_threshold=230, upper_threshold=240)
ISSUE_URL = "https://github.com/acme/alerts/issues/7"


def _notifier(script):
    session = FakeSession(script)
    sleep = RecordingSleep()
    n = GitHubIssueNotifier(GitHubConfig(token="t0k", repo="acme/alerts"), session=session, sleep=sleep)
    return n, session, sleep


@pytest.mark.asyncio
async def test_issue_created_returns_url():
    n, session, _ = _notifier([FakeResponse(201, {"html_url": ISSUE_URL, "number": 7})])
    res = await n.notify(AMZN, 225.0, "BUY")

    assert res.success is True
    assert res.issue_url == ISSUE_URL
    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url == "https://api.github.com/repos/acme/alerts/issues"
    assert kwargs["headers"]["Authorization"] == "Bearer t0k"
    assert kwargs["json"]["title"] == "[BUY] AMZN ↓ $225.00"
    assert "stock-alert" in kwargs["json"]["labels"]


@pytest.mark.asyncio
async def test_5xx_retried_then_created():
    n, session, sleep = _notifier([FakeResponse(502, "bad gateway"), FakeResponse(201, {"html_url": ISSUE_URL})])
    res = await n.notify(AMZN, 245.0, "SELL")
    assert res.success and res.issue_url == ISSUE_URL
    assert sleep.delays == [1.0]


@pytest.mark.asyncio
async def test_4xx_raises_without_retry():
    n, session, sleep = _notifier([FakeResponse(401, {"message": "Bad credentials"})])
    with pytest.raises(NotifyError):
        await n.notify(AMZN, 225.0, "BUY")
    assert len(session.calls) == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_network_errors_exhaust_retries():
    n, session, sleep = _notifier([network_error()])
    with pytest.raises(NotifyError):
        await n.notify(AMZN, 225.0, "BUY")
    assert len(session.calls) == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_console_notifier_reports_not_notified():
    res = await ConsoleNotifier().notify(AMZN, 225.0, "BUY")
    assert res.success is False and res.issue_url is None


def test_formatting_mentions_the_crossed_threshold():
    assert format_alert_title(AMZN, 245.0, "SELL") == "[SELL] AMZN ↑ $245.00"
    buy = format_alert_body(AMZN, 225.0, "BUY", 1_700_000_000_000)
    sell = format_alert_body(AMZN, 245.0, "SELL", 1_700_000_000_000)
    assert "below the buy threshold of $230.00" in buy
    assert "above the sell threshold of $240.00" in sell
    assert "2023-11-14 22:13:20 UTC" in buy
