"""Tests for momentum_gate.broker — Binance client with mocked HTTP responses."""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from momentum_gate.broker.binance_client import BinanceClient, parse_kline
from momentum_gate.broker.models import Bar
from momentum_gate.config import Config


def _make_config(**overrides) -> Config:
    defaults = dict(
        strategies_path="configuration/configuration.yaml",
        binance_base_url="https://www.binance.com",
        candle_interval="5m",
        candle_limit=1000,
        request_timeout_seconds=30.0,
        log_level="INFO",
    )
    defaults.update(overrides)
    return Config(**defaults)


# ── Mock Binance responses ───────────────────────────────────────────────

# 2025-01-06T12:00:00Z and 12:05:00Z
MOCK_KLINES_RESPONSE = [
    [1736164800000, "97000.10", "97250.00", "96900.00", "97100.50", "12.5",
     1736165099999, "1213000.0", 420, "6.1", "592000.0", "0"],
    [1736165100000, "97100.50", "97400.00", "97050.00", "97380.25", "9.8",
     1736165399999, "953000.0", 388, "5.0", "486000.0", "0"],
]


# ── Tests ────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_parse_klines(monkeypatch):
    """Bar fields populated correctly from mock JSON."""
    client = BinanceClient(_make_config())

    async def _mock_get(self, url, *, params=None, timeout=None):
        return httpx.Response(200, json=MOCK_KLINES_RESPONSE, request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    bars = await client.fetch_bars("BTCUSDT")
    assert len(bars) == 2
    b = bars[0]
    assert isinstance(b, Bar)
    assert b.timestamp == datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)
    assert b.open == pytest.approx(97000.10)
    assert b.high == pytest.approx(97250.0)
    assert b.low == pytest.approx(96900.0)
    assert b.close == pytest.approx(97100.50)
    assert bars[1].timestamp == datetime(2025, 1, 6, 12, 5, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_request_params(monkeypatch):
    """Query string carries symbol, interval, limit and endTime in ms."""
    client = BinanceClient(_make_config(binance_base_url="https://api.binance.us"))
    captured = {}

    async def _mock_get(self, url, *, params=None, timeout=None):
        captured["url"] = url
        captured["params"] = params
        captured["timeout"] = timeout
        return httpx.Response(200, json=MOCK_KLINES_RESPONSE, request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    end = datetime(2025, 1, 6, 12, 7, tzinfo=timezone.utc)
    await client.fetch_bars("ETHUSDT", limit=200, end_time=end)

    assert captured["url"] == "https://api.binance.us/api/v3/uiKlines"
    assert captured["params"] == {
        "symbol": "ETHUSDT",
        "interval": "5m",
        "limit": "200",
        "endTime": "1736165220000",
    }
    assert captured["timeout"] == 30.0


@pytest.mark.asyncio
async def test_empty_response_raises(monkeypatch):
    client = BinanceClient(_make_config())

    async def _mock_get(self, url, *, params=None, timeout=None):
        return httpx.Response(200, json=[], request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    with pytest.raises(ValueError, match="No bars returned for BTCUSDT"):
        await client.fetch_bars("BTCUSDT")


@pytest.mark.asyncio
async def test_retries_transient_errors(monkeypatch):
    """A 503 is retried; the following 200 is returned."""
    monkeypatch.setattr("momentum_gate.broker.binance_client._RETRY_BASE_DELAY", 0.0)
    client = BinanceClient(_make_config())
    statuses = [503, 200]
    calls = []

    async def _mock_get(self, url, *, params=None, timeout=None):
        status = statuses[len(calls)]
        calls.append(status)
        body = MOCK_KLINES_RESPONSE if status == 200 else {"msg": "busy"}
        return httpx.Response(status, json=body, request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    bars = await client.fetch_bars("BTCUSDT")
    assert calls == [503, 200]
    assert len(bars) == 2


@pytest.mark.asyncio
async def test_retries_exhausted_raise(monkeypatch):
    """Backoff sleeps happen between attempts only, never after the last one."""
    client = BinanceClient(_make_config())
    sleeps = []
    attempts = []

    async def _fake_sleep(delay):
        sleeps.append(delay)

    async def _mock_get(self, url, *, params=None, timeout=None):
        attempts.append(url)
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(asyncio, "sleep", _fake_sleep)
    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    with pytest.raises(httpx.ConnectError):
        await client.fetch_bars("BTCUSDT")
    assert len(attempts) == 3
    assert sleeps == [2.0, 4.0]


@pytest.mark.asyncio
async def test_server_errors_exhausted_raise(monkeypatch):
    client = BinanceClient(_make_config())
    sleeps = []

    async def _fake_sleep(delay):
        sleeps.append(delay)

    async def _mock_get(self, url, *, params=None, timeout=None):
        return httpx.Response(503, json={"msg": "busy"}, request=httpx.Request("GET", url))

    monkeypatch.setattr(asyncio, "sleep", _fake_sleep)
    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    with pytest.raises(httpx.HTTPStatusError):
        await client.fetch_bars("BTCUSDT")
    assert sleeps == [2.0, 4.0]


@pytest.mark.asyncio
async def test_client_error_not_retried(monkeypatch):
    client = BinanceClient(_make_config())
    calls = []

    async def _mock_get(self, url, *, params=None, timeout=None):
        calls.append(url)
        return httpx.Response(
            400, json={"code": -1121, "msg": "Invalid symbol."},
            request=httpx.Request("GET", url),
        )

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    with pytest.raises(httpx.HTTPStatusError):
        await client.fetch_bars("NOPE")
    assert len(calls) == 1


def test_malformed_row():
    with pytest.raises(ValueError, match="Malformed kline row"):
        parse_kline([1736164800000, "1.0", "1.0"])
    with pytest.raises(ValueError, match="Malformed kline row"):
        parse_kline([1736164800000, "abc", "1.0", "1.0", "1.0"])
