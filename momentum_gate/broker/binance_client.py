"""Binance public market-data async client.

Fetches kline (OHLC) rows for a symbol and converts them to ``Bar`` objects.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from momentum_gate.broker.models import Bar
from momentum_gate.config import Config

logger = logging.getLogger("momentum_gate")

# Retry settings
_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt
_RETRYABLE_STATUS_CODES = {502, 503, 504, 429}


class BinanceClient:
    """Async client wrapping the Binance ``uiKlines`` endpoint."""

    def __init__(self, config: Config) -> None:
        self._config = config
        self._base_url = config.binance_base_url
        self._timeout = config.request_timeout_seconds

    # ── Retry helper ─────────────────────────────────────────────────────

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        **kwargs,
    ) -> httpx.Response:
        """Execute an HTTP request with exponential-backoff retry.

        Retries on transient server errors (502, 503, 504) and rate-limits
        (429). Non-retryable errors are raised immediately.
        """
        last_exc: Optional[Exception] = None

        for attempt in range(_MAX_RETRIES):
            try:
                async with httpx.AsyncClient() as client:
                    resp = await getattr(client, method)(
                        url,
                        timeout=self._timeout,
                        **kwargs,
                    )

                if resp.status_code in _RETRYABLE_STATUS_CODES:
                    last_exc = httpx.HTTPStatusError(
                        f"Server error '{resp.status_code}'",
                        request=resp.request,
                        response=resp,
                    )
                    if attempt == _MAX_RETRIES - 1:
                        break
                    delay = _RETRY_BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        "Binance %s %s returned %d, retry %d/%d in %.1fs",
                        method.upper(), url, resp.status_code,
                        attempt + 1, _MAX_RETRIES, delay,
                    )
                    await asyncio.sleep(delay)
                    continue

                resp.raise_for_status()
                return resp

            except httpx.TransportError as exc:
                last_exc = exc
                if attempt == _MAX_RETRIES - 1:
                    break
                delay = _RETRY_BASE_DELAY * (2 ** attempt)
                logger.warning(
                    "Binance %s %s transport error (%s), retry %d/%d in %.1fs",
                    method.upper(), url, exc,
                    attempt + 1, _MAX_RETRIES, delay,
                )
                await asyncio.sleep(delay)

        logger.error("Binance %s %s failed after %d attempts", method.upper(), url, _MAX_RETRIES)
        raise last_exc  # type: ignore[misc]

    # ── Bar data ─────────────────────────────────────────────────────────

    async def fetch_bars(
        self,
        symbol: str,
        interval: Optional[str] = None,
        limit: Optional[int] = None,
        end_time: Optional[datetime] = None,
    ) -> list[Bar]:
        """Fetch kline data ending at *end_time* (default: now).

        Args:
            symbol: e.g. ``"BTCUSDT"``
            interval: e.g. ``"5m"``; defaults to ``Config.candle_interval``
            limit: number of bars to request (max 1000)
            end_time: latest bar open time to include

        Returns:
            Non-empty list of ``Bar`` objects ordered oldest-first.

        Raises:
            ValueError: If the response is empty or a row is malformed.
        """
        if end_time is None:
            end_time = datetime.now(timezone.utc)
        url = f"{self._base_url}/api/v3/uiKlines"
        params = {
            "symbol": symbol,
            "interval": interval or self._config.candle_interval,
            "limit": str(limit or self._config.candle_limit),
            "endTime": str(int(end_time.timestamp() * 1000)),
        }

        resp = await self._request_with_retry("get", url, params=params)

        rows = resp.json()
        if not isinstance(rows, list) or not rows:
            raise ValueError(f"No bars returned for {symbol}")
        bars = [parse_kline(row) for row in rows]
        logger.debug(
            "Fetched %d %s bars for %s (%s to %s)",
            len(bars), params["interval"], symbol,
            bars[0].timestamp.isoformat(), bars[-1].timestamp.isoformat(),
        )
        return bars


def parse_kline(row) -> Bar:
    """Convert one ``[open_time_ms, "o", "h", "l", "c", ...]`` row to a ``Bar``."""
    try:
        return Bar(
            timestamp=datetime.fromtimestamp(int(row[0]) / 1000, tz=timezone.utc),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
        )
    except (IndexError, TypeError, ValueError) as exc:
        raise ValueError(f"Malformed kline row {row!r}: {exc}")
