"""HTTP client for the Twelve Data quote API.

The quote endpoint is the only source of "current price". A response without
a ``close`` field means the symbol is unknown (Twelve Data answers errors with
a 200 and a ``{"status": "error", ...}`` body).
"""

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx


DEFAULT_BASE_URL = "https://api.twelvedata.com"


class QuoteError(Exception):
    """Quote API request failed."""


class InvalidSymbolError(QuoteError):
    """The quote API returned no usable data for the symbol."""


@dataclass
class Quote:
    """A flat quote for one symbol."""

    symbol: str
    name: str
    close: Decimal
    change: Decimal
    percent_change: Decimal
    volume: int | None
    market_cap: Decimal | None
    datetime: str | None


def _to_decimal(value: Any, default: Decimal | None = Decimal("0")) -> Decimal | None:
    if value is None or value == "":
        return default
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return default


def _to_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(Decimal(str(value)))
    except InvalidOperation:
        return None


def parse_quote(symbol: str, data: Any) -> Quote:
    """Build a Quote from a raw API payload.

    Raises:
        InvalidSymbolError: If the payload carries no closing price
    """
    if not isinstance(data, dict) or not data.get("close"):
        raise InvalidSymbolError(f"Invalid stock symbol or no data available: {symbol}")

    close = _to_decimal(data["close"], default=None)
    if close is None:
        raise InvalidSymbolError(f"Unreadable closing price for {symbol}: {data['close']!r}")

    return Quote(
        symbol=str(data.get("symbol") or symbol).upper(),
        name=data.get("name") or symbol.upper(),
        close=close,
        change=_to_decimal(data.get("change")),
        percent_change=_to_decimal(data.get("percent_change")),
        volume=_to_int(data.get("volume")),
        market_cap=_to_decimal(data.get("market_cap"), default=None),
        datetime=data.get("datetime"),
    )


class QuoteClient:
    """Client for the quote API. No retries: a failure surfaces to the caller."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or os.getenv("TWELVE_DATA_BASE_URL", DEFAULT_BASE_URL)).rstrip("/")
        self.api_key = api_key or os.getenv("TWELVE_DATA_API_KEY", "demo")
        self.timeout = timeout if timeout is not None else float(os.getenv("QUOTE_TIMEOUT", "10"))
        self.transport = transport

    async def get_quote(self, symbol: str) -> Quote:
        """Fetch the latest quote for a symbol.

        Raises:
            InvalidSymbolError: If the API has no data for the symbol
            QuoteError: On transport errors or HTTP error statuses
        """
        symbol = symbol.strip().upper()
        params = {"symbol": symbol, "apikey": self.api_key}

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get("/quote", params=params)
        except httpx.HTTPError as e:
            raise QuoteError(f"Quote request for {symbol} failed: {e}") from e

        if response.status_code >= 400:
            raise QuoteError(
                f"Quote request for {symbol} failed: HTTP {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise QuoteError(f"Quote response for {symbol} is not JSON") from e

        return parse_quote(symbol, data)
