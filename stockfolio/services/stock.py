"""Stock service - cached analysis, comparison, trending and screener data."""

import asyncio
import logging
from decimal import Decimal

from stockfolio import telemetry
from stockfolio.schemas.stock import (
    CompareResponse,
    ScreenerItem,
    StockAnalysis,
    TrendingItem,
)
from stockfolio.services.analysis import compare_analyses, generate_analysis, technical_rating
from stockfolio.services.cache import QuoteCache, build_cache
from stockfolio.services.quotes import QuoteClient, QuoteError

logger = logging.getLogger(__name__)

TRENDING_SYMBOLS = ["AAPL", "MSFT", "GOOGL", "TSLA", "AMZN"]

# Curated list of popular stocks for the screener
SCREENER_SYMBOLS = [
    "AAPL", "MSFT", "GOOGL", "AMZN", "NVDA", "TSLA", "META", "BRK.B", "V", "JNJ",
    "WMT", "JPM", "MA", "PG", "UNH", "DIS", "HD", "VZ", "KO", "PFE",
    "INTC", "CMCSA", "PEP", "CSCO", "WFC", "BAC", "ADBE", "CRM", "NFLX", "AMD",
]

SCREENER_CACHE_KEY = "screener"

# Upper bound on concurrent quote requests in bulk lookups
MAX_CONCURRENT_QUOTES = 5


def normalize_symbol(symbol: str) -> str:
    """Trim and upper-case a symbol.

    Raises:
        ValueError: If the symbol is blank
    """
    normalized = symbol.strip().upper()
    if not normalized:
        raise ValueError("Stock symbol is required")
    return normalized


class StockService:
    """Quote-backed research operations sharing one cache."""

    def __init__(self, client: QuoteClient, cache: QuoteCache):
        self.client = client
        self.cache = cache

    async def close(self) -> None:
        """Release the cache backend (the Redis connection pool, if any)."""
        await self.cache.close()

    @staticmethod
    def analysis_key(symbol: str) -> str:
        return f"analysis:{symbol}"

    async def analyze(self, symbol: str) -> StockAnalysis:
        """Analyze a symbol, serving from cache while the entry is fresh.

        Raises:
            ValueError: If the symbol is blank
            InvalidSymbolError: If the quote API has no data for the symbol
            QuoteError: If the quote API request fails
        """
        symbol = normalize_symbol(symbol)
        key = self.analysis_key(symbol)

        cached = await self.cache.get(key)
        if cached is not None:
            telemetry.record_quote_request("hit")
            return StockAnalysis.model_validate(cached)

        try:
            quote = await self.client.get_quote(symbol)
        except QuoteError as e:
            telemetry.record_quote_request("error")
            logger.warning(f"Stock analysis failed for {symbol}: {e}")
            raise

        telemetry.record_quote_request("miss")
        analysis = generate_analysis(quote)
        await self.cache.set(key, analysis.model_dump(mode="json"))
        return analysis

    async def current_price(self, symbol: str) -> Decimal:
        """Latest price for a symbol (shares the analysis cache)."""
        analysis = await self.analyze(symbol)
        return analysis.market_status.current_price

    async def compare(self, symbol1: str, symbol2: str) -> CompareResponse:
        """Analyze two symbols and compare them."""
        first, second = await asyncio.gather(self.analyze(symbol1), self.analyze(symbol2))
        return CompareResponse(
            stock1=first,
            stock2=second,
            comparison=compare_analyses(first, second),
        )

    async def trending(self) -> list[TrendingItem]:
        """Quick signals for popular symbols. Symbols that fail are left out."""

        async def signal(symbol: str) -> TrendingItem | None:
            try:
                analysis = await self.analyze(symbol)
            except QuoteError as e:
                logger.warning(f"Skipping trending symbol {symbol}: {e}")
                return None
            return TrendingItem(
                symbol=analysis.symbol,
                name=analysis.company_overview.name,
                price=analysis.market_status.current_price,
                change_percent=analysis.market_status.change_percent,
                trend=analysis.market_status.trend,
                recommendation=analysis.recommendation.decision,
                risk_score=analysis.risk.score,
            )

        results = await asyncio.gather(*(signal(s) for s in TRENDING_SYMBOLS))
        return [item for item in results if item is not None]

    async def screener(self) -> list[ScreenerItem]:
        """Screener rows for the curated symbol list, cached as a whole."""
        cached = await self.cache.get(SCREENER_CACHE_KEY)
        if cached is not None:
            telemetry.record_quote_request("hit")
            return [ScreenerItem.model_validate(row) for row in cached]

        semaphore = asyncio.Semaphore(MAX_CONCURRENT_QUOTES)

        async def row(symbol: str) -> ScreenerItem | None:
            async with semaphore:
                try:
                    quote = await self.client.get_quote(symbol)
                except QuoteError as e:
                    telemetry.record_quote_request("error")
                    logger.warning(f"Skipping screener symbol {symbol}: {e}")
                    return None
            telemetry.record_quote_request("miss")
            return ScreenerItem(
                symbol=quote.symbol,
                name=quote.name,
                price=quote.close,
                change=quote.change,
                change_percent=quote.percent_change,
                volume=quote.volume,
                market_cap=quote.market_cap,
                technical_rating=technical_rating(float(quote.percent_change)),
            )

        results = await asyncio.gather(*(row(s) for s in SCREENER_SYMBOLS))
        rows = [item for item in results if item is not None]
        if rows:
            await self.cache.set(
                SCREENER_CACHE_KEY, [item.model_dump(mode="json") for item in rows]
            )
        return rows


_stock_service: StockService | None = None


def get_stock_service() -> StockService:
    """Dependency that provides the process-wide stock service.

    Built lazily from environment settings; tests override this dependency.
    """
    global _stock_service
    if _stock_service is None:
        _stock_service = StockService(QuoteClient(), build_cache())
    return _stock_service


async def close_stock_service() -> None:
    """Close the process-wide stock service, if one was built."""
    global _stock_service
    if _stock_service is not None:
        await _stock_service.close()
        _stock_service = None
