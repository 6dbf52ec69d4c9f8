"""Stock research and watchlist endpoints.

Analysis, comparison, trending and screener are public. Watchlist routes
require a bearer token.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from stockfolio.auth import get_current_user
from stockfolio.database import get_session
from stockfolio.models import User, WatchlistEntry
from stockfolio.routers.errors import quote_http_error
from stockfolio.schemas.stock import (
    AnalyzeRequest,
    CompareRequest,
    CompareResponse,
    ScreenerItem,
    StockAnalysis,
    TrendingItem,
)
from stockfolio.schemas.watchlist import (
    WatchlistAdd,
    WatchlistEntryResponse,
    WatchlistRemoveResponse,
)
from stockfolio.services import watchlist as watchlist_service
from stockfolio.services.quotes import QuoteError
from stockfolio.services.stock import StockService, get_stock_service

router = APIRouter()


def entry_response(entry: WatchlistEntry) -> WatchlistEntryResponse:
    return WatchlistEntryResponse(
        symbol=entry.symbol,
        notes=entry.notes or "",
        added_at=entry.added_at,
        updated_at=entry.updated_at,
        last_analysis=watchlist_service.load_analysis(entry.last_analysis),
    )


# ============================================================================
# Research endpoints
# ============================================================================


@router.post(
    "/analyze",
    response_model=StockAnalysis,
    summary="Analyze a stock",
)
async def analyze_stock(
    data: AnalyzeRequest,
    stocks: StockService = Depends(get_stock_service),
) -> StockAnalysis:
    """Generate a heuristic analysis from the latest quote.

    Results are cached per symbol for a few minutes.
    """
    try:
        return await stocks.analyze(data.symbol)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except QuoteError as e:
        raise quote_http_error(e)


@router.post(
    "/compare",
    response_model=CompareResponse,
    summary="Compare two stocks",
)
async def compare_stocks(
    data: CompareRequest,
    stocks: StockService = Depends(get_stock_service),
) -> CompareResponse:
    """Analyze two symbols side by side.

    - **performance**: which has the better one-year estimate
    - **risk**: which has the lower risk score
    - **recommendation**: which has the stronger signal
    """
    try:
        return await stocks.compare(data.symbol1, data.symbol2)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except QuoteError as e:
        raise quote_http_error(e)


@router.get(
    "/screener",
    response_model=list[ScreenerItem],
    summary="Stock screener",
)
async def screener(
    stocks: StockService = Depends(get_stock_service),
) -> list[ScreenerItem]:
    """Quotes and a technical rating for a curated list of popular stocks."""
    return await stocks.screener()


@router.get(
    "/trending",
    response_model=list[TrendingItem],
    summary="Trending stocks",
)
async def trending(
    stocks: StockService = Depends(get_stock_service),
) -> list[TrendingItem]:
    return await stocks.trending()


# ============================================================================
# Watchlist endpoints
# ============================================================================


@router.get(
    "/watchlist",
    response_model=list[WatchlistEntryResponse],
    summary="Get my watchlist",
)
async def get_watchlist(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[WatchlistEntryResponse]:
    """Watched symbols with their last stored analysis, newest first."""
    entries = await watchlist_service.list_entries(session, user.id)
    return [entry_response(e) for e in entries]


@router.post(
    "/watchlist",
    response_model=WatchlistEntryResponse,
    summary="Add to watchlist",
)
async def add_to_watchlist(
    data: WatchlistAdd,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    stocks: StockService = Depends(get_stock_service),
) -> WatchlistEntryResponse:
    """Analyze a symbol and store it on the watchlist.

    Adding a symbol that is already watched refreshes its analysis and notes.
    """
    try:
        entry = await watchlist_service.add_entry(
            session, stocks, user.id, data.symbol, data.notes
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except QuoteError as e:
        raise quote_http_error(e)

    return entry_response(entry)


@router.delete(
    "/watchlist/{symbol}",
    response_model=WatchlistRemoveResponse,
    summary="Remove from watchlist",
)
async def remove_from_watchlist(
    symbol: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> WatchlistRemoveResponse:
    removed = await watchlist_service.remove_entry(session, user.id, symbol)
    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Stock '{symbol.upper()}' not found in watchlist",
        )

    return WatchlistRemoveResponse(
        message="Stock removed from watchlist",
        symbol=symbol.upper(),
    )


@router.put(
    "/watchlist/{symbol}/refresh",
    response_model=WatchlistEntryResponse,
    summary="Refresh a watchlist analysis",
)
async def refresh_watchlist_entry(
    symbol: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    stocks: StockService = Depends(get_stock_service),
) -> WatchlistEntryResponse:
    """Replace the stored analysis with a fresh one."""
    try:
        entry = await watchlist_service.refresh_entry(session, stocks, user.id, symbol)
    except QuoteError as e:
        raise quote_http_error(e)

    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Stock '{symbol.upper()}' not found in watchlist",
        )

    return entry_response(entry)
