"""Watchlist service - tracked symbols with cached analysis snapshots."""

import logging

from pydantic import ValidationError
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from stockfolio.database import utcnow
from stockfolio.models import WatchlistEntry
from stockfolio.schemas.stock import StockAnalysis
from stockfolio.services.stock import StockService, normalize_symbol

logger = logging.getLogger(__name__)


def load_analysis(document: dict | None) -> StockAnalysis | None:
    """Validate a stored analysis document.

    Snapshots with an unknown kind or version (or a broken shape) are
    rejected and treated as absent until the entry is refreshed.
    """
    if document is None:
        return None
    try:
        return StockAnalysis.model_validate(document)
    except ValidationError as e:
        logger.warning(
            f"Discarding stored analysis (kind={document.get('kind')!r}, "
            f"version={document.get('version')!r}): {e.error_count()} errors"
        )
        return None


async def get_entry(
    session: AsyncSession, user_id: str, symbol: str
) -> WatchlistEntry | None:
    """Get one watchlist entry."""
    result = await session.execute(
        select(WatchlistEntry).where(
            and_(WatchlistEntry.user_id == user_id, WatchlistEntry.symbol == symbol.upper())
        )
    )
    return result.scalar_one_or_none()


async def list_entries(session: AsyncSession, user_id: str) -> list[WatchlistEntry]:
    """Get a user's watchlist, most recently added first."""
    result = await session.execute(
        select(WatchlistEntry)
        .where(WatchlistEntry.user_id == user_id)
        .order_by(WatchlistEntry.added_at.desc(), WatchlistEntry.symbol)
    )
    return list(result.scalars().all())


async def add_entry(
    session: AsyncSession,
    stocks: StockService,
    user_id: str,
    symbol: str,
    notes: str = "",
) -> WatchlistEntry:
    """Add a symbol, or refresh it if it is already on the list.

    The analysis is fetched first, so an unknown symbol never gets an entry.

    Raises:
        ValueError: If the symbol is blank
        QuoteError: If the symbol cannot be analyzed
    """
    symbol = normalize_symbol(symbol)
    analysis = await stocks.analyze(symbol)

    entry = await get_entry(session, user_id, symbol)
    if entry is None:
        entry = WatchlistEntry(user_id=user_id, symbol=symbol)
        session.add(entry)

    entry.last_analysis = analysis.model_dump(mode="json")
    entry.notes = notes or ""
    entry.added_at = utcnow()
    entry.updated_at = utcnow()

    await session.commit()
    await session.refresh(entry)
    logger.info(f"User {user_id} is watching {symbol}")
    return entry


async def remove_entry(session: AsyncSession, user_id: str, symbol: str) -> bool:
    """Remove a symbol. Returns False if it was not on the list."""
    entry = await get_entry(session, user_id, symbol)
    if entry is None:
        return False
    await session.delete(entry)
    await session.commit()
    return True


async def refresh_entry(
    session: AsyncSession, stocks: StockService, user_id: str, symbol: str
) -> WatchlistEntry | None:
    """Replace an entry's analysis with a fresh one.

    Returns:
        The updated entry, or None if the symbol is not on the list

    Raises:
        QuoteError: If the symbol cannot be analyzed
    """
    entry = await get_entry(session, user_id, symbol)
    if entry is None:
        return None

    analysis = await stocks.analyze(entry.symbol)
    entry.last_analysis = analysis.model_dump(mode="json")
    entry.updated_at = utcnow()

    await session.commit()
    await session.refresh(entry)
    return entry
