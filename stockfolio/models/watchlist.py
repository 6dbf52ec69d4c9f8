"""
Watchlist model - symbols a user tracks, independent of holdings.

Each entry caches the most recent analysis document so the watchlist can be
rendered without hitting the quote API. Composite primary key (user_id, symbol)
keeps one entry per symbol per user.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockfolio.database import Base, utcnow


class WatchlistEntry(Base):
    """A tracked symbol with its last analysis snapshot."""

    __tablename__ = "watchlist_entries"

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id"), primary_key=True
    )
    symbol: Mapped[str] = mapped_column(String(20), primary_key=True)

    # Reset every time the symbol is (re-)added
    added_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    # Serialized StockAnalysis (tagged with kind + version)
    last_analysis: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)

    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped["User"] = relationship(back_populates="watchlist")

    def __repr__(self) -> str:
        return f"WatchlistEntry(user={self.user_id!r}, symbol={self.symbol!r})"


# Import at end to avoid circular imports
from stockfolio.models.user import User
