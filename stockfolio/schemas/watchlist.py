"""Pydantic schemas for watchlist endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field

from stockfolio.schemas.stock import StockAnalysis


class WatchlistAdd(BaseModel):
    """Request schema for adding (or re-adding) a symbol."""

    symbol: str = Field(..., min_length=1, max_length=20, description="Stock symbol")
    notes: str = Field(default="", max_length=2000, description="Free-text notes")


class WatchlistEntryResponse(BaseModel):
    """A watchlist entry with its cached analysis."""

    symbol: str
    notes: str
    added_at: datetime
    updated_at: datetime
    last_analysis: StockAnalysis | None = None


class WatchlistRemoveResponse(BaseModel):
    message: str
    symbol: str
