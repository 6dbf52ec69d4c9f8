"""Pydantic schemas for portfolio endpoints."""

from datetime import datetime, UTC
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from stockfolio.models.transaction import PRICE_PLACES, QUANTITY_PLACES


# ============================================================================
# Enums (matching model enums)
# ============================================================================


class TransactionKind(str, Enum):
    """Buy or sell."""

    BUY = "BUY"
    SELL = "SELL"


class SortField(str, Enum):
    """Columns the transaction history can be sorted by."""

    TRANSACTION_DATE = "transaction_date"
    CREATED_AT = "created_at"
    SYMBOL = "symbol"
    QUANTITY = "quantity"
    PRICE_PER_SHARE = "price_per_share"
    TOTAL_AMOUNT = "total_amount"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Normalize an aware datetime to naive UTC (naive values pass through)."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


# ============================================================================
# Transaction schemas
# ============================================================================


class TransactionCreate(BaseModel):
    """Request schema for recording a transaction."""

    symbol: str = Field(..., min_length=1, max_length=20, description="Stock symbol")
    type: TransactionKind = Field(..., description="BUY or SELL")
    quantity: Decimal = Field(
        ..., gt=0, decimal_places=QUANTITY_PLACES, description="Number of shares"
    )
    price_per_share: Decimal = Field(
        ..., gt=0, decimal_places=PRICE_PLACES, description="Price paid or received per share"
    )
    transaction_date: datetime | None = Field(
        default=None, description="When the trade happened (defaults to now)"
    )
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("type", mode="before")
    @classmethod
    def upper_type(cls, v):
        """Accept buy/sell in any case."""
        return v.upper() if isinstance(v, str) else v

    @field_validator("transaction_date")
    @classmethod
    def naive_date(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)


class TransactionUpdate(BaseModel):
    """Request schema for editing a transaction. Omitted fields are unchanged."""

    quantity: Decimal | None = Field(default=None, gt=0, decimal_places=QUANTITY_PLACES)
    price_per_share: Decimal | None = Field(default=None, gt=0, decimal_places=PRICE_PLACES)
    transaction_date: datetime | None = None
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("transaction_date")
    @classmethod
    def naive_date(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)


class TransactionResponse(BaseModel):
    """Response schema for transaction data."""

    id: str
    symbol: str
    type: TransactionKind
    quantity: Decimal
    price_per_share: Decimal
    total_amount: Decimal
    transaction_date: datetime
    notes: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("type", mode="before")
    @classmethod
    def model_type(cls, v):
        """Accept the model enum as well as its value."""
        return v.value if isinstance(v, Enum) else v


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class TransactionListResponse(BaseModel):
    """A page of transaction history."""

    transactions: list[TransactionResponse] = Field(default_factory=list)
    pagination: Pagination


# ============================================================================
# Holding schemas
# ============================================================================


class HoldingResponse(BaseModel):
    """Response schema for a holding with its valuation snapshot."""

    symbol: str = Field(..., description="Stock symbol")
    total_shares: Decimal = Field(..., description="Number of shares held")
    average_buy_price: Decimal = Field(..., description="Average cost per share")
    total_invested: Decimal = Field(..., description="Capital tied up at average cost")
    current_price: Decimal = Field(..., description="Last quoted price")
    current_value: Decimal = Field(..., description="Shares valued at the last price")
    profit_loss: Decimal = Field(..., description="Current value - total invested")
    profit_loss_percent: Decimal = Field(..., description="P/L as percentage of invested")
    last_updated: datetime

    model_config = {"from_attributes": True}


class HoldingDetailResponse(BaseModel):
    """A holding with its transaction history (newest first)."""

    holding: HoldingResponse
    transactions: list[TransactionResponse] = Field(default_factory=list)


class PortfolioSummaryResponse(BaseModel):
    """Totals over all open holdings."""

    total_value: Decimal
    total_invested: Decimal
    total_profit_loss: Decimal
    total_profit_loss_percent: Decimal
    holdings_count: int
    top_performers: list[HoldingResponse] = Field(default_factory=list)
    worst_performers: list[HoldingResponse] = Field(default_factory=list)


class TradeOutcome(BaseModel):
    """Approximate realized result of one SELL."""

    transaction_id: str
    symbol: str
    quantity: Decimal
    sell_price: Decimal
    average_buy_price: Decimal
    realized_gain: Decimal
    transaction_date: datetime


class PerformanceResponse(BaseModel):
    """Realized (approximate) and unrealized returns."""

    total_return: Decimal
    total_return_percent: Decimal
    realized_gains: Decimal
    unrealized_gains: Decimal
    total_dividends: Decimal = Decimal("0")
    best_trade: TradeOutcome | None = None
    worst_trade: TradeOutcome | None = None


class MessageResponse(BaseModel):
    message: str
