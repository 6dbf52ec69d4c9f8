"""Pydantic schemas for request/response validation."""

from stockfolio.schemas.auth import (
    LoginRequest,
    SignupRequest,
    TokenResponse,
    UserResponse,
)
from stockfolio.schemas.portfolio import (
    HoldingDetailResponse,
    HoldingResponse,
    MessageResponse,
    Pagination,
    PerformanceResponse,
    PortfolioSummaryResponse,
    SortField,
    SortOrder,
    TradeOutcome,
    TransactionCreate,
    TransactionKind,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdate,
)
from stockfolio.schemas.stock import (
    AnalyzeRequest,
    CompareRequest,
    CompareResponse,
    Decision,
    ScreenerItem,
    StockAnalysis,
    TrendingItem,
)
from stockfolio.schemas.watchlist import (
    WatchlistAdd,
    WatchlistEntryResponse,
    WatchlistRemoveResponse,
)

__all__ = [
    # Auth schemas
    "SignupRequest",
    "LoginRequest",
    "UserResponse",
    "TokenResponse",
    # Portfolio schemas
    "TransactionKind",
    "TransactionCreate",
    "TransactionUpdate",
    "TransactionResponse",
    "TransactionListResponse",
    "Pagination",
    "SortField",
    "SortOrder",
    "HoldingResponse",
    "HoldingDetailResponse",
    "PortfolioSummaryResponse",
    "PerformanceResponse",
    "TradeOutcome",
    "MessageResponse",
    # Stock schemas
    "AnalyzeRequest",
    "CompareRequest",
    "CompareResponse",
    "Decision",
    "StockAnalysis",
    "TrendingItem",
    "ScreenerItem",
    # Watchlist schemas
    "WatchlistAdd",
    "WatchlistEntryResponse",
    "WatchlistRemoveResponse",
]
