"""Portfolio API endpoints - requires authentication."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from stockfolio.auth import get_current_user
from stockfolio.database import get_session
from stockfolio.models import Holding, TransactionType, User
from stockfolio.routers.errors import quote_http_error
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
    to_naive_utc,
)
from stockfolio.services import portfolio as portfolio_service
from stockfolio.services.quotes import QuoteError
from stockfolio.services.stock import StockService, get_stock_service

router = APIRouter()


def holding_response(holding: Holding) -> HoldingResponse:
    return HoldingResponse.model_validate(holding)


def trade_outcome(outcome: portfolio_service.TradeOutcome | None) -> TradeOutcome | None:
    if outcome is None:
        return None
    t = outcome.transaction
    return TradeOutcome(
        transaction_id=t.id,
        symbol=t.symbol,
        quantity=t.quantity,
        sell_price=t.price_per_share,
        average_buy_price=outcome.average_buy_price,
        realized_gain=outcome.realized_gain,
        transaction_date=t.transaction_date,
    )


# ============================================================================
# Transaction endpoints
# ============================================================================


@router.post(
    "/transaction",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a transaction",
)
async def add_transaction(
    data: TransactionCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    stocks: StockService = Depends(get_stock_service),
) -> TransactionResponse:
    """Record a buy or sell and update the holding for that symbol.

    - **symbol**: Stock symbol (case-insensitive)
    - **type**: BUY or SELL
    - **quantity**: Number of shares, fractional allowed
    - **price_per_share**: Price paid or received
    - **transaction_date**: Defaults to now
    """
    try:
        transaction = await portfolio_service.process_transaction(
            session, stocks, user.id, data
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return TransactionResponse.model_validate(transaction)


@router.get(
    "/transactions",
    response_model=TransactionListResponse,
    summary="List my transactions",
)
async def list_transactions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    symbol: str | None = Query(default=None, description="Filter by symbol"),
    type_filter: TransactionKind | None = Query(
        default=None, alias="type", description="Filter by BUY or SELL"
    ),
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    sort_by: SortField = Query(default=SortField.TRANSACTION_DATE),
    sort_order: SortOrder = Query(default=SortOrder.DESC),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TransactionListResponse:
    """Get a page of transaction history.

    Filters combine with AND. Dates are inclusive.
    """
    # Convert schema enum to model enum if provided
    model_type = None
    if type_filter:
        model_type = TransactionType[type_filter.value]

    try:
        result = await portfolio_service.list_transactions(
            session,
            user.id,
            page=page,
            limit=limit,
            symbol=symbol,
            transaction_type=model_type,
            start_date=to_naive_utc(start_date),
            end_date=to_naive_utc(end_date),
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in result.transactions],
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            pages=result.pages,
        ),
    )


@router.put(
    "/transaction/{transaction_id}",
    response_model=TransactionResponse,
    summary="Edit a transaction",
)
async def update_transaction(
    transaction_id: str,
    data: TransactionUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    stocks: StockService = Depends(get_stock_service),
) -> TransactionResponse:
    """Change quantity, price, notes or date and re-apply it to the holding."""
    transaction = await portfolio_service.update_transaction(
        session, stocks, user.id, transaction_id, data
    )
    if transaction is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Transaction not found",
        )

    return TransactionResponse.model_validate(transaction)


@router.delete(
    "/transaction/{transaction_id}",
    response_model=MessageResponse,
    summary="Delete a transaction",
)
async def delete_transaction(
    transaction_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    stocks: StockService = Depends(get_stock_service),
) -> MessageResponse:
    deleted = await portfolio_service.delete_transaction(
        session, stocks, user.id, transaction_id
    )
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Transaction not found",
        )

    return MessageResponse(message="Transaction deleted successfully")


# ============================================================================
# Holding endpoints
# ============================================================================


@router.get(
    "/holdings",
    response_model=list[HoldingResponse],
    summary="Get my holdings",
)
async def get_holdings(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    stocks: StockService = Depends(get_stock_service),
) -> list[HoldingResponse]:
    """Open positions valued at the latest quotes.

    A holding whose quote cannot be fetched keeps its previous valuation.
    """
    holdings = await portfolio_service.get_holdings(session, stocks, user.id)
    return [holding_response(h) for h in holdings]


@router.get(
    "/holdings/{symbol}",
    response_model=HoldingDetailResponse,
    summary="Get holding details",
)
async def get_holding(
    symbol: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> HoldingDetailResponse:
    """A holding with every transaction for its symbol, newest first."""
    detail = await portfolio_service.get_holding_detail(session, user.id, symbol)
    if detail is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Holding not found",
        )

    holding, transactions = detail
    return HoldingDetailResponse(
        holding=holding_response(holding),
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
    )


@router.put(
    "/holdings/{symbol}",
    response_model=HoldingResponse,
    summary="Refresh a holding",
)
async def refresh_holding(
    symbol: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    stocks: StockService = Depends(get_stock_service),
) -> HoldingResponse:
    """Revalue one holding with the latest quote."""
    try:
        holding = await portfolio_service.refresh_holding(session, stocks, user.id, symbol)
    except QuoteError as e:
        raise quote_http_error(e)

    if holding is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Holding not found",
        )

    return holding_response(holding)


@router.delete(
    "/holdings/{symbol}",
    response_model=MessageResponse,
    summary="Delete a holding",
)
async def delete_holding(
    symbol: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Delete the holding and every transaction for its symbol."""
    await portfolio_service.delete_holding(session, user.id, symbol)
    return MessageResponse(
        message=f"All holdings and transactions for {symbol.upper()} deleted successfully"
    )


# ============================================================================
# Aggregates
# ============================================================================


@router.get(
    "/summary",
    response_model=PortfolioSummaryResponse,
    summary="Get portfolio summary",
)
async def get_summary(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    stocks: StockService = Depends(get_stock_service),
) -> PortfolioSummaryResponse:
    """Totals over all open holdings.

    **What the numbers mean:**
    - **total_value**: What your shares are worth right now
    - **total_invested**: Capital tied up at average cost
    - **total_profit_loss**: Value minus invested
    - **top_performers** / **worst_performers**: Best and worst 3 by P/L percent
    """
    summary = await portfolio_service.get_portfolio_summary(session, stocks, user.id)
    return PortfolioSummaryResponse(
        total_value=summary.total_value,
        total_invested=summary.total_invested,
        total_profit_loss=summary.total_profit_loss,
        total_profit_loss_percent=summary.total_profit_loss_percent,
        holdings_count=summary.holdings_count,
        top_performers=[holding_response(h) for h in summary.top_performers],
        worst_performers=[holding_response(h) for h in summary.worst_performers],
    )


@router.get(
    "/performance",
    response_model=PerformanceResponse,
    summary="Get performance metrics",
)
async def get_performance(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    stocks: StockService = Depends(get_stock_service),
) -> PerformanceResponse:
    """Realized and unrealized returns.

    Realized gains are approximate: each SELL is measured against the simple
    mean of earlier BUY prices for the same symbol.
    """
    metrics = await portfolio_service.get_performance_metrics(session, stocks, user.id)
    return PerformanceResponse(
        total_return=metrics.total_return,
        total_return_percent=metrics.total_return_percent,
        realized_gains=metrics.realized_gains,
        unrealized_gains=metrics.unrealized_gains,
        total_dividends=metrics.total_dividends,
        best_trade=trade_outcome(metrics.best_trade),
        worst_trade=trade_outcome(metrics.worst_trade),
    )
