"""Portfolio service - transactions, derived holdings and P/L aggregation.

Holdings are running averages over the transaction ledger:

- BUY q @ p adds q*p to invested capital and q shares; the average buy price
  is invested / shares, rounded half-up to 4 places.
- SELL q removes q shares (never below zero) and shrinks invested capital to
  shares * average. The sale price is not used, so no P/L is realized into
  the holding. A holding that reaches zero shares has invested and average
  reset to zero.

Editing or deleting a transaction replays the opposite type against the
holding. That is an approximation, not an undo: the earlier average is not
restored once other trades moved it. Editing or deleting the latest
transaction for a symbol replays the history instead, which is exact. Edits
that keep quantity and price do not touch the holding.
"""

import asyncio
import logging
import math
import uuid
from collections import Counter
from collections.abc import Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stockfolio import telemetry
from stockfolio.database import utcnow
from stockfolio.models import Holding, Transaction, TransactionType
from stockfolio.models.transaction import PRICE_STEP
from stockfolio.schemas.portfolio import SortField, SortOrder, TransactionCreate, TransactionUpdate
from stockfolio.services.quotes import QuoteError
from stockfolio.services.stock import StockService, normalize_symbol

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


# ============================================================================
# Running-average arithmetic
# ============================================================================


@dataclass(frozen=True)
class Position:
    """The ledger-derived part of a holding."""

    total_shares: Decimal = ZERO
    average_buy_price: Decimal = ZERO
    total_invested: Decimal = ZERO

    @classmethod
    def of(cls, holding: Holding) -> "Position":
        return cls(
            total_shares=Decimal(holding.total_shares),
            average_buy_price=Decimal(holding.average_buy_price),
            total_invested=Decimal(holding.total_invested),
        )

    def assign_to(self, holding: Holding) -> None:
        holding.total_shares = self.total_shares
        holding.average_buy_price = self.average_buy_price
        holding.total_invested = self.total_invested


def average_price(invested: Decimal, shares: Decimal) -> Decimal:
    """invested / shares rounded half-up to the price column scale."""
    if shares <= 0:
        return ZERO
    return (invested / shares).quantize(PRICE_STEP, ROUND_HALF_UP)


def apply_trade(
    position: Position,
    trade_type: TransactionType,
    quantity: Decimal,
    price: Decimal,
) -> Position:
    """Apply one BUY or SELL to a position and return the new position."""
    quantity = Decimal(quantity)
    price = Decimal(price)

    if trade_type is TransactionType.BUY:
        invested = position.total_invested + quantity * price
        shares = position.total_shares + quantity
        average = average_price(invested, shares)
        return Position(total_shares=shares, average_buy_price=average, total_invested=invested)

    shares = max(ZERO, position.total_shares - quantity)
    if shares == 0:
        return Position()
    return Position(
        total_shares=shares,
        average_buy_price=position.average_buy_price,
        total_invested=shares * position.average_buy_price,
    )


# ============================================================================
# Holding updates
# ============================================================================


# One lock per (user_id, symbol) while anyone holds or waits for it. Serializes
# read-modify-write of a holding within this process; row locks (FOR UPDATE)
# cover other processes on databases that support them.
_holding_locks: dict[tuple[str, str], asyncio.Lock] = {}
_lock_users: Counter[tuple[str, str]] = Counter()


@asynccontextmanager
async def holding_lock(user_id: str, symbol: str):
    """Hold the (user, symbol) lock; it is dropped once nobody needs it."""
    key = (user_id, symbol)
    lock = _holding_locks.setdefault(key, asyncio.Lock())
    _lock_users[key] += 1
    try:
        async with lock:
            yield
    finally:
        _lock_users[key] -= 1
        if not _lock_users[key]:
            del _lock_users[key]
            del _holding_locks[key]


def generate_transaction_id() -> str:
    """Generate a unique transaction ID."""
    return str(uuid.uuid4())


async def get_holding(
    session: AsyncSession, user_id: str, symbol: str, for_update: bool = False
) -> Holding | None:
    """Get a holding by user and symbol.

    Args:
        session: Database session
        user_id: Owner
        symbol: Stock symbol
        for_update: Re-read the row and lock it for the rest of the transaction
    """
    query = select(Holding).where(
        and_(Holding.user_id == user_id, Holding.symbol == symbol.upper())
    )
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def _price_or_fallback(stocks: StockService, holding: Holding) -> Decimal:
    try:
        return await stocks.current_price(holding.symbol)
    except QuoteError as e:
        fallback = holding.current_price or holding.average_buy_price
        logger.warning(
            f"Error fetching current price for {holding.symbol}, using {fallback}: {e}"
        )
        return fallback


def replay(transactions: list[Transaction]) -> Position:
    """Build a position from scratch by applying transactions in order."""
    position = Position()
    for t in transactions:
        position = apply_trade(position, t.type, t.quantity, t.price_per_share)
    return position


async def _write_holding(
    session: AsyncSession,
    stocks: StockService,
    user_id: str,
    symbol: str,
    change: Callable[[Position], Position],
    commit: bool,
) -> Holding:
    async with holding_lock(user_id, symbol):
        holding = await get_holding(session, user_id, symbol, for_update=True)
        if holding is None:
            holding = Holding(
                user_id=user_id,
                symbol=symbol,
                total_shares=ZERO,
                average_buy_price=ZERO,
                total_invested=ZERO,
                current_price=ZERO,
                current_value=ZERO,
                profit_loss=ZERO,
                profit_loss_percent=ZERO,
            )
            session.add(holding)

        change(Position.of(holding)).assign_to(holding)
        holding.calculate_metrics(await _price_or_fallback(stocks, holding))

        if commit:
            await session.commit()
        else:
            await session.flush()

    return holding


async def update_holding(
    session: AsyncSession,
    stocks: StockService,
    user_id: str,
    symbol: str,
    trade_type: TransactionType,
    quantity: Decimal,
    price: Decimal,
    commit: bool = True,
) -> Holding:
    """Apply a trade to the user's holding and revalue it.

    Creates the holding on first use. If the quote API fails, the holding is
    valued at its last known price (or its average buy price).

    Args:
        session: Database session
        stocks: Quote source
        user_id: Owner
        symbol: Stock symbol
        trade_type: BUY or SELL
        quantity: Shares traded
        price: Price per share
        commit: Commit when done (False leaves the change pending)

    Returns:
        The updated holding
    """
    return await _write_holding(
        session,
        stocks,
        user_id,
        symbol.upper(),
        lambda position: apply_trade(position, trade_type, quantity, price),
        commit,
    )


# ============================================================================
# Transactions
# ============================================================================


@dataclass
class TransactionPage:
    """One page of transaction history plus the total match count."""

    transactions: list[Transaction]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


async def process_transaction(
    session: AsyncSession, stocks: StockService, user_id: str, data: TransactionCreate
) -> Transaction:
    """Record a transaction and apply it to the holding.

    Raises:
        ValueError: If the symbol is blank
    """
    symbol = normalize_symbol(data.symbol)

    transaction = Transaction(
        id=generate_transaction_id(),
        user_id=user_id,
        symbol=symbol,
        type=TransactionType[data.type.value],
        quantity=data.quantity,
        price_per_share=data.price_per_share,
        transaction_date=data.transaction_date or utcnow(),
        notes=data.notes,
    )
    transaction.compute_total()
    session.add(transaction)

    await update_holding(
        session,
        stocks,
        user_id,
        symbol,
        transaction.type,
        transaction.quantity,
        transaction.price_per_share,
    )
    await session.refresh(transaction)

    telemetry.record_transaction(symbol, transaction.type.value)
    logger.info(
        f"User {user_id} recorded {transaction.type.value} {transaction.quantity} "
        f"{symbol} @ {transaction.price_per_share}"
    )
    return transaction


async def get_transaction(
    session: AsyncSession, user_id: str, transaction_id: str
) -> Transaction | None:
    """Get a transaction owned by the user."""
    result = await session.execute(
        select(Transaction).where(
            and_(Transaction.id == transaction_id, Transaction.user_id == user_id)
        )
    )
    return result.scalar_one_or_none()


async def list_transactions(
    session: AsyncSession,
    user_id: str,
    page: int = 1,
    limit: int = 20,
    symbol: str | None = None,
    transaction_type: TransactionType | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    sort_by: SortField = SortField.TRANSACTION_DATE,
    sort_order: SortOrder = SortOrder.DESC,
) -> TransactionPage:
    """Get a page of the user's transactions.

    Raises:
        ValueError: If page or limit is out of range
    """
    if page < 1:
        raise ValueError("page must be at least 1")
    if limit < 1:
        raise ValueError("limit must be at least 1")

    conditions = [Transaction.user_id == user_id]
    if symbol:
        conditions.append(Transaction.symbol == symbol.strip().upper())
    if transaction_type:
        conditions.append(Transaction.type == transaction_type)
    if start_date:
        conditions.append(Transaction.transaction_date >= start_date)
    if end_date:
        conditions.append(Transaction.transaction_date <= end_date)

    column = getattr(Transaction, sort_by.value)
    ordering = column.desc() if sort_order == SortOrder.DESC else column.asc()

    result = await session.execute(
        select(Transaction)
        .where(*conditions)
        .order_by(ordering, Transaction.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    total = await session.scalar(
        select(func.count()).select_from(Transaction).where(*conditions)
    )

    return TransactionPage(
        transactions=list(result.scalars().all()),
        page=page,
        limit=limit,
        total=total or 0,
    )


async def update_transaction(
    session: AsyncSession,
    stocks: StockService,
    user_id: str,
    transaction_id: str,
    changes: TransactionUpdate,
) -> Transaction | None:
    """Edit a transaction and re-apply it to the holding.

    Edits that keep quantity and price leave the holding alone. Editing the
    latest transaction for a symbol replays the edited history exactly.
    Otherwise the old effect is reversed by replaying the opposite type with
    the old quantity and price, then the edited transaction is applied.

    Returns:
        The updated transaction, or None if not found
    """
    transaction = await get_transaction(session, user_id, transaction_id)
    if transaction is None:
        return None

    old_quantity = transaction.quantity
    old_price = transaction.price_per_share

    if changes.quantity is not None:
        transaction.quantity = changes.quantity
    if changes.price_per_share is not None:
        transaction.price_per_share = changes.price_per_share
    if changes.notes is not None:
        transaction.notes = changes.notes
    if changes.transaction_date is not None:
        transaction.transaction_date = changes.transaction_date
    transaction.compute_total()

    symbol = transaction.symbol
    if transaction.quantity == old_quantity and transaction.price_per_share == old_price:
        await session.commit()
    else:
        history = await _symbol_history(session, user_id, symbol)
        others = [t for t in history if t.id != transaction.id]
        if _is_latest(transaction, others):
            await _write_holding(
                session, stocks, user_id, symbol, lambda _: replay(history), commit=True
            )
        else:
            await update_holding(
                session,
                stocks,
                user_id,
                symbol,
                transaction.type.opposite,
                old_quantity,
                old_price,
                commit=False,
            )
            await update_holding(
                session,
                stocks,
                user_id,
                symbol,
                transaction.type,
                transaction.quantity,
                transaction.price_per_share,
            )

    await session.refresh(transaction)
    logger.info(f"User {user_id} edited transaction {transaction_id} ({symbol})")
    return transaction


async def delete_transaction(
    session: AsyncSession, stocks: StockService, user_id: str, transaction_id: str
) -> bool:
    """Delete a transaction and reverse its effect on the holding.

    The latest transaction for a symbol is undone exactly by replaying the
    remaining history. Older ones are reversed with the opposite type.

    Returns:
        False if the transaction was not found
    """
    transaction = await get_transaction(session, user_id, transaction_id)
    if transaction is None:
        return False

    symbol = transaction.symbol
    history = await _symbol_history(session, user_id, symbol)
    remaining = [t for t in history if t.id != transaction.id]
    is_latest = _is_latest(transaction, remaining)

    reverse_type = transaction.type.opposite
    quantity = transaction.quantity
    price = transaction.price_per_share

    await session.delete(transaction)
    if is_latest:
        await _write_holding(
            session, stocks, user_id, symbol, lambda _: replay(remaining), commit=True
        )
    else:
        await update_holding(session, stocks, user_id, symbol, reverse_type, quantity, price)

    logger.info(f"User {user_id} deleted transaction {transaction_id} ({symbol})")
    return True


def _is_latest(transaction: Transaction, others: list[Transaction]) -> bool:
    """True when no other transaction is dated or recorded after this one."""
    return all(
        t.transaction_date <= transaction.transaction_date
        and t.created_at <= transaction.created_at
        for t in others
    )


async def _symbol_history(
    session: AsyncSession, user_id: str, symbol: str
) -> list[Transaction]:
    result = await session.execute(
        select(Transaction)
        .where(and_(Transaction.user_id == user_id, Transaction.symbol == symbol))
        .order_by(Transaction.transaction_date, Transaction.created_at)
    )
    return list(result.scalars().all())


# ============================================================================
# Holdings
# ============================================================================


async def get_holdings(
    session: AsyncSession, stocks: StockService, user_id: str
) -> list[Holding]:
    """Get open holdings (shares > 0), each revalued with the latest quote.

    A quote failure leaves that holding at its previous valuation and does
    not stop the others from refreshing.
    """
    result = await session.execute(
        select(Holding)
        .where(and_(Holding.user_id == user_id, Holding.total_shares > 0))
        .order_by(Holding.symbol)
    )
    holdings = list(result.scalars().all())

    async def latest_price(holding: Holding) -> Decimal | None:
        try:
            return await stocks.current_price(holding.symbol)
        except QuoteError as e:
            logger.error(f"Error updating {holding.symbol}: {e}")
            telemetry.record_holding_refresh_failure(holding.symbol)
            return None

    prices = await asyncio.gather(*(latest_price(h) for h in holdings))
    for holding, price in zip(holdings, prices):
        if price is not None:
            holding.calculate_metrics(price)

    await session.commit()
    return holdings


async def get_holding_detail(
    session: AsyncSession, user_id: str, symbol: str
) -> tuple[Holding, list[Transaction]] | None:
    """Get a holding and its transactions (newest first)."""
    holding = await get_holding(session, user_id, symbol)
    if holding is None:
        return None

    result = await session.execute(
        select(Transaction)
        .where(and_(Transaction.user_id == user_id, Transaction.symbol == holding.symbol))
        .order_by(Transaction.transaction_date.desc())
    )
    return holding, list(result.scalars().all())


async def refresh_holding(
    session: AsyncSession, stocks: StockService, user_id: str, symbol: str
) -> Holding | None:
    """Revalue one holding with the latest quote.

    Raises:
        QuoteError: If the quote cannot be fetched
    """
    holding = await get_holding(session, user_id, symbol)
    if holding is None:
        return None

    holding.calculate_metrics(await stocks.current_price(holding.symbol))
    await session.commit()
    return holding


async def delete_holding(session: AsyncSession, user_id: str, symbol: str) -> None:
    """Delete a holding together with every transaction for its symbol."""
    symbol = symbol.strip().upper()
    await session.execute(
        delete(Transaction).where(
            and_(Transaction.user_id == user_id, Transaction.symbol == symbol)
        )
    )
    await session.execute(
        delete(Holding).where(and_(Holding.user_id == user_id, Holding.symbol == symbol))
    )
    await session.commit()
    logger.info(f"User {user_id} deleted holding {symbol} and its transactions")


async def rebuild_holding(
    session: AsyncSession, user_id: str, symbol: str
) -> Holding | None:
    """Recompute a holding by replaying its full history in date order.

    Edits and deletes only approximate an undo; this restores the exact
    ledger-derived position. The valuation keeps the last known price.

    Returns:
        The rebuilt holding, or None if the symbol has no transactions left
    """
    symbol = symbol.strip().upper()
    transactions = await _symbol_history(session, user_id, symbol)

    async with holding_lock(user_id, symbol):
        holding = await get_holding(session, user_id, symbol, for_update=True)
        if not transactions:
            if holding is not None:
                await session.delete(holding)
                await session.commit()
            return None

        if holding is None:
            holding = Holding(user_id=user_id, symbol=symbol, current_price=ZERO)
            session.add(holding)
        replay(transactions).assign_to(holding)
        holding.calculate_metrics(holding.current_price or holding.average_buy_price)
        await session.commit()

    return holding


# ============================================================================
# Aggregates
# ============================================================================


@dataclass
class PortfolioSummary:
    """Totals over a user's open holdings."""

    total_value: Decimal
    total_invested: Decimal
    total_profit_loss: Decimal
    total_profit_loss_percent: Decimal
    holdings_count: int
    top_performers: list[Holding] = field(default_factory=list)
    worst_performers: list[Holding] = field(default_factory=list)


@dataclass
class TradeOutcome:
    """Approximate realized gain of one SELL."""

    transaction: Transaction
    average_buy_price: Decimal
    realized_gain: Decimal


@dataclass
class PerformanceMetrics:
    """Realized (approximate) and unrealized returns."""

    total_return: Decimal
    total_return_percent: Decimal
    realized_gains: Decimal
    unrealized_gains: Decimal
    total_dividends: Decimal = ZERO
    best_trade: TradeOutcome | None = None
    worst_trade: TradeOutcome | None = None


async def get_portfolio_summary(
    session: AsyncSession, stocks: StockService, user_id: str
) -> PortfolioSummary:
    """Summarize the user's open holdings at current prices."""
    holdings = await get_holdings(session, stocks, user_id)

    total_value = sum((Decimal(h.current_value) for h in holdings), ZERO)
    total_invested = sum((Decimal(h.total_invested) for h in holdings), ZERO)
    total_profit_loss = sum((Decimal(h.profit_loss) for h in holdings), ZERO)
    if total_invested > 0:
        total_profit_loss_percent = (total_profit_loss / total_invested) * 100
    else:
        total_profit_loss_percent = ZERO

    by_performance = sorted(
        holdings, key=lambda h: Decimal(h.profit_loss_percent), reverse=True
    )

    telemetry.record_portfolio_value(user_id, float(total_value), float(total_profit_loss))

    return PortfolioSummary(
        total_value=total_value,
        total_invested=total_invested,
        total_profit_loss=total_profit_loss,
        total_profit_loss_percent=total_profit_loss_percent,
        holdings_count=len(holdings),
        top_performers=by_performance[:3],
        worst_performers=list(reversed(by_performance[-3:])),
    )


def realized_outcomes(transactions: list[Transaction]) -> list[TradeOutcome]:
    """Approximate each SELL's realized gain.

    The cost side is the simple (unweighted) mean of the prices of BUYs of
    the same symbol dated strictly before the SELL. SELLs with no earlier BUY
    are skipped.
    """
    outcomes = []
    for sell in transactions:
        if sell.type is not TransactionType.SELL:
            continue
        prior_buys = [
            Decimal(t.price_per_share)
            for t in transactions
            if t.type is TransactionType.BUY
            and t.symbol == sell.symbol
            and t.transaction_date < sell.transaction_date
        ]
        if not prior_buys:
            continue
        average = sum(prior_buys, ZERO) / len(prior_buys)
        gain = (Decimal(sell.price_per_share) - average) * Decimal(sell.quantity)
        outcomes.append(TradeOutcome(transaction=sell, average_buy_price=average, realized_gain=gain))
    return outcomes


async def get_performance_metrics(
    session: AsyncSession, stocks: StockService, user_id: str
) -> PerformanceMetrics:
    """Compute total return from approximate realized and unrealized gains."""
    holdings = await get_holdings(session, stocks, user_id)
    result = await session.execute(
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.transaction_date)
    )
    transactions = list(result.scalars().all())

    outcomes = realized_outcomes(transactions)
    realized = sum((o.realized_gain for o in outcomes), ZERO)
    unrealized = sum((Decimal(h.profit_loss) for h in holdings), ZERO)
    total_return = realized + unrealized

    total_invested = sum((Decimal(h.total_invested) for h in holdings), ZERO)
    if total_invested > 0:
        total_return_percent = (total_return / total_invested) * 100
    else:
        total_return_percent = ZERO

    return PerformanceMetrics(
        total_return=total_return,
        total_return_percent=total_return_percent,
        realized_gains=realized,
        unrealized_gains=unrealized,
        best_trade=max(outcomes, key=lambda o: o.realized_gain) if outcomes else None,
        worst_trade=min(outcomes, key=lambda o: o.realized_gain) if outcomes else None,
    )
