"""Tests for the portfolio service."""

import asyncio
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

import pytest

from stockfolio.database import utcnow
from stockfolio.models import Holding, TransactionType
from stockfolio.schemas.portfolio import (
    SortField,
    SortOrder,
    TransactionCreate,
    TransactionUpdate,
)
from stockfolio.services import portfolio
from stockfolio.services.portfolio import Position, apply_trade

BUY = TransactionType.BUY
SELL = TransactionType.SELL

BASE_DATE = datetime(2026, 1, 5, 15, 30)


def trade(symbol="AAPL", type="BUY", quantity="10", price="100", days=0, notes=None):
    return TransactionCreate(
        symbol=symbol,
        type=type,
        quantity=Decimal(quantity),
        price_per_share=Decimal(price),
        transaction_date=BASE_DATE + timedelta(days=days),
        notes=notes,
    )


# ============================================================================
# Arithmetic
# ============================================================================


class TestApplyTrade:
    """Tests for the running-average arithmetic."""

    @pytest.mark.parametrize(
        "buys",
        [
            [("10", "100"), ("10", "200")],
            [("1", "10"), ("2", "20"), ("3", "30"), ("4", "40")],
            [("0.5", "100"), ("1.5", "200"), ("0.25", "123.4567")],
            [("3", "0.3333"), ("0.000001", "9999.9999"), ("7.123456", "1.0001")],
            [("1", "1"), ("1", "1"), ("1", "2")],
        ],
    )
    def test_buys_average_by_cost(self, buys):
        position = Position()
        for quantity, price in buys:
            position = apply_trade(position, BUY, Decimal(quantity), Decimal(price))

        shares = sum((Decimal(q) for q, _ in buys), Decimal("0"))
        invested = sum((Decimal(q) * Decimal(p) for q, p in buys), Decimal("0"))
        assert position.total_shares == shares
        assert position.total_invested == invested
        assert position.average_buy_price == (invested / shares).quantize(
            Decimal("0.0001"), ROUND_HALF_UP
        )

    def test_average_rounds_half_up(self):
        position = apply_trade(Position(), BUY, Decimal("2"), Decimal("0.0002"))
        position = apply_trade(position, BUY, Decimal("2"), Decimal("0.0003"))

        # 0.0010 / 4 = 0.00025
        assert position.average_buy_price == Decimal("0.0003")

    def test_sell_shrinks_invested_at_average(self):
        """The sale price is ignored; the average is unchanged."""
        position = Position(Decimal("20"), Decimal("150"), Decimal("3000"))

        position = apply_trade(position, SELL, Decimal("5"), Decimal("999"))

        assert position.total_shares == Decimal("15")
        assert position.total_invested == Decimal("2250")
        assert position.average_buy_price == Decimal("150")

    def test_sell_to_zero_resets(self):
        position = Position(Decimal("10"), Decimal("50"), Decimal("500"))

        position = apply_trade(position, SELL, Decimal("10"), Decimal("80"))

        assert position == Position()

    def test_oversell_clamps_at_zero(self):
        position = Position(Decimal("3"), Decimal("50"), Decimal("150"))

        position = apply_trade(position, SELL, Decimal("7"), Decimal("50"))

        assert position.total_shares == Decimal("0")
        assert position.total_invested == Decimal("0")
        assert position.average_buy_price == Decimal("0")

    def test_sell_with_no_position(self):
        assert apply_trade(Position(), SELL, Decimal("1"), Decimal("10")) == Position()

    def test_fractional_shares(self):
        position = apply_trade(Position(), BUY, Decimal("0.5"), Decimal("100"))
        position = apply_trade(position, BUY, Decimal("1.5"), Decimal("200"))

        assert position.total_shares == Decimal("2")
        assert position.total_invested == Decimal("350")
        assert position.average_buy_price == Decimal("175")


class TestHoldingLock:
    """Tests for the per-(user, symbol) holding lock."""

    @pytest.mark.asyncio
    async def test_serializes_same_holding(self):
        events = []

        async def worker(name):
            async with portfolio.holding_lock("u1", "AAPL"):
                events.append(f"{name} in")
                await asyncio.sleep(0)
                events.append(f"{name} out")

        await asyncio.gather(worker("a"), worker("b"))

        assert events == ["a in", "a out", "b in", "b out"]

    @pytest.mark.asyncio
    async def test_other_holdings_do_not_wait(self):
        async with portfolio.holding_lock("u1", "AAPL"):
            async with portfolio.holding_lock("u1", "MSFT"):
                async with portfolio.holding_lock("u2", "AAPL"):
                    assert len(portfolio._holding_locks) == 3

    @pytest.mark.asyncio
    async def test_idle_locks_are_dropped(self):
        async with portfolio.holding_lock("u1", "AAPL"):
            assert ("u1", "AAPL") in portfolio._holding_locks

        assert portfolio._holding_locks == {}
        assert not portfolio._lock_users


# ============================================================================
# Transactions and holdings
# ============================================================================


class TestProcessTransaction:
    """Tests for process_transaction."""

    @pytest.mark.asyncio
    async def test_buy_creates_holding(self, test_session, stock_service, sample_user):
        t = await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(symbol=" aapl ")
        )

        assert t.symbol == "AAPL"
        assert t.type == BUY
        assert t.total_amount == Decimal("1000")

        holding = await portfolio.get_holding(test_session, sample_user.id, "AAPL")
        assert holding.total_shares == Decimal("10")
        assert holding.average_buy_price == Decimal("100")
        assert holding.total_invested == Decimal("1000")
        # Valued at the fake quote of $150
        assert holding.current_price == Decimal("150")
        assert holding.current_value == Decimal("1500")
        assert holding.profit_loss == Decimal("500")
        assert holding.profit_loss_percent == Decimal("50")

    @pytest.mark.asyncio
    async def test_buy_buy_sell_sequence(self, test_session, stock_service, sample_user):
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="100")
        )
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="200", days=1)
        )

        holding = await portfolio.get_holding(test_session, sample_user.id, "AAPL")
        assert holding.total_shares == Decimal("20")
        assert holding.average_buy_price == Decimal("150")
        assert holding.total_invested == Decimal("3000")

        await portfolio.process_transaction(
            test_session,
            stock_service,
            sample_user.id,
            trade(type="SELL", quantity="5", price="400", days=2),
        )

        holding = await portfolio.get_holding(test_session, sample_user.id, "AAPL")
        assert holding.total_shares == Decimal("15")
        assert holding.total_invested == Decimal("2250")
        assert holding.average_buy_price == Decimal("150")

    @pytest.mark.asyncio
    async def test_quote_failure_falls_back_to_average(
        self, test_session, stock_service, quote_api, sample_user
    ):
        """An unknown symbol can still be recorded; it is valued at cost."""
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(symbol="ZZZZ", price="40")
        )

        holding = await portfolio.get_holding(test_session, sample_user.id, "ZZZZ")
        assert holding.current_price == Decimal("40")
        assert holding.profit_loss == Decimal("0")

    @pytest.mark.asyncio
    async def test_blank_symbol_rejected(self, test_session, stock_service, sample_user):
        with pytest.raises(ValueError, match="symbol"):
            await portfolio.process_transaction(
                test_session, stock_service, sample_user.id, trade(symbol="   ")
            )

    @pytest.mark.asyncio
    async def test_default_date_is_now(self, test_session, stock_service, sample_user):
        data = TransactionCreate(
            symbol="AAPL", type="buy", quantity=Decimal("1"), price_per_share=Decimal("10")
        )
        before = utcnow() - timedelta(seconds=1)

        t = await portfolio.process_transaction(test_session, stock_service, sample_user.id, data)

        assert t.transaction_date >= before


class TestUpdateTransaction:
    """Tests for update_transaction."""

    @pytest.mark.asyncio
    async def test_quantity_edit_reapplies(self, test_session, stock_service, sample_user):
        t = await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="100")
        )

        updated = await portfolio.update_transaction(
            test_session,
            stock_service,
            sample_user.id,
            t.id,
            TransactionUpdate(quantity=Decimal("4"), notes="fat finger"),
        )

        assert updated.quantity == Decimal("4")
        assert updated.total_amount == Decimal("400")
        assert updated.notes == "fat finger"

        holding = await portfolio.get_holding(test_session, sample_user.id, "AAPL")
        assert holding.total_shares == Decimal("4")
        assert holding.total_invested == Decimal("400")
        assert holding.average_buy_price == Decimal("100")

    @pytest.mark.asyncio
    async def test_notes_edit_leaves_holding(self, test_session, stock_service, sample_user):
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="100")
        )
        sell = await portfolio.process_transaction(
            test_session,
            stock_service,
            sample_user.id,
            trade(type="SELL", quantity="5", price="200", days=1),
        )

        updated = await portfolio.update_transaction(
            test_session,
            stock_service,
            sample_user.id,
            sell.id,
            TransactionUpdate(notes="typo fix", transaction_date=BASE_DATE + timedelta(days=2)),
        )

        assert updated.notes == "typo fix"
        assert updated.transaction_date == BASE_DATE + timedelta(days=2)
        holding = await portfolio.get_holding(test_session, sample_user.id, "AAPL")
        assert holding.total_shares == Decimal("5")
        assert holding.average_buy_price == Decimal("100")
        assert holding.total_invested == Decimal("500")

    @pytest.mark.asyncio
    async def test_editing_latest_sell_is_exact(self, test_session, stock_service, sample_user):
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="100")
        )
        sell = await portfolio.process_transaction(
            test_session,
            stock_service,
            sample_user.id,
            trade(type="SELL", quantity="5", price="200", days=1),
        )

        await portfolio.update_transaction(
            test_session,
            stock_service,
            sample_user.id,
            sell.id,
            TransactionUpdate(quantity=Decimal("2")),
        )

        holding = await portfolio.get_holding(test_session, sample_user.id, "AAPL")
        assert holding.total_shares == Decimal("8")
        assert holding.average_buy_price == Decimal("100")
        assert holding.total_invested == Decimal("800")

    @pytest.mark.asyncio
    async def test_editing_older_transaction_is_approximate(
        self, test_session, stock_service, sample_user
    ):
        """An older BUY is reversed with a SELL at the blended average."""
        first = await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="100")
        )
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="200", days=1)
        )

        await portfolio.update_transaction(
            test_session,
            stock_service,
            sample_user.id,
            first.id,
            TransactionUpdate(price_per_share=Decimal("50")),
        )

        # SELL 10 leaves 10 @ 150, then BUY 10 @ 50 gives 20 @ 100
        holding = await portfolio.get_holding(test_session, sample_user.id, "AAPL")
        assert holding.total_shares == Decimal("20")
        assert holding.total_invested == Decimal("2000")
        assert holding.average_buy_price == Decimal("100")

    @pytest.mark.asyncio
    async def test_not_found(self, test_session, stock_service, sample_user):
        result = await portfolio.update_transaction(
            test_session, stock_service, sample_user.id, "missing", TransactionUpdate()
        )
        assert result is None

    @pytest.mark.asyncio
    async def test_other_users_transaction_not_found(
        self, test_session, stock_service, sample_user, other_user
    ):
        t = await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade()
        )

        result = await portfolio.update_transaction(
            test_session,
            stock_service,
            other_user.id,
            t.id,
            TransactionUpdate(quantity=Decimal("1")),
        )

        assert result is None


class TestDeleteTransaction:
    """Tests for delete_transaction."""

    @pytest.mark.asyncio
    async def test_deleting_latest_restores_previous_aggregate(
        self, test_session, stock_service, sample_user
    ):
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="100")
        )
        second = await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="200", days=1)
        )

        assert await portfolio.delete_transaction(
            test_session, stock_service, sample_user.id, second.id
        )

        holding = await portfolio.get_holding(test_session, sample_user.id, "AAPL")
        assert holding.total_shares == Decimal("10")
        assert holding.average_buy_price == Decimal("100")
        assert holding.total_invested == Decimal("1000")

    @pytest.mark.asyncio
    async def test_deleting_latest_sell_restores_shares(
        self, test_session, stock_service, sample_user
    ):
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="100")
        )
        sell = await portfolio.process_transaction(
            test_session,
            stock_service,
            sample_user.id,
            trade(type="SELL", quantity="10", price="150", days=1),
        )

        await portfolio.delete_transaction(test_session, stock_service, sample_user.id, sell.id)

        holding = await portfolio.get_holding(test_session, sample_user.id, "AAPL")
        assert holding.total_shares == Decimal("10")
        assert holding.average_buy_price == Decimal("100")

    @pytest.mark.asyncio
    async def test_deleting_older_transaction_is_approximate(
        self, test_session, stock_service, sample_user
    ):
        """An older BUY is reversed with a SELL, which keeps the blended average."""
        first = await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="100")
        )
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="200", days=1)
        )

        await portfolio.delete_transaction(test_session, stock_service, sample_user.id, first.id)

        holding = await portfolio.get_holding(test_session, sample_user.id, "AAPL")
        assert holding.total_shares == Decimal("10")
        assert holding.average_buy_price == Decimal("150")
        assert holding.total_invested == Decimal("1500")

    @pytest.mark.asyncio
    async def test_not_found(self, test_session, stock_service, sample_user):
        assert not await portfolio.delete_transaction(
            test_session, stock_service, sample_user.id, "missing"
        )


class TestListTransactions:
    """Tests for list_transactions."""

    @pytest.mark.asyncio
    async def test_pagination_and_default_order(self, test_session, stock_service, sample_user):
        for day in range(5):
            await portfolio.process_transaction(
                test_session, stock_service, sample_user.id, trade(quantity="1", days=day)
            )

        page = await portfolio.list_transactions(test_session, sample_user.id, page=1, limit=2)

        assert page.total == 5
        assert page.pages == 3
        assert len(page.transactions) == 2
        # Newest first by default
        assert page.transactions[0].transaction_date == BASE_DATE + timedelta(days=4)

        last = await portfolio.list_transactions(test_session, sample_user.id, page=3, limit=2)
        assert len(last.transactions) == 1
        assert last.transactions[0].transaction_date == BASE_DATE

    @pytest.mark.asyncio
    async def test_filters(self, test_session, stock_service, sample_user):
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(symbol="AAPL", days=0)
        )
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(symbol="MSFT", days=1)
        )
        await portfolio.process_transaction(
            test_session,
            stock_service,
            sample_user.id,
            trade(symbol="AAPL", type="SELL", quantity="1", days=2),
        )

        by_symbol = await portfolio.list_transactions(test_session, sample_user.id, symbol="aapl")
        assert by_symbol.total == 2

        sells = await portfolio.list_transactions(
            test_session, sample_user.id, transaction_type=SELL
        )
        assert [t.type for t in sells.transactions] == [SELL]

        window = await portfolio.list_transactions(
            test_session,
            sample_user.id,
            start_date=BASE_DATE + timedelta(days=1),
            end_date=BASE_DATE + timedelta(days=1),
        )
        assert [t.symbol for t in window.transactions] == ["MSFT"]

    @pytest.mark.asyncio
    async def test_sort_ascending_by_price(self, test_session, stock_service, sample_user):
        for price in ["30", "10", "20"]:
            await portfolio.process_transaction(
                test_session, stock_service, sample_user.id, trade(price=price)
            )

        page = await portfolio.list_transactions(
            test_session,
            sample_user.id,
            sort_by=SortField.PRICE_PER_SHARE,
            sort_order=SortOrder.ASC,
        )

        assert [t.price_per_share for t in page.transactions] == [
            Decimal("10"), Decimal("20"), Decimal("30")
        ]

    @pytest.mark.asyncio
    async def test_only_own_transactions(
        self, test_session, stock_service, sample_user, other_user
    ):
        await portfolio.process_transaction(test_session, stock_service, sample_user.id, trade())

        page = await portfolio.list_transactions(test_session, other_user.id)

        assert page.total == 0
        assert page.pages == 0
        assert page.transactions == []

    @pytest.mark.asyncio
    async def test_invalid_page(self, test_session, sample_user):
        with pytest.raises(ValueError):
            await portfolio.list_transactions(test_session, sample_user.id, page=0)


class TestHoldings:
    """Tests for get_holdings, refresh_holding and delete_holding."""

    @pytest.mark.asyncio
    async def test_closed_positions_hidden(self, test_session, stock_service, sample_user):
        await portfolio.process_transaction(test_session, stock_service, sample_user.id, trade())
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(symbol="MSFT")
        )
        await portfolio.process_transaction(
            test_session,
            stock_service,
            sample_user.id,
            trade(symbol="MSFT", type="SELL", days=1),
        )

        holdings = await portfolio.get_holdings(test_session, stock_service, sample_user.id)

        assert [h.symbol for h in holdings] == ["AAPL"]

    @pytest.mark.asyncio
    async def test_one_failed_quote_does_not_block_others(
        self, test_session, stock_service, quote_api, sample_user
    ):
        await portfolio.process_transaction(test_session, stock_service, sample_user.id, trade())
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(symbol="MSFT")
        )

        # New prices; AAPL's quote now fails
        await stock_service.cache.clear()
        quote_api.failing.add("AAPL")
        quote_api.set_quote("MSFT", "310.00")

        holdings = await portfolio.get_holdings(test_session, stock_service, sample_user.id)

        by_symbol = {h.symbol: h for h in holdings}
        assert by_symbol["AAPL"].current_price == Decimal("150")
        assert by_symbol["MSFT"].current_price == Decimal("310")

    @pytest.mark.asyncio
    async def test_refresh_missing(self, test_session, stock_service, sample_user):
        assert await portfolio.refresh_holding(
            test_session, stock_service, sample_user.id, "AAPL"
        ) is None

    @pytest.mark.asyncio
    async def test_delete_holding_removes_transactions(
        self, test_session, stock_service, sample_user
    ):
        await portfolio.process_transaction(test_session, stock_service, sample_user.id, trade())
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(days=1)
        )

        await portfolio.delete_holding(test_session, sample_user.id, "aapl")

        assert await portfolio.get_holding(test_session, sample_user.id, "AAPL") is None
        page = await portfolio.list_transactions(test_session, sample_user.id)
        assert page.total == 0

    @pytest.mark.asyncio
    async def test_detail_lists_transactions_newest_first(
        self, test_session, stock_service, sample_user
    ):
        await portfolio.process_transaction(test_session, stock_service, sample_user.id, trade())
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(days=3)
        )

        holding, transactions = await portfolio.get_holding_detail(
            test_session, sample_user.id, "aapl"
        )

        assert holding.symbol == "AAPL"
        assert transactions[0].transaction_date > transactions[1].transaction_date


class TestRebuildHolding:
    """Tests for rebuild_holding."""

    @pytest.mark.asyncio
    async def test_rebuild_fixes_drift(self, test_session, stock_service, sample_user):
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="100")
        )
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="200", days=1)
        )

        holding = await portfolio.get_holding(test_session, sample_user.id, "AAPL")
        holding.total_shares = Decimal("1")
        holding.total_invested = Decimal("1")
        await test_session.commit()

        rebuilt = await portfolio.rebuild_holding(test_session, sample_user.id, "AAPL")

        assert rebuilt.total_shares == Decimal("20")
        assert rebuilt.total_invested == Decimal("3000")
        assert rebuilt.average_buy_price == Decimal("150")

    @pytest.mark.asyncio
    async def test_rebuild_without_history_removes_holding(self, test_session, sample_user):
        test_session.add(
            Holding(
                user_id=sample_user.id,
                symbol="GONE",
                total_shares=Decimal("5"),
                average_buy_price=Decimal("10"),
                total_invested=Decimal("50"),
            )
        )
        await test_session.commit()

        assert await portfolio.rebuild_holding(test_session, sample_user.id, "GONE") is None
        assert await portfolio.get_holding(test_session, sample_user.id, "GONE") is None


# ============================================================================
# Aggregates
# ============================================================================


class TestSummary:
    """Tests for get_portfolio_summary."""

    @pytest.mark.asyncio
    async def test_empty(self, test_session, stock_service, sample_user):
        summary = await portfolio.get_portfolio_summary(test_session, stock_service, sample_user.id)

        assert summary.holdings_count == 0
        assert summary.total_value == Decimal("0")
        assert summary.total_profit_loss_percent == Decimal("0")
        assert summary.top_performers == []

    @pytest.mark.asyncio
    async def test_totals_and_rankings(self, test_session, stock_service, sample_user):
        # AAPL: 10 @ 100, quoted at 150 -> +50%
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="100")
        )
        # MSFT: 10 @ 400, quoted at 300 -> -25%
        await portfolio.process_transaction(
            test_session,
            stock_service,
            sample_user.id,
            trade(symbol="MSFT", quantity="10", price="400"),
        )

        summary = await portfolio.get_portfolio_summary(test_session, stock_service, sample_user.id)

        assert summary.holdings_count == 2
        assert summary.total_value == Decimal("4500")
        assert summary.total_invested == Decimal("5000")
        assert summary.total_profit_loss == Decimal("-500")
        assert summary.total_profit_loss_percent == Decimal("-10")
        assert [h.symbol for h in summary.top_performers] == ["AAPL", "MSFT"]
        assert [h.symbol for h in summary.worst_performers] == ["MSFT", "AAPL"]


class TestPerformance:
    """Tests for get_performance_metrics."""

    @pytest.mark.asyncio
    async def test_realized_gain_uses_mean_of_prior_buys(
        self, test_session, stock_service, sample_user
    ):
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="10", price="100")
        )
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="30", price="200", days=1)
        )
        # Mean of prior BUY prices is 150 (unweighted): (180 - 150) * 10 = 300
        await portfolio.process_transaction(
            test_session,
            stock_service,
            sample_user.id,
            trade(type="SELL", quantity="10", price="180", days=2),
        )
        # BUY dated after this SELL does not count for it
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(quantity="1", price="1000", days=5)
        )

        metrics = await portfolio.get_performance_metrics(
            test_session, stock_service, sample_user.id
        )

        assert metrics.realized_gains == Decimal("300")
        assert metrics.total_dividends == Decimal("0")
        assert metrics.best_trade.realized_gain == Decimal("300")
        assert metrics.best_trade is metrics.worst_trade
        assert metrics.total_return == metrics.realized_gains + metrics.unrealized_gains

    @pytest.mark.asyncio
    async def test_sell_without_prior_buy_ignored(self, test_session, stock_service, sample_user):
        await portfolio.process_transaction(
            test_session, stock_service, sample_user.id, trade(type="SELL", quantity="1")
        )

        metrics = await portfolio.get_performance_metrics(
            test_session, stock_service, sample_user.id
        )

        assert metrics.realized_gains == Decimal("0")
        assert metrics.best_trade is None
        assert metrics.worst_trade is None
        assert metrics.total_return_percent == Decimal("0")
