"""
Holding model - a user's aggregated position in one symbol.

Derived entirely from the user's transactions for that symbol. Uses a
composite primary key (user_id, symbol), so there is at most one row per pair.
When total_shares reaches 0 the row stays, with invested capital and average
price reset to 0.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockfolio.database import Base, utcnow

ZERO = Decimal("0")


class Holding(Base):
    """Share position plus a valuation snapshot from the latest quote."""

    __tablename__ = "holdings"

    # Composite primary key: user + symbol
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id"), primary_key=True
    )
    symbol: Mapped[str] = mapped_column(String(20), primary_key=True)

    total_shares: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False, default=ZERO)

    # Cost-basis weighted average over BUYs (half-up to 4 places), unchanged by SELLs
    average_buy_price: Mapped[Decimal] = mapped_column(
        Numeric(18, 4), nullable=False, default=ZERO
    )

    # Sum of quantity * price products, kept at their full scale
    total_invested: Mapped[Decimal] = mapped_column(Numeric(30, 10), nullable=False, default=ZERO)

    # Valuation snapshot, recomputed on demand
    current_price: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False, default=ZERO)
    current_value: Mapped[Decimal] = mapped_column(Numeric(24, 4), nullable=False, default=ZERO)
    profit_loss: Mapped[Decimal] = mapped_column(Numeric(24, 4), nullable=False, default=ZERO)
    profit_loss_percent: Mapped[Decimal] = mapped_column(
        Numeric(12, 4), nullable=False, default=ZERO
    )

    last_updated: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    user: Mapped["User"] = relationship(back_populates="holdings")

    __table_args__ = (
        CheckConstraint("total_shares >= 0", name="check_holding_shares_non_negative"),
        CheckConstraint("average_buy_price >= 0", name="check_holding_average_non_negative"),
    )

    def calculate_metrics(self, current_price: Decimal) -> None:
        """Value the position at current_price and refresh P/L fields."""
        invested = Decimal(self.total_invested)
        self.current_price = Decimal(current_price)
        self.current_value = Decimal(self.total_shares) * self.current_price
        self.profit_loss = self.current_value - invested
        if invested > 0:
            self.profit_loss_percent = (self.profit_loss / invested) * 100
        else:
            self.profit_loss_percent = ZERO
        self.last_updated = utcnow()

    def __repr__(self) -> str:
        return (
            f"Holding(user={self.user_id!r}, symbol={self.symbol!r}, "
            f"shares={self.total_shares}, avg={self.average_buy_price})"
        )


# Import at end to avoid circular imports
from stockfolio.models.user import User
