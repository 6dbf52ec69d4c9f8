"""
Transaction model - the BUY/SELL ledger a user records by hand.

Transactions are the source of truth for holdings. Unlike exchange trades they
can be edited or deleted, and every such mutation is followed by a holding
recalculation in the portfolio service.
"""

import enum
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockfolio.database import Base, utcnow

# Column scales: quantities to 6 places, prices to 4. Their product needs 10.
QUANTITY_PLACES = 6
PRICE_PLACES = 4
QUANTITY_STEP = Decimal(1).scaleb(-QUANTITY_PLACES)
PRICE_STEP = Decimal(1).scaleb(-PRICE_PLACES)


class TransactionType(enum.Enum):
    """Buy or sell."""

    BUY = "BUY"
    SELL = "SELL"

    @property
    def opposite(self) -> "TransactionType":
        """The type that reverses this one."""
        return TransactionType.SELL if self is TransactionType.BUY else TransactionType.BUY


class Transaction(Base):
    """A recorded buy or sell of shares."""

    __tablename__ = "transactions"

    # Primary key: uuid string
    id: Mapped[str] = mapped_column(String, primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id"), nullable=False, index=True
    )

    symbol: Mapped[str] = mapped_column(String(20), nullable=False)

    type: Mapped[TransactionType] = mapped_column(Enum(TransactionType), nullable=False)

    # Fractional shares are allowed
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, QUANTITY_PLACES), nullable=False)
    price_per_share: Mapped[Decimal] = mapped_column(
        Numeric(18, PRICE_PLACES), nullable=False
    )

    # Always exactly quantity * price_per_share (maintained by the flush hooks below)
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(30, QUANTITY_PLACES + PRICE_PLACES), nullable=False
    )

    # When the trade happened (user supplied, defaults to now)
    transaction_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    user: Mapped["User"] = relationship(back_populates="transactions")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_transaction_quantity_positive"),
        CheckConstraint("price_per_share > 0", name="check_transaction_price_positive"),
        Index("ix_transactions_user_symbol", "user_id", "symbol"),
        Index("ix_transactions_user_date", "user_id", "transaction_date"),
    )

    def compute_total(self) -> Decimal:
        """Round quantity and price to their column scales, then store the product."""
        self.quantity = Decimal(self.quantity).quantize(QUANTITY_STEP, ROUND_HALF_UP)
        self.price_per_share = Decimal(self.price_per_share).quantize(PRICE_STEP, ROUND_HALF_UP)
        self.total_amount = self.quantity * self.price_per_share
        return self.total_amount

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self.id!r}, {self.type.value} {self.quantity} "
            f"{self.symbol} @ {self.price_per_share})"
        )


@event.listens_for(Transaction, "before_insert")
@event.listens_for(Transaction, "before_update")
def _sync_total_amount(mapper, connection, target: Transaction) -> None:
    target.compute_total()


# Import at end to avoid circular imports
from stockfolio.models.user import User
