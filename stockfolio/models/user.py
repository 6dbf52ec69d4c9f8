"""
User model - an authenticated portfolio owner.

Created at signup and read at login; nothing else mutates it.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockfolio.database import Base, utcnow


class User(Base):
    """A registered user."""

    __tablename__ = "users"

    # Primary key: uuid string
    id: Mapped[str] = mapped_column(String, primary_key=True)

    username: Mapped[str] = mapped_column(String(100), nullable=False)

    # Stored lower-cased, used as the login identifier
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    # passlib hash, never returned by the API
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    # Relationships
    watchlist: Mapped[list["WatchlistEntry"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    transactions: Mapped[list["Transaction"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    holdings: Mapped[list["Holding"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, email={self.email!r})"


# Import at end to avoid circular imports
from stockfolio.models.holding import Holding
from stockfolio.models.transaction import Transaction
from stockfolio.models.watchlist import WatchlistEntry
