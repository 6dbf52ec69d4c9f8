"""
SQLAlchemy models for stockfolio.

This module exports all models and the Base class for easy imports:
    from stockfolio.models import Base, User, WatchlistEntry, Transaction, Holding
"""

from stockfolio.database import Base
from stockfolio.models.user import User
from stockfolio.models.watchlist import WatchlistEntry
from stockfolio.models.transaction import Transaction, TransactionType
from stockfolio.models.holding import Holding

__all__ = [
    "Base",
    "User",
    "WatchlistEntry",
    "Transaction",
    "TransactionType",
    "Holding",
]
