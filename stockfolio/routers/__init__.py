"""API routers."""

from stockfolio.routers.auth import router as auth_router
from stockfolio.routers.portfolio import router as portfolio_router
from stockfolio.routers.stock import router as stock_router

__all__ = ["auth_router", "portfolio_router", "stock_router"]
