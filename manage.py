#!/usr/bin/env python3
"""
Management script for stockfolio.

Usage (direct DB access):
    python manage.py db init
    python manage.py db clear
    python manage.py db status
    python manage.py db rebuild-holdings [--email user@example.com]
    python manage.py users list

Usage (quotes):
    python manage.py analyze AAPL [--base-url http://localhost:8000]
"""

import asyncio
import json

import click
import httpx
from sqlalchemy import func, select

from stockfolio.database import AsyncSessionLocal, Base, engine
from stockfolio.models import Holding, Transaction, User, WatchlistEntry
from stockfolio.services import portfolio as portfolio_service
from stockfolio.services import users as user_service
from stockfolio.services.cache import MemoryCache
from stockfolio.services.quotes import QuoteClient, QuoteError
from stockfolio.services.stock import StockService


# ============================================================================
# Direct database operations (internal)
# ============================================================================


async def _init_db():
    """Initialize the database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _clear_db():
    """Drop and recreate all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _count_records():
    """Count records in each table."""
    async with AsyncSessionLocal() as session:
        counts = {}
        for model, name in [
            (User, "users"),
            (WatchlistEntry, "watchlist"),
            (Transaction, "transactions"),
            (Holding, "holdings"),
        ]:
            counts[name] = await session.scalar(select(func.count()).select_from(model))
        return counts


async def _rebuild_holdings(email: str | None):
    """Replay transaction history for every (user, symbol) pair."""
    async with AsyncSessionLocal() as session:
        query = select(Transaction.user_id, Transaction.symbol).distinct()
        holdings_query = select(Holding.user_id, Holding.symbol)
        if email:
            user = await user_service.get_user_by_email(session, email)
            if user is None:
                raise click.ClickException(f"No user with email {email}")
            query = query.where(Transaction.user_id == user.id)
            holdings_query = holdings_query.where(Holding.user_id == user.id)

        pairs = set((await session.execute(query)).all())
        # Holdings whose transactions are all gone get removed by the rebuild
        pairs |= set((await session.execute(holdings_query)).all())

        rebuilt = []
        for user_id, symbol in sorted(pairs):
            holding = await portfolio_service.rebuild_holding(session, user_id, symbol)
            rebuilt.append((user_id, symbol, holding))
        return rebuilt


async def _list_users():
    async with AsyncSessionLocal() as session:
        return await user_service.list_users(session)


async def _analyze(symbol: str):
    stocks = StockService(QuoteClient(), MemoryCache())
    analysis = await stocks.analyze(symbol)
    return analysis.model_dump(mode="json")


def _api_analyze(symbol: str, base_url: str):
    """Analyze via a running API."""
    with httpx.Client(base_url=base_url, timeout=30) as client:
        response = client.post("/api/stock/analyze", json={"symbol": symbol})
        if response.status_code >= 400:
            detail = response.json().get("detail", response.text)
            raise click.ClickException(f"API error {response.status_code}: {detail}")
        return response.json()


# ============================================================================
# CLI: Main group
# ============================================================================


@click.group()
def cli():
    """Stockfolio management commands."""
    pass


# ============================================================================
# CLI: db (direct database access)
# ============================================================================


@cli.group()
def db():
    """Direct database management (bypasses API)."""
    pass


@db.command("init")
def db_init():
    """Create tables that don't exist yet."""
    asyncio.run(_init_db())
    click.echo("Database initialized.")


@db.command("clear")
@click.confirmation_option(prompt="Are you sure you want to clear all data?")
def db_clear():
    """Clear all data from the database (destructive!)."""
    click.echo("Clearing database...")
    asyncio.run(_clear_db())
    click.echo("Database cleared and tables recreated.")


@db.command("status")
def db_status():
    """Show database status and record counts."""

    async def run():
        await _init_db()
        return await _count_records()

    counts = asyncio.run(run())

    click.echo("\nDatabase Status:")
    click.echo("-" * 30)
    for table, count in counts.items():
        click.echo(f"  {table:<15} {count:>10,}")
    click.echo("-" * 30)
    click.echo(f"  {'Total':<15} {sum(counts.values()):>10,}")


@db.command("rebuild-holdings")
@click.option("--email", "-e", default=None, help="Only rebuild this user's holdings")
def db_rebuild_holdings(email):
    """Recompute holdings from full transaction history.

    Edits and deletes adjust holdings approximately; this replays every
    transaction in date order to get the exact ledger position.
    """

    async def run():
        await _init_db()
        return await _rebuild_holdings(email)

    rebuilt = asyncio.run(run())

    if not rebuilt:
        click.echo("No holdings to rebuild.")
        return

    click.echo(f"\n{'User':<38} {'Symbol':<8} {'Shares':>14} {'Avg Price':>12}")
    click.echo("-" * 76)
    for user_id, symbol, holding in rebuilt:
        if holding is None:
            click.echo(f"{user_id:<38} {symbol:<8} {'(removed)':>14}")
            continue
        click.echo(
            f"{user_id:<38} {symbol:<8} {holding.total_shares:>14,.4f} "
            f"{holding.average_buy_price:>12,.2f}"
        )
    click.echo(f"\nTotal: {len(rebuilt)} holdings")


# ============================================================================
# CLI: users
# ============================================================================


@cli.group()
def users():
    """Inspect user accounts."""
    pass


@users.command("list")
def users_list():
    """Show all users."""

    async def run():
        await _init_db()
        return await _list_users()

    users_found = asyncio.run(run())

    if not users_found:
        click.echo("No users found.")
        return

    click.echo(f"\n{'ID':<38} {'Username':<20} {'Email':<30}")
    click.echo("-" * 90)
    for u in users_found:
        click.echo(f"{u.id:<38} {u.username:<20} {u.email:<30}")
    click.echo(f"\nTotal: {len(users_found)} users")


# ============================================================================
# CLI: analyze
# ============================================================================


@cli.command("analyze")
@click.argument("symbol")
@click.option(
    "--base-url", "-u",
    default=None,
    help="Analyze through a running API instead of calling the quote API directly",
)
def analyze(symbol, base_url):
    """Print the analysis for SYMBOL as JSON."""
    try:
        if base_url:
            result = _api_analyze(symbol, base_url)
        else:
            result = asyncio.run(_analyze(symbol))
    except httpx.ConnectError:
        click.echo(f"\nError: Could not connect to {base_url}", err=True)
        click.echo(
            "Is the server running? Start it with: uvicorn stockfolio.main:app", err=True
        )
        raise SystemExit(1)
    except (ValueError, QuoteError) as e:
        raise click.ClickException(str(e))

    click.echo(json.dumps(result, indent=2))


if __name__ == "__main__":
    cli()
