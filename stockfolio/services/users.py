"""User service - signup, credential checks and lookups."""

import uuid

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stockfolio.models import User
from stockfolio.schemas.auth import SignupRequest

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against a stored hash."""
    return pwd_context.verify(password, password_hash)


def generate_user_id() -> str:
    """Generate a unique user ID."""
    return str(uuid.uuid4())


async def get_user(session: AsyncSession, user_id: str) -> User | None:
    """Get a user by ID."""
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    """Get a user by email (case-insensitive)."""
    result = await session.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, data: SignupRequest) -> User:
    """Register a new user.

    Raises:
        ValueError: If the email is already registered
    """
    if await get_user_by_email(session, data.email):
        raise ValueError("User already exists")

    user = User(
        id=generate_user_id(),
        username=data.username.strip(),
        email=data.email.strip().lower(),
        password_hash=hash_password(data.password),
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def authenticate(session: AsyncSession, email: str, password: str) -> User | None:
    """Return the user if the credentials match, else None."""
    user = await get_user_by_email(session, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


async def list_users(session: AsyncSession) -> list[User]:
    """Get all users, oldest first."""
    result = await session.execute(select(User).order_by(User.created_at))
    return list(result.scalars().all())
