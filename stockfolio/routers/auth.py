"""Auth API endpoints - signup, login and the current user."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stockfolio.auth import create_access_token, get_current_user
from stockfolio.database import get_session
from stockfolio.models import User
from stockfolio.schemas.auth import LoginRequest, SignupRequest, TokenResponse, UserResponse
from stockfolio.services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def signup(
    data: SignupRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Register a new user and return a bearer token for them."""
    try:
        user = await user_service.create_user(session, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists"
        )

    logger.info(f"New user {user.id} ({user.email})")
    return TokenResponse(
        token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
)
async def login(
    data: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Exchange email and password for a bearer token."""
    user = await user_service.authenticate(session, data.email, data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid Credentials",
        )

    return TokenResponse(
        token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get my profile",
)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)
