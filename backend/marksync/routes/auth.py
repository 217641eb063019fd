"""
MarkSync Backend — Registration & Login Routes
================================================

What:  POST /api/register and POST /api/login.
How:   Pydantic validates the body (missing fields, email format, password
       confirmation); AuthService does the rest. Validation failures become
       400 responses through the global RequestValidationError handler.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marksync.database import get_db_session
from marksync.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse
from marksync.schemas.common import ErrorResponse
from marksync.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    responses={
        400: {"description": "Invalid input or username/email taken", "model": ErrorResponse},
        500: {"description": "Database error", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> RegisterResponse:
    return await auth_service.register(db, payload)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Invalid login or password", "model": ErrorResponse},
        500: {"description": "Database error", "model": ErrorResponse},
    },
    summary="Log in with username or email",
    description="Returns the numeric userId the client sends back on every sync.",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    return await auth_service.login(db, payload)
