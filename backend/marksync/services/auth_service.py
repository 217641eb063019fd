"""
MarkSync Backend — Authentication Service
===========================================

What:  Registration and login on top of the CredentialStore.
How:   Passwords are hashed with bcrypt. Hashing is CPU-bound (~50-100ms at
       cost 10), so it runs in a worker thread to keep the event loop free.
Who:   Called by POST /api/register and POST /api/login.

Error Mapping:
    duplicate username/email → DuplicateFieldError (400)
    unknown login / bad password → AuthenticationError (400, same message)
    anything else from the database → DatabaseError (500, generic message)
"""

import asyncio
import logging

import bcrypt
from sqlalchemy.ext.asyncio import AsyncSession

from marksync.config import settings
from marksync.exceptions import AuthenticationError, DatabaseError, MarkSyncError
from marksync.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse
from marksync.services.credential_store import credential_store

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Corrupt or non-bcrypt hash in the row
        logger.warning("Stored password hash could not be parsed")
        return False


class AuthService:
    """Account registration and credential checks."""

    async def register(self, db: AsyncSession, request: RegisterRequest) -> RegisterResponse:
        password_hash = await asyncio.to_thread(hash_password, request.password)

        try:
            user_id = await credential_store.create(
                db,
                name=request.name,
                username=request.username,
                email=request.email,
                password_hash=password_hash,
            )
        except MarkSyncError:
            raise
        except Exception as e:
            logger.error("Database error registering %s: %s", request.username, str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("Registered user %s (id=%s)", request.username, user_id)
        return RegisterResponse()

    async def login(self, db: AsyncSession, request: LoginRequest) -> LoginResponse:
        try:
            user = await credential_store.find_by_identifier(db, request.login)
        except Exception as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        if user is None:
            raise AuthenticationError(context={"reason": "unknown_login"})

        if not await asyncio.to_thread(verify_password, request.password, user.password_hash):
            raise AuthenticationError(context={"reason": "bad_password", "user_id": user.id})

        logger.info("User %s logged in", user.username)
        return LoginResponse(username=user.username, user_id=user.id)


auth_service = AuthService()
