"""
MarkSync Backend — Credential Store
=====================================

What:  Create and look up user records.
How:   Uniqueness of username and email is enforced by the database; a
       violated constraint is mapped back to the offending field by name.
Who:   AuthService.
"""

import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marksync.exceptions import DuplicateFieldError
from marksync.models.user import User

logger = logging.getLogger(__name__)

# Constraint name (PostgreSQL) and column reference (SQLite) per unique field
_UNIQUE_MARKERS = {
    "username": ("uq_users_username", "users.username"),
    "email": ("uq_users_email", "users.email"),
}


class CredentialStore:
    """Persistence for user accounts."""

    async def create(
        self,
        db: AsyncSession,
        name: str,
        username: str,
        email: str,
        password_hash: str,
    ) -> int:
        """
        Insert a new user and return its id.

        Raises:
            DuplicateFieldError: username or email already registered
            IntegrityError: any other constraint violation
        """
        user = User(name=name, username=username, email=email, password_hash=password_hash)
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            field = self.duplicate_field(e)
            if field is None:
                raise
            raise DuplicateFieldError(field=field)
        return user.id

    async def find_by_identifier(self, db: AsyncSession, login: str) -> Optional[User]:
        """Look a user up by email OR username."""
        result = await db.execute(
            select(User)
            .where(or_(User.email == login, User.username == login))
            .order_by(User.id)
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    def duplicate_field(error: IntegrityError) -> Optional[str]:
        """Name of the unique field an IntegrityError refers to, if any."""
        text = str(error.orig).lower()
        for field, markers in _UNIQUE_MARKERS.items():
            if any(marker in text for marker in markers):
                return field
        return None


credential_store = CredentialStore()
