"""
MarkSync Backend — User SQLAlchemy Model
==========================================

What:  ORM model for the `users` table.
Who:   CredentialStore (create/find), Alembic, startup bootstrap.

Table Design:
    - Integer identity key: clients store it as `userId` and send it back on sync
    - username / email: each globally unique (named constraints so duplicate
      registrations can be attributed to the right field)
    - password_hash: bcrypt output, never returned by the API
    - Rows are immutable after registration; deleting one cascades to bookmarks
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marksync.database import Base

if TYPE_CHECKING:
    from marksync.models.bookmark import Bookmark


class User(Base):
    """An account that owns a set of synced bookmarks."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    # passive_deletes: the database's ON DELETE CASCADE removes the rows
    bookmarks: Mapped[List["Bookmark"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("username", name="uq_users_username"),
        UniqueConstraint("email", name="uq_users_email"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
