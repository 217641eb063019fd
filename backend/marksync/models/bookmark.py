"""
MarkSync Backend — Bookmark SQLAlchemy Model
==============================================

What:  ORM model for the `bookmarks` table.
Who:   BookmarkStore (delete-by-owner, conflict-skip insert), Alembic.

Table Design:
    - user_id → users.id ON DELETE CASCADE: strict parent/child ownership
    - (user_id, url) unique: a user cannot store the same URL twice. The sync
      insert relies on this constraint to collapse duplicate URLs within a
      batch (ON CONFLICT DO NOTHING), so it must exist in every deployment.
    - title carries no uniqueness; two URLs may share a title
    - The unique index leads with user_id, which also serves delete-by-owner
"""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marksync.database import Base

if TYPE_CHECKING:
    from marksync.models.user import User


class Bookmark(Base):
    """A single bookmark owned by exactly one user."""

    __tablename__ = "bookmarks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)

    user: Mapped["User"] = relationship(back_populates="bookmarks")

    __table_args__ = (
        UniqueConstraint("user_id", "url", name="uq_bookmarks_user_url"),
    )

    def __repr__(self) -> str:
        return f"<Bookmark(id={self.id}, user_id={self.user_id}, url='{self.url}')>"
