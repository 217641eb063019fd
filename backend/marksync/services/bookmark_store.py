"""
MarkSync Backend — Bookmark Store
===================================

What:  Persistence operations on the `bookmarks` table.
How:   Two statements make up a replace: delete-by-owner, then a conflict-skip
       bulk insert. The store never opens or commits a transaction; the caller
       owns the unit of work (see sync_service.py).
Who:   BookmarkSyncService.

Conflict-skip insert:
    INSERT INTO bookmarks (user_id, title, url)
    VALUES (...), (...), ...
    ON CONFLICT (user_id, url) DO NOTHING

    Rows are applied in VALUES order, so when a batch repeats a URL the first
    occurrence is stored and later ones are skipped. PostgreSQL and SQLite
    both support this form; the dialect-specific insert() is chosen from the
    session's bind.
"""

import logging
from typing import Callable, Dict, Optional, Sequence, Tuple

from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from marksync.config import settings
from marksync.models.bookmark import Bookmark
from marksync.schemas.bookmark import BookmarkItem

logger = logging.getLogger(__name__)

_CONFLICT_SKIP_INSERTS: Dict[str, Callable] = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class BookmarkStore:
    """
    Delete-by-owner and bulk-insert-with-conflict-skip for bookmarks.

    Args:
        batch_size: rows per INSERT statement (defaults to SYNC_INSERT_BATCH_SIZE)
    """

    def __init__(self, batch_size: Optional[int] = None):
        self.batch_size = batch_size or settings.sync_insert_batch_size

    async def delete_for_user(self, session: AsyncSession, user_id: int) -> int:
        """Remove every bookmark owned by `user_id`. Returns rows deleted."""
        table = Bookmark.__table__
        result = await session.execute(delete(table).where(table.c.user_id == user_id))
        return max(result.rowcount or 0, 0)

    async def insert_skip_duplicates(
        self,
        session: AsyncSession,
        user_id: int,
        items: Sequence[BookmarkItem],
    ) -> int:
        """
        Insert `items` for `user_id`, skipping rows whose URL already exists.

        Large inputs are split into batches; every batch runs on the same
        session, so a URL stored by an earlier batch also wins over a later
        duplicate.

        Returns:
            Number of rows actually inserted.
        """
        if not items:
            return 0

        insert = self._insert_for(session)
        table = Bookmark.__table__
        stored = 0

        for start in range(0, len(items), self.batch_size):
            chunk = items[start:start + self.batch_size]
            rows = [
                {"user_id": user_id, "title": item.title, "url": item.url}
                for item in chunk
            ]
            stmt = insert(table).values(rows).on_conflict_do_nothing(
                index_elements=["user_id", "url"],
            )
            result = await session.execute(stmt)
            stored += max(result.rowcount or 0, 0)

        return stored

    async def replace_all(
        self,
        session: AsyncSession,
        user_id: int,
        items: Sequence[BookmarkItem],
    ) -> Tuple[int, int]:
        """
        Replace the user's bookmark set with `items`.

        Must run inside a transaction owned by the caller; on its own this
        method would expose the emptied set between the two statements.

        Returns:
            (rows removed, rows stored)
        """
        removed = await self.delete_for_user(session, user_id)
        stored = await self.insert_skip_duplicates(session, user_id, items)
        return removed, stored

    @staticmethod
    def _insert_for(session: AsyncSession) -> Callable:
        dialect = session.get_bind().dialect.name
        try:
            return _CONFLICT_SKIP_INSERTS[dialect]
        except KeyError:
            raise ValueError(
                f"Conflict-skip insert is not supported for dialect '{dialect}'"
            ) from None



bookmark_store = BookmarkStore()
