"""
MarkSync Backend — Bookmark Sync Coordinator
==============================================

What:  Full-replace synchronization of a user's bookmark set.
Why:   The browser is the source of truth for its own bookmark tree at sync
       time. Replacing the stored set wholesale keeps the operation trivially
       correct and idempotent; there is no per-item history to merge.
Who:   Called by POST /api/sync/bookmarks.

Unit of Work:
    ┌───────────────── one transaction ─────────────────┐
    │  DELETE FROM bookmarks WHERE user_id = :uid       │
    │  INSERT ... VALUES ... ON CONFLICT DO NOTHING     │
    └───────────────────────────────────────────────────┘
    COMMIT on success; ROLLBACK on any failure, leaving the previous set
    untouched. Readers outside the transaction never observe the emptied
    intermediate state.

Guarantees:
    - success: stored set == submitted set with duplicate URLs collapsed
      (first occurrence wins)
    - failure: stored set unchanged, StoreFailureError raised, cause logged
    - malformed input: InvalidPayloadError before any store interaction
    - sync(u, S) twice == sync(u, S) once; sync(u, []) clears u's bookmarks

Concurrency:
    Syncs for different users touch disjoint rows and never block each other.
    Concurrent syncs for the same user are not ordered here; the database's
    transaction isolation decides and the last commit wins.
"""

import logging
from collections.abc import Sequence
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marksync.exceptions import InvalidPayloadError, MarkSyncError, StoreFailureError
from marksync.schemas.bookmark import BookmarkItem, SyncResponse
from marksync.services.bookmark_store import BookmarkStore, bookmark_store

logger = logging.getLogger(__name__)

# users.id is a 32-bit INTEGER column
MAX_USER_ID = 2**31 - 1


class BookmarkSyncService:
    """
    Validates a sync request and applies it atomically through a BookmarkStore.

    The connection pool is passed in per call as a session factory; the
    service itself holds no connection state.
    """

    def __init__(self, store: Optional[BookmarkStore] = None):
        self.store = store or bookmark_store

    async def sync(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        user_id: Any,
        items: Any,
    ) -> SyncResponse:
        """
        Replace all bookmarks of `user_id` with `items`.

        Args:
            session_factory: pool handle; a fresh session/transaction is opened
            user_id: owner id as received from the client
            items: list of {title, url} mappings as received from the client

        Returns:
            SyncResponse acknowledgement

        Raises:
            InvalidPayloadError: malformed user_id or items (nothing touched)
            StoreFailureError: delete or insert failed (rolled back)
        """
        owner_id, bookmarks = self.validate_payload(user_id, items)

        try:
            async with session_factory() as session:
                async with session.begin():
                    removed, stored = await self.store.replace_all(session, owner_id, bookmarks)
        except MarkSyncError:
            raise
        except Exception as e:
            logger.error(
                "Bookmark sync rolled back for user %s (%d items): %s",
                owner_id,
                len(bookmarks),
                str(e),
                exc_info=True,
            )
            raise StoreFailureError(
                context={"user_id": owner_id, "error_type": type(e).__name__},
            )

        logger.info(
            "Synced bookmarks for user %s: removed=%d received=%d stored=%d",
            owner_id,
            removed,
            len(bookmarks),
            stored,
        )
        collapsed = len(bookmarks) - stored
        if collapsed:
            logger.debug("Collapsed %d duplicate URLs for user %s", collapsed, owner_id)

        return SyncResponse(received=len(bookmarks), stored=stored)

    @staticmethod
    def validate_payload(user_id: Any, items: Any) -> Tuple[int, List[BookmarkItem]]:
        """
        Coerce and check the raw sync arguments.

        user_id: int in 1..MAX_USER_ID, or a string of ASCII digits
        items:   a sequence (not a string) of objects with non-empty title/url
        """
        if isinstance(user_id, str):
            digits = user_id.strip()
            # isdigit() also accepts "²" and "①", which int() rejects.
            # Longer strings are out of range anyway and int() caps their length.
            if digits.isascii() and digits.isdecimal() and len(digits) <= len(str(MAX_USER_ID)):
                user_id = int(digits)
        # bool is an int subclass; `true` is not a user id
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            raise InvalidPayloadError(field="userId")
        if not 0 < user_id <= MAX_USER_ID:
            raise InvalidPayloadError(field="userId")

        if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
            raise InvalidPayloadError(field="bookmarks")

        bookmarks = []
        for index, item in enumerate(items):
            try:
                bookmarks.append(BookmarkItem.model_validate(item))
            except PydanticValidationError as e:
                raise InvalidPayloadError(
                    field="bookmarks",
                    context={"index": index, "errors": e.error_count()},
                )
        return user_id, bookmarks


sync_service = BookmarkSyncService()
