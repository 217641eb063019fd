"""
MarkSync Backend — Bookmark Sync Route
========================================

What:  POST /api/sync/bookmarks: replace the caller's stored bookmarks.

Request:
    { "userId": 42, "bookmarks": [{"title": "...", "url": "..."}, ...] }

Responses:
    200 { "success": true, "received": n, "stored": m }
    400 { "success": false, "error": "invalid_payload", ... }   nothing changed
    500 { "success": false, "error": "server_error", ... }      rolled back

The body is taken as raw JSON so that shape errors are reported by the
sync coordinator as `invalid_payload` rather than by FastAPI as a 422.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marksync.database import get_session_factory
from marksync.exceptions import InvalidPayloadError
from marksync.schemas.bookmark import SyncResponse
from marksync.schemas.common import ErrorResponse
from marksync.services.sync_service import sync_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Sync"])


@router.post(
    "/sync/bookmarks",
    response_model=SyncResponse,
    responses={
        400: {"description": "Malformed payload; nothing was changed", "model": ErrorResponse},
        500: {"description": "Store failure; the sync was rolled back", "model": ErrorResponse},
    },
    summary="Replace all bookmarks of a user",
    description=(
        "Full-replace sync: every stored bookmark of the user is removed and the submitted "
        "list is inserted, in one transaction. Repeated URLs keep their first occurrence. "
        "An empty list clears the user's bookmarks. Safe to retry."
    ),
)
async def sync_bookmarks(
    payload: Any = Body(default=None),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> SyncResponse:
    if not isinstance(payload, dict):
        raise InvalidPayloadError()

    return await sync_service.sync(
        session_factory,
        user_id=payload.get("userId"),
        items=payload.get("bookmarks"),
    )
