"""
MarkSync Backend — Bookmark Sync Schemas
==========================================

What:  Shape of a submitted bookmark and of the sync acknowledgement.

Why the request envelope is not a Pydantic model:
    A malformed sync body must be reported as `invalid_payload` by the sync
    coordinator itself, before any store interaction. The route therefore
    passes `userId` and `bookmarks` through untouched and the coordinator
    validates each item against BookmarkItem.
"""

from pydantic import BaseModel, ConfigDict, Field


class BookmarkItem(BaseModel):
    """
    One bookmark as sent by the browser extension.

    Extra keys (ids, dateAdded, parentId from the browser bookmark tree)
    are ignored.
    """
    title: str = Field(min_length=1, description="Display title")
    url: str = Field(min_length=1, description="Bookmark URL; unique per user")

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=False)


class SyncResponse(BaseModel):
    """
    Acknowledgement for a successful full-replace sync.

    received: number of items submitted
    stored:   number of rows written after duplicate URLs collapsed
    """
    success: bool = Field(default=True)
    received: int = Field(ge=0, description="Bookmarks submitted in the request")
    stored: int = Field(ge=0, description="Bookmarks stored after URL de-duplication")
