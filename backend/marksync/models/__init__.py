# Models package init
"""
MarkSync Backend — ORM Models
===============================

    - user.py:     `users` table (accounts, bcrypt password hashes)
    - bookmark.py: `bookmarks` table (one row per user + url)
"""

# Both mappers must be registered before either relationship is configured
from marksync.models.bookmark import Bookmark  # noqa: F401
from marksync.models.user import User  # noqa: F401
