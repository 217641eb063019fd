# Schemas package init
"""
MarkSync Backend — Pydantic Request/Response Schemas
======================================================

    - auth.py:     register/login bodies and responses
    - bookmark.py: sync items and acknowledgement
    - common.py:   error envelope and health response
"""
