"""
MarkSync Backend — Application Package Initializer
====================================================

What: Marks the `marksync` directory as a Python package.
Who:  Used by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is a thin layered service:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Sync, Auth, Stores)     │  ← Business rules, transactions
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy engine/pool
    └─────────────────────────────────────┘

    Routes translate JSON into service calls; services own the unit of work;
    the database module owns the connection pool lifecycle.
"""

__version__ = "1.0.0"
