"""
Academy Backend: Application Package Initializer
=================================================

What: Marks the `academy` directory as a Python package.
Who:  Used by uvicorn (`academy.main:app`), Alembic, and pytest.

Architecture Note:
    The backend is layered around a hosted backend-as-a-service (BaaS)
    that owns authentication, the relational tables, and object storage:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, guard, redirects
    ├─────────────────────────────────────┤
    │   Session Manager  │  Route Guard   │  ← identity + admin privilege
    ├─────────────────────────────────────┤
    │       Data Access Adapters          │  ← typed Result per entity
    ├─────────────────────────────────────┤
    │     Remote client (auth/rest/storage)│  ← httpx, raises BackendError
    └─────────────────────────────────────┘

    Only the remote client deals with the service's loose JSON error
    shapes. Everything above it sees `Result` values or the exception
    hierarchy in `academy.exceptions`.
"""

__version__ = "1.0.0"
