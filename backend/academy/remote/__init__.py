"""
Academy Backend: Remote Service Package
========================================

Minimal async client for the hosted backend's auth, table and storage
services. Every failure surfaces as `academy.exceptions.BackendError`.
"""

from academy.remote.auth import AuthClient
from academy.remote.client import BackendClient
from academy.remote.query import QueryBuilder
from academy.remote.storage import BucketClient, StorageClient
from academy.remote.types import (
    APIResponse,
    AuthEvent,
    Session,
    SessionStorage,
    Subscription,
    User,
)

__all__ = [
    "APIResponse",
    "AuthClient",
    "AuthEvent",
    "BackendClient",
    "BucketClient",
    "QueryBuilder",
    "Session",
    "SessionStorage",
    "StorageClient",
    "Subscription",
    "User",
]
