"""
Shared infrastructure for ColdWater.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory
- exceptions: Base exception classes
- storage: Local key/value persistence
- logging_config: Log handler setup for the entry point

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import get_supabase_client, reset_client_cache
from .exceptions import (
    ColdWaterError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    StorageError,
    ExternalServiceError,
)
from .storage import (
    IKeyValueStore,
    InMemoryKeyValueStore,
    FileKeyValueStore,
    LocalStateReset,
)

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "reset_client_cache",
    "ColdWaterError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "StorageError",
    "ExternalServiceError",
    "IKeyValueStore",
    "InMemoryKeyValueStore",
    "FileKeyValueStore",
    "LocalStateReset",
]
