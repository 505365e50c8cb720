"""Core infrastructure module.

This module exports core utilities used across features.
Never imports from features - only from external libraries.
"""

from .config import Settings, get_settings, get_global_settings
from .logging import setup_logging, request_context
from .enums import FriendListStatus, MutationStatus, PersonaState
from .error_handling import call_external
from .batch import BatchClient
from .database import Base, DatabaseManager, create_database_manager

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "get_global_settings",
    # Logging
    "setup_logging",
    "request_context",
    # Enums
    "FriendListStatus",
    "MutationStatus",
    "PersonaState",
    # Error handling
    "call_external",
    # Batching
    "BatchClient",
    # Database
    "Base",
    "DatabaseManager",
    "create_database_manager",
]
