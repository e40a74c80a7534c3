"""
Storage Services Package

Provides the abstract storage interface and its implementations.
Google Sheets is the hosted backend; the in-memory store backs tests
and unconfigured local runs.
"""

from splitter.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    GroupStorageInterface,
    NotFoundError,
    StorageError,
)
from splitter.services.storage.memory import InMemoryGroupStorage
from splitter.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsGroupStorage,
)

__all__ = [
    # Interface
    "GroupStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsGroupStorage",
    "InMemoryGroupStorage",
]
