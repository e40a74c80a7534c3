"""Services package."""

from splitter.services.storage import (
    ConnectionError,
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsGroupStorage,
    GroupStorageInterface,
    InMemoryGroupStorage,
    NotFoundError,
    StorageError,
)

__all__ = [
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsClient",
    "GoogleSheetsGroupStorage",
    "GroupStorageInterface",
    "InMemoryGroupStorage",
    "NotFoundError",
    "StorageError",
]
