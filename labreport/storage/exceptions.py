class StorageError(Exception):
    """Base exception for temp file and blob storage errors."""


class BlobStoreError(StorageError):
    """Raised when a blob store call fails."""
