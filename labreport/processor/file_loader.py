import asyncio
from pathlib import Path

from labreport.processor.exceptions import FileReadError
from labreport.processor.models import (
    BlobSource,
    BytesSource,
    Document,
    DocumentSource,
    PathSource,
)
from labreport.storage.blob_store import BaseBlobStore, retry_with_backoff
from labreport.storage.exceptions import BlobStoreError


class FileLoader:
    """Resolves any DocumentSource into an in-memory Document."""

    def __init__(
        self,
        blob_store: BaseBlobStore | None = None,
        blob_attempts: int = 3,
        blob_backoff_seconds: float = 2.0,
    ) -> None:
        self._blob_store = blob_store
        self._blob_attempts = blob_attempts
        self._blob_backoff_seconds = blob_backoff_seconds

    async def load(self, source: DocumentSource) -> Document:
        """Read the document bytes.

        Raises:
            FileReadError: if the file is missing or unreadable, or the blob
                cannot be fetched.
        """
        if isinstance(source, BytesSource):
            return Document(data=source.data, filename=source.filename)
        if isinstance(source, PathSource):
            data = await asyncio.to_thread(self._read_path, source.path)
            return Document(data=data, filename=source.path.name)
        if isinstance(source, BlobSource):
            return Document(data=await self._fetch_blob(source.url), filename=source.filename)
        raise TypeError(f"Unsupported document source: {type(source).__name__}")

    @staticmethod
    def _read_path(path: Path) -> bytes:
        if not path.exists():
            raise FileReadError(f"File not found: {path}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FileReadError(f"Failed to read {path}: {exc}") from exc

    async def _fetch_blob(self, url: str) -> bytes:
        store = self._blob_store
        if store is None:
            raise FileReadError("No blob store configured")
        try:
            return await retry_with_backoff(
                lambda: asyncio.to_thread(store.get, url),
                attempts=self._blob_attempts,
                backoff_seconds=self._blob_backoff_seconds,
            )
        except BlobStoreError as exc:
            raise FileReadError(str(exc)) from exc
