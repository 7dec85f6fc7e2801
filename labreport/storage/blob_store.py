import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from labreport.logging.logger import Log
from labreport.storage.exceptions import BlobStoreError
from labreport.storage.temp_files import unique_name

T = TypeVar("T")


class BaseBlobStore(ABC):
    """Contract for a durable store used to offload large uploads."""

    @abstractmethod
    def put(self, data: bytes, filename: str) -> str:
        """Store bytes and return their URL.

        Raises:
            BlobStoreError: if the upload fails.
        """

    @abstractmethod
    def get(self, url: str) -> bytes:
        """Download bytes previously stored.

        Raises:
            BlobStoreError: if the download fails.
        """

    @abstractmethod
    def delete(self, url: str) -> bool:
        """Remove a stored object. Returns False instead of raising on failure."""


class HttpBlobStore(BaseBlobStore):
    """Blob store speaking plain HTTP PUT/GET/DELETE against a base URL."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: int = 30,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(timeout=timeout_seconds, transport=transport)

    def put(self, data: bytes, filename: str) -> str:
        url = f"{self._base_url}/{unique_name(filename.removesuffix('.pdf'))}"
        try:
            response = self._client.put(
                url, content=data, headers={"Content-Type": "application/pdf"}
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise BlobStoreError(f"Blob upload failed: {exc}") from exc
        Log.info(f"Stored {len(data)} bytes at {url}")
        return url

    def get(self, url: str) -> bytes:
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise BlobStoreError(f"Blob download failed: {exc}") from exc
        return response.content

    def delete(self, url: str) -> bool:
        try:
            response = self._client.delete(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            Log.warning(f"Blob delete failed for {url}: {exc}")
            return False
        return True


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    backoff_seconds: float = 2.0,
) -> T:
    """Await operation until it succeeds, doubling the wait after each failure.

    Raises:
        BlobStoreError: after the last failed attempt.
    """
    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except BlobStoreError as exc:
            last_error = exc
            Log.warning(f"Attempt {attempt}/{attempts} failed: {exc}")
            if attempt < attempts:
                await asyncio.sleep(backoff_seconds * 2 ** (attempt - 1))
    raise BlobStoreError(f"Failed after {attempts} attempts: {last_error}")


class BlobOffloader:
    """Round-trips large uploads through a blob store, falling back to the in-memory copy."""

    def __init__(
        self,
        store: BaseBlobStore,
        threshold_bytes: int,
        attempts: int = 3,
        backoff_seconds: float = 2.0,
    ) -> None:
        self._store = store
        self._threshold_bytes = threshold_bytes
        self._attempts = attempts
        self._backoff_seconds = backoff_seconds

    def should_offload(self, size: int) -> bool:
        return size > self._threshold_bytes

    async def roundtrip(self, data: bytes, filename: str) -> tuple[bytes, str | None]:
        """Return the bytes to process and the blob URL to delete afterwards."""
        try:
            url = await asyncio.to_thread(self._store.put, data, filename)
        except BlobStoreError as exc:
            Log.warning(f"Blob offload skipped, processing in memory: {exc}")
            return data, None

        try:
            fetched = await retry_with_backoff(
                lambda: asyncio.to_thread(self._store.get, url),
                attempts=self._attempts,
                backoff_seconds=self._backoff_seconds,
            )
        except BlobStoreError as exc:
            Log.warning(f"Blob fetch failed, processing original buffer: {exc}")
            return data, url
        return fetched, url

    async def discard(self, url: str | None) -> None:
        if url is not None:
            await asyncio.to_thread(self._store.delete, url)
