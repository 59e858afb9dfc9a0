"""Base storage interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StoredFile:
    """A site file and the concurrency token needed to overwrite it."""

    path: str
    content: str
    token: str | None = None


class SiteStorage(ABC):
    """
    Abstract base class for site storage backends.

    Paths are site-relative (``articles/index.html``). One backend is chosen
    per run; every path in that run goes through it.
    """

    #: Whether ``put`` requires the token from the latest ``get``.
    uses_concurrency_tokens: bool = False

    @abstractmethod
    async def get(self, path: str) -> StoredFile | None:
        """
        Read a file.

        Returns:
            StoredFile, or None if the path does not exist

        Raises:
            StorageError: On any failure other than "not found"
        """
        ...

    @abstractmethod
    async def put(self, path: str, content: str, token: str | None = None) -> StoredFile:
        """
        Create or overwrite a file.

        Args:
            path: Site-relative path
            content: UTF-8 text content
            token: Token from the most recent ``get`` of the same path,
                None when the file does not exist yet

        Returns:
            StoredFile carrying the new token (if the backend has tokens)

        Raises:
            StorageError: If the write failed
            ConcurrencyConflictError: If the token was stale
        """
        ...

    async def aclose(self) -> None:
        """Release backend resources."""

    async def __aenter__(self) -> "SiteStorage":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
