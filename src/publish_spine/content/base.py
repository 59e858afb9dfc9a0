"""Content source protocol consumed by the publisher."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from publish_spine.content.models import ContentKind, ContentRecord
from publish_spine.core.result import Result


@runtime_checkable
class ContentSource(Protocol):
    """
    Read-only access to CMS documents.

    Implementations raise ``DocumentNotFoundError`` when ``fetch_one`` finds
    nothing and ``ContentSourceError`` for any other failure, so the publisher
    can tell per-entry failures apart from storage failures.
    """

    async def fetch_one(self, document_id: str) -> ContentRecord:
        """Fetch one document by id (published or draft)."""
        ...

    async def fetch_all(self, kind: ContentKind) -> list[Result[ContentRecord]]:
        """
        Fetch every published document of one kind.

        Documents are validated one by one: a malformed document is an
        ``Err`` in the returned list, a failed query raises.
        """
        ...
