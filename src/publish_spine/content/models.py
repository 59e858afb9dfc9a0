"""Content records as returned by the CMS, plus slug derivation."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from publish_spine.core.errors import ContentSourceError
from publish_spine.core.result import Err, Ok, Result

DRAFT_PREFIX = "drafts."


class ContentKind(str, Enum):
    """Discriminant for the two publishable content types."""

    ARTICLE = "article"
    RECOMMENDATION = "recommendation"

    @property
    def plural(self) -> str:
        """Directory name used for detail pages and listings."""
        return f"{self.value}s"

    @property
    def cms_type(self) -> str:
        """The ``_type`` name used by the CMS schema."""
        return "article" if self is ContentKind.ARTICLE else "stockRecommendation"

    @classmethod
    def from_type_name(cls, name: str) -> ContentKind:
        """
        Map a CMS type name (or a kind value) to a ContentKind.

        Raises:
            ValueError: If the name is not a publishable type
        """
        normalized = (name or "").strip()
        if normalized == "article":
            return cls.ARTICLE
        if normalized in ("stockRecommendation", "recommendation"):
            return cls.RECOMMENDATION
        raise ValueError(f"Unsupported document type: {name!r}")


def strip_draft_prefix(document_id: str) -> str:
    """``drafts.abc`` -> ``abc``; published ids are returned unchanged."""
    if document_id.startswith(DRAFT_PREFIX):
        return document_id[len(DRAFT_PREFIX):]
    return document_id


class ContentRecord(BaseModel):
    """
    One CMS document of either kind.

    Field names follow Python conventions; aliases match the CMS projection
    (``_id``, ``publishedAt``, ``companyName``...). Rich-text fields (``body``,
    ``reasons``) stay as raw block lists for the renderer.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str = Field(alias="_id")
    type_name: str = Field(alias="_type")
    slug: str | dict[str, Any] | None = None
    published_at: str | None = Field(default=None, alias="publishedAt")

    # Article
    title: str | None = None
    body: Any = None
    excerpt: str | None = None
    category: Any = None
    featured_image: Any = Field(default=None, alias="featuredImage")

    # Recommendation
    ticker: str | None = None
    company_name: str | None = Field(default=None, alias="companyName")
    recommendation_type: str | None = Field(default=None, alias="recommendationType")
    target_price: int | float | None = Field(default=None, alias="targetPrice")
    time_horizon: str | None = Field(default=None, alias="timeHorizon")
    reasons: Any = None
    image: Any = None

    @classmethod
    def from_document(cls, document: Any) -> ContentRecord:
        """
        Validate a raw CMS document.

        Raises:
            ContentSourceError: If the payload is not a publishable record
        """
        if not isinstance(document, dict):
            raise ContentSourceError(f"Expected a document object, got {type(document).__name__}")
        try:
            record = cls.model_validate(document)
            ContentKind.from_type_name(record.type_name)
        except ValidationError as exc:
            raise ContentSourceError(
                f"Malformed document {document.get('_id')!r}: {exc.error_count()} invalid field(s)",
                cause=exc,
            ).with_context(document_id=document.get("_id"), slug=_document_slug(document))
        except ValueError as exc:
            raise ContentSourceError(str(exc), cause=exc).with_context(
                document_id=document.get("_id"), slug=_document_slug(document)
            )
        return record

    @property
    def kind(self) -> ContentKind:
        return ContentKind.from_type_name(self.type_name)

    @property
    def published_id(self) -> str:
        """Identifier without the draft prefix; the manifest merge key."""
        return strip_draft_prefix(self.id)

    @property
    def display_title(self) -> str:
        if self.kind is ContentKind.ARTICLE:
            return self.title or "Untitled"
        return self.company_name or self.ticker or "Untitled"


def get_slug(record: ContentRecord) -> str:
    """
    Derive the URL slug for a record.

    Fallback order: slug (string or ``{"current": ...}``), ticker, the
    identifier without its draft prefix, then ``untitled``.
    """
    return _derive_slug(record.slug, record.ticker, record.published_id)


def _derive_slug(raw: Any, ticker: Any, document_id: Any) -> str:
    if isinstance(raw, dict):
        raw = raw.get("current")
    if isinstance(raw, str) and raw:
        return raw
    if isinstance(ticker, str) and ticker:
        return ticker
    if isinstance(document_id, str) and document_id:
        return strip_draft_prefix(document_id)
    return "untitled"


def _document_slug(document: dict[str, Any]) -> str:
    """Best-effort slug of a raw document that failed validation."""
    return _derive_slug(document.get("slug"), document.get("ticker"), document.get("_id"))


def validate_documents(documents: list[Any]) -> list[Result[ContentRecord]]:
    """
    Validate each raw document on its own, preserving order.

    A malformed document becomes an ``Err`` holding its ``ContentSourceError``
    so the rest of the batch is still usable.
    """
    results: list[Result[ContentRecord]] = []
    for document in documents:
        try:
            results.append(Ok(ContentRecord.from_document(document)))
        except ContentSourceError as exc:
            results.append(Err(exc))
    return results
