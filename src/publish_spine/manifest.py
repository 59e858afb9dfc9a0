"""
Site manifest: the JSON index of everything published.

The manifest is the single source of truth for site navigation. It is read at
the start of a run, mutated in memory and rewritten whole at the end; there
are no partial updates.

Manifesto:
    - **Whole-document writes:** One read, one write per run
    - **Dual-key merge:** An entry is matched by id OR slug, so a renamed
      slug or a re-created document collapses onto one row
    - **Additive until rebuild:** Incremental publishes never delete rows;
      only a full rebuild drops entries whose source is gone

Architecture:
    ::

        manifest.json
        {
          "articles":        [ManifestEntry, ...],
          "recommendations": [RecommendationEntry, ...],
          "updatedAt":       "2024-06-01T12:00:00.000Z"
        }

        merge_entry(manifest, entry, kind)
          scan entries(kind) in order
            first e with e.id == entry.id or e.slug == entry.slug
              -> replace in place (position preserved)
            none -> append
          updatedAt = now

Examples:
    >>> manifest = Manifest.empty()
    >>> merge_entry(manifest, ManifestEntry(id="a1", slug="hello"), ContentKind.ARTICLE)
    0
    >>> merge_entry(manifest, ManifestEntry(id="a2", slug="hello"), ContentKind.ARTICLE)
    0
    >>> [e.id for e in manifest.articles]
    ['a2']

Tags:
    manifest, merge, site-index, publish-spine
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from publish_spine.content.models import ContentKind, ContentRecord, get_slug
from publish_spine.core.errors import StorageError
from publish_spine.core.timestamps import to_iso8601, utc_now

MANIFEST_PATH = "manifest.json"


class ManifestEntry(BaseModel):
    """Projection of one article (and the common part of every entry)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    slug: str
    title: str = "Untitled"
    excerpt: str = ""
    published_at: str = Field(default="", alias="publishedAt")

    @field_validator("title", "excerpt", "published_at", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class RecommendationEntry(ManifestEntry):
    """Projection of one stock recommendation."""

    ticker: str = ""
    recommendation_type: str = Field(default="", alias="recommendationType")
    target_price: int | float | None = Field(default=None, alias="targetPrice")
    time_horizon: str = Field(default="", alias="timeHorizon")

    @field_validator("ticker", "recommendation_type", "time_horizon", mode="before")
    @classmethod
    def _none_as_empty_text(cls, value: Any) -> Any:
        return "" if value is None else value


class Manifest(BaseModel):
    """The full site index."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    articles: list[ManifestEntry] = Field(default_factory=list)
    recommendations: list[RecommendationEntry] = Field(default_factory=list)
    updated_at: str = Field(default="", alias="updatedAt")

    @field_validator("articles", "recommendations", mode="before")
    @classmethod
    def _missing_list_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def empty(cls, now: datetime | None = None) -> Manifest:
        return cls(updated_at=to_iso8601(now or utc_now()))

    @classmethod
    def loads(cls, text: str) -> Manifest:
        """
        Parse a stored manifest document.

        Raises:
            StorageError: If the document is not a valid manifest
        """
        try:
            return cls.model_validate(json.loads(text))
        except (ValueError, ValidationError) as exc:
            raise StorageError(f"{MANIFEST_PATH} is not a valid manifest: {exc}", cause=exc).with_context(
                path=MANIFEST_PATH
            )

    def dumps(self) -> str:
        return json.dumps(self.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)

    def entries(self, kind: ContentKind) -> list[ManifestEntry]:
        if kind is ContentKind.ARTICLE:
            return self.articles
        return self.recommendations

    def counts(self) -> dict[str, int]:
        return {"articles": len(self.articles), "recommendations": len(self.recommendations)}


def entry_for(record: ContentRecord) -> ManifestEntry:
    """Project a content record into its manifest row."""
    common = {
        "id": record.published_id,
        "slug": get_slug(record),
        "title": record.display_title,
        "published_at": record.published_at or "",
    }
    if record.kind is ContentKind.ARTICLE:
        return ManifestEntry(excerpt=record.excerpt or "", **common)
    return RecommendationEntry(
        ticker=record.ticker or "",
        recommendation_type=record.recommendation_type or "",
        target_price=record.target_price,
        time_horizon=record.time_horizon or "",
        excerpt="",
        **common,
    )


def find_entry_index(entries: list[ManifestEntry], entry: ManifestEntry) -> int | None:
    """Index of the first entry sharing the id or the slug, else None."""
    for index, existing in enumerate(entries):
        if existing.id == entry.id or existing.slug == entry.slug:
            return index
    return None


def merge_entry(
    manifest: Manifest,
    entry: ManifestEntry,
    kind: ContentKind,
    now: datetime | None = None,
) -> int:
    """
    Upsert an entry into the kind's sequence.

    Returns:
        Index at which the entry now sits
    """
    entries = manifest.entries(kind)
    index = find_entry_index(entries, entry)
    if index is None:
        entries.append(entry)
        index = len(entries) - 1
    else:
        entries[index] = entry
    manifest.updated_at = to_iso8601(now or utc_now())
    return index
