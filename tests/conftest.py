"""
Shared pytest fixtures for publish-spine tests.

This module provides:
- CMS document factories (article, stock recommendation)
- ``FakeContentSource``: in-memory ContentSource with injectable failures
- ``MemoryStorage``: in-memory SiteStorage with GitHub-style sha tokens
- Site configurations for the remote and local backends
- A fixed clock for deterministic manifests

Usage:
    async def test_something(memory_storage, fake_source, remote_config):
        report = await Publisher(remote_config, memory_storage, fake_source).run()
"""

from __future__ import annotations

import hashlib
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

import pytest

from publish_spine.config import DocumentTarget, GitHubConfig, SanityConfig, SiteConfig
from publish_spine.content.models import ContentKind, ContentRecord, strip_draft_prefix, validate_documents
from publish_spine.core.errors import ConcurrencyConflictError, DocumentNotFoundError
from publish_spine.core.result import Result
from publish_spine.storage.base import SiteStorage, StoredFile

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


# =============================================================================
# Document factories
# =============================================================================


def make_block(text: str) -> dict[str, Any]:
    """A single Portable Text paragraph."""
    return {
        "_type": "block",
        "_key": hashlib.md5(text.encode()).hexdigest()[:8],
        "style": "normal",
        "markDefs": [],
        "children": [{"_type": "span", "_key": "s1", "text": text, "marks": []}],
    }


def make_article(
    document_id: str = "a1",
    slug: str | None = "hello-world",
    title: str | None = "Hello World",
    published_at: str | None = "2024-01-05T10:00:00Z",
    **extra: Any,
) -> dict[str, Any]:
    document = {
        "_id": document_id,
        "_type": "article",
        "title": title,
        "slug": {"_type": "slug", "current": slug} if slug else None,
        "excerpt": "A short excerpt",
        "publishedAt": published_at,
        "body": [make_block("Body text")],
    }
    document.update(extra)
    return document


def make_recommendation(
    document_id: str = "r1",
    ticker: str | None = "AAPL",
    company_name: str | None = "Apple Inc.",
    slug: str | None = None,
    published_at: str | None = "2024-02-01T09:30:00Z",
    **extra: Any,
) -> dict[str, Any]:
    document = {
        "_id": document_id,
        "_type": "stockRecommendation",
        "ticker": ticker,
        "companyName": company_name,
        "slug": {"current": slug} if slug else None,
        "recommendationType": "Buy",
        "targetPrice": 250,
        "timeHorizon": "3-5 years",
        "publishedAt": published_at,
        "reasons": [make_block("Strong moat")],
    }
    document.update(extra)
    return document


# =============================================================================
# Fakes
# =============================================================================


class FakeContentSource:
    """ContentSource over a dict of raw documents, keyed by published id."""

    def __init__(self, documents: list[dict[str, Any]] | None = None):
        self.documents: dict[str, dict[str, Any]] = {}
        self.failures: dict[str, Exception] = {}
        self.fetch_one_calls: list[str] = []
        self.fetch_all_calls: list[ContentKind] = []
        for document in documents or []:
            self.add(document)

    def add(self, document: dict[str, Any]) -> None:
        self.documents[strip_draft_prefix(document["_id"])] = document

    def remove(self, document_id: str) -> None:
        self.documents.pop(document_id, None)

    async def fetch_one(self, document_id: str) -> ContentRecord:
        self.fetch_one_calls.append(document_id)
        published_id = strip_draft_prefix(document_id)
        if published_id in self.failures:
            raise self.failures[published_id]
        if published_id not in self.documents:
            raise DocumentNotFoundError(f"Document not found: {document_id}")
        return ContentRecord.from_document(self.documents[published_id])

    async def fetch_all(self, kind: ContentKind) -> list[Result[ContentRecord]]:
        self.fetch_all_calls.append(kind)
        return validate_documents(
            [document for document in self.documents.values() if document["_type"] == kind.cms_type]
        )


class MemoryStorage(SiteStorage):
    """
    In-memory storage with the GitHub contents API token rules.

    Every write gets a new sha. Overwriting requires the current sha;
    creating requires no sha. Anything else is a concurrency conflict.
    """

    uses_concurrency_tokens = True

    def __init__(self, files: dict[str, str] | None = None):
        self.files: dict[str, StoredFile] = {}
        self.puts: list[str] = []
        self.gets: list[str] = []
        self._version = 0
        for path, content in (files or {}).items():
            self.files[path] = StoredFile(path=path, content=content, token=self._next_sha())

    def _next_sha(self) -> str:
        self._version += 1
        return f"sha-{self._version}"

    async def get(self, path: str) -> StoredFile | None:
        self.gets.append(path)
        return self.files.get(path)

    async def put(self, path: str, content: str, token: str | None = None) -> StoredFile:
        current = self.files.get(path)
        current_token = current.token if current else None
        if token != current_token:
            raise ConcurrencyConflictError(f"stale sha for {path}").with_context(path=path)
        stored = StoredFile(path=path, content=content, token=self._next_sha())
        self.files[path] = stored
        self.puts.append(path)
        return stored

    def read(self, path: str) -> str:
        return self.files[path].content


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def fake_source():
    return FakeContentSource([make_article(), make_recommendation()])


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def remote_config():
    """Full rebuild against a GitHub project site served under /site."""
    return SiteConfig(
        sanity=SanityConfig(project_id="proj", dataset="production"),
        site_title="Test Picks",
        base_path="/site",
        github=GitHubConfig(token="ghp_test", repository="owner/site"),
    )


@pytest.fixture
def local_config(tmp_path):
    """Full rebuild into a temporary output directory."""
    return SiteConfig(
        sanity=SanityConfig(project_id="proj", dataset="production"),
        site_title="Test Picks",
        base_path="",
        output_dir=tmp_path / "site",
    )


def targeting(config: SiteConfig, document_id: str, kind: ContentKind) -> SiteConfig:
    """Copy of ``config`` that publishes one document."""
    return replace(config, target=DocumentTarget(document_id=document_id, kind=kind))
