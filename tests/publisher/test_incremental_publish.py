"""
Tests for incremental publishing of a single document.

Tests:
    - Files written and their order (page before manifest before indexes)
    - Manifest upsert by id or slug
    - Draft ids collapse onto the published entry
    - Missing documents and kind mismatches are fatal, with nothing written
    - A manifest changed by another run aborts with a concurrency conflict
"""

import json

import pytest

from conftest import FakeContentSource, MemoryStorage, make_article, make_recommendation, targeting
from publish_spine.content.models import ContentKind
from publish_spine.core.errors import ConcurrencyConflictError, ContentSourceError, DocumentNotFoundError
from publish_spine.manifest import Manifest
from publish_spine.publisher import Publisher, RunState
from publish_spine.storage.base import StoredFile

INDEX_PATHS = ["articles/index.html", "recommendations/index.html", "index.html", "styles.css"]


def _publisher(config, storage, source, clock):
    return Publisher(config, storage, source, clock=clock)


class TestFirstPublish:
    @pytest.mark.asyncio
    async def test_writes_page_manifest_and_indexes_in_order(
        self, remote_config, memory_storage, fake_source, fixed_clock
    ):
        config = targeting(remote_config, "a1", ContentKind.ARTICLE)
        report = await _publisher(config, memory_storage, fake_source, fixed_clock).run()

        assert memory_storage.puts == ["articles/hello-world.html", "manifest.json", *INDEX_PATHS]
        assert report.written == memory_storage.puts
        assert report.mode == "incremental"

    @pytest.mark.asyncio
    async def test_run_states(self, remote_config, memory_storage, fake_source, fixed_clock):
        config = targeting(remote_config, "a1", ContentKind.ARTICLE)
        report = await _publisher(config, memory_storage, fake_source, fixed_clock).run()
        assert report.states == [
            RunState.START,
            RunState.INCREMENTAL,
            RunState.PAGES_WRITTEN,
            RunState.MANIFEST_WRITTEN,
            RunState.INDEXES_WRITTEN,
            RunState.DONE,
        ]
        assert len(report.run_id) == 26

    @pytest.mark.asyncio
    async def test_creates_manifest(self, remote_config, memory_storage, fake_source, fixed_clock):
        config = targeting(remote_config, "r1", ContentKind.RECOMMENDATION)
        report = await _publisher(config, memory_storage, fake_source, fixed_clock).run()

        manifest = json.loads(memory_storage.read("manifest.json"))
        assert manifest["articles"] == []
        assert [e["slug"] for e in manifest["recommendations"]] == ["AAPL"]
        assert manifest["updatedAt"] == "2024-06-01T12:00:00.000Z"
        assert (report.articles, report.recommendations) == (0, 1)

    @pytest.mark.asyncio
    async def test_home_page_lists_new_recommendation(
        self, remote_config, memory_storage, fake_source, fixed_clock
    ):
        config = targeting(remote_config, "r1", ContentKind.RECOMMENDATION)
        await _publisher(config, memory_storage, fake_source, fixed_clock).run()

        home = memory_storage.read("index.html")
        assert 'href="/site/recommendations/AAPL.html"' in home
        assert "Apple Inc." in memory_storage.read("recommendations/AAPL.html")


class TestRepublish:
    @pytest.mark.asyncio
    async def test_overwrites_existing_files(self, remote_config, fake_source, fixed_clock):
        """Existing files are rewritten with their current sha."""
        storage = MemoryStorage({path: "old" for path in INDEX_PATHS})
        config = targeting(remote_config, "a1", ContentKind.ARTICLE)
        await _publisher(config, storage, fake_source, fixed_clock).run()
        assert all(storage.read(path) != "old" for path in INDEX_PATHS)

    @pytest.mark.asyncio
    async def test_is_idempotent(self, remote_config, memory_storage, fake_source, fixed_clock):
        config = targeting(remote_config, "a1", ContentKind.ARTICLE)
        await _publisher(config, memory_storage, fake_source, fixed_clock).run()
        first = {path: stored.content for path, stored in memory_storage.files.items()}

        await _publisher(config, memory_storage, fake_source, fixed_clock).run()
        assert {path: stored.content for path, stored in memory_storage.files.items()} == first

    @pytest.mark.asyncio
    async def test_changed_slug_replaces_entry_in_place(self, remote_config, memory_storage, fixed_clock):
        source = FakeContentSource([make_article("a0", slug="first"), make_article("a1", slug="old-slug")])
        for document_id in ("a0", "a1"):
            config = targeting(remote_config, document_id, ContentKind.ARTICLE)
            await _publisher(config, memory_storage, source, fixed_clock).run()

        source.add(make_article("a1", slug="new-slug", title="Renamed"))
        await _publisher(targeting(remote_config, "a1", ContentKind.ARTICLE), memory_storage, source, fixed_clock).run()

        manifest = Manifest.loads(memory_storage.read("manifest.json"))
        assert [(e.id, e.slug, e.title) for e in manifest.articles] == [
            ("a0", "first", "Hello World"),
            ("a1", "new-slug", "Renamed"),
        ]

    @pytest.mark.asyncio
    async def test_slug_collision_replaces_other_entry(self, remote_config, memory_storage, fixed_clock):
        source = FakeContentSource([make_article("a1", slug="shared"), make_article("a2", slug="shared")])
        for document_id in ("a1", "a2"):
            config = targeting(remote_config, document_id, ContentKind.ARTICLE)
            await _publisher(config, memory_storage, source, fixed_clock).run()

        manifest = Manifest.loads(memory_storage.read("manifest.json"))
        assert [(e.id, e.slug) for e in manifest.articles] == [("a2", "shared")]

    @pytest.mark.asyncio
    async def test_draft_id_collapses_onto_published_entry(self, remote_config, memory_storage, fixed_clock):
        source = FakeContentSource([make_article("a1")])
        await _publisher(targeting(remote_config, "a1", ContentKind.ARTICLE), memory_storage, source, fixed_clock).run()

        source.add(make_article("drafts.a1", slug="hello-world", title="Draft edit"))
        await _publisher(
            targeting(remote_config, "drafts.a1", ContentKind.ARTICLE), memory_storage, source, fixed_clock
        ).run()

        manifest = Manifest.loads(memory_storage.read("manifest.json"))
        assert [(e.id, e.title) for e in manifest.articles] == [("a1", "Draft edit")]


class TestFailures:
    @pytest.mark.asyncio
    async def test_missing_document_writes_nothing(self, remote_config, memory_storage, fake_source, fixed_clock):
        config = targeting(remote_config, "ghost", ContentKind.ARTICLE)
        with pytest.raises(DocumentNotFoundError):
            await _publisher(config, memory_storage, fake_source, fixed_clock).run()
        assert memory_storage.puts == []

    @pytest.mark.asyncio
    async def test_kind_mismatch(self, remote_config, memory_storage, fake_source, fixed_clock):
        config = targeting(remote_config, "r1", ContentKind.ARTICLE)
        with pytest.raises(ContentSourceError, match="expected article"):
            await _publisher(config, memory_storage, fake_source, fixed_clock).run()
        assert memory_storage.puts == []

    @pytest.mark.asyncio
    async def test_concurrent_manifest_change_aborts(self, remote_config, fake_source, fixed_clock):
        class InterferingStorage(MemoryStorage):
            """Another run rewrites the manifest while our detail page is written."""

            async def put(self, path, content, token=None):
                stored = await super().put(path, content, token)
                if path == "articles/hello-world.html":
                    self.files["manifest.json"] = StoredFile("manifest.json", "{}", self._next_sha())
                return stored

        storage = InterferingStorage({"manifest.json": Manifest.empty().dumps()})
        config = targeting(remote_config, "a1", ContentKind.ARTICLE)

        with pytest.raises(ConcurrencyConflictError):
            await _publisher(config, storage, fake_source, fixed_clock).run()
        assert storage.read("manifest.json") == "{}"
        assert "index.html" not in storage.files
