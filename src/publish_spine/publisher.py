"""
Publish orchestrator: incremental publish and full site rebuild.

Manifesto:
    A run is a read-modify-write of one shared document (``manifest.json``)
    plus the pages derived from it. The orchestrator owns the ordering:

    - **Pages before manifest:** a crash leaves a published page that the
      manifest does not list yet, which the next run heals
    - **Manifest token from the first read:** two racing runs cannot both
      overwrite the manifest; the second gets ``ConcurrencyConflictError``
    - **Re-read before overwrite:** on token-checked backends every other
      file is read for its token immediately before it is written
    - **Per-entry isolation on rebuild:** one record that can no longer be
      fetched is logged and dropped, never fatal

Architecture:
    ::

        Start ──┬── Incremental ──┐
                └── FullRebuild ──┴─> PagesWritten -> ManifestWritten
                                        -> IndexesWritten -> Done

        Incremental:  fetch record -> read manifest -> merge -> detail page
        FullRebuild:  read manifest
                        present         -> re-fetch every entry, fresh manifest
                        absent + local  -> bulk fetch both kinds (concurrent)
                        absent + remote -> empty manifest
        Terminal:     manifest.json, articles/index.html,
                      recommendations/index.html, index.html, styles.css

Examples:
    >>> async with create_storage(config) as storage, SanityClient(...) as source:
    ...     report = await Publisher(config, storage, source).run()
    >>> report.mode
    'incremental'

Tags:
    orchestration, publish, rebuild, manifest, publish-spine
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable

import structlog

from publish_spine.config import SiteConfig
from publish_spine.content.base import ContentSource
from publish_spine.content.models import ContentKind, ContentRecord, get_slug
from publish_spine.content.sanity import SanityClient
from publish_spine.core.errors import ContentSourceError, ErrorContext, PublishError
from publish_spine.core.logging import LogContext
from publish_spine.core.result import Err, Ok, Result, partition_results
from publish_spine.core.timestamps import generate_ulid, utc_now
from publish_spine.manifest import MANIFEST_PATH, Manifest, ManifestEntry, entry_for, merge_entry
from publish_spine.render import (
    HOME_PATH,
    STYLESHEET_PATH,
    TemplateLoader,
    detail_path,
    listing_path,
    load_stylesheet,
    render_document,
    render_home,
    render_listing,
)
from publish_spine.storage import SiteStorage, create_storage

logger = structlog.get_logger(__name__)


class RunState(str, Enum):
    START = "start"
    INCREMENTAL = "incremental"
    FULL_REBUILD = "full_rebuild"
    PAGES_WRITTEN = "pages_written"
    MANIFEST_WRITTEN = "manifest_written"
    INDEXES_WRITTEN = "indexes_written"
    DONE = "done"


@dataclass
class DroppedEntry:
    """A manifest row left out of a rebuild because its record failed."""

    kind: ContentKind
    id: str
    slug: str
    reason: str


@dataclass
class PublishReport:
    """What one run did."""

    run_id: str
    mode: str = ""
    states: list[RunState] = field(default_factory=list)
    written: list[str] = field(default_factory=list)
    dropped: list[DroppedEntry] = field(default_factory=list)
    articles: int = 0
    recommendations: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "mode": self.mode,
            "states": [state.value for state in self.states],
            "written": list(self.written),
            "dropped": [
                {"kind": d.kind.value, "id": d.id, "slug": d.slug, "reason": d.reason}
                for d in self.dropped
            ],
            "articles": self.articles,
            "recommendations": self.recommendations,
        }


class Publisher:
    """
    Drives one publish run against one storage backend and one content source.

    The mode is chosen by ``config.target``: a document id + kind means an
    incremental publish, no target means a full rebuild.
    """

    def __init__(
        self,
        config: SiteConfig,
        storage: SiteStorage,
        source: ContentSource,
        *,
        clock: Callable[[], datetime] = utc_now,
        templates: TemplateLoader | None = None,
    ):
        self.config = config
        self.storage = storage
        self.source = source
        self.clock = clock
        self.templates = templates
        self._report = PublishReport(run_id="")

    # ------------------------------------------------------------------ #
    # Entry points
    # ------------------------------------------------------------------ #

    async def run(self) -> PublishReport:
        target = self.config.target
        if target is not None:
            return await self.publish_document(target.document_id, target.kind)
        return await self.rebuild()

    async def publish_document(self, document_id: str, kind: ContentKind) -> PublishReport:
        """
        Publish one record and refresh the derived pages.

        Raises:
            DocumentNotFoundError: If the record does not exist
            ContentSourceError: If the record cannot be fetched or has another kind
            StorageError: On any read or write failure
        """
        self._start("incremental")
        async with LogContext(run_id=self._report.run_id, mode="incremental", document_id=document_id):
            self._advance(RunState.INCREMENTAL)

            record = await self.source.fetch_one(document_id)
            if record.kind is not kind:
                raise ContentSourceError(
                    f"Document {document_id} is a {record.type_name}, expected {kind.cms_type}"
                ).with_context(document_id=document_id, kind=kind.value)
            slug = get_slug(record)

            manifest, manifest_token = await self._read_manifest()
            if manifest is None:
                logger.info("manifest_missing", path=MANIFEST_PATH, action="creating")
                manifest = Manifest.empty(self.clock())

            merge_entry(manifest, entry_for(record), kind, now=self.clock())
            await self._write_detail(record)
            self._advance(RunState.PAGES_WRITTEN)

            await self._finish(manifest, manifest_token)
            logger.info("document_published", kind=kind.value, slug=slug)
            return self._report

    async def rebuild(self) -> PublishReport:
        """
        Regenerate every page.

        Rebuilds from the stored manifest when there is one. Without a
        manifest, the local backend rebuilds from the full CMS content while
        the remote backend writes an empty site index.
        """
        self._start("rebuild")
        async with LogContext(run_id=self._report.run_id, mode="rebuild"):
            self._advance(RunState.FULL_REBUILD)

            stored, manifest_token = await self._read_manifest()
            manifest = Manifest.empty(self.clock())

            if stored is not None:
                await self._rebuild_from_manifest(stored, manifest)
            elif self.config.is_local:
                logger.info("manifest_missing", path=MANIFEST_PATH, action="rebuild_from_source")
                await self._rebuild_from_source(manifest)
            else:
                logger.warning("manifest_missing", path=MANIFEST_PATH, action="empty_rebuild")

            self._advance(RunState.PAGES_WRITTEN)
            await self._finish(manifest, manifest_token)
            logger.info(
                "rebuild_complete",
                dropped=len(self._report.dropped),
                **manifest.counts(),
            )
            return self._report

    # ------------------------------------------------------------------ #
    # Rebuild strategies
    # ------------------------------------------------------------------ #

    async def _rebuild_from_manifest(self, stored: Manifest, manifest: Manifest) -> None:
        for kind in ContentKind:
            for entry in stored.entries(kind):
                result = await self._refetch(entry)
                match result:
                    case Ok(record):
                        await self._write_detail(record)
                        merge_entry(manifest, entry_for(record), record.kind, now=self.clock())
                    case Err(error):
                        self._drop(kind, entry.id, entry.slug, error)

    async def _rebuild_from_source(self, manifest: Manifest) -> None:
        batches = await asyncio.gather(*(self.source.fetch_all(kind) for kind in ContentKind))
        for kind, results in zip(ContentKind, batches):
            records, errors = partition_results(results)
            for error in errors:
                context = error.context if isinstance(error, PublishError) else ErrorContext()
                self._drop(kind, context.document_id or "", context.metadata.get("slug", ""), error)
            for record in records:
                await self._write_detail(record)
                merge_entry(manifest, entry_for(record), record.kind, now=self.clock())

    async def _refetch(self, entry: ManifestEntry) -> Result[ContentRecord]:
        try:
            return Ok(await self.source.fetch_one(entry.id))
        except ContentSourceError as exc:
            return Err(exc)

    def _drop(self, kind: ContentKind, document_id: str, slug: str, error: Exception) -> None:
        logger.warning(
            "entry_dropped",
            kind=kind.value,
            document_id=document_id,
            slug=slug,
            error=str(error),
        )
        self._report.dropped.append(
            DroppedEntry(kind=kind, id=document_id, slug=slug, reason=str(error))
        )

    # ------------------------------------------------------------------ #
    # Storage steps
    # ------------------------------------------------------------------ #

    async def _read_manifest(self) -> tuple[Manifest | None, str | None]:
        stored = await self.storage.get(MANIFEST_PATH)
        if stored is None:
            return None, None
        return Manifest.loads(stored.content), stored.token

    async def _write(self, path: str, content: str) -> None:
        """Overwrite ``path``, re-reading it first on backends with concurrency tokens."""
        token = None
        if self.storage.uses_concurrency_tokens:
            existing = await self.storage.get(path)
            token = existing.token if existing else None
        await self.storage.put(path, content, token)
        self._report.written.append(path)

    async def _write_detail(self, record: ContentRecord) -> None:
        html = render_document(record, self.config, self.templates)
        await self._write(detail_path(record.kind, get_slug(record)), html)

    async def _finish(self, manifest: Manifest, manifest_token: str | None) -> None:
        """Terminal step shared by both modes."""
        await self.storage.put(MANIFEST_PATH, manifest.dumps(), manifest_token)
        self._report.written.append(MANIFEST_PATH)
        self._advance(RunState.MANIFEST_WRITTEN)

        for kind in ContentKind:
            await self._write(listing_path(kind), render_listing(manifest, kind, self.config, self.templates))
        await self._write(HOME_PATH, render_home(manifest, self.config, self.templates))
        await self._write(STYLESHEET_PATH, load_stylesheet())
        self._advance(RunState.INDEXES_WRITTEN)

        counts = manifest.counts()
        self._report.articles = counts["articles"]
        self._report.recommendations = counts["recommendations"]
        self._advance(RunState.DONE)

    # ------------------------------------------------------------------ #
    # Run bookkeeping
    # ------------------------------------------------------------------ #

    def _start(self, mode: str) -> None:
        self._report = PublishReport(run_id=generate_ulid(), mode=mode)
        self._advance(RunState.START)

    def _advance(self, state: RunState) -> None:
        self._report.states.append(state)
        logger.debug("run_state", state=state.value)


async def publish(
    config: SiteConfig,
    *,
    storage: SiteStorage | None = None,
    source: ContentSource | None = None,
) -> PublishReport:
    """
    Run one publish with the backends described by ``config``.

    Backends passed in are used as-is and left open; backends created here
    are closed when the run ends.
    """
    if storage is None:
        async with create_storage(config) as owned_storage:
            return await publish(config, storage=owned_storage, source=source)
    if source is None:
        sanity = config.sanity
        async with SanityClient(
            sanity.project_id,
            sanity.dataset,
            api_version=sanity.api_version,
            use_cdn=sanity.use_cdn,
            token=sanity.token,
        ) as owned_source:
            return await publish(config, storage=storage, source=owned_source)
    return await Publisher(config, storage, source).run()
