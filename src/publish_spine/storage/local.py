"""Local filesystem storage backend."""

from pathlib import Path

import structlog

from publish_spine.core.errors import StorageError
from publish_spine.storage.base import SiteStorage, StoredFile

logger = structlog.get_logger(__name__)


class LocalStorage(SiteStorage):
    """
    Local filesystem storage backend.

    Writes the site into an output directory with the path structure
    preserved. There is no optimistic concurrency here: tokens are always
    None and ignored on write.
    """

    uses_concurrency_tokens = False

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.info("local_storage_initialized", base_path=str(self.base_path))

    def _resolve_path(self, path: str) -> Path:
        """Resolve a site path to an absolute filesystem path."""
        clean_path = Path(path).as_posix().lstrip("/")
        full_path = self.base_path / clean_path

        try:
            full_path.resolve().relative_to(self.base_path)
        except ValueError:
            raise StorageError(f"Invalid path: {path} (outside output directory)").with_context(
                path=path
            )

        return full_path

    async def get(self, path: str) -> StoredFile | None:
        full_path = self._resolve_path(path)

        if not full_path.is_file():
            return None

        try:
            content = full_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Local read {path}: {exc}", cause=exc).with_context(path=path)

        return StoredFile(path=path, content=content)

    async def put(self, path: str, content: str, token: str | None = None) -> StoredFile:
        full_path = self._resolve_path(path)

        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Local write {path}: {exc}", cause=exc).with_context(path=path)

        logger.info("file_written", path=path, size=len(content))
        return StoredFile(path=path, content=content)
