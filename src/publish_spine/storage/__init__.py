"""Storage abstraction for published site files."""

from __future__ import annotations

from typing import TYPE_CHECKING

from publish_spine.storage.base import SiteStorage, StoredFile
from publish_spine.storage.github import GitHubStorage
from publish_spine.storage.local import LocalStorage

if TYPE_CHECKING:
    from publish_spine.config import SiteConfig

__all__ = ["SiteStorage", "StoredFile", "LocalStorage", "GitHubStorage", "create_storage"]


def create_storage(config: SiteConfig) -> SiteStorage:
    """Create the storage backend for this run based on configuration."""
    if config.output_dir is not None:
        return LocalStorage(base_path=config.output_dir)

    github = config.github
    return GitHubStorage(
        repository=github.repository,
        token=github.token,
        branch=github.branch,
    )
