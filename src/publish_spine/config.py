"""Configuration management using Pydantic Settings.

``Settings`` reads the environment (and ``.env``) once at startup;
``Settings.to_site_config()`` validates it into an immutable ``SiteConfig``
that is passed explicitly to the publisher, storage factory and renderers.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from publish_spine.content.models import ContentKind
from publish_spine.core.errors import ConfigurationError

DEFAULT_SITE_TITLE = "LongTermPicksUSA"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Content source
    sanity_project_id: str | None = None
    sanity_dataset: str | None = None
    sanity_api_version: str = "2024-01-01"
    sanity_use_cdn: bool = True
    sanity_token: str | None = None

    # Remote storage
    github_token: str | None = None
    github_repository: str | None = None
    github_branch: str = "gh-pages"

    # Target document (both or neither; neither means full rebuild)
    document_id: str | None = None
    document_type: str | None = None

    # Local storage (switches backend to the filesystem)
    output_dir: str | None = None

    # Site
    site_title: str = DEFAULT_SITE_TITLE
    base_path: str | None = None

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console", "auto"] = "auto"

    def to_site_config(self) -> SiteConfig:
        """
        Validate settings into a SiteConfig.

        Raises:
            ConfigurationError: If a required setting is missing or invalid
        """
        project_id = _clean(self.sanity_project_id)
        dataset = _clean(self.sanity_dataset)
        missing = [
            name
            for name, value in (("SANITY_PROJECT_ID", project_id), ("SANITY_DATASET", dataset))
            if not value
        ]

        output_dir_value = _clean(self.output_dir)
        output_dir = Path(output_dir_value) if output_dir_value else None
        github: GitHubConfig | None = None
        if output_dir is None:
            token = _clean(self.github_token)
            repository = _clean(self.github_repository)
            if not token:
                missing.append("GITHUB_TOKEN")
            if not repository:
                missing.append("GITHUB_REPOSITORY")
            if token and repository:
                github = GitHubConfig(token=token, repository=repository, branch=self.github_branch)

        if missing:
            raise ConfigurationError(f"Missing env: {', '.join(missing)}").with_context(
                missing=missing
            )

        if github is not None and not _is_repository_coordinate(github.repository):
            raise ConfigurationError(
                f"GITHUB_REPOSITORY must be 'owner/name', got {github.repository!r}"
            )

        explicit_base = _clean(self.base_path)
        if explicit_base is not None:
            base_path = normalize_base_path(explicit_base)
        elif github is not None:
            base_path = derive_base_path(github.repository)
        else:
            base_path = ""

        return SiteConfig(
            sanity=SanityConfig(
                project_id=project_id,
                dataset=dataset,
                api_version=self.sanity_api_version,
                use_cdn=self.sanity_use_cdn,
                token=_clean(self.sanity_token),
            ),
            site_title=self.site_title,
            base_path=base_path,
            github=github,
            output_dir=output_dir,
            target=self._document_target(),
        )

    def _document_target(self) -> DocumentTarget | None:
        document_id = _clean(self.document_id)
        document_type = _clean(self.document_type)
        if not document_id and not document_type:
            return None
        if not document_id or not document_type:
            raise ConfigurationError("DOCUMENT_ID and DOCUMENT_TYPE must be set together")
        try:
            kind = ContentKind.from_type_name(document_type)
        except ValueError:
            raise ConfigurationError(f"Invalid DOCUMENT_TYPE: {document_type}")
        return DocumentTarget(document_id=document_id, kind=kind)


@dataclass(frozen=True)
class SanityConfig:
    project_id: str
    dataset: str
    api_version: str = "2024-01-01"
    use_cdn: bool = True
    token: str | None = None


@dataclass(frozen=True)
class GitHubConfig:
    token: str
    repository: str
    branch: str = "gh-pages"


@dataclass(frozen=True)
class DocumentTarget:
    document_id: str
    kind: ContentKind


@dataclass(frozen=True)
class SiteConfig:
    """Everything a publish run needs, constructed once per process."""

    sanity: SanityConfig
    site_title: str = DEFAULT_SITE_TITLE
    base_path: str = ""
    github: GitHubConfig | None = None
    output_dir: Path | None = None
    target: DocumentTarget | None = None

    @property
    def is_local(self) -> bool:
        return self.output_dir is not None


def derive_base_path(repository: str) -> str:
    """
    Base path for GitHub project pages.

    ``owner/site`` -> ``/site``; user/org sites (``owner/owner.github.io``)
    and empty repository names serve from the root.
    """
    _, _, name = repository.partition("/")
    if not name or name.endswith(".github.io"):
        return ""
    return f"/{name}"


def normalize_base_path(value: str) -> str:
    """``site/`` -> ``/site``; ``/`` and blank -> empty."""
    stripped = value.strip().strip("/")
    return f"/{stripped}" if stripped else ""


def load_settings() -> Settings:
    """
    Read settings from the environment.

    Raises:
        ConfigurationError: If a value cannot be parsed
    """
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}", cause=exc)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _is_repository_coordinate(repository: str) -> bool:
    owner, _, name = repository.partition("/")
    return bool(owner) and bool(name) and "/" not in name
