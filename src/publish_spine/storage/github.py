"""GitHub contents API storage backend (publishes to a Pages branch)."""

from __future__ import annotations

import base64
import binascii

import httpx
import structlog

from publish_spine.core.errors import ConcurrencyConflictError, StorageError
from publish_spine.storage.base import SiteStorage, StoredFile

logger = structlog.get_logger(__name__)


class GitHubStorage(SiteStorage):
    """
    GitHub repository branch as a storage backend.

    Every ``put`` is one commit on the branch and is visible immediately.
    Overwrites must carry the blob SHA from the latest ``get``; GitHub
    rejects stale or missing SHAs with 409/422, which surface as
    ``ConcurrencyConflictError``.
    """

    API_URL = "https://api.github.com"
    TIMEOUT = 30
    uses_concurrency_tokens = True

    def __init__(
        self,
        repository: str,
        token: str,
        branch: str = "gh-pages",
        *,
        api_url: str = API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        owner, _, name = repository.partition("/")
        if not owner or not name:
            raise ValueError(f"Repository must be 'owner/name', got {repository!r}")
        self.owner = owner
        self.name = name
        self.branch = branch

        self._client = httpx.AsyncClient(
            base_url=api_url,
            headers={
                "Accept": "application/vnd.github.v3+json",
                "Authorization": f"Bearer {token}",
            },
            timeout=self.TIMEOUT,
            transport=transport,
        )

        logger.info(
            "github_storage_initialized",
            repository=f"{owner}/{name}",
            branch=branch,
        )

    def _contents_url(self, path: str) -> str:
        return f"/repos/{self.owner}/{self.name}/contents/{path.lstrip('/')}"

    async def get(self, path: str) -> StoredFile | None:
        try:
            response = await self._client.get(self._contents_url(path), params={"ref": self.branch})
        except httpx.HTTPError as exc:
            raise StorageError(f"GitHub GET {path}: {exc}", retryable=True, cause=exc).with_context(
                path=path
            )

        if response.status_code == 404:
            return None
        if not response.is_success:
            raise StorageError(
                f"GitHub GET {path}: {response.status_code} {response.text}"
            ).with_context(path=path, http_status=response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise StorageError(f"GitHub GET {path}: non-JSON response", cause=exc).with_context(
                path=path, http_status=response.status_code
            )
        if not isinstance(payload, dict) or payload.get("type", "file") != "file":
            raise StorageError(f"GitHub GET {path}: not a file").with_context(path=path)

        sha = payload.get("sha")
        if not sha:
            raise StorageError(
                f"GitHub GET {path} returned content but no sha; cannot update file."
            ).with_context(path=path)

        try:
            content = base64.b64decode(payload.get("content") or "").decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise StorageError(f"GitHub GET {path}: undecodable content", cause=exc).with_context(
                path=path
            )

        return StoredFile(path=path, content=content, token=sha)

    async def put(self, path: str, content: str, token: str | None = None) -> StoredFile:
        body = {
            "message": f"Publish: {path}",
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": self.branch,
        }
        if token:
            body["sha"] = token

        try:
            response = await self._client.put(self._contents_url(path), json=body)
        except httpx.HTTPError as exc:
            raise StorageError(f"GitHub PUT {path}: {exc}", retryable=True, cause=exc).with_context(
                path=path
            )

        if response.status_code in (409, 422):
            raise ConcurrencyConflictError(
                f"GitHub PUT {path}: {response.status_code} {response.text}"
            ).with_context(path=path, http_status=response.status_code, sha=token)
        if not response.is_success:
            raise StorageError(
                f"GitHub PUT {path}: {response.status_code} {response.text}"
            ).with_context(path=path, http_status=response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise StorageError(f"GitHub PUT {path}: non-JSON response", cause=exc).with_context(
                path=path, http_status=response.status_code
            )
        new_sha = ((payload if isinstance(payload, dict) else {}).get("content") or {}).get("sha")
        logger.info("github_file_written", path=path, branch=self.branch, size=len(content))
        return StoredFile(path=path, content=content, token=new_sha)

    async def aclose(self) -> None:
        await self._client.aclose()
