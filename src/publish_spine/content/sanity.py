"""Sanity HTTP query client (GROQ over the data query API)."""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from publish_spine.content.models import ContentKind, ContentRecord, strip_draft_prefix, validate_documents
from publish_spine.core.errors import ContentSourceError, DocumentNotFoundError
from publish_spine.core.result import Result

logger = structlog.get_logger(__name__)

DOCUMENT_PROJECTION = (
    "{ _id, _type, title, slug, body, excerpt, featuredImage, category, publishedAt, "
    "ticker, companyName, recommendationType, targetPrice, timeHorizon, reasons, image }"
)

FETCH_ONE_QUERY = f'*[_id == $id || _id == "drafts." + $id][0]{DOCUMENT_PROJECTION}'
FETCH_ALL_QUERY = f'*[_type == $type && !(_id in path("drafts.**"))]{DOCUMENT_PROJECTION}'


class SanityClient:
    """
    Fetch documents from a Sanity dataset.

    Uses the CDN host by default. One ``httpx.AsyncClient`` per instance; use
    it as an async context manager so the connection pool is closed.
    """

    DEFAULT_API_VERSION = "2024-01-01"
    TIMEOUT = 30

    def __init__(
        self,
        project_id: str,
        dataset: str,
        *,
        api_version: str = DEFAULT_API_VERSION,
        use_cdn: bool = True,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.project_id = project_id
        self.dataset = dataset
        self.api_version = api_version.lstrip("v")

        host = "apicdn" if use_cdn else "api"
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=f"https://{project_id}.{host}.sanity.io",
            headers=headers,
            timeout=self.TIMEOUT,
            transport=transport,
        )

    @property
    def query_path(self) -> str:
        return f"/v{self.api_version}/data/query/{self.dataset}"

    async def query(self, groq: str, params: dict[str, Any] | None = None) -> Any:
        """
        Run a GROQ query and return its ``result`` member.

        Query parameters are sent JSON-encoded with a ``$`` prefix, as the
        HTTP API expects.
        """
        request_params = {"query": groq}
        for name, value in (params or {}).items():
            request_params[f"${name}"] = json.dumps(value)

        try:
            response = await self._client.get(self.query_path, params=request_params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise ContentSourceError(
                f"Sanity query failed: {exc.response.status_code} {exc.response.text}",
                cause=exc,
            ).with_context(url=str(exc.request.url), http_status=exc.response.status_code)
        except httpx.HTTPError as exc:
            raise ContentSourceError(
                f"Sanity query failed: {exc}", retryable=True, cause=exc
            )
        except ValueError as exc:
            raise ContentSourceError("Sanity returned a non-JSON response", cause=exc)

        if not isinstance(payload, dict) or "result" not in payload:
            raise ContentSourceError("Sanity response has no result member")
        return payload["result"]

    async def fetch_one(self, document_id: str) -> ContentRecord:
        published_id = strip_draft_prefix(document_id)
        document = await self.query(FETCH_ONE_QUERY, {"id": published_id})
        if not document:
            raise DocumentNotFoundError(f"Document not found: {document_id}").with_context(
                document_id=document_id
            )
        record = ContentRecord.from_document(document)
        logger.debug("document_fetched", document_id=record.id, type=record.type_name)
        return record

    async def fetch_all(self, kind: ContentKind) -> list[Result[ContentRecord]]:
        """
        Fetch every published document of one kind.

        Each document is validated separately; malformed ones come back as
        ``Err`` entries instead of failing the batch.
        """
        documents = await self.query(FETCH_ALL_QUERY, {"type": kind.cms_type})
        if not isinstance(documents, list):
            raise ContentSourceError(f"Expected a list of {kind.plural}, got {type(documents).__name__}")
        results = validate_documents(documents)
        invalid = sum(1 for result in results if result.is_err())
        logger.info("documents_fetched", kind=kind.value, count=len(results) - invalid, invalid=invalid)
        return results

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> SanityClient:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
