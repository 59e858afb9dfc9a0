"""
Structured error types for the publish pipeline.

Every failure the pipeline can raise is a ``PublishError`` subclass carrying a
category, a retryable flag and structured context. Callers decide what is
fatal by type, never by parsing messages.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure domain (config,
      content source, storage, rendering)
    - **Explicit Retry Semantics:** Each error knows if it's retryable,
      even though this layer never retries on its own
    - **Rich Context:** Errors carry document id, path, status for logging
    - **Error Chaining:** Preserve the transport exception as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        PublishError                          │
        │  (category, retryable, context, cause)                      │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ConfigurationError   ContentSourceError    StorageError     │
        │  (CONFIG)             (SOURCE)              (STORAGE)        │
        │                            │                     │           │
        │                  DocumentNotFoundError  ConcurrencyConflict  │
        │                                                              │
        │  RenderError (PARSE) - only ever travels inside Err(...)     │
        └─────────────────────────────────────────────────────────────┘

Propagation:
    - ConfigurationError: fatal, raised before any I/O
    - DocumentNotFoundError: fatal for a targeted publish, per-entry and
      skipped during a full rebuild
    - StorageError: fatal, never retried here
    - RenderError: recovered locally by the plain-text fallback

Examples:
    >>> error = StorageError("GitHub PUT index.html: 500")
    >>> error.with_context(path="index.html", http_status=500)
    StorageError('GitHub PUT index.html: 500', category=STORAGE)
    >>> error.to_dict()["context"]["path"]
    'index.html'

Tags:
    error-handling, exception-hierarchy, error-context, publish-spine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        STORAGE: GitHub contents API, local filesystem
        SOURCE: CMS query errors, missing documents
        PARSE: Record or rich-text conversion errors
        CONFIG: Missing or invalid settings
        INTERNAL: Bugs, unexpected state
    """

    STORAGE = "STORAGE"
    SOURCE = "SOURCE"
    PARSE = "PARSE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Only fields that were set end up in ``to_dict()``; anything without a
    dedicated field goes into ``metadata``.

    Attributes:
        document_id: CMS document identifier being processed
        kind: Content kind (article, recommendation)
        path: Site-relative file path being read or written
        url: URL that was being accessed
        http_status: HTTP status code if applicable
        metadata: Additional key-value pairs
    """

    document_id: str | None = None
    kind: str | None = None
    path: str | None = None
    url: str | None = None
    http_status: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["document_id", "kind", "path", "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class PublishError(Exception):
    """
    Base exception for all publish pipeline errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can
    be overridden per instance.

    Examples:
        >>> error = PublishError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> PublishError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StorageError("write failed").with_context(path="index.html")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION
# =============================================================================


class ConfigurationError(PublishError):
    """A required setting is absent or invalid. Raised before any I/O."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# CONTENT SOURCE
# =============================================================================


class ContentSourceError(PublishError):
    """The CMS could not answer a query (transport or payload problem)."""

    default_category = ErrorCategory.SOURCE
    default_retryable = False


class DocumentNotFoundError(ContentSourceError):
    """The requested document does not exist in the content source."""


# =============================================================================
# STORAGE
# =============================================================================


class StorageError(PublishError):
    """A storage backend read or write failed."""

    default_category = ErrorCategory.STORAGE
    default_retryable = False


class ConcurrencyConflictError(StorageError):
    """
    The backend rejected a write because the concurrency token was stale.

    Another writer updated the file between our read and our write. The run
    aborts; the next run re-reads current state.
    """


# =============================================================================
# RENDERING
# =============================================================================


class RenderError(PublishError):
    """Rich-text conversion failed. Recovered by the plain-text fallback."""

    default_category = ErrorCategory.PARSE
    default_retryable = False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "PublishError",
    "ConfigurationError",
    "ContentSourceError",
    "DocumentNotFoundError",
    "StorageError",
    "ConcurrencyConflictError",
    "RenderError",
]
