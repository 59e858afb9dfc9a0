"""Platform primitives shared by every publish-spine module: errors, results, logging, time."""

from publish_spine.core.errors import (
    ConcurrencyConflictError,
    ConfigurationError,
    ContentSourceError,
    DocumentNotFoundError,
    ErrorCategory,
    ErrorContext,
    PublishError,
    RenderError,
    StorageError,
)
from publish_spine.core.result import Err, Ok, Result, partition_results, try_result_with

__all__ = [
    "ConcurrencyConflictError",
    "ConfigurationError",
    "ContentSourceError",
    "DocumentNotFoundError",
    "ErrorCategory",
    "ErrorContext",
    "PublishError",
    "RenderError",
    "StorageError",
    "Err",
    "Ok",
    "Result",
    "partition_results",
    "try_result_with",
]
