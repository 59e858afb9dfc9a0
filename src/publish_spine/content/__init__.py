"""CMS content: record model, source protocol, Sanity client."""

from publish_spine.content.base import ContentSource
from publish_spine.content.models import (
    ContentKind,
    ContentRecord,
    get_slug,
    strip_draft_prefix,
    validate_documents,
)
from publish_spine.content.sanity import SanityClient

__all__ = [
    "ContentKind",
    "ContentRecord",
    "ContentSource",
    "SanityClient",
    "get_slug",
    "strip_draft_prefix",
    "validate_documents",
]
