"""Portable Text (Sanity rich text) to HTML, with a plain-text fallback."""

from __future__ import annotations

from typing import Any

import structlog
from markupsafe import Markup, escape
from portabletext_html import PortableTextRenderer

from publish_spine.core.errors import RenderError
from publish_spine.core.result import Ok, Result, try_result_with

logger = structlog.get_logger(__name__)


def render_rich_text(blocks: Any) -> Result[str]:
    """
    Convert Portable Text blocks to HTML.

    Empty or non-list input is ``Ok("")``. Any converter failure (unknown
    block or mark types included) comes back as ``Err(RenderError)``.
    """
    if not blocks or not isinstance(blocks, list):
        return Ok("")
    return try_result_with(
        lambda: PortableTextRenderer(blocks).render(),
        lambda exc: RenderError(f"Rich text conversion failed: {exc}", cause=exc),
    )


def plain_text_runs(blocks: Any) -> str:
    """Concatenate the ``text`` of every span child, dropping all markup."""
    if not isinstance(blocks, list):
        return ""
    parts: list[str] = []
    for block in blocks:
        if not isinstance(block, dict):
            continue
        for child in block.get("children") or []:
            if isinstance(child, dict) and child.get("text"):
                parts.append(str(child["text"]))
    return "".join(parts)


def rich_text_html(blocks: Any, *, field: str = "body", document_id: str | None = None) -> Markup:
    """
    HTML for a rich-text field, never raising.

    On conversion failure the escaped plain-text runs are used instead and a
    warning is logged.
    """

    def fallback(error: Exception) -> str:
        logger.warning(
            "rich_text_fallback",
            field=field,
            document_id=document_id,
            error=str(error),
        )
        return str(escape(plain_text_runs(blocks)))

    return Markup(render_rich_text(blocks).unwrap_or_else(fallback))
