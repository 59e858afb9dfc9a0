"""Detail pages for single content records. Pure: no I/O, no mutation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from publish_spine.content.models import ContentKind, ContentRecord
from publish_spine.render.formatting import iso_datetime
from publish_spine.render.richtext import rich_text_html
from publish_spine.render.templates import TemplateLoader, default_loader

if TYPE_CHECKING:
    from publish_spine.config import SiteConfig


def render_article(
    record: ContentRecord,
    site: SiteConfig,
    templates: TemplateLoader | None = None,
) -> str:
    templates = templates or default_loader()
    return templates.render_template(
        "article.html.j2",
        site_title=site.site_title,
        base=site.base_path,
        title=record.display_title,
        excerpt=record.excerpt or "",
        published=iso_datetime(record.published_at),
        body_html=rich_text_html(record.body, field="body", document_id=record.id),
    )


def render_recommendation(
    record: ContentRecord,
    site: SiteConfig,
    templates: TemplateLoader | None = None,
) -> str:
    templates = templates or default_loader()
    return templates.render_template(
        "recommendation.html.j2",
        site_title=site.site_title,
        base=site.base_path,
        title=record.display_title,
        ticker=record.ticker or "",
        recommendation_type=record.recommendation_type or "",
        target_price=record.target_price,
        time_horizon=record.time_horizon or "",
        published=iso_datetime(record.published_at),
        reasons_html=rich_text_html(record.reasons, field="reasons", document_id=record.id),
    )


def render_document(
    record: ContentRecord,
    site: SiteConfig,
    templates: TemplateLoader | None = None,
) -> str:
    """Render the detail page matching the record's kind."""
    if record.kind is ContentKind.ARTICLE:
        return render_article(record, site, templates)
    return render_recommendation(record, site, templates)


def detail_path(kind: ContentKind, slug: str) -> str:
    """Site-relative path of a detail page: ``articles/<slug>.html``."""
    return f"{kind.plural}/{slug}.html"
