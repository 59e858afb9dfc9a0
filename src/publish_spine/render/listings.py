"""Listing pages and the home page, rendered from the manifest."""

from __future__ import annotations

from typing import TYPE_CHECKING

from publish_spine.content.models import ContentKind
from publish_spine.manifest import Manifest
from publish_spine.render.formatting import newest_first
from publish_spine.render.templates import TemplateLoader, default_loader

if TYPE_CHECKING:
    from publish_spine.config import SiteConfig

HOME_PATH = "index.html"
HOME_RECOMMENDATION_LIMIT = 10
HOME_ARTICLE_LIMIT = 5

LISTING_HEADINGS = {
    ContentKind.ARTICLE: "Articles",
    ContentKind.RECOMMENDATION: "Stock Recommendations",
}


def listing_path(kind: ContentKind) -> str:
    return f"{kind.plural}/index.html"


def render_listing(
    manifest: Manifest,
    kind: ContentKind,
    site: SiteConfig,
    templates: TemplateLoader | None = None,
) -> str:
    """All entries of one kind, newest first (undated entries last)."""
    templates = templates or default_loader()
    return templates.render_template(
        "listing.html.j2",
        site_title=site.site_title,
        base=site.base_path,
        heading=LISTING_HEADINGS[kind],
        directory=kind.plural,
        items=newest_first(manifest.entries(kind)),
    )


def render_home(
    manifest: Manifest,
    site: SiteConfig,
    templates: TemplateLoader | None = None,
) -> str:
    """Home page: the most recent recommendations table plus latest articles."""
    templates = templates or default_loader()
    return templates.render_template(
        "index.html.j2",
        site_title=site.site_title,
        base=site.base_path,
        recommendations=newest_first(manifest.recommendations)[:HOME_RECOMMENDATION_LIMIT],
        articles=newest_first(manifest.articles)[:HOME_ARTICLE_LIMIT],
    )
