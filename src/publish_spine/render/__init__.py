"""Page rendering: detail pages, listings, home page, stylesheet."""

from publish_spine.render.documents import (
    detail_path,
    render_article,
    render_document,
    render_recommendation,
)
from publish_spine.render.listings import (
    HOME_PATH,
    HOME_RECOMMENDATION_LIMIT,
    listing_path,
    render_home,
    render_listing,
)
from publish_spine.render.templates import TemplateLoader, load_stylesheet

STYLESHEET_PATH = "styles.css"

__all__ = [
    "HOME_PATH",
    "HOME_RECOMMENDATION_LIMIT",
    "STYLESHEET_PATH",
    "TemplateLoader",
    "detail_path",
    "listing_path",
    "load_stylesheet",
    "render_article",
    "render_document",
    "render_home",
    "render_listing",
    "render_recommendation",
]
