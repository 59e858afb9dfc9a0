"""Jinja2 template loader for site pages.

Provides the page environment with HTML autoescape and the en-US formatting
filters registered.
"""

from functools import lru_cache
from importlib.resources import files
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, select_autoescape

from publish_spine.render import formatting


class TemplateLoader:
    """Loads and renders the page templates.

    Supports:
    - Template inheritance (``base.html.j2``)
    - Formatting filters (``us_date``, ``currency``, ``iso_datetime``, ``badge_class``)
    - Configurable template directory
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        """Initialize TemplateLoader.

        Args:
            template_dir: Path to template directory. Defaults to the
                package's ``render/templates``

        """
        if template_dir is None:
            template_dir = Path(str(files("publish_spine.render").joinpath("templates")))

        self.template_dir = template_dir

        self.env = Environment(
            loader=FileSystemLoader(self.template_dir),
            autoescape=select_autoescape(enabled_extensions=("html", "j2"), default=True),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

        self._register_filters()

    def _register_filters(self) -> None:
        self.env.filters["us_date"] = formatting.us_date
        self.env.filters["iso_datetime"] = formatting.iso_datetime
        self.env.filters["currency"] = formatting.currency
        self.env.filters["badge_class"] = formatting.badge_class

    def load_template(self, template_name: str) -> Template:
        """Load a template by name.

        Raises:
            TemplateNotFound: If template does not exist

        """
        return self.env.get_template(template_name)

    def render_template(self, template_name: str, **context: Any) -> str:
        """Load and render a template with context."""
        return self.load_template(template_name).render(**context)


@lru_cache(maxsize=1)
def default_loader() -> TemplateLoader:
    """Shared loader over the packaged templates."""
    return TemplateLoader()


def load_stylesheet() -> str:
    """The shared site stylesheet shipped with the package."""
    stylesheet = files("publish_spine.render").joinpath("static").joinpath("styles.css")
    return stylesheet.read_text(encoding="utf-8")
