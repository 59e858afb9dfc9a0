"""
publish-spine: CMS content to static site.

Fetches documents from Sanity, renders detail pages, listings and a home
page, and writes them to GitHub Pages (or a local directory) together with
a ``manifest.json`` site index.
"""

__version__ = "0.1.0"
