"""Utility functions for blogfmt."""

from urllib.parse import urlparse

from blogfmt.slugs import sanitize_title_with_dashes


def url_to_slug(url: str) -> str:
    """Generate a filesystem-safe filename from a URL."""
    parsed = urlparse(url)
    slug = sanitize_title_with_dashes(parsed.netloc + parsed.path, context="save")
    slug = slug.replace("%", "")[:100].strip("-")
    return slug or "page"
