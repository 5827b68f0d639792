"""Excerpts and link extraction from article content."""

from __future__ import annotations

import re

from blogfmt._tags import strip_tags
from blogfmt.config import load_settings
from blogfmt.urls import esc_url_raw

_ANCHOR_HREF_RE = re.compile(r"""<a\s[^>]*?href=(['"])(.+?)\1""", re.I | re.S)


def excerpt(content: str, length: int | None = None, end: str = "...") -> str:
    """Plain-text teaser of at most ``length`` characters (plus ``end``).

    Tags are stripped first; ``end`` is only appended when text was cut.
    """
    if length is None:
        length = load_settings().excerpt_length
    text = strip_tags(content)
    if len(text) <= length:
        return text
    return text[:length].rstrip() + end


def get_url_in_content(content: str) -> str | None:
    """First anchor ``href`` in ``content``, cleaned for storage, or None."""
    if not content:
        return None
    match = _ANCHOR_HREF_RE.search(content)
    if match:
        return esc_url_raw(match.group(2))
    return None
