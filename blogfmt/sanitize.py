"""Allow-list HTML filtering via BeautifulSoup + lxml."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

from blogfmt._tags import strip_tags

ALLOWED_TAGS = "<a><strong><em><ol><ul><li>"
ALLOWED_ANCHOR_ATTRS = frozenset({"title", "target", "href"})

# Makes lxml decode the fragment as UTF-8 instead of guessing.
_CHARSET_HINT = '<meta http-equiv="content-type" content="text/html; charset=utf-8">'

_SLASHED_RE = re.compile(r"\\(.?)", re.S)


class SourceOrderFormatter(HTMLFormatter):
    """bs4's "minimal" formatter, but attributes keep their source order."""

    def attributes(self, tag):
        if tag.attrs is None:
            return []
        return list(tag.attrs.items())


_FORMATTER = SourceOrderFormatter(entity_substitution=EntitySubstitution.substitute_xml)


def stripslashes(value: str) -> str:
    r"""Un-quote a backslash-escaped string (``\'`` -> ``'``, ``\\`` -> ``\``)."""
    return _SLASHED_RE.sub(lambda m: "\x00" if m.group(1) == "0" else m.group(1), value)


def map_deep(value: Any, callback: Callable[[Any], Any]) -> Any:
    """Apply ``callback`` to every scalar inside nested containers and objects."""
    if isinstance(value, dict):
        return {key: map_deep(item, callback) for key, item in value.items()}
    if isinstance(value, list):
        return [map_deep(item, callback) for item in value]
    if isinstance(value, tuple):
        return tuple(map_deep(item, callback) for item in value)
    if hasattr(value, "__dict__") and not isinstance(value, type):
        for name, item in vars(value).items():
            setattr(value, name, map_deep(item, callback))
        return value
    return callback(value)


def stripslashes_deep(value: Any) -> Any:
    """Strip slashes from every string in ``value``; other scalars pass through."""
    return map_deep(value, lambda v: stripslashes(v) if isinstance(v, str) else v)


def unslash(value: Any) -> Any:
    return stripslashes_deep(value)


def _strip_attributes(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(True):
        if tag.name == "a":
            tag.attrs = {k: v for k, v in tag.attrs.items() if k in ALLOWED_ANCHOR_ATTRS}
        else:
            tag.attrs = {}


def filter_html(value: str, add_to_allowed_tags: str = "") -> str:
    """Strip everything but a small set of inline and list tags.

    Pipeline:
    1. Undo upstream backslash escaping
    2. Drop ``&nbsp;`` and empty paragraphs
    3. ``<b>``/``<i>`` become ``<strong>``/``<em>``
    4. Strip disallowed tags (allow-list plus ``add_to_allowed_tags``)
    5. Parse with lxml and drop attributes (anchors keep title/target/href)
    6. Serialize and strip again, removing the html/head/body wrapper
    """
    value = unslash(value)
    value = value.replace("&nbsp;", "").replace("<p>&nbsp;</p>", "")
    value = value.replace("<p></p>", "")
    value = value.replace("<b>", "<strong>").replace("</b>", "</strong>")
    value = value.replace("<i>", "<em>").replace("</i>", "</em>")

    allowed_tags = ALLOWED_TAGS + add_to_allowed_tags
    value = strip_tags(value, allowed_tags)

    # lxml recovers from any markup; its parse errors are never surfaced.
    soup = BeautifulSoup(_CHARSET_HINT + value, "lxml")
    _strip_attributes(soup)

    value = strip_tags(soup.decode(formatter=_FORMATTER), allowed_tags)
    return value.strip()
