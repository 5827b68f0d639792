"""Low-level tag tokenizing shared by the formatters.

The splitter is purely lexical: it never validates nesting, and every
construct it cannot close is consumed to the end of the input.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

_COMMENT = (
    r"(?=!--)!"
    r"(?:-(?!->)[^\-]*)*"  # dashes not starting "-->", then non-dashes
    r"(?:-->)?"  # missing terminator: match all input
)

_CDATA = (
    r"(?=!\[CDATA\[)!\[CDATA\["
    r"[^\]]*"
    r"(?:\](?!\]>)[^\]]*)*"  # a "]" not starting "]]>", then non-"]"
    r"(?:\]\]>)?"
)

HTML_SPLIT_RE = re.compile(
    "(<(?:" + _COMMENT + "|" + _CDATA + r"|[^>]*>?))"
)

_TAG_NAME_RE = re.compile(r"^<\s*/?\s*([a-zA-Z][a-zA-Z0-9:-]*)")
_ALLOWED_NAME_RE = re.compile(r"<\s*([a-zA-Z][a-zA-Z0-9:-]*)\s*/?>")

# Elements whose text content goes with them when the tag is stripped.
_RAW_TEXT_ELEMENTS = frozenset({"script", "style"})


def html_split(html: str) -> list[str]:
    """Split HTML into alternating text and tag tokens.

    Even indices are text (possibly empty), odd indices are tags, comments
    or CDATA sections. ``"".join(html_split(s)) == s`` always holds.
    """
    return HTML_SPLIT_RE.split(html)


def strtr(text: str, replace_pairs: Mapping[str, str]) -> str:
    """Single-pass replacement, longest needle first.

    Replaced text is never rescanned, so ``{"a": "b", "b": "a"}`` swaps.
    """
    needles = [n for n in replace_pairs if n]
    if not needles or not text:
        return text
    needles.sort(key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(n) for n in needles))
    return pattern.sub(lambda m: replace_pairs[m.group(0)], text)


def replace_in_html_tags(haystack: str, replace_pairs: Mapping[str, str]) -> str:
    """Replace substrings only inside tag tokens, leaving text untouched."""
    parts = html_split(haystack)
    changed = False

    if len(replace_pairs) == 1:
        ((needle, replace),) = replace_pairs.items()
        for i in range(1, len(parts), 2):
            if needle in parts[i]:
                parts[i] = parts[i].replace(needle, replace)
                changed = True
    else:
        needles = list(replace_pairs)
        for i in range(1, len(parts), 2):
            if any(needle in parts[i] for needle in needles):
                parts[i] = strtr(parts[i], replace_pairs)
                changed = True

    if changed:
        return "".join(parts)
    return haystack


def parse_allowed_tags(allowed_tags: str | Iterable[str]) -> frozenset[str]:
    """Normalize ``"<a><em>"`` or an iterable of names to lower-case names."""
    if isinstance(allowed_tags, str):
        return frozenset(n.lower() for n in _ALLOWED_NAME_RE.findall(allowed_tags))
    return frozenset(n.strip("<>/ ").lower() for n in allowed_tags if n)


def tag_name(token: str) -> str | None:
    """Lower-cased element name of a tag token, or None for anything else."""
    match = _TAG_NAME_RE.match(token)
    return match.group(1).lower() if match else None


def strip_tags(html: str, allowed_tags: str | Iterable[str] = ()) -> str:
    """Remove every tag not in ``allowed_tags``.

    Comments, CDATA, doctypes and unterminated trailing tags are always
    removed. A ``<`` followed by whitespace is kept as text. The content of
    a disallowed ``<script>`` or ``<style>`` element is removed with it.
    """
    if "<" not in html:
        return html

    allowed = parse_allowed_tags(allowed_tags)
    parts = html_split(html)
    out: list[str] = []
    skip_until: str | None = None

    for i, part in enumerate(parts):
        if i % 2 == 0:
            if skip_until is None:
                out.append(part)
            continue

        name = tag_name(part)
        closing = name is not None and re.match(r"<\s*/", part) is not None

        if skip_until is not None:
            if closing and name == skip_until:
                skip_until = None
            continue

        if name is None:
            if len(part) > 1 and part[1].isspace():
                # "a < b" is text, but whatever follows may still hold tags
                out.append("<" + strip_tags(part[1:], allowed))
            continue

        if name in allowed:
            out.append(part)
        elif name in _RAW_TEXT_ELEMENTS and not closing and not part.rstrip().endswith("/>"):
            skip_until = name

    return "".join(out)
