"""Paragraph reconstruction ("autop") for line-broken text.

Converts blank-line-delimited text into ``<p>`` elements and remaining
single newlines into ``<br />``, while keeping block-level markup, ``<pre>``
contents and newlines inside tag attributes intact.
"""

from __future__ import annotations

import re

from blogfmt._tags import replace_in_html_tags
from blogfmt.sanitize import filter_html

BLOCK_TAGS = (
    "table", "thead", "tfoot", "caption", "col", "colgroup", "tbody", "tr",
    "td", "th", "div", "dl", "dd", "dt", "ul", "ol", "li", "pre", "form",
    "map", "area", "blockquote", "address", "math", "style", "p",
    "h[1-6]", "hr", "fieldset", "legend", "section", "article", "aside",
    "hgroup", "header", "footer", "nav", "figure", "figcaption", "details",
    "menu", "summary",
)

_ALLBLOCKS = "(?:" + "|".join(BLOCK_TAGS) + ")"

# Sentinels. The newline one is a comment so the splitter treats it as a tag.
NEWLINE_PLACEHOLDER = " <!-- wpnl --> "
PRESERVE_NEWLINE = "<WPPreserveNewline />"

_A = re.ASCII


def _sub(pattern: str, repl, text: str, flags: int = 0) -> str:
    return re.sub(pattern, repl, text, flags=flags | _A)


def _extract_pre(text: str) -> tuple[str, dict[str, str]]:
    """Swap every ``<pre>...</pre>`` for a numbered placeholder element."""
    pre_tags: dict[str, str] = {}
    if "<pre" not in text:
        return text, pre_tags

    parts = text.split("</pre>")
    last = parts.pop()
    rebuilt = ""
    i = 0
    for part in parts:
        start = part.find("<pre")
        # Malformed HTML: a closing tag without an opener.
        if start == -1:
            rebuilt += part
            continue
        name = f"<pre pre-tag-{i}></pre>"
        pre_tags[name] = part[start:] + "</pre>"
        rebuilt += part[:start] + name
        i += 1
    return rebuilt + last, pre_tags


def _collapse_media_whitespace(text: str) -> str:
    """Keep option, object, audio/video and figcaption groups on one line."""
    if "<option" in text:
        text = _sub(r"\s*<option", "<option", text)
        text = _sub(r"</option>\s*", "</option>", text)

    if "</object>" in text:
        text = _sub(r"(<object[^>]*>)\s*", r"\1", text)
        text = _sub(r"\s*</object>", "</object>", text)
        text = _sub(r"\s*(</?(?:param|embed)[^>]*>)\s*", r"\1", text)

    if "<source" in text or "<track" in text:
        text = _sub(r"([<\[](?:audio|video)[^>\]]*[>\]])\s*", r"\1", text)
        text = _sub(r"\s*([<\[]/(?:audio|video)[>\]])", r"\1", text)
        text = _sub(r"\s*(<(?:source|track)[^>]*>)\s*", r"\1", text)

    if "<figcaption" in text:
        text = _sub(r"\s*(<figcaption[^>]*>)", r"\1", text)
        text = _sub(r"</figcaption>\s*", "</figcaption>", text)

    return text


def _fix_paragraph_nesting(text: str) -> str:
    # Close a <p> left open inside <div>, <address> or <form>.
    text = _sub(r"<p>([^<]+)</(div|address|form)>", r"<p>\1</p></\2>", text)
    # A block tag alone inside a <p>.
    text = _sub(r"<p>\s*(</?" + _ALLBLOCKS + r"[^>]*>)\s*</p>", r"\1", text)
    text = _sub(r"<p>(<li.+?)</p>", r"\1", text)
    # Paragraphs belong inside a blockquote, not around it.
    text = _sub(r"<p><blockquote([^>]*)>", r"<blockquote\1><p>", text, re.I)
    text = text.replace("</blockquote></p>", "</p></blockquote>")
    text = _sub(r"<p>\s*(</?" + _ALLBLOCKS + r"[^>]*>)", r"\1", text)
    text = _sub(r"(</?" + _ALLBLOCKS + r"[^>]*>)\s*</p>", r"\1", text)
    return text


def _insert_line_breaks(text: str) -> str:
    text = _sub(
        r"<(script|style).*?</\1>",
        lambda m: m.group(0).replace("\n", PRESERVE_NEWLINE),
        text,
        re.S,
    )
    text = text.replace("<br>", "<br />").replace("<br/>", "<br />")
    text = _sub(r"(?<!<br />)\s*\n", "<br />\n", text)
    return text.replace(PRESERVE_NEWLINE, "\n")


def autop(text: str, br: bool = True) -> str:
    """Replace double line breaks with paragraph elements.

    Args:
        text: Plain text or loosely structured HTML.
        br: Also turn the remaining single newlines into ``<br />``.

    Returns:
        The paragraphized HTML, or ``""`` for blank input.

    Example:
        >>> autop("Hello\\n\\nWorld")
        '<p>Hello</p>\\n<p>World</p>\\n'
    """
    if not text.strip():
        return ""

    text = text + "\n"
    text, pre_tags = _extract_pre(text)

    # Two <br>s in a row mean a paragraph break.
    text = _sub(r"<br\s*/?>\s*<br\s*/?>", "\n\n", text)

    text = _sub(r"(<" + _ALLBLOCKS + r"[\s/>])", r"\n\n\1", text)
    text = _sub(r"(</" + _ALLBLOCKS + r">)", r"\1\n\n", text)

    text = text.replace("\r\n", "\n").replace("\r", "\n")

    text = replace_in_html_tags(text, {"\n": NEWLINE_PLACEHOLDER})

    text = _collapse_media_whitespace(text)

    text = _sub(r"\n\n+", "\n\n", text)

    paragraphs = [p for p in re.split(r"\n\s*\n", text, flags=_A) if p]
    text = "".join("<p>" + p.strip("\n") + "</p>\n" for p in paragraphs)

    # Whitespace-only paragraphs can appear around stray markup.
    text = _sub(r"<p>\s*</p>", "", text)

    text = _fix_paragraph_nesting(text)

    if br:
        text = _insert_line_breaks(text)

    text = _sub(r"(</?" + _ALLBLOCKS + r"[^>]*>)\s*<br />", r"\1", text)
    text = _sub(
        r"<br />(\s*</?(?:p|li|div|dl|dd|dt|th|pre|td|ul|ol)[^>]*>)", r"\1", text
    )
    text = _sub(r"\n</p>$", "</p>", text)

    for name, original in pre_tags.items():
        text = text.replace(name, original)

    if "<!-- wpnl -->" in text:
        text = text.replace(NEWLINE_PLACEHOLDER, "\n").replace("<!-- wpnl -->", "\n")

    return text


def reverse_autop(html: str) -> str:
    """Undo :func:`autop`, returning newline-formatted, filtered text."""
    html = html.replace("\n", "")
    for br in ("<br />", "<br>", "<br/>"):
        html = html.replace(br, "\n")
    html = html.replace("</p>", "\n\n")
    return filter_html(html)
