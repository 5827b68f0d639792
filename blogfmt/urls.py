"""URL checking and escaping."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from urllib.parse import urlsplit

from blogfmt.kses import ALLOWED_PROTOCOLS, bad_protocol, deep_replace, normalize_entities

logger = logging.getLogger(__name__)

_DISALLOWED_CHARS_RE = re.compile(r"[^a-z0-9\-~+_.?#=!&;,/:%@$|*'()\[\]\x80-\U0010FFFF]", re.I)
_PHP_FILE_RE = re.compile(r"^[a-z0-9-]+?\.php", re.I)
_HEADER_INJECTION = ("%0d", "%0a", "%0D", "%0A")


def _split_netloc(netloc: str) -> dict[str, str]:
    parts: dict[str, str] = {}
    userinfo, has_at, hostport = netloc.rpartition("@")
    if has_at:
        user, has_colon, password = userinfo.partition(":")
        parts["user"] = user
        if has_colon:
            parts["pass"] = password

    if hostport.startswith("["):
        end = hostport.find("]")
        host, after = hostport[: end + 1], hostport[end + 1:]
        port = after[1:] if after.startswith(":") else ""
    else:
        host, _, port = hostport.partition(":")

    if host:
        parts["host"] = host
    if port:
        if not port.isdigit() or int(port) > 65535:
            raise ValueError(f"invalid port: {port!r}")
        parts["port"] = port
    return parts


def parse_url(url: str) -> dict[str, str] | None:
    """Split a URL into its components, PHP ``parse_url`` style.

    Only the components present in the URL appear as keys. Protocol-relative
    (``//host/path``) and root-relative (``/path``) URLs are parsed without
    inventing a scheme or host. Returns None when the URL cannot be parsed.

    Examples:
        >>> parse_url("https://user@[::1]:8080/a?b#c")
        {'scheme': 'https', 'user': 'user', 'host': '[::1]', 'port': '8080', 'path': '/a', 'query': 'b', 'fragment': 'c'}
    """
    to_unset: list[str] = []
    if url.startswith("//"):
        to_unset.append("scheme")
        url = "placeholder:" + url
    elif url.startswith("/"):
        to_unset.extend(("scheme", "host"))
        url = "placeholder://placeholder" + url

    try:
        split = urlsplit(url)
        parts: dict[str, str] = {}
        if split.scheme:
            # urlsplit lower-cases the scheme; keep it as written
            parts["scheme"] = url[: len(split.scheme)]
        parts.update(_split_netloc(split.netloc))
    except ValueError:
        return None

    if split.path:
        parts["path"] = split.path
    if split.query:
        parts["query"] = split.query
    if split.fragment:
        parts["fragment"] = split.fragment

    for key in to_unset:
        parts.pop(key, None)
    return parts


def _escape_brackets(url: str) -> str:
    """Percent-escape ``[``/``]`` after the authority, leaving IPv6 hosts alone."""
    parsed = parse_url(url) or {}
    front = ""
    if "scheme" in parsed:
        front += parsed["scheme"] + "://"
    elif url.startswith("/"):
        front += "//"
    if "user" in parsed:
        front += parsed["user"]
    if "pass" in parsed:
        front += ":" + parsed["pass"]
    if "user" in parsed or "pass" in parsed:
        front += "@"
    if "host" in parsed:
        front += parsed["host"]
    if "port" in parsed:
        front += ":" + parsed["port"]

    end_dirty = url.replace(front, "") if front else url
    if not end_dirty:
        return url
    end_clean = end_dirty.replace("[", "%5B").replace("]", "%5D")
    return url.replace(end_dirty, end_clean)


def esc_url(
    url: str,
    protocols: Iterable[str] | None = None,
    context: str = "display",
) -> str:
    """Check and clean a URL.

    Disallowed characters are removed, a missing scheme becomes ``http://``
    and, in ``display`` context, ampersands and single quotes are encoded.
    A URL whose scheme is not in ``protocols`` is rejected as ``""``.

    Args:
        url: The URL to clean.
        protocols: Acceptable schemes; defaults to ``ALLOWED_PROTOCOLS``.
        context: ``"display"`` for HTML output, ``"db"`` for storage.

    Examples:
        >>> esc_url("example.com/path")
        'http://example.com/path'
        >>> esc_url("javascript:alert(1)")
        ''
    """
    if url == "":
        return url
    original_url = url

    url = url.replace(" ", "%20")
    url = _DISALLOWED_CHARS_RE.sub("", url)
    if url == "":
        return url

    if not url.lower().startswith("mailto:"):
        url = deep_replace(_HEADER_INJECTION, url)
        if url == "":
            return url

    url = url.replace(";//", "://")

    # No scheme: presume http unless relative (/, #, ?) or a bare .php file.
    if ":" not in url and url[0] not in "/#?" and not _PHP_FILE_RE.match(url):
        url = "http://" + url

    if context == "display":
        url = normalize_entities(url)
        url = url.replace("&amp;", "&#038;")
        url = url.replace("'", "&#039;")

    if "[" in url or "]" in url:
        url = _escape_brackets(url)

    if url[0] == "/":
        return url

    if protocols is None:
        protocols = ALLOWED_PROTOCOLS
    good_protocol_url = bad_protocol(url, protocols)
    if good_protocol_url.lower() != url.lower():
        logger.debug("Rejected URL %r (disallowed or malformed scheme)", original_url)
        return ""
    return good_protocol_url


def esc_url_raw(url: str, protocols: Iterable[str] | None = None) -> str:
    """:func:`esc_url` for storage: no entity encoding."""
    return esc_url(url, protocols, "db")
