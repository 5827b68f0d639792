"""Entity and protocol filtering (the "kses" family).

These helpers back :func:`blogfmt.urls.esc_url`. They operate on plain
strings and never raise on malformed input.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

ALLOWED_PROTOCOLS: tuple[str, ...] = (
    "http", "https", "ftp", "ftps", "mailto", "news", "irc", "gopher",
    "nntp", "feed", "telnet", "mms", "rtsp", "svn", "tel", "fax", "xmpp",
    "webcal", "urn",
)

ALLOWED_ENTITY_NAMES = frozenset({
    "nbsp", "iexcl", "cent", "pound", "curren", "yen", "brvbar", "sect",
    "uml", "copy", "ordf", "laquo", "not", "shy", "reg", "macr", "deg",
    "plusmn", "acute", "micro", "para", "middot", "cedil", "ordm", "raquo",
    "iquest", "Agrave", "Aacute", "Acirc", "Atilde", "Auml", "Aring",
    "AElig", "Ccedil", "Egrave", "Eacute", "Ecirc", "Euml", "Igrave",
    "Iacute", "Icirc", "Iuml", "ETH", "Ntilde", "Ograve", "Oacute",
    "Ocirc", "Otilde", "Ouml", "times", "Oslash", "Ugrave", "Uacute",
    "Ucirc", "Uuml", "Yacute", "THORN", "szlig", "agrave", "aacute",
    "acirc", "atilde", "auml", "aring", "aelig", "ccedil", "egrave",
    "eacute", "ecirc", "euml", "igrave", "iacute", "icirc", "iuml", "eth",
    "ntilde", "ograve", "oacute", "ocirc", "otilde", "ouml", "divide",
    "oslash", "ugrave", "uacute", "ucirc", "uuml", "yacute", "thorn",
    "yuml", "quot", "amp", "lt", "gt", "apos", "OElig", "oelig", "Scaron",
    "scaron", "Yuml", "circ", "tilde", "ensp", "emsp", "thinsp", "zwnj",
    "zwj", "lrm", "rlm", "ndash", "mdash", "lsquo", "rsquo", "sbquo",
    "ldquo", "rdquo", "bdquo", "dagger", "Dagger", "permil", "lsaquo",
    "rsaquo", "euro", "fnof", "Alpha", "Beta", "Gamma", "Delta", "Epsilon",
    "Zeta", "Eta", "Theta", "Iota", "Kappa", "Lambda", "Mu", "Nu", "Xi",
    "Omicron", "Pi", "Rho", "Sigma", "Tau", "Upsilon", "Phi", "Chi", "Psi",
    "Omega", "alpha", "beta", "gamma", "delta", "epsilon", "zeta", "eta",
    "theta", "iota", "kappa", "lambda", "mu", "nu", "xi", "omicron", "pi",
    "rho", "sigmaf", "sigma", "tau", "upsilon", "phi", "chi", "psi",
    "omega", "thetasym", "upsih", "piv", "bull", "hellip", "prime", "Prime",
    "oline", "frasl", "weierp", "image", "real", "trade", "alefsym", "larr",
    "uarr", "rarr", "darr", "harr", "crarr", "lArr", "uArr", "rArr", "dArr",
    "hArr", "forall", "part", "exist", "empty", "nabla", "isin", "notin",
    "ni", "prod", "sum", "minus", "lowast", "radic", "prop", "infin", "ang",
    "and", "or", "cap", "cup", "int", "sim", "cong", "asymp", "ne", "equiv",
    "le", "ge", "sub", "sup", "nsub", "sube", "supe", "oplus", "otimes",
    "perp", "sdot", "lceil", "rceil", "lfloor", "rfloor", "lang", "rang",
    "loz", "spades", "clubs", "hearts", "diams", "sup1", "sup2", "sup3",
    "frac14", "frac12", "frac34", "there4",
})

MAX_PROTOCOL_PASSES = 6
MAX_FEED_DEPTH = 2

_NAMED_RE = re.compile(r"&amp;([A-Za-z]{2,8}[0-9]{0,2});")
_DECIMAL_RE = re.compile(r"&amp;#(0*[0-9]{1,7});")
_HEX_RE = re.compile(r"&amp;#[Xx](0*[0-9A-Fa-f]{1,6});")

_CONTROL_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F]")
_SLASH_ZERO_RE = re.compile(r"\\+0+")

_SCHEME_SPLIT_RE = re.compile(r":|&#0*58;|&#x0*3a;", re.I)

# PHP trim() character set.
_TRIM_CHARS = " \t\n\r\x00\x0b"

# Decimal entity values saturate like a signed 64-bit integer.
_INT_MAX = 2**63 - 1


def valid_unicode(code: int) -> bool:
    return (
        code in (0x9, 0xA, 0xD)
        or 0x20 <= code <= 0xD7FF
        or 0xE000 <= code <= 0xFFFD
        or 0x10000 <= code <= 0x10FFFF
    )


def _decimal_value(digits: str) -> int:
    digits = digits.lstrip("0") or "0"
    if len(digits) > 19:
        return _INT_MAX
    return min(int(digits), _INT_MAX)


def _named_entity(match: re.Match) -> str:
    name = match.group(1)
    if name in ALLOWED_ENTITY_NAMES:
        return f"&{name};"
    return f"&amp;{name};"


def _decimal_entity(match: re.Match) -> str:
    digits = match.group(1)
    if digits == "0":
        return ""
    if valid_unicode(_decimal_value(digits)):
        return "&#" + digits.lstrip("0").rjust(3, "0") + ";"
    return f"&amp;#{digits};"


def _hex_entity(match: re.Match) -> str:
    digits = match.group(1)
    if digits == "0":
        return ""
    if valid_unicode(int(digits, 16)):
        return "&#x" + digits.lstrip("0") + ";"
    return f"&amp;#x{digits};"


def normalize_entities(text: str) -> str:
    """Disarm every ``&``, then re-light whitelisted and valid numeric entities.

    Examples:
        >>> normalize_entities("a & b &copy; &#38; &bogus;")
        'a &amp; b &copy; &#038; &amp;bogus;'
    """
    text = text.replace("&", "&amp;")
    text = _NAMED_RE.sub(_named_entity, text)
    text = _DECIMAL_RE.sub(_decimal_entity, text)
    return _HEX_RE.sub(_hex_entity, text)


def decode_entities(text: str) -> str:
    """Decode decimal and hex numeric entities; named entities are left alone."""
    text = re.sub(r"&#([0-9]+);", lambda m: chr(_decimal_value(m.group(1)) % 256), text)
    return re.sub(r"&#[Xx]([0-9A-Fa-f]+);", lambda m: chr(int(m.group(1), 16) % 256), text)


def no_null(text: str, slash_zero: bool = True) -> str:
    """Remove control characters and, by default, ``\\0`` sequences."""
    text = _CONTROL_RE.sub("", text)
    if slash_zero:
        text = _SLASH_ZERO_RE.sub("", text)
    return text


def deep_replace(search: str | Iterable[str], subject: str) -> str:
    """Remove ``search`` values until none remain, including nested ones.

    ``deep_replace("%0D", "%0%0%0DDD")`` gives ``""`` where one pass of
    ``str.replace`` would leave ``"%0%0DD"``.
    """
    needles = [search] if isinstance(search, str) else [s for s in search if s]
    subject = str(subject)
    count = 1
    while count:
        count = 0
        for needle in needles:
            count += subject.count(needle)
            subject = subject.replace(needle, "")
    return subject


def check_protocol(scheme: str, allowed_protocols: Iterable[str]) -> str:
    """Return ``"scheme:"`` if the decoded scheme is allowed, else ``""``."""
    scheme = decode_entities(scheme)
    scheme = re.sub(r"\s", "", scheme, flags=re.ASCII)
    scheme = no_null(scheme).lower()
    if any(scheme == protocol.lower() for protocol in allowed_protocols):
        return f"{scheme}:"
    return ""


def bad_protocol_once(text: str, allowed_protocols: Iterable[str]) -> str:
    """Run one pass of scheme validation.

    A ``feed:`` scheme is unwrapped (``feed:http://...``) at most
    ``MAX_FEED_DEPTH`` times; a deeper chain is rejected.
    """
    allowed_protocols = tuple(allowed_protocols)
    prefix = ""
    depth = 1
    while True:
        parts = _SCHEME_SPLIT_RE.split(text, maxsplit=1)
        if len(parts) < 2 or "/?" in parts[0]:
            break
        rest = parts[1].strip(_TRIM_CHARS)
        protocol = check_protocol(parts[0], allowed_protocols)
        if protocol != "feed:":
            text = protocol + rest
            break
        if depth > MAX_FEED_DEPTH:
            return ""
        prefix += protocol
        text = rest
        depth += 1

    if prefix and not text:
        return ""
    return prefix + text


def bad_protocol(text: str, allowed_protocols: Iterable[str]) -> str:
    """Strip disallowed schemes until stable; ``""`` if that takes too many passes."""
    allowed_protocols = tuple(allowed_protocols)
    text = no_null(text)
    passes = 0
    while True:
        original = text
        text = bad_protocol_once(text, allowed_protocols)
        passes += 1
        if original == text or passes >= MAX_PROTOCOL_PASSES:
            break

    if original != text:
        return ""
    return text
