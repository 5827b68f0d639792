"""Title sanitizing and unique slug generation."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from typing import Protocol, Union, runtime_checkable
from urllib.parse import unquote

from blogfmt._tags import strip_tags
from blogfmt.accents import remove_accents, seems_utf8

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 1000

# Percent-encoded UTF-8 of nbsp, ndash and mdash
_DASH_OCTETS = ("%c2%a0", "%e2%80%93", "%e2%80%94")
_DASH_ENTITIES = ("&nbsp;", "&#160;", "&ndash;", "&#8211;", "&mdash;", "&#8212;")

_STRIPPED_OCTETS = (
    # iexcl and iquest
    "%c2%a1", "%c2%bf",
    # angle quotes
    "%c2%ab", "%c2%bb", "%e2%80%b9", "%e2%80%ba",
    # curly quotes
    "%e2%80%98", "%e2%80%99", "%e2%80%9c", "%e2%80%9d",
    "%e2%80%9a", "%e2%80%9b", "%e2%80%9e", "%e2%80%9f",
    # copy, reg, deg, hellip and trade
    "%c2%a9", "%c2%ae", "%c2%b0", "%e2%80%a6", "%e2%84%a2",
    # acute accents
    "%c2%b4", "%cb%8a", "%cc%81", "%cd%81",
    # grave accent, macron, caron
    "%cc%80", "%cc%84", "%cc%8c",
)
_TIMES_OCTET = "%c3%97"


class SlugTakenError(Exception):
    """Raised by a commit callback when storage reports the slug is already used."""

    def __init__(self, slug: str):
        super().__init__(f"slug already taken: {slug}")
        self.slug = slug


class SlugUnavailableError(RuntimeError):
    """No free slug was found within the attempt limit."""

    def __init__(self, base: str, attempts: int):
        super().__init__(f"no free slug for {base!r} after {attempts} attempts")
        self.base = base
        self.attempts = attempts


@runtime_checkable
class SlugRepository(Protocol):
    """Storage lookup for one collection of slugs (e.g. articles)."""

    def exists(self, slug: str) -> bool:
        ...


SlugExists = Union[SlugRepository, Callable[[str], bool]]


def _replace_all(text: str, needles, replacement: str) -> str:
    for needle in needles:
        text = text.replace(needle, replacement)
    return text


def sanitize_title(
    title: str,
    fallback_title: str = "",
    context: str = "save",
    locale: str | None = None,
) -> str:
    """Transliterate a title when saving; fall back when it comes out empty."""
    if context == "save":
        title = remove_accents(title, locale)
    if title == "":
        title = fallback_title
    return title


def sanitize_title_with_dashes(title: str, raw_title: str = "", context: str = "display") -> str:
    """Reduce a title to lower-case words joined by hyphens.

    Percent-encoded octets survive as ``%xx``. In ``save`` context nbsp,
    en and em dashes and ``/`` become hyphens, and quotes, punctuation and
    trademark signs are dropped, in both literal and percent-encoded form.
    """
    title = strip_tags(title)
    # Preserve escaped octets, drop other percent signs.
    title = re.sub(r"%([a-fA-F0-9][a-fA-F0-9])", r"---\1---", title)
    title = title.replace("%", "")
    title = re.sub(r"---([a-fA-F0-9][a-fA-F0-9])---", r"%\1", title)

    if seems_utf8(title):
        title = title.lower()

    if context == "save":
        title = _replace_all(title, _DASH_OCTETS, "-")
        title = _replace_all(title, (unquote(o) for o in _DASH_OCTETS), "-")
        title = _replace_all(title, _DASH_ENTITIES, "-")
        title = title.replace("/", "-")
        title = _replace_all(title, _STRIPPED_OCTETS, "")
        title = _replace_all(title, (unquote(o) for o in _STRIPPED_OCTETS), "")
        title = title.replace(_TIMES_OCTET, "x").replace(unquote(_TIMES_OCTET), "x")

    title = re.sub(r"&.+?;", "", title)  # entities
    title = title.replace(".", "-")
    title = re.sub(r"[^%a-z0-9 _-]", "", title)
    title = re.sub(r"\s+", "-", title)
    title = re.sub(r"-+", "-", title)
    return title.strip("-")


def slugify(title: str, locale: str | None = None, fallback: str = "untitled") -> str:
    """Build a URL slug from a title.

    Examples:
        >>> slugify("Crème Brûlée: A How-To")
        'creme-brulee-a-how-to'
        >>> slugify("Straße nach Köln", locale="de_DE")
        'strasse-nach-koeln'
    """
    slug = sanitize_title_with_dashes(remove_accents(title, locale), context="save")
    # Leftover octets are characters with no ASCII fold.
    slug = re.sub(r"%[a-f0-9]{2}", "", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug or fallback


def _exists_func(exists: SlugExists) -> Callable[[str], bool]:
    if isinstance(exists, SlugRepository):
        return exists.exists
    return exists


def _candidates(base: str, max_attempts: int) -> Iterator[str]:
    yield base
    for n in range(1, max_attempts):
        yield f"{base}-{n}"


def unique_slug(
    title: str,
    exists: SlugExists,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    locale: str | None = None,
) -> str:
    """Slugify ``title`` and append ``-1``, ``-2``, ... until ``exists`` says no.

    Raises:
        SlugUnavailableError: every candidate within ``max_attempts`` is taken.
    """
    base = slugify(title, locale)
    is_taken = _exists_func(exists)
    for candidate in _candidates(base, max_attempts):
        if not is_taken(candidate):
            return candidate
        logger.debug("Slug %r exists, trying next suffix", candidate)
    raise SlugUnavailableError(base, max_attempts)


def claim_slug(
    title: str,
    exists: SlugExists,
    commit: Callable[[str], object],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    locale: str | None = None,
) -> str:
    """Find a free slug and store it with ``commit``.

    Two writers can both see a candidate as free; the loser's ``commit``
    raises :class:`SlugTakenError` and the next suffix is tried.
    """
    base = slugify(title, locale)
    is_taken = _exists_func(exists)
    for candidate in _candidates(base, max_attempts):
        if is_taken(candidate):
            continue
        try:
            commit(candidate)
        except SlugTakenError:
            logger.debug("Slug %r was taken concurrently, retrying", candidate)
            continue
        return candidate
    raise SlugUnavailableError(base, max_attempts)
