"""Runtime settings, read from ``BLOGFMT_*`` environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from blogfmt.kses import ALLOWED_PROTOCOLS

DEFAULT_LOCALE = "en_US"


@dataclass(frozen=True)
class Settings:
    """Formatting defaults shared by the library and the CLI."""

    locale: str = DEFAULT_LOCALE
    excerpt_length: int = 250
    extra_allowed_tags: str = ""
    protocols: tuple[str, ...] = ALLOWED_PROTOCOLS
    max_slug_attempts: int = 1000


def _system_locale(environ: Mapping[str, str]) -> str | None:
    """Turn ``LC_ALL``/``LANG`` values like ``de_DE.UTF-8@euro`` into ``de_DE``."""
    for name in ("LC_ALL", "LANG"):
        value = environ.get(name, "")
        value = value.split(".", 1)[0].split("@", 1)[0]
        if value and value not in ("C", "POSIX"):
            return value
    return None


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from the environment, with defaults for anything unset."""
    if environ is None:
        environ = os.environ

    locale = current_locale(environ)

    protocols = ALLOWED_PROTOCOLS
    raw_protocols = environ.get("BLOGFMT_PROTOCOLS")
    if raw_protocols:
        protocols = tuple(p.strip().lower() for p in raw_protocols.split(",") if p.strip())

    return Settings(
        locale=locale,
        excerpt_length=_int_setting(environ, "BLOGFMT_EXCERPT_LENGTH", Settings.excerpt_length),
        extra_allowed_tags=environ.get("BLOGFMT_ALLOWED_TAGS", ""),
        protocols=protocols,
        max_slug_attempts=_int_setting(
            environ, "BLOGFMT_MAX_SLUG_ATTEMPTS", Settings.max_slug_attempts
        ),
    )


def current_locale(environ: Mapping[str, str] | None = None) -> str:
    """Locale used for transliteration when none is passed explicitly."""
    if environ is None:
        environ = os.environ
    return environ.get("BLOGFMT_LOCALE") or _system_locale(environ) or DEFAULT_LOCALE
