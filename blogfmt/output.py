"""File writers for formatted content and JSON reports."""

from __future__ import annotations

from pathlib import Path

import orjson


def resolve_output_path(output_path: str, stem: str, suffix: str) -> Path:
    """Return ``output_path``, or ``<dir>/<stem><suffix>`` when it names a directory."""
    out = Path(output_path)
    if out.is_dir() or output_path.endswith("/"):
        out.mkdir(parents=True, exist_ok=True)
        out = out / f"{stem}{suffix}"
    return out


def save_text(content: str, output_path: Path) -> None:
    """Save HTML or text content to file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")


def dump_json(data: object) -> bytes:
    return orjson.dumps(data, option=orjson.OPT_INDENT_2)


def save_json(data: object, output_path: Path) -> int:
    """Write ``data`` as indented JSON. Returns the size in bytes."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = dump_json(data)
    output_path.write_bytes(payload)
    return len(payload)
