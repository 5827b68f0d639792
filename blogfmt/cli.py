"""blogfmt CLI - Click command definitions and main entry point."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn

from blogfmt._tags import html_split
from blogfmt.accents import remove_accents
from blogfmt.autop import autop, reverse_autop
from blogfmt.config import Settings, load_settings
from blogfmt.extract import excerpt
from blogfmt.output import dump_json, resolve_output_path, save_json, save_text
from blogfmt.sanitize import filter_html
from blogfmt.slugs import SlugUnavailableError, unique_slug
from blogfmt.urls import esc_url
from blogfmt.utils import url_to_slug

console = Console(stderr=True)

_output_option = click.option(
    "-o", "--output", "output_path", type=click.Path(), default=None,
    help="Output file or directory. Omit for stdout.",
)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose progress output")
@click.option("--locale", default=None, envvar="BLOGFMT_LOCALE",
              help="Locale for transliteration (e.g. de_DE, da_DK)")
@click.option("--timeout", default=30, help="Fetch timeout in seconds for URL sources")
@click.pass_context
def main(ctx: click.Context, verbose: bool, locale: str | None, timeout: int):
    """Format, sanitize and slugify blog content.

    SOURCE arguments can be a local file, an http(s) URL, or - for stdin.

    \b
    Examples:
        blogfmt autop post.txt                     # paragraphs to stdout
        blogfmt filter draft.html -o out/          # sanitized copy
        blogfmt url "example.com/a b"              # http://example.com/a%20b
        blogfmt slug "Hello World" --taken hello-world
        blogfmt --locale de_DE accents "Müller"    # Mueller
    """
    try:
        settings = load_settings()
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    if locale:
        settings = dataclasses.replace(settings, locale=locale)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    ctx.obj = {"settings": settings, "verbose": verbose, "timeout": timeout}


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


async def _fetch(url: str, timeout: int):
    import httpx
    from blogfmt.fetch import fetch_static
    try:
        return await fetch_static(url, timeout=timeout)
    except httpx.ConnectError as e:
        if "CERTIFICATE_VERIFY_FAILED" in str(e):
            console.print(
                "[yellow]SSL verification failed, retrying without verification[/yellow]",
            )
            return await fetch_static(url, timeout=timeout, verify_ssl=False)
        raise


def _read_source(ctx: click.Context, source: str) -> tuple[str, str]:
    """Return (content, filename stem) for a file, URL or stdin SOURCE."""
    if source == "-":
        with click.open_file("-", encoding="utf-8") as f:
            return f.read(), "stdin"

    if source.startswith(("http://", "https://")):
        import httpx

        verbose = ctx.obj["verbose"]
        with Progress(
            SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
            console=console, transient=True,
        ) as progress:
            if verbose:
                progress.add_task(description="Fetching...", total=None)
            try:
                result = asyncio.run(_fetch(source, ctx.obj["timeout"]))
            except httpx.HTTPError as e:
                raise click.ClickException(f"Fetching {source} failed: {e}") from e

        if result.status >= 400:
            raise click.ClickException(f"Fetching {source} returned HTTP {result.status}")
        if verbose:
            console.print(f"[dim]Fetched {len(result.html)} chars from {result.url}[/dim]")
        return result.html, url_to_slug(result.url)

    path = Path(source)
    if path.is_file():
        return path.read_text(encoding="utf-8"), path.stem

    raise click.ClickException(
        f"Source must be a URL (http/https), - or an existing file: {source}"
    )


def _emit(text: str, output_path: str | None, stem: str, suffix: str = ".html") -> None:
    if output_path:
        out = resolve_output_path(output_path, stem, suffix)
        save_text(text, out)
        console.print(f"[green]Saved:[/green] {out}")
    else:
        click.echo(text, nl=not text.endswith("\n"))


@main.command("autop")
@click.argument("source")
@click.option("--no-br", is_flag=True, help="Keep single newlines instead of <br />")
@_output_option
@click.pass_context
def autop_command(ctx: click.Context, source: str, no_br: bool, output_path: str | None):
    """Wrap blank-line separated text in <p> elements."""
    content, stem = _read_source(ctx, source)
    _emit(autop(content, br=not no_br), output_path, stem)


@main.command("unautop")
@click.argument("source")
@_output_option
@click.pass_context
def unautop_command(ctx: click.Context, source: str, output_path: str | None):
    """Turn paragraph HTML back into newline-separated, filtered text."""
    content, stem = _read_source(ctx, source)
    _emit(reverse_autop(content), output_path, stem, ".txt")


@main.command("filter")
@click.argument("source")
@click.option("--allow", default=None,
              help='Extra allowed tags, e.g. "<p><h2>" (env: BLOGFMT_ALLOWED_TAGS)')
@_output_option
@click.pass_context
def filter_command(ctx: click.Context, source: str, allow: str | None, output_path: str | None):
    """Strip all but a, strong, em, ol, ul, li (plus --allow) and their attributes."""
    content, stem = _read_source(ctx, source)
    if allow is None:
        allow = _settings(ctx).extra_allowed_tags
    _emit(filter_html(content, allow), output_path, stem)


@main.command("split")
@click.argument("source")
@_output_option
@click.pass_context
def split_command(ctx: click.Context, source: str, output_path: str | None):
    """Dump the text/tag token stream as JSON."""
    content, stem = _read_source(ctx, source)
    tokens = [
        {"kind": "tag" if i % 2 else "text", "value": value}
        for i, value in enumerate(html_split(content))
    ]
    if output_path:
        out = resolve_output_path(output_path, f"{stem}_tokens", ".json")
        size = save_json(tokens, out)
        size_str = f" ({size} bytes)" if ctx.obj["verbose"] else ""
        console.print(f"[green]Saved:[/green] {out}{size_str}")
    else:
        click.echo(dump_json(tokens).decode())


@main.command("excerpt")
@click.argument("source")
@click.option("--length", default=None, type=click.IntRange(1),
              help="Maximum characters (env: BLOGFMT_EXCERPT_LENGTH, default 250)")
@click.pass_context
def excerpt_command(ctx: click.Context, source: str, length: int | None):
    """Print a plain-text teaser of SOURCE."""
    content, _ = _read_source(ctx, source)
    if length is None:
        length = _settings(ctx).excerpt_length
    click.echo(excerpt(content, length))


@main.command("url")
@click.argument("urls", nargs=-1, required=True)
@click.option("--raw", is_flag=True, help="Clean for storage (no entity encoding)")
@click.option("--protocol", "protocols", multiple=True,
              help="Allowed scheme; repeat to allow several (env: BLOGFMT_PROTOCOLS)")
@click.option("--strict", is_flag=True, help="Exit with an error on a rejected URL")
@click.pass_context
def url_command(
    ctx: click.Context, urls: tuple[str, ...], raw: bool,
    protocols: tuple[str, ...], strict: bool,
):
    """Check and escape each URL, one result per line (empty when rejected)."""
    allowed = protocols or _settings(ctx).protocols
    context = "db" if raw else "display"
    for url in urls:
        cleaned = esc_url(url, allowed, context)
        if not cleaned and url:
            if strict:
                raise click.ClickException(f"Rejected URL: {url}")
            console.print(f"[yellow]Rejected:[/yellow] {url}")
        click.echo(cleaned)


@main.command("accents")
@click.argument("text")
@click.option("--locale", default=None, help="Override the global --locale")
@click.pass_context
def accents_command(ctx: click.Context, text: str, locale: str | None):
    """Fold accented characters in TEXT to ASCII."""
    click.echo(remove_accents(text, locale or _settings(ctx).locale))


@main.command("slug")
@click.argument("title")
@click.option("--taken", multiple=True, help="Slug already in use; repeatable")
@click.option("--taken-file", type=click.Path(exists=True, dir_okay=False), default=None,
              help="File with one slug in use per line")
@click.pass_context
def slug_command(
    ctx: click.Context, title: str, taken: tuple[str, ...], taken_file: str | None,
):
    """Print a unique URL slug for TITLE."""
    existing = set(taken)
    if taken_file:
        lines = Path(taken_file).read_text(encoding="utf-8").splitlines()
        existing.update(line.strip() for line in lines if line.strip())

    settings = _settings(ctx)
    try:
        slug = unique_slug(
            title, existing.__contains__,
            max_attempts=settings.max_slug_attempts,
            locale=settings.locale,
        )
    except SlugUnavailableError as e:
        raise click.ClickException(str(e)) from e
    if ctx.obj["verbose"]:
        console.print(f"[dim]Checked against {len(existing)} slugs in use[/dim]")
    click.echo(slug)


if __name__ == "__main__":
    main()
