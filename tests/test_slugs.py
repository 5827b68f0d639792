"""Tests for blogfmt.slugs module."""

import re

import pytest

from blogfmt.slugs import (
    SlugRepository,
    SlugTakenError,
    SlugUnavailableError,
    claim_slug,
    sanitize_title,
    sanitize_title_with_dashes,
    slugify,
    unique_slug,
)

SLUG_RE = re.compile(r"[a-z0-9_]+(?:-[a-z0-9_]+)*")


class InMemoryArticles:
    def __init__(self, slugs):
        self.slugs = set(slugs)

    def exists(self, slug: str) -> bool:
        return slug in self.slugs


class TestSlugify:
    def test_simple(self):
        assert slugify("Foo") == "foo"

    def test_punctuation_and_quotes(self):
        title = "Hello, World! It’s 2024 — “quoted”"
        assert slugify(title, "en_US") == "hello-world-its-2024-quoted"

    def test_dots_and_slashes(self):
        assert slugify("file.name/path") == "file-name-path"

    def test_trimmed_hyphens(self):
        assert slugify("  --Leading and trailing--  ") == "leading-and-trailing"

    def test_accents(self):
        assert slugify("Crème Brûlée", "en_US") == "creme-brulee"
        assert slugify("Straße nach Köln", "de_DE") == "strasse-nach-koeln"

    def test_entities_and_tags(self):
        assert slugify("Tom &amp; Jerry") == "tom-jerry"
        assert slugify("100% <b>Pure</b> 5×5", "en_US") == "100-pure-5x5"

    def test_fallback(self):
        assert slugify("!!!") == "untitled"
        assert slugify("!!!", fallback="post") == "post"

    def test_output_format(self):
        titles = ["Foo Bar", "Ünïcödé Tïtlé", "a -- b", "x/y.z", "Ça va?"]
        for title in titles:
            assert SLUG_RE.fullmatch(slugify(title, "en_US"))


class TestSanitizeTitle:
    def test_transliterates_on_save(self):
        assert sanitize_title("Café", locale="en_US") == "Cafe"

    def test_display_context_untouched(self):
        assert sanitize_title("Café", context="display") == "Café"

    def test_fallback(self):
        assert sanitize_title("", "fallback") == "fallback"

    def test_with_dashes_keeps_octets(self):
        assert sanitize_title_with_dashes("caf%C3%A9 au lait") == "caf%c3%a9-au-lait"

    def test_with_dashes_slash_only_in_save(self):
        assert sanitize_title_with_dashes("a/b") == "ab"
        assert sanitize_title_with_dashes("a/b", context="save") == "a-b"


class TestUniqueSlug:
    def test_suffix_after_taken(self):
        taken = {"foo", "foo-1"}
        assert unique_slug("Foo", taken.__contains__) == "foo-2"

    def test_free_base(self):
        assert unique_slug("Foo", lambda slug: False) == "foo"

    def test_repository(self):
        articles = InMemoryArticles({"hello-world"})
        assert isinstance(articles, SlugRepository)
        assert unique_slug("Hello World", articles) == "hello-world-1"

    def test_bounded(self):
        calls = []

        def always_taken(slug):
            calls.append(slug)
            return True

        with pytest.raises(SlugUnavailableError) as exc_info:
            unique_slug("Foo", always_taken, max_attempts=5)
        assert len(calls) == 5
        assert calls[-1] == "foo-4"
        assert exc_info.value.base == "foo"
        assert exc_info.value.attempts == 5


class TestClaimSlug:
    def test_retries_when_commit_loses_race(self):
        stored = []

        def commit(slug):
            if slug == "foo":
                raise SlugTakenError(slug)
            stored.append(slug)

        assert claim_slug("Foo", lambda slug: False, commit) == "foo-1"
        assert stored == ["foo-1"]

    def test_skips_existing(self):
        articles = InMemoryArticles({"foo"})
        assert claim_slug("Foo", articles, articles.slugs.add) == "foo-1"
        assert "foo-1" in articles.slugs

    def test_gives_up(self):
        def commit(slug):
            raise SlugTakenError(slug)

        with pytest.raises(SlugUnavailableError):
            claim_slug("Foo", lambda slug: False, commit, max_attempts=3)
