"""Tests for blogfmt.cli commands."""

import orjson
from click.testing import CliRunner

from blogfmt import cli
from blogfmt.cli import main
from blogfmt.fetch import FetchResult


def _invoke(args, **kwargs):
    kwargs.setdefault("env", {"BLOGFMT_LOCALE": "en_US"})
    return CliRunner().invoke(main, args, **kwargs)


class TestAutopCommand:
    def test_stdin(self):
        result = _invoke(["autop", "-"], input="Hello\n\nWorld")
        assert result.exit_code == 0
        assert result.stdout == "<p>Hello</p>\n<p>World</p>\n"

    def test_stdin_without_deprecation_warnings(self, recwarn):
        result = _invoke(["autop", "-"], input="Hello")
        assert result.exit_code == 0
        assert result.stdout == "<p>Hello</p>\n"
        messages = [str(w.message) for w in recwarn if issubclass(w.category, DeprecationWarning)]
        assert not any("get_text_stream" in m for m in messages)

    def test_no_br(self):
        result = _invoke(["autop", "--no-br", "-"], input="a\nb")
        assert result.stdout == "<p>a\nb</p>\n"

    def test_file_to_output_dir(self, tmp_path):
        source = tmp_path / "post.txt"
        source.write_text("One\n\nTwo", encoding="utf-8")
        out_dir = tmp_path / "out"
        result = _invoke(["autop", str(source), "-o", f"{out_dir}/"])
        assert result.exit_code == 0
        saved = out_dir / "post.html"
        assert saved.read_text(encoding="utf-8") == "<p>One</p>\n<p>Two</p>\n"

    def test_missing_source(self, tmp_path):
        result = _invoke(["autop", str(tmp_path / "nope.txt")])
        assert result.exit_code == 1
        assert "Source must be" in result.output

    def test_url_source(self, monkeypatch):
        async def fake_fetch(url, timeout):
            return FetchResult(html="First\n\nSecond", url=url, status=200)

        monkeypatch.setattr(cli, "_fetch", fake_fetch)
        result = _invoke(["autop", "https://example.com/post"])
        assert result.exit_code == 0
        assert result.stdout == "<p>First</p>\n<p>Second</p>\n"

    def test_url_source_http_error(self, monkeypatch):
        async def fake_fetch(url, timeout):
            return FetchResult(html="", url=url, status=404)

        monkeypatch.setattr(cli, "_fetch", fake_fetch)
        result = _invoke(["autop", "https://example.com/missing"])
        assert result.exit_code == 1
        assert "HTTP 404" in result.output


class TestFilterCommands:
    def test_filter(self):
        result = _invoke(["filter", "-"], input="<script>alert(1)</script><b>hi</b>")
        assert result.stdout == "<strong>hi</strong>\n"

    def test_filter_allow_from_environment(self):
        result = _invoke(
            ["filter", "-"], input="<h2>T</h2>",
            env={"BLOGFMT_ALLOWED_TAGS": "<h2>", "BLOGFMT_LOCALE": "en_US"},
        )
        assert result.stdout == "<h2>T</h2>\n"

    def test_unautop(self):
        result = _invoke(["unautop", "-"], input="<p>One</p><p>Two</p>")
        assert result.stdout == "One\n\nTwo\n"

    def test_split_json(self):
        result = _invoke(["split", "-"], input="a<b>c")
        assert orjson.loads(result.stdout) == [
            {"kind": "text", "value": "a"},
            {"kind": "tag", "value": "<b>"},
            {"kind": "text", "value": "c"},
        ]

    def test_excerpt(self):
        result = _invoke(["excerpt", "--length", "5", "-"], input="<p>abcdefgh</p>")
        assert result.stdout == "abcde...\n"


class TestUrlCommand:
    def test_clean_and_rejected(self):
        result = _invoke(["url", "example.com/path", "javascript:alert(1)"])
        assert result.exit_code == 0
        assert result.stdout == "http://example.com/path\n\n"

    def test_raw(self):
        result = _invoke(["url", "--raw", "http://example.com/?a=1&b=2"])
        assert result.stdout == "http://example.com/?a=1&b=2\n"

    def test_protocol_option(self):
        result = _invoke(["url", "--protocol", "https", "http://example.com"])
        assert result.stdout == "\n"

    def test_strict(self):
        result = _invoke(["url", "--strict", "javascript:alert(1)"])
        assert result.exit_code == 1
        assert "Rejected URL" in result.output


class TestSlugCommands:
    def test_slug_with_taken(self):
        result = _invoke(["slug", "Foo", "--taken", "foo", "--taken", "foo-1"])
        assert result.exit_code == 0
        assert result.stdout == "foo-2\n"

    def test_slug_taken_file(self, tmp_path):
        taken = tmp_path / "taken.txt"
        taken.write_text("hello-world\n\nhello-world-1\n", encoding="utf-8")
        result = _invoke(["slug", "Hello World", "--taken-file", str(taken)])
        assert result.stdout == "hello-world-2\n"

    def test_slug_attempts_exhausted(self):
        result = _invoke(
            ["slug", "Foo", "--taken", "foo", "--taken", "foo-1"],
            env={"BLOGFMT_MAX_SLUG_ATTEMPTS": "2", "BLOGFMT_LOCALE": "en_US"},
        )
        assert result.exit_code == 1
        assert "no free slug" in result.output

    def test_accents_global_locale(self):
        result = _invoke(["--locale", "de_DE", "accents", "Müller"])
        assert result.stdout == "Mueller\n"

    def test_accents_locale_from_environment(self):
        result = _invoke(["accents", "Müller"], env={"BLOGFMT_LOCALE": "de_DE"})
        assert result.stdout == "Mueller\n"

    def test_accents_command_locale_overrides(self):
        result = _invoke(["--locale", "de_DE", "accents", "--locale", "da_DK", "Ærø"])
        assert result.stdout == "Aeroe\n"


class TestSettingsErrors:
    def test_bad_environment_value(self):
        result = _invoke(
            ["accents", "x"],
            env={"BLOGFMT_EXCERPT_LENGTH": "many", "BLOGFMT_LOCALE": "en_US"},
        )
        assert result.exit_code == 1
        assert "BLOGFMT_EXCERPT_LENGTH" in result.output
