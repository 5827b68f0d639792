"""Tests for blogfmt.sanitize module."""

from blogfmt.sanitize import filter_html, map_deep, stripslashes, stripslashes_deep, unslash


class TestFilterHtml:
    def test_script_dropped_bold_kept(self):
        assert filter_html("<script>alert(1)</script><b>hi</b>") == "<strong>hi</strong>"

    def test_anchor_event_handler_dropped(self):
        html = '<a href="http://x" onclick="evil()">link</a>'
        assert filter_html(html) == '<a href="http://x">link</a>'

    def test_anchor_keeps_title_and_target(self):
        html = '<a href="/x" title="T" target="_blank" rel="nofollow">x</a>'
        assert filter_html(html) == '<a href="/x" title="T" target="_blank">x</a>'

    def test_anchor_attribute_order_kept(self):
        html = '<a target="_blank" title="T" href="/x">x</a>'
        assert filter_html(html) == html

    def test_italic_becomes_em(self):
        assert filter_html("<i>x</i>") == "<em>x</em>"

    def test_attributes_removed_from_other_tags(self):
        html = '<ul class="x"><li style="color: red">a</li></ul>'
        assert filter_html(html) == "<ul><li>a</li></ul>"

    def test_nbsp_and_empty_paragraphs_removed(self):
        assert filter_html("<p>&nbsp;</p>Text") == "Text"

    def test_extra_allowed_tags(self):
        result = filter_html("<p>Hi</p><h2>T</h2>", "<p>")
        assert "<p>Hi</p>" in result
        assert "<h2>" not in result

    def test_unslashes_input(self):
        assert filter_html("It\\'s <b>bold</b>") == "It's <strong>bold</strong>"

    def test_outer_whitespace_trimmed(self):
        assert filter_html("  <strong>x</strong>  ") == "<strong>x</strong>"

    def test_unclosed_tags_do_not_raise(self):
        result = filter_html("<strong>unclosed <em>tags")
        assert result.startswith("<strong>unclosed")

    def test_no_document_wrapper(self):
        result = filter_html("<em>x</em>")
        for wrapper in ("<html", "<head", "<body", "<meta"):
            assert wrapper not in result


class TestSlashes:
    def test_stripslashes(self):
        assert stripslashes("It\\'s") == "It's"
        assert stripslashes("a\\\\b") == "a\\b"
        assert stripslashes('say \\"hi\\"') == 'say "hi"'

    def test_stripslashes_deep(self):
        value = {"a": ["x\\'y", 1], "b": ('\\"',)}
        assert stripslashes_deep(value) == {"a": ["x'y", 1], "b": ('"',)}

    def test_unslash_matches_deep(self):
        assert unslash(["\\'"]) == ["'"]

    def test_map_deep_objects(self):
        class Post:
            def __init__(self):
                self.title = "a"
                self.tags = ["b", "c"]

        post = map_deep(Post(), str.upper)
        assert post.title == "A"
        assert post.tags == ["B", "C"]
