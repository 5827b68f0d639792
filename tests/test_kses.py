"""Tests for blogfmt.kses module."""

from blogfmt.kses import (
    ALLOWED_PROTOCOLS,
    bad_protocol,
    bad_protocol_once,
    check_protocol,
    decode_entities,
    deep_replace,
    no_null,
    normalize_entities,
    valid_unicode,
)


class TestNormalizeEntities:
    def test_bare_ampersand(self):
        assert normalize_entities("a & b") == "a &amp; b"

    def test_known_named_entity_kept(self):
        assert normalize_entities("&copy; 2024") == "&copy; 2024"

    def test_unknown_named_entity_escaped(self):
        assert normalize_entities("&bogus;") == "&amp;bogus;"

    def test_decimal_padded(self):
        assert normalize_entities("&#38;") == "&#038;"

    def test_hex_kept(self):
        assert normalize_entities("&#x41;") == "&#x41;"

    def test_invalid_code_point_escaped(self):
        assert normalize_entities("&#1;") == "&amp;#1;"

    def test_long_zero_padding(self):
        assert normalize_entities("&#" + "0" * 5000 + "65;") == "&#065;"

    def test_idempotent(self):
        once = normalize_entities("a & b &copy; &#38; &#x41; &nope;")
        assert normalize_entities(once) == once


class TestValidUnicode:
    def test_ranges(self):
        assert valid_unicode(0x41)
        assert valid_unicode(0x9)
        assert not valid_unicode(0x1)
        assert not valid_unicode(0xD800)
        assert not valid_unicode(0x110000)


class TestHelpers:
    def test_decode_entities(self):
        assert decode_entities("&#106;&#x61;") == "ja"

    def test_decode_huge_decimal_saturates(self):
        assert decode_entities("&#" + "1" * 5000 + ";") == chr((2**63 - 1) % 256)
        assert decode_entities("&#" + "9" * 20 + ";") == "\xff"
        assert decode_entities("&#000000000000000000000106;") == "j"

    def test_no_null(self):
        assert no_null("a\x00b\x07c\\0d") == "abcd"
        assert no_null("a\\0b", slash_zero=False) == "a\\0b"

    def test_deep_replace_nested(self):
        assert deep_replace("%0D", "%0%0%0DDD") == ""

    def test_deep_replace_many_needles(self):
        assert deep_replace(["%0d", "%0a"], "a%0%0ddb%0a") == "ab"


class TestCheckProtocol:
    def test_allowed_scheme_lowercased(self):
        assert check_protocol("HTTP", ALLOWED_PROTOCOLS) == "http:"

    def test_disallowed_scheme(self):
        assert check_protocol("JavaScript", ALLOWED_PROTOCOLS) == ""

    def test_entity_obfuscated_scheme(self):
        assert check_protocol("ht&#116;p", ALLOWED_PROTOCOLS) == "http:"


class TestBadProtocol:
    def test_javascript_stripped(self):
        assert bad_protocol("javascript:alert(1)", ALLOWED_PROTOCOLS) == "alert(1)"

    def test_entity_colon(self):
        assert bad_protocol("javascript&#58;alert(1)", ALLOWED_PROTOCOLS) == "alert(1)"

    def test_allowed_url_unchanged(self):
        assert bad_protocol("http://example.com", ALLOWED_PROTOCOLS) == "http://example.com"

    def test_feed_wrapping(self):
        url = "feed:http://example.com/rss"
        assert bad_protocol(url, ALLOWED_PROTOCOLS) == url

    def test_feed_too_deep(self):
        assert bad_protocol("feed:feed:feed:http://x", ALLOWED_PROTOCOLS) == ""

    def test_once_is_single_pass(self):
        text = "javascript:javascript:alert(1)"
        assert bad_protocol_once(text, ALLOWED_PROTOCOLS) == "javascript:alert(1)"
        assert bad_protocol(text, ALLOWED_PROTOCOLS) == "alert(1)"
