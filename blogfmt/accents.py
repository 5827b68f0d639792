"""Accent folding: map accented and ligature characters to ASCII."""

from __future__ import annotations

from functools import lru_cache

from blogfmt._tags import strtr
from blogfmt.config import current_locale

CHARS: dict[str, str] = {
    # Latin-1 Supplement
    "ª": "a", "º": "o",
    "À": "A", "Á": "A", "Â": "A", "Ã": "A", "Ä": "A", "Å": "A", "Æ": "AE",
    "Ç": "C", "È": "E", "É": "E", "Ê": "E", "Ë": "E",
    "Ì": "I", "Í": "I", "Î": "I", "Ï": "I", "Ð": "D", "Ñ": "N",
    "Ò": "O", "Ó": "O", "Ô": "O", "Õ": "O", "Ö": "O",
    "Ù": "U", "Ú": "U", "Û": "U", "Ü": "U", "Ý": "Y", "Þ": "TH", "ß": "s",
    "à": "a", "á": "a", "â": "a", "ã": "a", "ä": "a", "å": "a", "æ": "ae",
    "ç": "c", "è": "e", "é": "e", "ê": "e", "ë": "e",
    "ì": "i", "í": "i", "î": "i", "ï": "i", "ð": "d", "ñ": "n",
    "ò": "o", "ó": "o", "ô": "o", "õ": "o", "ö": "o", "ø": "o",
    "ù": "u", "ú": "u", "û": "u", "ü": "u", "ý": "y", "þ": "th", "ÿ": "y",
    "Ø": "O",
    # Latin Extended-A
    "Ā": "A", "ā": "a", "Ă": "A", "ă": "a", "Ą": "A", "ą": "a",
    "Ć": "C", "ć": "c", "Ĉ": "C", "ĉ": "c", "Ċ": "C", "ċ": "c", "Č": "C", "č": "c",
    "Ď": "D", "ď": "d", "Đ": "D", "đ": "d",
    "Ē": "E", "ē": "e", "Ĕ": "E", "ĕ": "e", "Ė": "E", "ė": "e",
    "Ę": "E", "ę": "e", "Ě": "E", "ě": "e",
    "Ĝ": "G", "ĝ": "g", "Ğ": "G", "ğ": "g", "Ġ": "G", "ġ": "g", "Ģ": "G", "ģ": "g",
    "Ĥ": "H", "ĥ": "h", "Ħ": "H", "ħ": "h",
    "Ĩ": "I", "ĩ": "i", "Ī": "I", "ī": "i", "Ĭ": "I", "ĭ": "i",
    "Į": "I", "į": "i", "İ": "I", "ı": "i", "Ĳ": "IJ", "ĳ": "ij",
    "Ĵ": "J", "ĵ": "j", "Ķ": "K", "ķ": "k", "ĸ": "k",
    "Ĺ": "L", "ĺ": "l", "Ļ": "L", "ļ": "l", "Ľ": "L", "ľ": "l",
    "Ŀ": "L", "ŀ": "l", "Ł": "L", "ł": "l",
    "Ń": "N", "ń": "n", "Ņ": "N", "ņ": "n", "Ň": "N", "ň": "n",
    "ŉ": "n", "Ŋ": "N", "ŋ": "n",
    "Ō": "O", "ō": "o", "Ŏ": "O", "ŏ": "o", "Ő": "O", "ő": "o",
    "Œ": "OE", "œ": "oe",
    "Ŕ": "R", "ŕ": "r", "Ŗ": "R", "ŗ": "r", "Ř": "R", "ř": "r",
    "Ś": "S", "ś": "s", "Ŝ": "S", "ŝ": "s", "Ş": "S", "ş": "s", "Š": "S", "š": "s",
    "Ţ": "T", "ţ": "t", "Ť": "T", "ť": "t", "Ŧ": "T", "ŧ": "t",
    "Ũ": "U", "ũ": "u", "Ū": "U", "ū": "u", "Ŭ": "U", "ŭ": "u",
    "Ů": "U", "ů": "u", "Ű": "U", "ű": "u", "Ų": "U", "ų": "u",
    "Ŵ": "W", "ŵ": "w", "Ŷ": "Y", "ŷ": "y", "Ÿ": "Y",
    "Ź": "Z", "ź": "z", "Ż": "Z", "ż": "z", "Ž": "Z", "ž": "z",
    "ſ": "s",
    # Latin Extended-B
    "Ș": "S", "ș": "s", "Ț": "T", "ț": "t",
    # Currency
    "€": "E", "£": "",
    # Vietnamese: unmarked
    "Ơ": "O", "ơ": "o", "Ư": "U", "ư": "u",
    # Vietnamese: grave
    "Ầ": "A", "ầ": "a", "Ằ": "A", "ằ": "a", "Ề": "E", "ề": "e",
    "Ồ": "O", "ồ": "o", "Ờ": "O", "ờ": "o", "Ừ": "U", "ừ": "u", "Ỳ": "Y", "ỳ": "y",
    # Vietnamese: hook
    "Ả": "A", "ả": "a", "Ẩ": "A", "ẩ": "a", "Ẳ": "A", "ẳ": "a",
    "Ẻ": "E", "ẻ": "e", "Ể": "E", "ể": "e", "Ỉ": "I", "ỉ": "i",
    "Ỏ": "O", "ỏ": "o", "Ổ": "O", "ổ": "o", "Ở": "O", "ở": "o",
    "Ủ": "U", "ủ": "u", "Ử": "U", "ử": "u", "Ỷ": "Y", "ỷ": "y",
    # Vietnamese: tilde
    "Ẫ": "A", "ẫ": "a", "Ẵ": "A", "ẵ": "a", "Ẽ": "E", "ẽ": "e", "Ễ": "E", "ễ": "e",
    "Ỗ": "O", "ỗ": "o", "Ỡ": "O", "ỡ": "o", "Ữ": "U", "ữ": "u", "Ỹ": "Y", "ỹ": "y",
    # Vietnamese: acute
    "Ấ": "A", "ấ": "a", "Ắ": "A", "ắ": "a", "Ế": "E", "ế": "e",
    "Ố": "O", "ố": "o", "Ớ": "O", "ớ": "o", "Ứ": "U", "ứ": "u",
    # Vietnamese: dot below
    "Ạ": "A", "ạ": "a", "Ậ": "A", "ậ": "a", "Ặ": "A", "ặ": "a",
    "Ẹ": "E", "ẹ": "e", "Ệ": "E", "ệ": "e", "Ị": "I", "ị": "i",
    "Ọ": "O", "ọ": "o", "Ộ": "O", "ộ": "o", "Ợ": "O", "ợ": "o",
    "Ụ": "U", "ụ": "u", "Ự": "U", "ự": "u", "Ỵ": "Y", "ỵ": "y",
    # Hanyu Pinyin
    "ɑ": "a",
    "Ǖ": "U", "ǖ": "u", "Ǘ": "U", "ǘ": "u",
    "Ǎ": "A", "ǎ": "a", "Ǐ": "I", "ǐ": "i", "Ǒ": "O", "ǒ": "o",
    "Ǔ": "U", "ǔ": "u", "Ǚ": "U", "ǚ": "u", "Ǜ": "U", "ǜ": "u",
}

LOCALE_OVERLAYS: dict[str, dict[str, str]] = {
    "de": {"Ä": "Ae", "ä": "ae", "Ö": "Oe", "ö": "oe", "Ü": "Ue", "ü": "ue", "ß": "ss"},
    "da": {"Æ": "Ae", "æ": "ae", "Ø": "Oe", "ø": "oe", "Å": "Aa", "å": "aa"},
    "ca": {"l·l": "ll"},
    "sr": {"Đ": "DJ", "đ": "dj"},
}

_OVERLAY_FOR_LOCALE = {
    "de_DE": "de", "de_DE_formal": "de", "de_CH": "de", "de_CH_informal": "de",
    "da_DK": "da",
    "ca": "ca",
    "sr_RS": "sr", "bs_BA": "sr",
}

# Windows-1252 / ISO-8859-1 bytes, position for position.
_LEGACY_IN = (
    b"\x80\x83\x8a\x8e\x9a\x9e"
    b"\x9f\xa2\xa5\xb5\xc0\xc1\xc2"
    b"\xc3\xc4\xc5\xc7\xc8\xc9\xca"
    b"\xcb\xcc\xcd\xce\xcf\xd1\xd2"
    b"\xd3\xd4\xd5\xd6\xd8\xd9\xda"
    b"\xdb\xdc\xdd\xe0\xe1\xe2\xe3"
    b"\xe4\xe5\xe7\xe8\xe9\xea\xeb"
    b"\xec\xed\xee\xef\xf1\xf2\xf3"
    b"\xf4\xf5\xf6\xf8\xf9\xfa\xfb"
    b"\xfc\xfd\xff"
)
_LEGACY_OUT = b"EfSZszYcYuAAAAAACEEEEIIIINOOOOOOUUUUYaaaaaaceeeeiiiinoooooouuuuyy"
_LEGACY_TABLE = bytes.maketrans(_LEGACY_IN, _LEGACY_OUT)
_LEGACY_DOUBLE = (
    (b"\x8c", b"OE"), (b"\x9c", b"oe"), (b"\xc6", b"AE"), (b"\xd0", b"DH"),
    (b"\xde", b"TH"), (b"\xdf", b"ss"), (b"\xe6", b"ae"), (b"\xf0", b"dh"),
    (b"\xfe", b"th"),
)


def seems_utf8(data: bytes | str) -> bool:
    """Check whether ``data`` is well-formed UTF-8, accepting legacy 5/6-byte forms.

    Each lead byte announces how many ``10xxxxxx`` continuation bytes follow;
    any other lead pattern, a bad continuation or truncation fails.
    """
    if isinstance(data, str):
        data = data.encode("utf-8", "surrogatepass")
    length = len(data)
    i = 0
    while i < length:
        c = data[i]
        if c < 0x80:
            n = 0
        elif c & 0xE0 == 0xC0:
            n = 1
        elif c & 0xF0 == 0xE0:
            n = 2
        elif c & 0xF8 == 0xF0:
            n = 3
        elif c & 0xFC == 0xF8:
            n = 4
        elif c & 0xFE == 0xFC:
            n = 5
        else:
            return False
        for _ in range(n):
            i += 1
            if i == length or data[i] & 0xC0 != 0x80:
                return False
        i += 1
    return True


def overlay_name(locale: str) -> str | None:
    """Name of the overlay a locale selects (``"de_DE"`` -> ``"de"``), if any."""
    return _OVERLAY_FOR_LOCALE.get(locale.replace("-", "_"))


@lru_cache(maxsize=None)
def _tables(overlay: str | None) -> tuple[dict[int, str], dict[str, str]]:
    chars = dict(CHARS)
    if overlay:
        chars.update(LOCALE_OVERLAYS[overlay])
    single = {ord(k): v for k, v in chars.items() if len(k) == 1}
    multi = {k: v for k, v in chars.items() if len(k) > 1}
    return single, multi


def _remove_legacy_accents(data: bytes) -> str:
    data = data.translate(_LEGACY_TABLE)
    for raw, ascii_ in _LEGACY_DOUBLE:
        data = data.replace(raw, ascii_)
    return data.decode("latin-1")


def remove_accents(text: str | bytes, locale: str | None = None) -> str:
    """Convert accented characters to their ASCII equivalents.

    Args:
        text: Text to fold. Bytes that are not valid UTF-8 are treated as a
            single-byte Latin-1 / Windows-1252 string.
        locale: Selects digraph overlays (German ``ä`` -> ``ae``, Danish
            ``å`` -> ``aa``, ...). Defaults to :func:`config.current_locale`.

    Examples:
        >>> remove_accents("café", "en")
        'cafe'
        >>> remove_accents("Müller", "de_DE")
        'Mueller'
    """
    if isinstance(text, bytes):
        if text.isascii():
            return text.decode("ascii")
        if not seems_utf8(text):
            return _remove_legacy_accents(text)
        # 5/6-byte legacy sequences and surrogates have no code point
        text = text.decode("utf-8", errors="replace")
    elif text.isascii():
        return text

    if locale is None:
        locale = current_locale()
    single, multi = _tables(overlay_name(locale))
    if multi:
        text = strtr(text, multi)
    return text.translate(single)
