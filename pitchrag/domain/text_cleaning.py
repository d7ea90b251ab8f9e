import re

_NULL_RE = re.compile("\x00")
_CONTROL_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
# Supplementary planes, plus lone surrogates, which PostgreSQL rejects
_OUTSIDE_BMP_RE = re.compile("[\U00010000-\U0010ffff\ud800-\udfff]")
# U+FEFF counts as whitespace so a byte order mark never survives into a chunk
_WHITESPACE_RE = re.compile(r"[\s\ufeff]+")


def sanitize_text(raw: str) -> str:
    """
    Normalizes extracted text so it is safe to store and embed.

    Null characters are removed, the remaining C0 controls and DEL become a
    space, characters outside the Basic Multilingual Plane are dropped, and
    whitespace runs (including U+FEFF) collapse to a single space. The
    result is trimmed.
    Applying it twice gives the same result as applying it once.
    """
    if not raw:
        return ""
    text = _NULL_RE.sub("", raw)
    text = _CONTROL_RE.sub(" ", text)
    text = _OUTSIDE_BMP_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()
