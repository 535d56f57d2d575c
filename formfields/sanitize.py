"""
Sanitizers — pure transformations from submitted input to storable values.

Every sanitizer here is idempotent: sanitize(sanitize(v)) == sanitize(v).
"""

import math
import re
import unicodedata

_SCRIPT_STYLE = re.compile(r"<(script|style)[^>]*?>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[a-zA-Z/!?][^<>]*>")
_UNCLOSED_TAG = re.compile(r"<[a-zA-Z/!?][^<>]*$")
_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")
_INLINE_SPACE = re.compile(r"[ \t]+")

TRUTHY = ("1", "on", "true", "yes")


def strip_tags(value: str) -> str:
    """Remove markup, including the contents of script and style blocks.

    Repeats until nothing changes so that nested fragments such as
    ``<<b>script>`` cannot reassemble into a tag.
    """
    previous = None
    while previous != value:
        previous = value
        value = _SCRIPT_STYLE.sub("", value)
        value = _TAG.sub("", value)
        value = _UNCLOSED_TAG.sub("", value)
    return value


def sanitize_text(value, max_length=None) -> str:
    """Single-line text: no tags, no control characters, collapsed whitespace."""
    if value is None:
        return ""
    text = _CONTROL.sub("", str(value))
    if max_length is not None:
        text = text[:max_length]
    return _WHITESPACE.sub(" ", strip_tags(text)).strip()


def sanitize_textarea(value, max_length=None) -> str:
    """Multi-line text: like sanitize_text but line breaks survive."""
    if value is None:
        return ""
    text = str(value).replace("\r\n", "\n").replace("\r", "\n")
    text = _CONTROL.sub("", text)
    if max_length is not None:
        text = text[:max_length]
    lines = [_INLINE_SPACE.sub(" ", line).strip() for line in strip_tags(text).split("\n")]
    return "\n".join(lines).strip()


def to_number(value, min_value=None, max_value=None, integer=False):
    """Parse a number, clamp it, return None when there is nothing to parse."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if isinstance(number, float) and not math.isfinite(number):
        return None
    if integer:
        number = int(number)
    if min_value is not None and number < min_value:
        number = int(min_value) if integer else min_value
    if max_value is not None and number > max_value:
        number = int(max_value) if integer else max_value
    return number


def to_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY


def slugify(title: str) -> str:
    """Derive an identifier-safe name from a display title.

    "Post Details" → "post-details"
    """
    text = unicodedata.normalize("NFKD", strip_tags(title or ""))
    text = text.encode("ascii", "ignore").decode("ascii").lower()
    text = re.sub(r"[^a-z0-9\s_-]", "", text)
    text = re.sub(r"[\s_-]+", "-", text)
    return text.strip("-")
