"""
Tests for sanitizers — strip_tags, text/textarea cleaning, numbers,
booleans and slugify.  Each sanitizer must be idempotent.
"""

import pytest

from formfields.sanitize import (
    sanitize_text,
    sanitize_textarea,
    slugify,
    strip_tags,
    to_bool,
    to_number,
)


HOSTILE = [
    "#fff;<script>",
    "<script>alert(1)</script>red",
    "<<b>script>alert(1)<</b>/script>",
    "a <b>bold</b> move",
    "  spaced\t\tout \n text ",
    "tail <img src=x onerror=alert(1)",
    "x\x00y\x07z",
    "<style>body{}</style>plain",
]


class TestStripTags:

    def test_removes_tags(self):
        assert strip_tags("a <b>bold</b> move") == "a bold move"

    def test_removes_script_contents(self):
        assert strip_tags("<script>alert(1)</script>red") == "red"
        assert strip_tags("<SCRIPT type='x'>evil()</SCRIPT >ok") == "ok"

    def test_removes_style_contents(self):
        assert strip_tags("<style>body{}</style>plain") == "plain"

    def test_unclosed_opening_tag(self):
        assert strip_tags("#fff;<script>") == "#fff;"
        assert strip_tags("tail <img src=x") == "tail "

    def test_nested_fragments_do_not_reassemble(self):
        assert "<" not in strip_tags("<<b>script>alert(1)<</b>/script>")

    def test_plain_comparison_survives(self):
        assert strip_tags("a < b and c > d") == "a < b and c > d"


class TestSanitizeText:

    def test_background_color_payload(self):
        assert sanitize_text("#fff;<script>") == "#fff;"

    def test_collapses_whitespace(self):
        assert sanitize_text("  spaced\t\tout \n text ") == "spaced out text"

    def test_removes_control_characters(self):
        assert sanitize_text("x\x00y\x07z") == "xyz"

    def test_none_is_empty(self):
        assert sanitize_text(None) == ""

    def test_non_string_is_stringified(self):
        assert sanitize_text(42) == "42"

    def test_max_length(self):
        assert sanitize_text("abcdef", max_length=3) == "abc"

    def test_max_length_cutting_a_tag(self):
        assert sanitize_text("ab<script>", max_length=5) == "ab"

    @pytest.mark.parametrize("raw", HOSTILE)
    def test_idempotent(self, raw):
        once = sanitize_text(raw)
        assert sanitize_text(once) == once


class TestSanitizeTextarea:

    def test_keeps_line_breaks(self):
        assert sanitize_textarea("line one\r\nline  two\rthree") == "line one\nline two\nthree"

    def test_strips_tags(self):
        assert sanitize_textarea("<p>para</p>\n<script>x</script>end") == "para\nend"

    def test_none_is_empty(self):
        assert sanitize_textarea(None) == ""

    @pytest.mark.parametrize("raw", HOSTILE + ["a\n\n  b  \n"])
    def test_idempotent(self, raw):
        once = sanitize_textarea(raw)
        assert sanitize_textarea(once) == once


class TestToNumber:

    def test_parses_float(self):
        assert to_number("3.5") == 3.5

    def test_parses_integer(self):
        assert to_number("3.7", integer=True) == 3
        assert isinstance(to_number("3.7", integer=True), int)

    @pytest.mark.parametrize("raw", [None, "", "  ", "abc", "nan", "inf", True])
    def test_nothing_to_parse(self, raw):
        assert to_number(raw) is None

    def test_clamps(self):
        assert to_number("10", min_value=0, max_value=5) == 5
        assert to_number("-1", min_value=0, max_value=5) == 0

    def test_numbers_pass_through(self):
        assert to_number(2.5) == 2.5
        assert to_number(7, integer=True) == 7

    @pytest.mark.parametrize("raw", ["3.7", "-9", "99", "x", 4.2])
    def test_idempotent(self, raw):
        once = to_number(raw, min_value=0, max_value=10, integer=True)
        assert to_number(once, min_value=0, max_value=10, integer=True) == once


class TestToBool:

    @pytest.mark.parametrize("raw", ["1", "on", "true", "YES", " yes ", True])
    def test_truthy(self, raw):
        assert to_bool(raw) is True

    @pytest.mark.parametrize("raw", [None, "", "0", "off", "no", False, "maybe"])
    def test_falsy(self, raw):
        assert to_bool(raw) is False


class TestSlugify:

    def test_title(self):
        assert slugify("Post Details") == "post-details"

    def test_punctuation_and_accents(self):
        assert slugify("  Café & Crème: Options! ") == "cafe-creme-options"

    def test_underscores_and_runs(self):
        assert slugify("a__b -- c") == "a-b-c"

    def test_empty(self):
        assert slugify("") == ""
        assert slugify(None) == ""
