from __future__ import annotations

import pytest

from runtime_class.extract import mask_comments, mask_comments_and_strings, match_closing_brace


def test_masking_preserves_offsets_and_line_count() -> None:
    source = "a = 'x{y}';\n/* {\n} */ b = `t`; // {\nc"

    masked = mask_comments_and_strings(source)

    assert len(masked) == len(source)
    assert masked.count("\n") == source.count("\n")
    assert "{" not in masked
    assert "}" not in masked
    assert masked.split() == ["a", "=", ";", "b", "=", ";", "c"]


def test_unterminated_comment_and_string_are_handled_safely() -> None:
    source = 'start /* comment\nnext = "unterminated\nfinal'

    masked = mask_comments_and_strings(source)

    assert masked.count("\n") == source.count("\n")
    assert masked.split() == ["start"]


def test_escaped_quote_does_not_close_string() -> None:
    source = "x = 'a\\'{'; y"

    masked = mask_comments_and_strings(source)

    assert "{" not in masked
    assert masked.split() == ["x", "=", ";", "y"]


def test_hash_is_not_a_comment_in_javascript_rules() -> None:
    source = "class A { #secret = 1 }"

    assert mask_comments_and_strings(source) == source


def test_regex_literal_contents_are_masked() -> None:
    source = "const re = /['}{]\\//g; x"

    masked = mask_comments_and_strings(source)

    assert "{" not in masked
    assert "}" not in masked
    assert masked.split() == ["const", "re", "=", "g;", "x"]


def test_slash_after_operand_is_division() -> None:
    source = "half = total / 2 / count; next = { a: 1 }"

    assert mask_comments_and_strings(source) == source


def test_template_interpolation_code_stays_visible() -> None:
    source = "t = `a {${ fn({ k: 'v' }) } b}`; z"

    masked = mask_comments_and_strings(source)

    assert len(masked) == len(source)
    assert masked.split() == ["t", "=", "fn({", "k:", "})", ";", "z"]


def test_nested_template_inside_interpolation() -> None:
    source = "`${ `${ x }` }{`; y = {}"

    masked = mask_comments_and_strings(source)

    assert masked.split() == ["x", ";", "y", "=", "{}"]


def test_jsx_apostrophe_only_masks_to_line_end() -> None:
    source = "<p>Don't {go}</p>\nconst c = { a: 1 }"

    masked = mask_comments_and_strings(source)

    assert masked.splitlines()[1] == "const c = { a: 1 }"


def test_match_closing_brace_handles_nesting() -> None:
    text = "{ a { b } { c { d } } }"

    assert match_closing_brace(text, 0) == len(text) - 1
    assert match_closing_brace(text, 4) == 8


def test_match_closing_brace_returns_none_when_unbalanced() -> None:
    assert match_closing_brace("{ { }", 0) is None


def test_match_closing_brace_requires_open_char_at_offset() -> None:
    with pytest.raises(ValueError, match="No '\\{'"):
        match_closing_brace("abc", 0)


def test_jsx_closing_tag_is_not_a_regex() -> None:
    source = "<b>Hi</b><i>{x}</i>"

    assert mask_comments_and_strings(source) == source


def test_mask_comments_keeps_string_contents() -> None:
    source = "a = 'x // y'; // gone {\nb = \"{z}\" /* gone */"

    masked = mask_comments(source)

    assert len(masked) == len(source)
    assert masked.split() == ["a", "=", "'x", "//", "y';", "b", "=", '"{z}"']
