"""Locate the first marker call in source text and slice out its object literal."""

from __future__ import annotations

import re
from dataclasses import dataclass

from runtime_class.config import DEFAULT_MARKER
from runtime_class.extract.lexical import (
    mask_comments,
    mask_comments_and_strings,
    match_closing_brace,
    skip_whitespace,
)

_MARKER_BOUNDARY_TEMPLATE = r"(?<![A-Za-z0-9_$]){token}(?![A-Za-z0-9_$])"


@dataclass(slots=True, frozen=True)
class MarkerCall:
    """Location of one marker call and the raw text of its literal argument."""

    literal: str
    call_start: int
    literal_start: int
    literal_end: int


def find_marker_call(text: str, marker: str = DEFAULT_MARKER) -> MarkerCall | None:
    """Return the first ``marker({...})`` call in ``text``.

    Code positions are searched first, with comments and strings masked. Mentions
    that are not a call with a single object-literal argument (imports, type
    positions, calls with other arguments) are skipped.

    When code holds no call, the search is repeated with only comments masked.
    That picks up calls that a JS reading sees as string contents: Vue and
    Svelte attribute bindings such as ``:class="marker({...})"``, and JSX lines
    after a stray apostrophe in text. The literal's braces are always matched
    with the call's own strings masked.
    """
    if marker not in text:
        return None
    pattern = re.compile(_MARKER_BOUNDARY_TEMPLATE.format(token=re.escape(marker)))

    masked = mask_comments_and_strings(text)
    for match in pattern.finditer(masked):
        found = _call_literal_span(masked, match.end())
        if found is not None:
            return _marker_call(text, match.start(), found)

    for match in pattern.finditer(mask_comments(text)):
        offset = match.end()
        found = _call_literal_span(mask_comments_and_strings(text[offset:]), 0)
        if found is not None:
            return _marker_call(text, match.start(), (found[0] + offset, found[1] + offset))
    return None


def extract(text: str, marker: str = DEFAULT_MARKER) -> str | None:
    """Return the raw object-literal text of the first marker call, or None."""
    call = find_marker_call(text, marker=marker)
    if call is None:
        return None
    return call.literal


def _marker_call(text: str, call_start: int, span: tuple[int, int]) -> MarkerCall:
    literal_start, literal_end = span
    return MarkerCall(
        literal=text[literal_start : literal_end + 1],
        call_start=call_start,
        literal_start=literal_start,
        literal_end=literal_end,
    )


def _call_literal_span(masked: str, cursor: int) -> tuple[int, int] | None:
    cursor = skip_whitespace(masked, cursor)
    if cursor >= len(masked) or masked[cursor] != "(":
        return None
    open_index = skip_whitespace(masked, cursor + 1)
    if open_index >= len(masked) or masked[open_index] != "{":
        return None
    close_index = match_closing_brace(masked, open_index)
    if close_index is None:
        return None
    after = skip_whitespace(masked, close_index + 1)
    if after < len(masked) and masked[after] == ",":
        after = skip_whitespace(masked, after + 1)
    if after >= len(masked) or masked[after] != ")":
        return None
    return open_index, close_index
