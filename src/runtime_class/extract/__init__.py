"""Marker-call extraction and literal parsing."""

from .lexical import (
    mask_comments,
    mask_comments_and_strings,
    match_closing_brace,
    skip_whitespace,
)
from .literal import MalformedLiteralError, normalize_literal, parse
from .marker import MarkerCall, extract, find_marker_call

__all__ = [
    "MalformedLiteralError",
    "MarkerCall",
    "extract",
    "find_marker_call",
    "mask_comments",
    "mask_comments_and_strings",
    "match_closing_brace",
    "normalize_literal",
    "parse",
    "skip_whitespace",
]
