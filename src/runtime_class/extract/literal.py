"""Normalize a loosely formatted object literal and parse it into a flat mapping."""

from __future__ import annotations

import json

_IDENTIFIER_START = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_$")
_IDENTIFIER_PART = _IDENTIFIER_START | frozenset("0123456789")
_QUOTES = frozenset("'\"`")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


class MalformedLiteralError(Exception):
    """Raised when literal text cannot be coerced into a flat string mapping."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def normalize_literal(raw: str) -> str:
    """Rewrite object-literal text into JSON text.

    Unquoted identifier keys are quoted, single-quoted and backtick strings are
    re-emitted double-quoted, comments are dropped and a trailing comma before a
    closing brace or bracket is removed. Anything else is copied through so the
    JSON parser reports it.
    """
    output: list[str] = []
    length = len(raw)
    index = 0
    while index < length:
        char = raw[index]
        if raw.startswith("//", index):
            newline = raw.find("\n", index)
            index = length if newline == -1 else newline
            continue
        if raw.startswith("/*", index):
            end = raw.find("*/", index + 2)
            if end == -1:
                raise MalformedLiteralError("Unterminated block comment in literal.")
            index = end + 2
            continue
        if char in _QUOTES:
            value, index = _read_string(raw, index)
            output.append(json.dumps(value))
            continue
        if char in _IDENTIFIER_START:
            end = index + 1
            while end < length and raw[end] in _IDENTIFIER_PART:
                end += 1
            word = raw[index:end]
            if _next_significant(raw, end) == ":":
                output.append(json.dumps(word))
            else:
                output.append(word)
            index = end
            continue
        if char == ",":
            if _next_significant(raw, index + 1) in ("}", "]"):
                index += 1
                continue
        output.append(char)
        index += 1
    return "".join(output)


def parse(raw: str) -> dict[str, str]:
    """Parse raw literal text into an insertion-ordered key -> string mapping."""
    normalized = normalize_literal(raw)
    try:
        payload = json.loads(normalized, object_pairs_hook=_ordered_pairs)
    except json.JSONDecodeError as exc:
        raise MalformedLiteralError(
            f"Literal is not a valid object after normalization: {exc.msg} "
            f"(line {exc.lineno}, column {exc.colno})."
        ) from exc
    if not isinstance(payload, dict):
        raise MalformedLiteralError("Literal must be an object.")
    mapping: dict[str, str] = {}
    for key, value in payload.items():
        if not isinstance(value, str):
            raise MalformedLiteralError(
                f"Value for key '{key}' must be a string, got {_js_type_name(value)}."
            )
        mapping[key] = value
    return mapping


def _ordered_pairs(pairs: list[tuple[str, object]]) -> dict[str, object]:
    output: dict[str, object] = {}
    for key, value in pairs:
        output[key] = value
    return output


def _read_string(raw: str, start: int) -> tuple[str, int]:
    quote = raw[start]
    chars: list[str] = []
    index = start + 1
    length = len(raw)
    while index < length:
        char = raw[index]
        if char == "\\":
            if index + 1 >= length:
                break
            escaped = raw[index + 1]
            if escaped == "\n":
                index += 2
                continue
            if escaped in "ux":
                decoded, index = _read_code_point_escape(raw, index)
                chars.append(decoded)
                continue
            chars.append(_SIMPLE_ESCAPES.get(escaped, escaped))
            index += 2
            continue
        if char == quote:
            return "".join(chars), index + 1
        if quote == "`" and raw.startswith("${", index):
            raise MalformedLiteralError("Template literal interpolation is not a static string.")
        if char == "\n" and quote != "`":
            raise MalformedLiteralError("Unterminated string literal.")
        chars.append(char)
        index += 1
    raise MalformedLiteralError("Unterminated string literal.")


def _next_significant(raw: str, index: int) -> str | None:
    length = len(raw)
    while index < length:
        if raw[index].isspace():
            index += 1
            continue
        if raw.startswith("//", index):
            newline = raw.find("\n", index)
            if newline == -1:
                return None
            index = newline
            continue
        if raw.startswith("/*", index):
            end = raw.find("*/", index + 2)
            if end == -1:
                return None
            index = end + 2
            continue
        return raw[index]
    return None


def _js_type_name(value: object) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    if value is None:
        return "null"
    return type(value).__name__


def _read_code_point_escape(raw: str, start: int) -> tuple[str, int]:
    """Decode a ``\\x``, ``\\u`` or ``\\u{...}`` escape; return the char and next index."""
    kind = raw[start + 1]
    if kind == "u" and raw.startswith("{", start + 2):
        end = raw.find("}", start + 3)
        digits = raw[start + 3 : end] if end != -1 else ""
        next_index = end + 1
    else:
        width = 2 if kind == "x" else 4
        digits = raw[start + 2 : start + 2 + width]
        next_index = start + 2 + width
        if len(digits) != width:
            digits = ""
    if not digits or any(char not in _HEX_DIGITS for char in digits):
        raise MalformedLiteralError(f"Invalid \\{kind} escape in string literal.")
    code_point = int(digits, 16)
    if code_point > 0x10FFFF:
        raise MalformedLiteralError(f"Invalid \\{kind} escape in string literal.")
    return chr(code_point), next_index
