"""Lexical masking for JavaScript-family source text.

Masked text has the same length and newlines as its input. Comment bodies,
string and template contents, and regular-expression literals are replaced
by spaces, so structural searches over the result only ever see code.
"""

from __future__ import annotations

import re

_WORD_RE = re.compile(r"[A-Za-z0-9_$]+")
_REGEX_AFTER_CHARS = frozenset("(,=:[!&|?{};+-*%~^")
_REGEX_AFTER_WORDS = frozenset(
    {
        "await",
        "case",
        "delete",
        "do",
        "else",
        "in",
        "instanceof",
        "new",
        "of",
        "return",
        "throw",
        "typeof",
        "void",
        "yield",
    }
)
# Recorded after a string, template or regex; a following slash is division.
_OPERAND_END = ")"


def mask_comments_and_strings(text: str) -> str:
    """Mask comments, strings, templates and regex literals, keeping every offset.

    Code inside template ``${...}`` interpolations stays visible. Quoted strings
    end at an unescaped newline, so stray apostrophes in JSX text cannot mask
    the rest of a file.
    """
    return _Masker(text).run()


def mask_comments(text: str) -> str:
    """Mask only comments; string, template and regex contents stay visible.

    Strings are still tracked, so ``//`` inside a URL does not start a comment.
    """
    return _Masker(text, mask_strings=False).run()


def match_closing_brace(
    masked_text: str,
    open_index: int,
    open_char: str = "{",
    close_char: str = "}",
) -> int | None:
    """Return the index of the brace closing the one at ``open_index``, if balanced."""
    if len(open_char) != 1 or len(close_char) != 1:
        raise ValueError("open_char and close_char must be single characters.")
    if open_index >= len(masked_text) or masked_text[open_index] != open_char:
        raise ValueError(f"No '{open_char}' at offset {open_index}.")

    depth = 0
    for index in range(open_index, len(masked_text)):
        char = masked_text[index]
        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return index
    return None


def skip_whitespace(text: str, index: int) -> int:
    """Advance past whitespace starting at ``index``."""
    length = len(text)
    while index < length and text[index].isspace():
        index += 1
    return index


class _Masker:
    """Single forward pass over the text, alternating between code and template text."""

    __slots__ = (
        "_text",
        "_chars",
        "_index",
        "_previous",
        "_interpolations",
        "_mask_strings",
    )

    def __init__(self, text: str, mask_strings: bool = True) -> None:
        self._text = text
        self._mask_strings = mask_strings
        self._chars = list(text)
        self._index = 0
        # Last significant code token: a punctuation char, a word, or _OPERAND_END.
        self._previous = ""
        # Brace depth inside each open ${...}, innermost last.
        self._interpolations: list[int] = []

    def run(self) -> str:
        in_template = False
        length = len(self._text)
        while self._index < length:
            if in_template:
                in_template = self._template_step()
            else:
                in_template = self._code_step()
        return "".join(self._chars)

    def _code_step(self) -> bool:
        """Consume one code token; return True when template text starts next."""
        text = self._text
        index = self._index
        char = text[index]
        if char.isspace():
            self._index += 1
            return False
        if text.startswith("//", index):
            end = text.find("\n", index)
            self._blank_until(len(text) if end == -1 else end)
            return False
        if text.startswith("/*", index):
            end = text.find("*/", index + 2)
            self._blank_until(len(text) if end == -1 else end + 2)
            return False
        if char in "'\"":
            self._mask_until(_quoted_end(text, index))
            self._previous = _OPERAND_END
            return False
        if char == "`":
            self._mask_until(index + 1)
            return True
        if char == "/" and self._regex_allowed():
            end = _regex_literal_end(text, index)
            if end is not None:
                self._mask_until(end)
                self._previous = _OPERAND_END
                return False

        word = _WORD_RE.match(text, index)
        if word is not None:
            self._previous = word.group()
            self._index = word.end()
            return False
        if self._interpolations:
            if char == "{":
                self._interpolations[-1] += 1
            elif char == "}":
                if self._interpolations[-1] == 0:
                    self._interpolations.pop()
                    self._mask_until(index + 1)
                    return True
                self._interpolations[-1] -= 1
        self._previous = char
        self._index += 1
        return False

    def _template_step(self) -> bool:
        """Consume template text; return False when code resumes."""
        text = self._text
        index = self._index
        if text[index] == "\\":
            self._mask_until(min(index + 2, len(text)))
            return True
        if text[index] == "`":
            self._mask_until(index + 1)
            self._previous = _OPERAND_END
            return False
        if text.startswith("${", index):
            self._mask_until(index + 2)
            self._interpolations.append(0)
            self._previous = "{"
            return False
        self._mask_until(index + 1)
        return True

    def _regex_allowed(self) -> bool:
        previous = self._previous
        if not previous or previous in _REGEX_AFTER_WORDS:
            return True
        return len(previous) == 1 and previous in _REGEX_AFTER_CHARS

    def _mask_until(self, end: int) -> None:
        if self._mask_strings:
            self._blank_until(end)
        else:
            self._index = end

    def _blank_until(self, end: int) -> None:
        chars = self._chars
        for index in range(self._index, end):
            if chars[index] != "\n":
                chars[index] = " "
        self._index = end


def _quoted_end(text: str, start: int) -> int:
    """Return the offset just past a quoted string, or its unterminated line end."""
    quote = text[start]
    length = len(text)
    cursor = start + 1
    while cursor < length:
        char = text[cursor]
        if char == "\\":
            cursor += 2
            continue
        if char == quote:
            return cursor + 1
        if char == "\n":
            return cursor
        cursor += 1
    return length


def _regex_literal_end(text: str, start: int) -> int | None:
    """Return the offset just past the closing slash, or None when no literal is there."""
    length = len(text)
    in_class = False
    cursor = start + 1
    while cursor < length:
        char = text[cursor]
        if char == "\n":
            return None
        if char == "\\":
            cursor += 2
            continue
        if in_class:
            if char == "]":
                in_class = False
        elif char == "[":
            in_class = True
        elif char == "/":
            return cursor + 1
        cursor += 1
    return None
