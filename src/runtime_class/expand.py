"""Breakpoint-prefixed token expansion shared by extraction and runtime callers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from runtime_class.config import DEFAULT_FLATTENED_FIELD, DEFAULT_KEY


@dataclass(slots=True, frozen=True)
class ExpandedResult:
    """A style mapping plus its flattened, breakpoint-prefixed token string."""

    mapping: tuple[tuple[str, str], ...]
    flattened: str
    flattened_field: str = DEFAULT_FLATTENED_FIELD

    @property
    def has_tokens(self) -> bool:
        """Return True when at least one token was emitted."""
        return bool(self.flattened)

    def to_dict(self) -> dict[str, str]:
        """Return original entries followed by the flattened field."""
        output = dict(self.mapping)
        output[self.flattened_field] = self.flattened
        return output


def expand_tokens(mapping: Mapping[str, str], default_key: str = DEFAULT_KEY) -> list[str]:
    """Return every token in key order then split order, prefixed unless default."""
    tokens: list[str] = []
    for key, value in mapping.items():
        for token in value.split():
            tokens.append(token if key == default_key else f"{key}:{token}")
    return tokens


def expand(
    mapping: Mapping[str, str],
    *,
    default_key: str = DEFAULT_KEY,
    flattened_field: str = DEFAULT_FLATTENED_FIELD,
) -> ExpandedResult:
    """Expand a breakpoint-keyed style mapping."""
    return ExpandedResult(
        mapping=tuple((key, value) for key, value in mapping.items()),
        flattened=" ".join(expand_tokens(mapping, default_key=default_key)),
        flattened_field=flattened_field,
    )


def generate_runtime_class(mapping: Mapping[str, str]) -> dict[str, str]:
    """Return the mapping plus its ``runtimeClass`` string, with no side effects."""
    return expand(mapping).to_dict()
