"""Aggregate extraction results and their persisted JSON artifact."""

from __future__ import annotations

import json
import os
from pathlib import Path

from runtime_class.config import ARTIFACT_SHAPES
from runtime_class.expand import ExpandedResult


class PersistError(Exception):
    """Raised when the artifact could not be written."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


class ConfigurationError(ValueError):
    """Raised when the artifact destination cannot be written at all."""


class AggregateStore:
    """Latest extraction result per file identity, plus the artifact writer."""

    def __init__(self, output_path: Path, artifact_shape: str = "flattened") -> None:
        if artifact_shape not in ARTIFACT_SHAPES:
            raise ValueError(f"artifact_shape must be one of {', '.join(ARTIFACT_SHAPES)}.")
        self._output_path = output_path
        self._artifact_shape = artifact_shape
        self._entries: dict[str, ExpandedResult] = {}
        self._dirty = False

    @property
    def output_path(self) -> Path:
        """Return the artifact destination."""
        return self._output_path

    @property
    def dirty(self) -> bool:
        """Return True when in-memory content has not been persisted yet."""
        return self._dirty

    def update(self, identity: str, result: ExpandedResult | None) -> bool:
        """Set or remove ``identity``'s entry; return True when visible content changed.

        A result that emits no tokens counts as no extractable content.
        """
        if result is None or not result.has_tokens:
            return self.remove(identity)
        previous = self._entries.get(identity)
        if previous is not None and self._render(previous) == self._render(result):
            self._entries[identity] = result
            return False
        self._entries[identity] = result
        self._dirty = True
        return True

    def remove(self, identity: str) -> bool:
        """Drop ``identity``'s entry; return True when it existed."""
        if self._entries.pop(identity, None) is None:
            return False
        self._dirty = True
        return True

    def get(self, identity: str) -> ExpandedResult | None:
        """Return the stored result for ``identity``."""
        return self._entries.get(identity)

    def identities(self) -> tuple[str, ...]:
        """Return stored identities in sorted order."""
        return tuple(sorted(self._entries))

    def snapshot(self) -> dict[str, object]:
        """Return the artifact payload: identity -> rendered result, sorted by identity."""
        return {identity: self._render(self._entries[identity]) for identity in self.identities()}

    def check_destination(self) -> None:
        """Raise ConfigurationError when the artifact directory is missing or unwritable."""
        parent = self._output_path.parent
        if not parent.is_dir():
            raise ConfigurationError(f"Artifact directory does not exist: {parent}")
        if not os.access(parent, os.W_OK):
            raise ConfigurationError(f"Artifact directory is not writable: {parent}")
        if self._output_path.is_dir():
            raise ConfigurationError(f"Artifact path is a directory: {self._output_path}")

    def persist(self) -> dict[str, object]:
        """Write the whole store atomically and return the payload written."""
        payload = self.snapshot()
        tmp = self._output_path.with_suffix(self._output_path.suffix + ".tmp")
        try:
            with tmp.open("w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, ensure_ascii=False)
                handle.write("\n")
            tmp.replace(self._output_path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise PersistError(
                reason=f"Could not write artifact {self._output_path}: {exc.strerror or exc}",
                hint="The in-memory store is kept; the next pass retries the write.",
            ) from exc
        self._dirty = False
        return payload

    def clear(self) -> None:
        """Forget every entry without touching the artifact."""
        self._entries.clear()
        self._dirty = False

    def _render(self, result: ExpandedResult) -> object:
        if self._artifact_shape == "expanded":
            return result.to_dict()
        return result.flattened

    def __len__(self) -> int:
        return len(self._entries)
