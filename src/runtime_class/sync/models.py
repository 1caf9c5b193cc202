"""Typed models for synchronization state."""

from __future__ import annotations

from dataclasses import dataclass

from runtime_class.expand import ExpandedResult

OUTCOME_EXTRACTED = "extracted"
OUTCOME_UNCHANGED = "unchanged"
OUTCOME_NO_MARKER = "no_marker"
OUTCOME_MALFORMED = "malformed_literal"
OUTCOME_READ_FAILURE = "read_failure"
OUTCOME_IGNORED = "ignored"
OUTCOME_REMOVED = "removed"

FAILURE_OUTCOMES = frozenset({OUTCOME_MALFORMED, OUTCOME_READ_FAILURE})


@dataclass(slots=True, frozen=True)
class FileRecord:
    """Represents a file tracked by a synchronization session."""

    identity: str
    last_fingerprint: str | None
    last_result: ExpandedResult | None


@dataclass(slots=True, frozen=True)
class FileOutcome:
    """What one file's pipeline run produced."""

    identity: str
    status: str
    fingerprint: str | None = None
    result: ExpandedResult | None = None
    message: str | None = None
    store_changed: bool = False

    @property
    def failed(self) -> bool:
        """Return True for per-file failures (read errors, malformed literals)."""
        return self.status in FAILURE_OUTCOMES

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-safe summary."""
        return {
            "identity": self.identity,
            "status": self.status,
            "fingerprint": self.fingerprint,
            "flattened": self.result.flattened if self.result is not None else None,
            "message": self.message,
            "store_changed": self.store_changed,
        }


@dataclass(slots=True, frozen=True)
class PassResult:
    """Summary of one scan or incremental update pass."""

    kind: str
    timestamp: str
    outcomes: tuple[FileOutcome, ...]
    store_changed: bool
    persisted: bool
    contributing_files: int
    pruned: tuple[str, ...]
    artifact_path: str
    duration_ms: int

    @property
    def failures(self) -> tuple[FileOutcome, ...]:
        """Return per-file failures in processing order."""
        return tuple(outcome for outcome in self.outcomes if outcome.failed)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-safe summary."""
        return {
            "kind": self.kind,
            "timestamp": self.timestamp,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "store_changed": self.store_changed,
            "persisted": self.persisted,
            "contributing_files": self.contributing_files,
            "pruned": list(self.pruned),
            "artifact_path": self.artifact_path,
            "duration_ms": self.duration_ms,
        }
