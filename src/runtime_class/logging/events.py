"""Structured JSONL event log for sync passes."""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Iterator
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path


@dataclass(slots=True, frozen=True)
class SyncEvent:
    """One pass summary, per-file failure or persist failure."""

    timestamp: str
    pass_id: str
    event: str
    path: str | None
    ok: bool
    error_code: str | None
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonlEventLogger:
    """Append-only JSONL event log with a bounded, filtered reader.

    The parent directory is created on the first append, so a session that
    never logs anything leaves no trace in the project.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def append(self, event: SyncEvent) -> None:
        """Append ``event`` as one JSON object per line."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(asdict(event), sort_keys=True, ensure_ascii=False)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(f"{line}\n")

    def read(
        self,
        since: str | None = None,
        limit: int = 50,
        *,
        pass_id: str | None = None,
        event: str | None = None,
    ) -> list[dict[str, object]]:
        """Return the newest ``limit`` records matching every given filter, oldest first.

        ``since`` is an inclusive lower bound on the record timestamp.
        """
        if limit < 1:
            return []
        newest: deque[dict[str, object]] = deque(maxlen=limit)
        for record in self._records():
            if since is not None:
                timestamp = record.get("timestamp")
                if not isinstance(timestamp, str) or timestamp < since:
                    continue
            if pass_id is not None and record.get("pass_id") != pass_id:
                continue
            if event is not None and record.get("event") != event:
                continue
            newest.append(record)
        return list(newest)

    def _records(self) -> Iterator[dict[str, object]]:
        if not self._path.exists():
            return
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if not stripped:
                    continue
                try:
                    record = json.loads(stripped)
                except json.JSONDecodeError:
                    # A torn final line from an interrupted append.
                    continue
                if isinstance(record, dict):
                    yield record
