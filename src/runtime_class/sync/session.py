"""Synchronization session: full scans and incremental single-file updates."""

from __future__ import annotations

import threading
import time
import uuid
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from runtime_class.config import MarkerConfig, SyncConfig
from runtime_class.expand import ExpandedResult, expand
from runtime_class.extract import MalformedLiteralError, extract, parse
from runtime_class.logging import JsonlEventLogger, SyncEvent, utc_timestamp
from runtime_class.paths import PathOutsideRootError, to_identity
from runtime_class.sync.cache import ChangeCache
from runtime_class.sync.discovery import DiscoveredFile, discover_files, matches_filters
from runtime_class.sync.hashing import fingerprint, read_source
from runtime_class.sync.models import (
    OUTCOME_EXTRACTED,
    OUTCOME_IGNORED,
    OUTCOME_MALFORMED,
    OUTCOME_NO_MARKER,
    OUTCOME_READ_FAILURE,
    OUTCOME_REMOVED,
    OUTCOME_UNCHANGED,
    FileOutcome,
    FileRecord,
    PassResult,
)
from runtime_class.sync.store import AggregateStore, PersistError

CHANGE_KINDS = ("add", "change", "unlink")


@dataclass(slots=True, frozen=True)
class FileWork:
    """Result of reading, hashing and extracting one file, before it is applied."""

    identity: str
    status: str
    fingerprint: str | None = None
    result: ExpandedResult | None = None
    message: str | None = None


class SessionClosedError(RuntimeError):
    """Raised when a closed session is asked to run a pass."""


def process_file(
    target: DiscoveredFile,
    previous_fingerprint: str | None,
    marker: MarkerConfig,
) -> FileWork:
    """Read, hash and extract one file without touching session state."""
    identity = target.identity
    try:
        content = read_source(target.full_path)
    except OSError as exc:
        return FileWork(
            identity=identity,
            status=OUTCOME_READ_FAILURE,
            message=f"{type(exc).__name__}: {exc.strerror or exc}",
        )
    digest = fingerprint(content)
    if previous_fingerprint == digest:
        return FileWork(identity=identity, status=OUTCOME_UNCHANGED, fingerprint=digest)
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as exc:
        return FileWork(
            identity=identity,
            status=OUTCOME_READ_FAILURE,
            message=f"File is not valid UTF-8: {exc.reason}",
        )

    if marker.import_guard and marker.import_guard not in text:
        return FileWork(identity=identity, status=OUTCOME_NO_MARKER, fingerprint=digest)
    raw = extract(text, marker=marker.marker)
    if raw is None:
        return FileWork(identity=identity, status=OUTCOME_NO_MARKER, fingerprint=digest)
    try:
        mapping = parse(raw)
    except MalformedLiteralError as exc:
        return FileWork(
            identity=identity,
            status=OUTCOME_MALFORMED,
            fingerprint=digest,
            message=exc.reason,
        )
    return FileWork(
        identity=identity,
        status=OUTCOME_EXTRACTED,
        fingerprint=digest,
        result=expand(
            mapping,
            default_key=marker.default_key,
            flattened_field=marker.flattened_field,
        ),
    )


class SyncSession:
    """Owns the change cache and aggregate store for one build or watch session.

    Passes are serialized: one scan or update is fully applied, including its
    persist, before the next one starts.
    """

    def __init__(
        self,
        config: SyncConfig,
        event_logger: JsonlEventLogger | None = None,
        session_id: str | None = None,
    ) -> None:
        self._config = config
        # Distinguishes this session's passes in a shared event log.
        self._session_id = session_id or uuid.uuid4().hex[:8]
        self._project_root = config.project_root
        self._cache = ChangeCache()
        self._store = AggregateStore(
            output_path=config.output_path,
            artifact_shape=config.artifact_shape,
        )
        if (
            event_logger is None
            and config.logging.enabled
            and config.logging.events_path is not None
        ):
            event_logger = JsonlEventLogger(path=config.logging.events_path)
        self._events = event_logger
        self._lock = threading.Lock()
        self._pass_counter = 0
        self._closed = False
        self._artifact_identity = self._compute_artifact_identity()

    @property
    def config(self) -> SyncConfig:
        """Return the effective configuration."""
        return self._config

    @property
    def session_id(self) -> str:
        """Return the token that prefixes this session's pass ids."""
        return self._session_id

    @property
    def cache(self) -> ChangeCache:
        """Return the session's change cache."""
        return self._cache

    @property
    def store(self) -> AggregateStore:
        """Return the session's aggregate store."""
        return self._store

    @property
    def events(self) -> JsonlEventLogger | None:
        """Return the event logger, if logging is enabled."""
        return self._events

    def __enter__(self) -> SyncSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Tear down in-memory state; the artifact on disk is left as written."""
        with self._lock:
            self._cache.clear()
            self._store.clear()
            self._closed = True

    def file_record(self, identity: str) -> FileRecord | None:
        """Return what the session knows about ``identity``."""
        fingerprint_value = self._cache.get(identity)
        result = self._store.get(identity)
        if fingerprint_value is None and result is None:
            return None
        return FileRecord(identity=identity, last_fingerprint=fingerprint_value, last_result=result)

    def snapshot(self) -> dict[str, object]:
        """Return the current artifact payload."""
        return self._store.snapshot()

    def scan(self, paths: Iterable[str | Path] | None = None) -> PassResult:
        """Process every file once, prune vanished identities, then persist once.

        Without ``paths`` the project is discovered with the configured globs.
        """
        with self._lock:
            self._ensure_open()
            started = time.perf_counter()
            pass_id = self._next_pass_id("scan")
            self._store.check_destination()

            outcomes: list[FileOutcome] = []
            if paths is None:
                targets = [
                    target
                    for target in discover_files(self._project_root, self._config.discovery)
                    if target.identity != self._artifact_identity
                ]
            else:
                targets = self._explicit_targets(paths, outcomes)

            previous = self._cache.snapshot()
            for work in self._prepare_all(targets, previous):
                outcomes.append(self._apply(work, pass_id))

            pruned = self._prune({target.identity for target in targets})
            store_changed = any(outcome.store_changed for outcome in outcomes) or bool(pruned)
            needs_write = (
                store_changed or self._store.dirty or not self._store.output_path.exists()
            )
            persisted = self._persist(pass_id) if needs_write else False
            result = self._pass_result(
                kind="scan",
                outcomes=outcomes,
                store_changed=store_changed,
                persisted=persisted,
                pruned=pruned,
                started=started,
            )
            self._log_pass(pass_id, result)
            return result

    def update(self, path: str | Path, kind: str = "change") -> PassResult:
        """Apply one change notification and persist if the store changed."""
        if kind not in CHANGE_KINDS:
            raise ValueError(f"Unknown change kind '{kind}'; expected one of {CHANGE_KINDS}.")
        with self._lock:
            self._ensure_open()
            started = time.perf_counter()
            pass_id = self._next_pass_id("update")
            self._store.check_destination()

            outcome = self._update_one(path, kind, pass_id)
            store_changed = outcome.store_changed
            needs_write = store_changed or self._store.dirty
            persisted = self._persist(pass_id) if needs_write else False
            result = self._pass_result(
                kind="update",
                outcomes=[outcome],
                store_changed=store_changed,
                persisted=persisted,
                pruned=(),
                started=started,
            )
            self._log_pass(pass_id, result)
            return result

    def _update_one(self, path: str | Path, kind: str, pass_id: str) -> FileOutcome:
        try:
            identity = to_identity(self._project_root, path)
        except PathOutsideRootError as exc:
            return FileOutcome(identity=str(path), status=OUTCOME_IGNORED, message=exc.reason)
        if identity == self._artifact_identity:
            return FileOutcome(
                identity=identity, status=OUTCOME_IGNORED, message="Path is the artifact."
            )
        if not matches_filters(identity, self._config.discovery):
            return FileOutcome(
                identity=identity,
                status=OUTCOME_IGNORED,
                message="Path does not match include/exclude filters.",
            )
        if kind == "unlink":
            self._cache.forget(identity)
            changed = self._store.remove(identity)
            return FileOutcome(identity=identity, status=OUTCOME_REMOVED, store_changed=changed)

        target = DiscoveredFile(identity=identity, full_path=self._project_root / identity)
        work = process_file(target, self._cache.get(identity), self._config.marker)
        return self._apply(work, pass_id)

    def _explicit_targets(
        self,
        paths: Iterable[str | Path],
        outcomes: list[FileOutcome],
    ) -> list[DiscoveredFile]:
        targets: list[DiscoveredFile] = []
        seen: set[str] = set()
        for path in paths:
            try:
                identity = to_identity(self._project_root, path)
            except PathOutsideRootError as exc:
                outcomes.append(
                    FileOutcome(identity=str(path), status=OUTCOME_IGNORED, message=exc.reason)
                )
                continue
            if identity == self._artifact_identity or identity in seen:
                continue
            seen.add(identity)
            targets.append(
                DiscoveredFile(identity=identity, full_path=self._project_root / identity)
            )
        return targets

    def _prepare_all(
        self,
        targets: list[DiscoveredFile],
        previous: dict[str, str],
    ) -> list[FileWork]:
        marker = self._config.marker
        workers = self._config.scan_workers

        def run(target: DiscoveredFile) -> FileWork:
            return process_file(target, previous.get(target.identity), marker)

        if workers <= 1 or len(targets) < 2:
            return [run(target) for target in targets]
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(run, targets))

    def _apply(self, work: FileWork, pass_id: str) -> FileOutcome:
        if work.status in (OUTCOME_READ_FAILURE, OUTCOME_MALFORMED):
            self._log(
                pass_id=pass_id,
                event=work.status,
                path=work.identity,
                ok=False,
                error_code=work.status.upper(),
                metadata={"message": work.message},
            )
            return FileOutcome(
                identity=work.identity,
                status=work.status,
                fingerprint=work.fingerprint,
                message=work.message,
            )
        if work.status == OUTCOME_UNCHANGED:
            return FileOutcome(
                identity=work.identity,
                status=work.status,
                fingerprint=work.fingerprint,
                result=self._store.get(work.identity),
            )
        changed = self._store.update(work.identity, work.result)
        if work.fingerprint is not None:
            self._cache.commit(work.identity, work.fingerprint)
        return FileOutcome(
            identity=work.identity,
            status=work.status,
            fingerprint=work.fingerprint,
            result=work.result,
            store_changed=changed,
        )

    def _prune(self, seen: set[str]) -> tuple[str, ...]:
        stale = (set(self._cache.identities()) | set(self._store.identities())) - seen
        removed: list[str] = []
        for identity in sorted(stale):
            self._cache.forget(identity)
            if self._store.remove(identity):
                removed.append(identity)
        return tuple(removed)

    def _persist(self, pass_id: str) -> bool:
        try:
            self._store.persist()
        except PersistError as exc:
            self._log(
                pass_id=pass_id,
                event="persist_failure",
                path=None,
                ok=False,
                error_code="PERSIST_FAILED",
                metadata={"reason": exc.reason},
            )
            raise
        return True

    def _pass_result(
        self,
        *,
        kind: str,
        outcomes: list[FileOutcome],
        store_changed: bool,
        persisted: bool,
        pruned: tuple[str, ...],
        started: float,
    ) -> PassResult:
        return PassResult(
            kind=kind,
            timestamp=utc_timestamp(),
            outcomes=tuple(outcomes),
            store_changed=store_changed,
            persisted=persisted,
            contributing_files=len(self._store),
            pruned=pruned,
            artifact_path=str(self._store.output_path),
            duration_ms=int((time.perf_counter() - started) * 1000),
        )

    def _log_pass(self, pass_id: str, result: PassResult) -> None:
        counts: dict[str, int] = {}
        for outcome in result.outcomes:
            counts[outcome.status] = counts.get(outcome.status, 0) + 1
        self._log(
            pass_id=pass_id,
            event=result.kind,
            path=result.outcomes[0].identity if result.kind == "update" else None,
            ok=not result.failures,
            error_code=None,
            metadata={
                "outcomes": dict(sorted(counts.items())),
                "contributing_files": result.contributing_files,
                "persisted": result.persisted,
                "pruned": len(result.pruned),
                "duration_ms": result.duration_ms,
            },
        )

    def _log(
        self,
        *,
        pass_id: str,
        event: str,
        path: str | None,
        ok: bool,
        error_code: str | None,
        metadata: dict[str, object],
    ) -> None:
        if self._events is None:
            return
        self._events.append(
            SyncEvent(
                timestamp=utc_timestamp(),
                pass_id=pass_id,
                event=event,
                path=path,
                ok=ok,
                error_code=error_code,
                metadata=metadata,
            )
        )

    def _next_pass_id(self, kind: str) -> str:
        self._pass_counter += 1
        return f"{kind}-{self._session_id}-{self._pass_counter}"

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Session is closed.")

    def _compute_artifact_identity(self) -> str | None:
        output = self._config.output_path
        if not output.is_relative_to(self._project_root):
            return None
        return output.relative_to(self._project_root).as_posix()
