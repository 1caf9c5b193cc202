"""Change detection, aggregate storage and synchronization passes."""

from .cache import ChangeCache
from .discovery import (
    DiscoveredFile,
    GlobFilter,
    discover_files,
    expand_braces,
    matches_filters,
)
from .hashing import fingerprint, read_source
from .models import FileOutcome, FileRecord, PassResult
from .session import CHANGE_KINDS, FileWork, SessionClosedError, SyncSession, process_file
from .store import AggregateStore, ConfigurationError, PersistError

__all__ = [
    "AggregateStore",
    "CHANGE_KINDS",
    "ChangeCache",
    "ConfigurationError",
    "DiscoveredFile",
    "FileOutcome",
    "FileRecord",
    "FileWork",
    "GlobFilter",
    "PassResult",
    "PersistError",
    "SessionClosedError",
    "SyncSession",
    "discover_files",
    "expand_braces",
    "fingerprint",
    "matches_filters",
    "process_file",
    "read_source",
]
