"""File identities for watcher and CLI paths."""

from __future__ import annotations

from pathlib import Path


class PathOutsideRootError(Exception):
    """Raised when a notified path does not name a file under the project root."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def to_identity(project_root: Path, candidate: str | Path) -> str:
    """Return the project-relative POSIX path that keys a file in the cache and artifact.

    Watchers report absolute paths and CLI users type relative ones, sometimes
    with Windows separators; all spellings of one file map to one identity.
    """
    raw = str(candidate).replace("\\", "/").strip()
    if not raw:
        raise PathOutsideRootError(
            reason="Path is empty.",
            hint="Provide a project-relative path such as 'src/App.tsx'.",
        )
    root = project_root.resolve()
    path = Path(raw)
    resolved = (path if path.is_absolute() else root / path).resolve(strict=False)
    if not resolved.is_relative_to(root):
        reason = (
            "Absolute path is outside project_root."
            if path.is_absolute()
            else "Resolved path escapes project_root."
        )
        raise PathOutsideRootError(
            reason=reason,
            hint="Only files under the configured project root are tracked.",
        )
    identity = resolved.relative_to(root).as_posix()
    if identity == ".":
        raise PathOutsideRootError(
            reason="Path is the project root itself.",
            hint="Notify individual files, not directories.",
        )
    return identity
