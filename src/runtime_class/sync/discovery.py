"""Deterministic source discovery with include/exclude glob filtering."""

from __future__ import annotations

import fnmatch
import os
import re
import time
from dataclasses import asdict, dataclass
from functools import lru_cache
from pathlib import Path

from runtime_class.config import DiscoveryConfig


@dataclass(slots=True, frozen=True)
class DiscoveryProfile:
    """Deterministic diagnostics for one discovery pass."""

    total_candidates: int
    excluded_by_glob: int
    not_included: int
    matched_files: int
    pruned_directories: int
    total_seconds: float


@dataclass(slots=True, frozen=True)
class DiscoveredFile:
    """A source file selected for scanning."""

    identity: str
    full_path: Path


class GlobFilter:
    """Include/exclude globs compiled once and matched against file identities.

    Globs use bundler conventions: ``*`` and ``**`` both cross ``/``, a leading
    ``**/`` also matches files at the project root, and ``{a,b}`` expands to
    alternatives. An empty include list includes everything.
    """

    def __init__(self, include_globs: tuple[str, ...], exclude_globs: tuple[str, ...]) -> None:
        self._include = _compile_globs(include_globs)
        self._exclude = _compile_globs(exclude_globs)
        self._pruned_dir_names = frozenset(_plain_dir_names(exclude_globs))

    def excludes(self, identity: str) -> bool:
        """Return True when ``identity`` matches an exclude glob."""
        return self._exclude is not None and _search(self._exclude, identity)

    def includes(self, identity: str) -> bool:
        """Return True when ``identity`` matches an include glob."""
        return self._include is None or _search(self._include, identity)

    def matches(self, identity: str) -> bool:
        """Return True when ``identity`` passes both filters."""
        return not self.excludes(identity) and self.includes(identity)

    def prunes_directory(self, name: str, identity: str) -> bool:
        """Return True when a whole directory can be skipped without walking it."""
        return name in self._pruned_dir_names and self.excludes(identity)


@lru_cache(maxsize=16)
def glob_filter_for(config: DiscoveryConfig) -> GlobFilter:
    """Return the compiled filter for ``config``."""
    return GlobFilter(config.include_globs, config.exclude_globs)


def matches_filters(identity: str, config: DiscoveryConfig) -> bool:
    """Return True when a project-relative path passes include and exclude globs."""
    return glob_filter_for(config).matches(identity)


def discover_files(
    project_root: Path,
    config: DiscoveryConfig,
    profile: dict[str, object] | None = None,
) -> list[DiscoveredFile]:
    """Walk the project and return files matching the filters, ordered by identity."""
    started = time.perf_counter()
    root = project_root.resolve()
    globs = glob_filter_for(config)
    total_candidates = 0
    excluded_by_glob = 0
    not_included = 0
    pruned_directories = 0
    files: list[DiscoveredFile] = []
    pending: list[Path] = [root]
    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as entries:
                children = sorted(entries, key=lambda item: item.name, reverse=True)
        except OSError:
            continue
        for entry in children:
            full_path = Path(entry.path)
            identity = full_path.relative_to(root).as_posix()
            if entry.is_dir(follow_symlinks=False):
                if globs.prunes_directory(entry.name, f"{identity}/"):
                    pruned_directories += 1
                else:
                    pending.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            total_candidates += 1
            if globs.excludes(identity):
                excluded_by_glob += 1
            elif not globs.includes(identity):
                not_included += 1
            else:
                files.append(DiscoveredFile(identity=identity, full_path=full_path))

    files.sort(key=lambda item: item.identity)
    if profile is not None:
        payload = DiscoveryProfile(
            total_candidates=total_candidates,
            excluded_by_glob=excluded_by_glob,
            not_included=not_included,
            matched_files=len(files),
            pruned_directories=pruned_directories,
            total_seconds=time.perf_counter() - started,
        )
        profile.update(asdict(payload))
    return files


def expand_braces(pattern: str) -> list[str]:
    """Expand the ``{a,b}`` groups of a glob into plain fnmatch patterns."""
    start = pattern.find("{")
    if start == -1:
        return [pattern]
    depth = 0
    for end in range(start, len(pattern)):
        if pattern[end] == "{":
            depth += 1
        elif pattern[end] == "}":
            depth -= 1
            if depth == 0:
                break
    else:
        return [pattern]

    prefix = pattern[:start]
    suffix = pattern[end + 1 :]
    expanded: list[str] = []
    for option in _split_alternatives(pattern[start + 1 : end]):
        expanded.extend(expand_braces(f"{prefix}{option}{suffix}"))
    return expanded


def _split_alternatives(body: str) -> list[str]:
    options: list[str] = []
    depth = 0
    current: list[str] = []
    for char in body:
        if char == "," and depth == 0:
            options.append("".join(current))
            current = []
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        current.append(char)
    options.append("".join(current))
    return options


def _compile_globs(globs: tuple[str, ...]) -> re.Pattern[str] | None:
    if not globs:
        return None
    translated = [
        fnmatch.translate(expanded) for pattern in globs for expanded in expand_braces(pattern)
    ]
    return re.compile("|".join(f"(?:{item})" for item in translated))


def _search(compiled: re.Pattern[str], identity: str) -> bool:
    return compiled.match(identity) is not None or compiled.match(f"/{identity}") is not None


def _plain_dir_names(exclude_globs: tuple[str, ...]) -> set[str]:
    """Directory names from ``**/name/**`` globs, which prune whole subtrees."""
    output: set[str] = set()
    for pattern in exclude_globs:
        for expanded in expand_braces(pattern):
            if not expanded.startswith("**/") or not expanded.endswith("/**"):
                continue
            name = expanded[3:-3].strip("/")
            if name and not any(char in name for char in "*?[]/"):
                output.add(name)
    return output
