"""Per-file content fingerprint cache."""

from __future__ import annotations


class ChangeCache:
    """Remembers the last committed fingerprint for each file identity."""

    def __init__(self) -> None:
        self._fingerprints: dict[str, str] = {}

    def should_process(self, identity: str, fingerprint: str) -> bool:
        """Return True when ``fingerprint`` differs from the committed one or none exists."""
        return self._fingerprints.get(identity) != fingerprint

    def commit(self, identity: str, fingerprint: str) -> None:
        """Record ``fingerprint`` after its extraction result has been applied."""
        self._fingerprints[identity] = fingerprint

    def get(self, identity: str) -> str | None:
        """Return the committed fingerprint for ``identity``."""
        return self._fingerprints.get(identity)

    def forget(self, identity: str) -> bool:
        """Drop ``identity``; return True when it was tracked."""
        return self._fingerprints.pop(identity, None) is not None

    def identities(self) -> tuple[str, ...]:
        """Return tracked identities in sorted order."""
        return tuple(sorted(self._fingerprints))

    def snapshot(self) -> dict[str, str]:
        """Return a copy of identity -> fingerprint."""
        return dict(self._fingerprints)

    def clear(self) -> None:
        """Forget every identity."""
        self._fingerprints.clear()

    def __len__(self) -> int:
        return len(self._fingerprints)

    def __contains__(self, identity: object) -> bool:
        return identity in self._fingerprints
