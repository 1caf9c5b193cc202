"""Short content fingerprints for change detection."""

from __future__ import annotations

import hashlib
from pathlib import Path

FINGERPRINT_LENGTH = 16


def fingerprint(content: bytes) -> str:
    """Return a short deterministic digest of ``content``."""
    return hashlib.sha256(content).hexdigest()[:FINGERPRINT_LENGTH]


def read_source(path: Path) -> bytes:
    """Read raw file bytes in chunks; I/O errors propagate to the caller."""
    chunks: list[bytes] = []
    with path.open("rb") as handle:
        while True:
            chunk = handle.read(1024 * 128)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)
