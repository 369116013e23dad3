"""Content fingerprints used to tell whether a watched file changed."""

from __future__ import annotations

import hashlib
from pathlib import Path

# Fingerprints are hex strings; equal content always yields equal strings.
Fingerprint = str


def fingerprint_bytes(data: bytes) -> Fingerprint:
    """Return a 128-bit BLAKE2b digest of data."""
    return hashlib.blake2b(data, digest_size=16).hexdigest()


def file_fingerprint(path: str | Path) -> Fingerprint:
    """Read the whole file and fingerprint it. Raises OSError if it cannot be read."""
    return fingerprint_bytes(Path(path).read_bytes())
