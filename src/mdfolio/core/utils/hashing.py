"""SHA-256 content hashing for change detection"""

import hashlib


def sha256(content: str) -> str:
    """Return hex-encoded SHA-256 of content (64 chars, matches the String(64) manifest column)."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
