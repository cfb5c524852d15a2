"""Content fingerprinting used for re-upload detection."""

from __future__ import annotations

import hashlib


def fingerprint(text: str) -> str:
    """Return the SHA-256 hex digest of the extracted *text*.

    The digest covers extracted text only, so two files whose bytes differ
    but extract to the same text share a fingerprint.
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
