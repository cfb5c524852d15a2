"""Unit tests for content fingerprinting."""

import hashlib

from doc_rag.ingestion.fingerprint import fingerprint


def test_fingerprint_is_sha256_hex_of_utf8_text() -> None:
    text = "Grüße aus Köln"
    assert fingerprint(text) == hashlib.sha256(text.encode("utf-8")).hexdigest()
    assert len(fingerprint(text)) == 64


def test_fingerprint_depends_only_on_text() -> None:
    assert fingerprint("same text") == fingerprint("same text")
    assert fingerprint("same text") != fingerprint("same text.")
