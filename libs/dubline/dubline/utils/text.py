"""Narration text sanitizing."""

from __future__ import annotations

import re
import unicodedata

# \w is Unicode-aware on purpose: accented and non-Latin letters survive for non-English voices.
_DISALLOWED_RE = re.compile(r"[^\w\s.,!?'\"()\-]")
_WS_RE = re.compile(r"\s+")


def sanitize_text(text: str | None) -> str:
    """NFKC-normalize, drop characters outside the allow-list, collapse whitespace."""
    normalized = unicodedata.normalize("NFKC", str(text or ""))
    cleaned = _DISALLOWED_RE.sub("", normalized)
    return _WS_RE.sub(" ", cleaned).strip()


def split_words(text: str) -> list[str]:
    return [w for w in str(text or "").split() if w]
