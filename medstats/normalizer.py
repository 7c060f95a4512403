from __future__ import annotations

import re
import unicodedata

_COMBINING_MARKS_RE = re.compile(r"[\u0300-\u036f]")
_PUNCTUATION_RE = re.compile(r"[().,;:-]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize(text: str | None) -> str:
    """
    Canonical form used for header and keyword matching.

    "Tórax (Contraste)" -> "TORAX CONTRASTE"
    """
    value = _COMBINING_MARKS_RE.sub("", unicodedata.normalize("NFD", text or "")).upper()
    value = _PUNCTUATION_RE.sub(" ", value)
    return _WHITESPACE_RE.sub(" ", value).strip()
