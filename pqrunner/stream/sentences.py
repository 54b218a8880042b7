from __future__ import annotations

import re
from typing import List, Optional

_ARTIFACT_MARKER_RE = re.compile(r"<artifact\b[^>]*/>", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")

SENTENCE_END = frozenset(".!?")


def _normalize(text: str) -> str:
    """Trim, drop artifact markers and collapse whitespace runs to one space."""
    s = text.strip()
    s = _ARTIFACT_MARKER_RE.sub("", s)
    return _WS_RE.sub(" ", s).strip()


def split_segments(text: Optional[str]) -> List[str]:
    """
    Split text into sentence-like segments.

    A segment ends at '.', '!' or '?' when that character is the last one or is
    followed by a space. "3.14" stays in one segment, while "e.g. this" is
    split after "e.g.".
    """
    if not text:
        return []
    s = _normalize(text)

    segments: List[str] = []
    current: List[str] = []
    last = len(s) - 1
    for i, ch in enumerate(s):
        current.append(ch)
        if ch in SENTENCE_END and (i == last or s[i + 1] == " "):
            seg = "".join(current).strip()
            if seg:
                segments.append(seg)
            current = []

    rest = "".join(current).strip()
    if rest:
        segments.append(rest)
    return segments


def extract_last_two_sentences(text: Optional[str]) -> Optional[str]:
    """Return the last two segments joined by a space, the only one, or None."""
    segments = split_segments(text)
    if not segments:
        return None
    return " ".join(segments[-2:])
