from __future__ import annotations

"""
Text normalisation helpers shared by the hint interpreter and the tokenizer.

The goal is to have a single, well-defined place that turns free-form hint
text (typed by a person or produced by an agent, Latin or Japanese) into a
canonical form so that hints and pane metadata see the same view of text.

Public helpers:

* normalize_hint_text(text) -> str
    NFKC + whitespace collapse + trim. Case is preserved.

* canonical_hint(text) -> str
    normalize_hint_text + lower-case; the form used for exact/composite hints.

* normalize_token(token) -> str
    NFKC + case-fold + edge punctuation strip; used for keyword tokens.

* has_cjk(text) / is_single_hiragana(token)
    Script checks used to pick a segmenter and to drop particle noise.

* fallback_segment(text) -> List[str]
    Deterministic punctuation split used when no richer segmenter applies.
"""

import re
import unicodedata
from typing import List

# ---------------------------------------------------------------------------
# Script ranges
# ---------------------------------------------------------------------------

_HIRAGANA = (0x3040, 0x309F)
_KATAKANA = [(0x30A0, 0x30FF), (0x31F0, 0x31FF), (0xFF66, 0xFF9F)]
_HAN = [
    (0x3005, 0x3007),   # iteration marks, ideographic zero
    (0x3400, 0x4DBF),
    (0x4E00, 0x9FFF),
    (0xF900, 0xFAFF),
    (0x20000, 0x2FA1F),
]

_CJK_RANGES = [_HIRAGANA] + _KATAKANA + _HAN

_WHITESPACE_RE = re.compile(r"\s+")
# letters/digits plus '%' and '#' are the only characters a keyword keeps
_SPLIT_RE = re.compile(r"(?:[^\w%#]|_)+")


def _in_ranges(cp: int, ranges) -> bool:
    for lo, hi in ranges:
        if lo <= cp <= hi:
            return True
    return False


def _is_keyword_char(ch: str) -> bool:
    return ch.isalnum() or ch in "%#"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text)


def normalize_hint_text(text: str | None) -> str:
    """NFKC-normalise, collapse whitespace and trim. Keeps the original case."""
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)
    return collapse_whitespace(unicodedata.normalize("NFKC", text)).strip()


def canonical_hint(text: str | None) -> str:
    return normalize_hint_text(text).lower()


def strip_edge_punctuation(token: str) -> str:
    start, end = 0, len(token)
    while start < end and not _is_keyword_char(token[start]):
        start += 1
    while end > start and not _is_keyword_char(token[end - 1]):
        end -= 1
    return token[start:end]


def normalize_token(token: str) -> str:
    """Canonical keyword form: NFKC, case-folded, no edge punctuation."""
    folded = unicodedata.normalize("NFKC", token).casefold()
    return strip_edge_punctuation(folded).strip()


def has_cjk(text: str) -> bool:
    return any(_in_ranges(ord(ch), _CJK_RANGES) for ch in text)


def is_single_hiragana(token: str) -> bool:
    return len(token) == 1 and _in_ranges(ord(token), [_HIRAGANA])


def fallback_segment(text: str) -> List[str]:
    """Split on every run of characters that cannot be part of a keyword."""
    if not text:
        return []
    return [t for t in (p.strip() for p in _SPLIT_RE.split(text)) if t]


def dedupe_in_order(values) -> List[str]:
    seen = set()
    out: List[str] = []
    for v in values:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out
