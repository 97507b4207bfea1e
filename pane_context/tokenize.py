# pane_context/tokenize.py
from __future__ import annotations

import re
import threading
from typing import Iterable, List, Optional, Protocol

from janome.tokenizer import Tokenizer as JanomeTokenizer
from loguru import logger

from .normalize import fallback_segment, has_cjk

# ---------------------------------------------------------------------------
# Capability
# ---------------------------------------------------------------------------


class Tokenizer(Protocol):
    def segment(self, text: str) -> Iterable[str]:
        ...


# ---------------------------------------------------------------------------
# Japanese analyser handling
# ---------------------------------------------------------------------------

_ANALYSER: Optional[JanomeTokenizer] = None
_ANALYSER_FAILED: bool = False
_ANALYSER_LOCK = threading.Lock()


def load_analyser() -> Optional[JanomeTokenizer]:
    """
    Build and cache the janome analyser (dictionary load is the slow part).
    Returns None if it cannot be built; callers then use the fallback split.
    """
    global _ANALYSER, _ANALYSER_FAILED

    with _ANALYSER_LOCK:
        if _ANALYSER is not None or _ANALYSER_FAILED:
            return _ANALYSER
        try:
            logger.info("Loading janome analyser")
            _ANALYSER = JanomeTokenizer()
        except Exception as e:
            logger.warning("Failed to build janome analyser; using punctuation split: {}", e)
            _ANALYSER_FAILED = True
            _ANALYSER = None
        return _ANALYSER


# ---------------------------------------------------------------------------
# Segmenters
# ---------------------------------------------------------------------------

# A word is a run of letters/digits; inner apostrophes and dots stay attached
# ("don't", "v1.2"); leading/trailing '%' or '#' are kept ("%1", "#3").
_WORD_RE = re.compile(r"[%#]*[^\W_]+(?:['.][^\W_]+)*[%#]*")


def segment_words(text: str) -> List[str]:
    """Word-boundary segmentation for Latin (and other spaced) scripts."""
    return _WORD_RE.findall(text or "")


def segment_japanese(text: str, analyser: Optional[JanomeTokenizer] = None) -> List[str]:
    """Morphological segmentation, emitting base forms (surface when unknown)."""
    if analyser is None:
        analyser = load_analyser()
    if analyser is None:
        return fallback_segment(text)
    try:
        out: List[str] = []
        for token in analyser.tokenize(text):
            base = token.base_form
            out.append(token.surface if not base or base == "*" else base)
        return out
    except Exception as e:
        logger.warning("janome tokenize failed; using punctuation split: {}", e)
        return fallback_segment(text)


class ScriptAwareTokenizer:
    """
    Default tokenizer: janome for text containing CJK characters, word
    boundaries otherwise, punctuation split as the last resort.
    """

    def __init__(self, analyser: Optional[JanomeTokenizer] = None):
        self._analyser = analyser

    def segment(self, text: str) -> List[str]:
        if not text:
            return []
        if has_cjk(text):
            return segment_japanese(text, self._analyser)
        tokens = segment_words(text)
        if tokens:
            return tokens
        return fallback_segment(text)


class FallbackTokenizer:
    """Punctuation-only segmentation; deterministic and dependency-free."""

    def segment(self, text: str) -> List[str]:
        return fallback_segment(text)
