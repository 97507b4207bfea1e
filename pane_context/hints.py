"""Turns a free-text pane hint and/or structured hints into weighted tokens."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from loguru import logger

from .config import (
    DEFAULT_COMPOSITE_WEIGHT,
    EXACT_WEIGHT,
    NATURAL_LANGUAGE_WEIGHT,
    WEIGHT_PRECISION,
    PaneHintEntry,
)
from .constants import STOP_WORDS
from .normalize import (
    canonical_hint,
    dedupe_in_order,
    is_single_hiragana,
    normalize_hint_text,
    normalize_token,
)
from .pipeline_types import HintInterpretation, HintSource, WeightedHint
from .tokenize import ScriptAwareTokenizer, Tokenizer

StructuredHint = Union[PaneHintEntry, Mapping[str, Any]]


def _entry_fields(entry: StructuredHint) -> Tuple[str, Any]:
    if isinstance(entry, PaneHintEntry):
        return entry.value, entry.weight
    if isinstance(entry, Mapping):
        return entry.get("value") or "", entry.get("weight")
    return "", None


def _declared_weight(raw: Any) -> float:
    """Positive finite numbers are taken as-is; anything else gets the default."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return DEFAULT_COMPOSITE_WEIGHT
    if not math.isfinite(raw) or raw <= 0:
        return DEFAULT_COMPOSITE_WEIGHT
    return float(raw)


def keyword_tokens(tokens) -> List[str]:
    """
    Post-process raw segmenter output into keywords:
    case-fold, strip edge punctuation, drop stop words and lone hiragana
    particles, de-duplicate keeping first-seen order.
    """
    out: List[str] = []
    for tok in tokens:
        norm = normalize_token(str(tok))
        if not norm:
            continue
        if norm in STOP_WORDS:
            continue
        if is_single_hiragana(norm):
            continue
        out.append(norm)
    return dedupe_in_order(out)


def normalize_weights(hints: Sequence[WeightedHint]) -> List[WeightedHint]:
    total = sum(h.weight for h in hints)
    if total <= 0:
        return []
    weights = [round(h.weight / total, WEIGHT_PRECISION) for h in hints]
    # per-hint rounding drifts with the hint count; the largest weight absorbs it
    drift = round(1.0 - sum(weights), WEIGHT_PRECISION)
    if drift:
        largest = max(range(len(weights)), key=lambda i: weights[i])
        weights[largest] = round(weights[largest] + drift, WEIGHT_PRECISION)
    return [
        WeightedHint(token=h.token, weight=w, source=h.source)
        for h, w in zip(hints, weights)
    ]


class _PendingHints:
    """Accumulates hints, merging identical (token, source) pairs by weight."""

    def __init__(self) -> None:
        self._weights: Dict[Tuple[str, HintSource], float] = {}
        self.raw_tokens: List[str] = []

    def add(self, token: str, weight: float, source: HintSource) -> None:
        if not token or weight <= 0:
            return
        key = (token, source)
        self._weights[key] = self._weights.get(key, 0.0) + weight
        if token not in self.raw_tokens:
            self.raw_tokens.append(token)

    def hints(self) -> List[WeightedHint]:
        # dicts keep insertion order, so first-seen order survives merging
        return [WeightedHint(token=t, weight=w, source=s) for (t, s), w in self._weights.items()]


class HintInterpreter:
    """
    Interprets caller hints into a normalised set of weighted search tokens.

    The exact hint (whole free-text string) and the natural-language keywords
    derived from it carry the same pre-normalisation weight; structured
    hints each carry their declared weight. After merging, all weights are
    rescaled to sum to one.
    """

    def __init__(self, tokenizer: Optional[Tokenizer] = None):
        self.tokenizer = tokenizer if tokenizer is not None else ScriptAwareTokenizer()

    def interpret(
        self,
        hint_text: Optional[str] = None,
        structured_hints: Optional[Sequence[StructuredHint]] = None,
    ) -> HintInterpretation:
        issues: List[str] = []
        pending = _PendingHints()

        for index, entry in enumerate(structured_hints or []):
            value, raw_weight = _entry_fields(entry)
            token = canonical_hint(value)
            if not token:
                issues.append(f"paneHints[{index}] was empty after trimming")
                continue
            pending.add(token, _declared_weight(raw_weight), HintSource.COMPOSITE)

        if hint_text is not None:
            trimmed = normalize_hint_text(hint_text)
            if not trimmed:
                issues.append("paneHint was empty after trimming")
            else:
                pending.add(trimmed.lower(), EXACT_WEIGHT, HintSource.EXACT)
                # collaborator errors propagate; the tokenizer owns its fallback
                keywords = keyword_tokens(self.tokenizer.segment(trimmed))
                if keywords:
                    per_token = NATURAL_LANGUAGE_WEIGHT / len(keywords)
                    for kw in keywords:
                        pending.add(kw, per_token, HintSource.NL)
                else:
                    issues.append("paneHint produced no keywords")

        weighted = normalize_weights(pending.hints())
        if issues:
            logger.debug("Hint interpretation issues: {}", issues)
        return HintInterpretation(
            weighted_hints=weighted,
            raw_tokens=list(pending.raw_tokens),
            issues=issues,
        )
