# pane_context/scoring.py
from __future__ import annotations

import math
from typing import Dict, List, Mapping, Optional, Sequence, Set

from .config import WEIGHT_PRECISION, ScoringWeights
from .pipeline_types import Pane, ScoredPane, WeightedHint

# ---------------------------------------------------------------------------
# Stages (fixed evaluation order)
# ---------------------------------------------------------------------------

STAGE_DEFAULT = "default"
STAGE_HINT = "hint"
STAGE_ACTIVE_PANE = "activePane"
STAGE_ACTIVE_WINDOW = "activeWindow"
STAGE_ACTIVE_SESSION = "activeSession"
STAGE_LAYOUT_WINDOW = "layoutSameWindow"
STAGE_LAYOUT_SESSION = "layoutSameSession"
STAGE_COMMAND = "commandCategory"
STAGE_FEEDBACK = "feedback"

STAGES: List[str] = [
    STAGE_DEFAULT,
    STAGE_HINT,
    STAGE_ACTIVE_PANE,
    STAGE_ACTIVE_WINDOW,
    STAGE_ACTIVE_SESSION,
    STAGE_LAYOUT_WINDOW,
    STAGE_LAYOUT_SESSION,
    STAGE_COMMAND,
    STAGE_FEEDBACK,
]

_NO_RECENCY = -math.inf


def _round(value: float) -> float:
    return round(value, WEIGHT_PRECISION)


def format_contribution(value: float) -> str:
    """Signed, short form: '+4', '-0.75', '+0.33'."""
    if float(value).is_integer():
        body = str(int(abs(value)))
    else:
        body = str(round(abs(value), 2))
    return f"{'-' if value < 0 else '+'}{body}"


def pane_matches_token(pane: Pane, token: str) -> bool:
    """Case-insensitive substring match against every searchable pane field."""
    needle = token.lower()
    fields: List[Optional[str]] = [
        pane.id,
        pane.title,
        pane.window,
        pane.session,
        pane.current_command,
    ]
    fields.extend(pane.tags)
    return any(f and needle in f.lower() for f in fields)


# ---------------------------------------------------------------------------
# Per-stage helpers
# ---------------------------------------------------------------------------

def _hint_contribution(
    pane: Pane,
    hints: Sequence[WeightedHint],
    weights: ScoringWeights,
    reasons: List[str],
) -> float:
    total = 0.0
    for hint in hints:
        if not pane_matches_token(pane, hint.token):
            continue
        value = _round(hint.weight * weights.hint)
        if value == 0:
            continue
        total += value
        reasons.append(f'matched hint "{hint.token}" ({format_contribution(value)})')
    return _round(total)


def _flag_contribution(flag: bool, weight: float, label: str, reasons: List[str]) -> float:
    if not flag:
        return 0.0
    value = _round(weight)
    if value != 0:
        reasons.append(f"{label} ({format_contribution(value)})")
    return value


def _command_contribution(pane: Pane, weights: ScoringWeights, reasons: List[str]) -> float:
    command = (pane.current_command or "").lower()
    if not command:
        return 0.0
    value = _round(weights.command_categories.get(command, 0.0))
    if value != 0:
        reasons.append(f'command category "{command}" ({format_contribution(value)})')
    return value


def _feedback_contribution(
    pane: Pane,
    adjustments: Mapping[str, float],
    weights: ScoringWeights,
    reasons: List[str],
) -> float:
    adjustment = adjustments.get(pane.id, 0.0)
    if not adjustment:
        return 0.0
    positive = adjustment > 0
    multiplier = weights.feedback.positive if positive else weights.feedback.negative
    value = _round(adjustment * multiplier)
    if value != 0:
        label = "positive" if positive else "negative"
        reasons.append(f"{label} feedback ({format_contribution(value)})")
    return value


def _score_one(
    pane: Pane,
    hints: Sequence[WeightedHint],
    weights: ScoringWeights,
    adjustments: Mapping[str, float],
    active_windows: Set[str],
    active_sessions: Set[str],
) -> ScoredPane:
    reasons: List[str] = []
    stages: Dict[str, float] = {stage: 0.0 for stage in STAGES}

    stages[STAGE_DEFAULT] = _flag_contribution(True, weights.default_pane, "baseline score", reasons)
    stages[STAGE_HINT] = _hint_contribution(pane, hints, weights, reasons)
    stages[STAGE_ACTIVE_PANE] = _flag_contribution(
        pane.is_active, weights.active_pane, "pane is active", reasons
    )
    stages[STAGE_ACTIVE_WINDOW] = _flag_contribution(
        pane.is_active_window, weights.active_window, "window is active", reasons
    )
    stages[STAGE_ACTIVE_SESSION] = _flag_contribution(
        pane.is_active_session, weights.active_session, "session is active", reasons
    )
    stages[STAGE_LAYOUT_WINDOW] = _flag_contribution(
        pane.window in active_windows,
        weights.layout_bonus.same_window,
        "same window as active",
        reasons,
    )
    stages[STAGE_LAYOUT_SESSION] = _flag_contribution(
        pane.session in active_sessions,
        weights.layout_bonus.same_session,
        "same session as active",
        reasons,
    )
    stages[STAGE_COMMAND] = _command_contribution(pane, weights, reasons)
    stages[STAGE_FEEDBACK] = _feedback_contribution(pane, adjustments, weights, reasons)

    # not clamped: feedback or negative multipliers may push this below zero
    total = _round(sum(stages[s] for s in STAGES))
    return ScoredPane(pane=pane, total=total, stage_contributions=stages, reasons=reasons)


def _rank_key(entry: ScoredPane):
    recency = entry.pane.last_used if entry.pane.last_used is not None else _NO_RECENCY
    # total desc, last_used desc, id asc
    return (-entry.total, -recency, entry.pane.id)


# ---------------------------------------------------------------------------
# Main entry
# ---------------------------------------------------------------------------

def score_panes(
    panes: Sequence[Pane],
    hints: Sequence[WeightedHint],
    weights: ScoringWeights,
    feedback_adjustments: Optional[Mapping[str, float]] = None,
) -> List[ScoredPane]:
    """
    Score every pane independently, then rank deterministically.

    Layout bonuses are relative to the windows/sessions flagged active in the
    whole ``panes`` list, computed once per call. Inputs are not mutated.
    """
    adjustments = feedback_adjustments or {}
    active_windows = {p.window for p in panes if p.is_active_window}
    active_sessions = {p.session for p in panes if p.is_active_session}

    scored = [
        _score_one(p, hints, weights, adjustments, active_windows, active_sessions)
        for p in panes
    ]
    scored.sort(key=_rank_key)
    return scored
