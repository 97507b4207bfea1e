from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------
# Paths
# ---------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[1]

LOG_DIR = PROJECT_ROOT / "logs"
DEFAULT_AUDIT_PATH = LOG_DIR / "audit.jsonl"


# ---------------------------
# Env toggles
# ---------------------------

def parse_positive_int(value: Optional[str], fallback: int) -> int:
    """Parse a positive integer env value, falling back on junk or <= 0."""
    if not value:
        return fallback
    try:
        parsed = int(value.strip())
    except ValueError:
        return fallback
    if parsed <= 0:
        return fallback
    return parsed


TMUX_PATH = os.getenv("TMUX_CONTEXT_TMUX_PATH") or "tmux"
AUDIT_PATH = Path(os.getenv("TMUX_CONTEXT_AUDIT_PATH") or DEFAULT_AUDIT_PATH)
LOG_LEVEL = os.getenv("TMUX_CONTEXT_LOG_LEVEL", "INFO").upper()

DEFAULT_FEEDBACK_MAX_ENTRIES = 200
FEEDBACK_MAX_ENTRIES = parse_positive_int(
    os.getenv("TMUX_CONTEXT_FEEDBACK_MAX_ENTRIES"), DEFAULT_FEEDBACK_MAX_ENTRIES
)


# ---------------------------
# Hint interpretation
# ---------------------------

EXACT_WEIGHT = 1.0
NATURAL_LANGUAGE_WEIGHT = 1.0   # shared by all nl tokens of one hint
DEFAULT_COMPOSITE_WEIGHT = 1.0
WEIGHT_PRECISION = 6            # decimal places kept after normalisation


# ---------------------------
# Scoring weights
# ---------------------------

class LayoutBonus(BaseModel):
    model_config = ConfigDict(frozen=True)

    same_window: float = 1.5
    same_session: float = 0.75


class FeedbackWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    positive: float = 1.0
    negative: float = 1.0
    decay_minutes: float = 30.0


class ScoringWeights(BaseModel):
    """
    Per-stage multipliers for the pane scorer.

    Values are taken as given: there is no sign or range validation, so a
    negative multiplier turns its stage into a penalty.
    """

    model_config = ConfigDict(frozen=True)

    hint: float = 4.0
    active_pane: float = 3.0
    active_window: float = 2.0
    active_session: float = 1.0
    default_pane: float = 0.5
    command_categories: Dict[str, float] = Field(
        default_factory=lambda: {"vim": 2.0, "tail": 1.0, "ssh": 1.0}
    )
    layout_bonus: LayoutBonus = Field(default_factory=LayoutBonus)
    feedback: FeedbackWeights = Field(default_factory=FeedbackWeights)

    @property
    def feedback_ttl_ms(self) -> float:
        return self.feedback.decay_minutes * 60_000


DEFAULT_SCORING_WEIGHTS = ScoringWeights()


# ---------------------------
# Pydantic models shared around the app
# ---------------------------

class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PaneHintEntry(_CamelModel):
    value: str
    weight: Optional[float] = None


class FeedbackInput(_CamelModel):
    pane_id: str = Field(alias="paneId")
    rating: str
    hint_context: Optional[str] = Field(default=None, alias="hintContext")


class DescribeRequest(_CamelModel):
    """
    Request body for POST /describe and the resolver entry point.
    """

    pane_hint: Optional[str] = Field(default=None, alias="paneHint")
    pane_hints: Optional[List[PaneHintEntry]] = Field(default=None, alias="paneHints")
    tags: Optional[List[str]] = None
    feedback: Optional[FeedbackInput] = None
    debug: bool = False


class ResultPane(_CamelModel):
    id: str
    title: str
    session: str
    window: str
    command: Optional[str] = None
    score: float
    reasons: List[str]


class DescribeResponse(_CamelModel):
    """
    Response body for POST /describe.
    """

    session_panes: List[ResultPane] = Field(alias="sessionPanes")
    debug: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    """
    Response body for GET /health.
    """

    status: str
