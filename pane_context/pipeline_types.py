"""Typed containers shared across resolver modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Pane:
    """Snapshot of one tmux pane as reported by the candidate source."""

    id: str
    title: str
    session: str
    window: str
    current_command: Optional[str] = None
    is_active: bool = False
    is_active_window: bool = False
    is_active_session: bool = False
    last_used: Optional[int] = None
    tags: Tuple[str, ...] = ()


class HintSource(str, Enum):
    EXACT = "exact"
    COMPOSITE = "composite"
    NL = "nl"


@dataclass(frozen=True)
class WeightedHint:
    token: str
    weight: float
    source: HintSource

    def as_dict(self) -> Dict[str, object]:
        return {"token": self.token, "weight": self.weight, "source": self.source.value}


@dataclass
class HintInterpretation:
    weighted_hints: List[WeightedHint] = field(default_factory=list)
    raw_tokens: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, object]:
        return {
            "weightedHints": [h.as_dict() for h in self.weighted_hints],
            "rawTokens": list(self.raw_tokens),
            "issues": list(self.issues),
        }


class FeedbackRating(str, Enum):
    MATCH = "match"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class FeedbackRecord:
    pane_id: str
    rating: FeedbackRating
    timestamp: float
    hint_signature: Optional[str] = None


@dataclass
class ScoredPane:
    """A pane with its total score, per-stage breakdown and readable reasons."""

    pane: Pane
    total: float
    stage_contributions: Dict[str, float]
    reasons: List[str]
