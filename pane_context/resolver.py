from __future__ import annotations

"""
Context resolver: answers "which pane does the caller mean?".

Pipeline per describe call:
- fetch panes from the candidate source, scope them to the current session
  (explicit session, else sessions flagged active, else no scoping)
- interpret hints
- register any feedback carried by the request, then compute decayed
  feedback adjustments (merged with an optional external source)
- score and rank; attach diagnostics when asked
"""

import time
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from loguru import logger

from . import config
from .config import (
    DEFAULT_SCORING_WEIGHTS,
    DescribeRequest,
    DescribeResponse,
    PaneHintEntry,
    ResultPane,
    ScoringWeights,
)
from .feedback import FeedbackStore
from .hints import HintInterpreter
from .logging_setup import audit
from .pipeline_types import FeedbackRecord, HintInterpretation, Pane, ScoredPane
from .scoring import score_panes
from .tmux import CandidateSource

NO_PANES_MESSAGE = (
    "No tmux panes were detected. Run `tmux list-panes` to verify the state "
    "or specify a pane manually."
)


class NoCandidatesError(LookupError):
    def __init__(self, message: str = NO_PANES_MESSAGE):
        super().__init__(message)
        self.message = message


def _now_ms() -> float:
    return time.time() * 1000.0


def to_result_pane(entry: ScoredPane) -> ResultPane:
    pane = entry.pane
    return ResultPane(
        id=pane.id,
        title=pane.title,
        session=pane.session,
        window=pane.window,
        command=pane.current_command,
        score=entry.total,
        reasons=list(entry.reasons),
    )


def merge_adjustments(*sources: Mapping[str, float]) -> Dict[str, float]:
    merged: Dict[str, float] = {}
    for adjustments in sources:
        for pane_id, value in adjustments.items():
            merged[pane_id] = merged.get(pane_id, 0.0) + value
    return merged


def scope_panes(panes: Sequence[Pane], current_session: Optional[str]) -> List[Pane]:
    if current_session:
        return [p for p in panes if p.session == current_session]
    active_sessions = {p.session for p in panes if p.is_active_session}
    if active_sessions:
        return [p for p in panes if p.session in active_sessions]
    return list(panes)


class ContextResolver:
    """
    Composition root for hint interpretation, feedback and scoring.

    Owns its FeedbackStore for the lifetime of the process; pane snapshots
    are fetched per call and never retained.
    """

    def __init__(
        self,
        source: CandidateSource,
        weights: Optional[ScoringWeights] = None,
        hint_interpreter: Optional[HintInterpreter] = None,
        feedback_store: Optional[FeedbackStore] = None,
        feedback_max_entries: int = config.FEEDBACK_MAX_ENTRIES,
        feedback_adjustments: Optional[Callable[[], Mapping[str, float]]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.source = source
        self.weights = weights if weights is not None else DEFAULT_SCORING_WEIGHTS
        self.hint_interpreter = hint_interpreter if hint_interpreter is not None else HintInterpreter()
        # an empty store is falsy (__len__), so test against None
        if feedback_store is None:
            feedback_store = FeedbackStore(
                ttl_ms=self.weights.feedback_ttl_ms,
                max_entries=feedback_max_entries,
            )
        self.feedback_store = feedback_store
        self.external_adjustments = feedback_adjustments
        self.clock = clock or _now_ms

    async def _current_session(self) -> Optional[str]:
        getter = getattr(self.source, "get_current_session", None)
        if getter is None:
            return None
        return await getter()

    def interpret(self, request: DescribeRequest) -> HintInterpretation:
        structured: List[PaneHintEntry] = list(request.pane_hints or [])
        # tags behave like unweighted structured hints
        structured.extend(PaneHintEntry(value=t) for t in (request.tags or []) if t and t.strip())
        return self.hint_interpreter.interpret(
            hint_text=request.pane_hint,
            structured_hints=structured or None,
        )

    async def describe(self, request: Optional[DescribeRequest] = None) -> DescribeResponse:
        request = request or DescribeRequest()

        panes = await self.source.list_panes()
        if not panes:
            raise NoCandidatesError()

        current_session = await self._current_session()
        scoped = scope_panes(panes, current_session)
        if not scoped:
            logger.warning("No panes left after scoping to session {!r}", current_session)
            raise NoCandidatesError()

        interpretation = self.interpret(request)

        timestamp = self.clock()
        if request.feedback is not None:
            self.feedback_store.register(
                FeedbackRecord(
                    pane_id=request.feedback.pane_id,
                    rating=request.feedback.rating,
                    hint_signature=request.feedback.hint_context,
                    timestamp=timestamp,
                )
            )

        external = self.external_adjustments() if self.external_adjustments else {}
        adjustments = merge_adjustments(external, self.feedback_store.get_adjustments(timestamp))

        scored = score_panes(scoped, interpretation.weighted_hints, self.weights, adjustments)
        if not scored:
            raise NoCandidatesError()

        logger.info(
            "Resolved {} pane(s); top={} score={}",
            len(scored),
            scored[0].pane.id,
            scored[0].total,
        )

        response = DescribeResponse(session_panes=[to_result_pane(s) for s in scored])
        if request.debug:
            response.debug = {
                "hints": interpretation.as_dict(),
                "stages": [
                    {
                        "paneId": s.pane.id,
                        "total": s.total,
                        "stageContributions": dict(s.stage_contributions),
                    }
                    for s in scored
                ],
                "feedback": {"adjustments": adjustments},
            }
        return response


async def run_describe(resolver: ContextResolver, request: DescribeRequest) -> DescribeResponse:
    """describe() with an audit record for success and failure."""
    summary = request.model_dump(by_alias=True, exclude_none=True)
    try:
        response = await resolver.describe(request)
    except Exception as e:
        audit("describe-context.error", str(e), request=summary, error=type(e).__name__)
        raise
    audit("describe-context.success", "ok", request=summary)
    return response
