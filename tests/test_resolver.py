import asyncio

import pytest

from pane_context.config import DescribeRequest, FeedbackInput, FeedbackWeights, ScoringWeights
from pane_context.feedback import FeedbackStore
from pane_context.hints import HintInterpreter
from pane_context.pipeline_types import Pane
from pane_context.resolver import ContextResolver, NoCandidatesError, merge_adjustments, scope_panes
from pane_context.tmux import StaticCandidateSource, TmuxError

WEIGHTS = ScoringWeights(
    command_categories={"vim": 2.0, "tail": 1.0},
    feedback=FeedbackWeights(positive=1.0, negative=1.0, decay_minutes=10),
)

PANES = [
    Pane(
        id="%1", title="vim", session="dev", window="1", current_command="vim",
        is_active=True, is_active_window=True, is_active_session=True, last_used=100,
    ),
    Pane(
        id="%2", title="logs", session="dev", window="1", current_command="tail",
        is_active_session=True, last_used=90,
    ),
    Pane(id="%3", title="shell", session="ops", window="2", current_command="bash", last_used=80),
]


def _resolver(panes, session="dev", clock=lambda: 1_000_000.0, **kwargs):
    return ContextResolver(
        source=StaticCandidateSource(panes, current_session=session),
        weights=kwargs.pop("weights", WEIGHTS),
        clock=clock,
        **kwargs,
    )


def _describe(resolver, **request):
    return asyncio.run(resolver.describe(DescribeRequest(**request)))


def test_no_panes_raises():
    with pytest.raises(NoCandidatesError, match="No tmux panes were detected"):
        _describe(_resolver([]))


def test_hint_match_ranks_first_within_current_session():
    result = _describe(_resolver(PANES), pane_hint="vim")

    assert [p.id for p in result.session_panes] == ["%1", "%2"]
    assert result.session_panes[0].score > result.session_panes[1].score
    assert any("matched hint" in r for r in result.session_panes[0].reasons)
    assert result.debug is None


def test_scopes_to_active_sessions_without_current_session():
    result = _describe(_resolver(PANES, session=None))
    assert {p.id for p in result.session_panes} == {"%1", "%2"}


def test_no_scoping_when_nothing_is_active():
    panes = [Pane(id="%1", title="a", session="x", window="1"), Pane(id="%2", title="b", session="y", window="1")]
    result = _describe(_resolver(panes, session=None))
    assert [p.id for p in result.session_panes] == ["%1", "%2"]


def test_source_without_session_getter_falls_back_to_active_sessions():
    class ListOnly:
        async def list_panes(self):
            return list(PANES)

    resolver = ContextResolver(source=ListOnly(), weights=WEIGHTS, clock=lambda: 0.0)
    result = asyncio.run(resolver.describe())
    assert {p.id for p in result.session_panes} == {"%1", "%2"}


def test_empty_scope_raises():
    with pytest.raises(NoCandidatesError):
        _describe(_resolver(PANES, session="missing"))


def test_feedback_applies_to_same_and_later_calls():
    panes = [
        Pane(id="%1", title="a", session="dev", window="1"),
        Pane(id="%2", title="b", session="dev", window="1"),
    ]
    resolver = _resolver(panes)
    assert [p.id for p in _describe(resolver).session_panes] == ["%1", "%2"]

    corrected = _describe(resolver, feedback=FeedbackInput(pane_id="%1", rating="mismatch"))
    assert [p.id for p in corrected.session_panes] == ["%2", "%1"]
    assert "negative feedback (-1)" in corrected.session_panes[1].reasons

    later = _describe(resolver)
    assert [p.id for p in later.session_panes] == ["%2", "%1"]


def test_feedback_decays_with_clock():
    now = {"t": 0.0}
    panes = [Pane(id="%1", title="a", session="dev", window="1")]
    resolver = _resolver(panes, clock=lambda: now["t"])
    _describe(resolver, feedback={"paneId": "%1", "rating": "match"})

    now["t"] = 5 * 60_000  # half of the 10 minute decay window
    result = _describe(resolver, debug=True)
    assert result.debug["feedback"]["adjustments"]["%1"] == pytest.approx(0.5)


def test_malformed_feedback_is_ignored():
    resolver = _resolver(PANES)
    result = _describe(resolver, feedback={"paneId": "%1", "rating": "sometimes"}, debug=True)
    assert result.debug["feedback"]["adjustments"] == {}
    assert len(resolver.feedback_store) == 0


def test_external_adjustments_merge_additively():
    store = FeedbackStore(ttl_ms=60_000, max_entries=10)
    resolver = _resolver(PANES, feedback_store=store, feedback_adjustments=lambda: {"%2": 0.5, "%9": 1.0})
    result = _describe(resolver, feedback={"paneId": "%2", "rating": "match"}, debug=True)
    assert result.debug["feedback"]["adjustments"] == {"%2": pytest.approx(1.5), "%9": 1.0}


def test_injected_empty_store_is_kept():
    store = FeedbackStore(ttl_ms=60_000, max_entries=1)
    resolver = _resolver(PANES, feedback_store=store)
    assert resolver.feedback_store is store

    _describe(resolver, feedback={"paneId": "%1", "rating": "match"})
    _describe(resolver, feedback={"paneId": "%2", "rating": "mismatch"}, debug=True)
    assert len(store) == 1
    assert store.snapshot()[0].pane_id == "%2"


def test_injected_collaborators_are_used_as_given():
    interpreter = HintInterpreter()
    resolver = _resolver(PANES, hint_interpreter=interpreter)
    assert resolver.hint_interpreter is interpreter
    assert resolver.weights is WEIGHTS


def test_debug_payload():
    result = _describe(_resolver(PANES), pane_hint="Dev Pane", debug=True)
    debug = result.debug

    tokens = {(h["token"], h["source"]) for h in debug["hints"]["weightedHints"]}
    assert ("dev pane", "exact") in tokens
    assert ("dev", "nl") in tokens
    assert [s["paneId"] for s in debug["stages"]] == [p.id for p in result.session_panes]
    assert set(debug["stages"][0]["stageContributions"]) >= {"default", "hint", "feedback"}
    assert debug["feedback"] == {"adjustments": {}}


def test_tags_are_matched_like_structured_hints():
    panes = [
        Pane(id="%1", title="a", session="dev", window="1", last_used=10),
        Pane(id="%2", title="b", session="dev", window="1", tags=("db",), last_used=1),
    ]
    result = _describe(_resolver(panes), tags=["db", "  "])
    assert result.session_panes[0].id == "%2"


def test_collaborator_errors_propagate():
    class Broken:
        async def list_panes(self):
            raise TmuxError("tmux list-panes -a failed: no server running")

    resolver = ContextResolver(source=Broken())
    with pytest.raises(TmuxError):
        asyncio.run(resolver.describe())


def test_scope_and_merge_helpers():
    assert [p.id for p in scope_panes(PANES, "ops")] == ["%3"]
    assert merge_adjustments({"a": 1.0}, {"a": -0.25, "b": 2.0}) == {"a": 0.75, "b": 2.0}
