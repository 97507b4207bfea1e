from pane_context.config import (
    DEFAULT_SCORING_WEIGHTS,
    DescribeRequest,
    DescribeResponse,
    HealthResponse,
    ResultPane,
    ScoringWeights,
    parse_positive_int,
)


def test_parse_positive_int():
    assert parse_positive_int(None, 200) == 200
    assert parse_positive_int("", 200) == 200
    assert parse_positive_int("50", 200) == 50
    assert parse_positive_int("-3", 200) == 200
    assert parse_positive_int("0", 200) == 200
    assert parse_positive_int("lots", 200) == 200


def test_default_weights():
    w = DEFAULT_SCORING_WEIGHTS
    assert (w.hint, w.active_pane, w.active_window, w.active_session, w.default_pane) == (4, 3, 2, 1, 0.5)
    assert w.command_categories == {"vim": 2, "tail": 1, "ssh": 1}
    assert w.layout_bonus.same_window == 1.5
    assert w.layout_bonus.same_session == 0.75
    assert w.feedback_ttl_ms == 30 * 60_000


def test_weights_accept_negative_values():
    w = ScoringWeights(hint=-4, default_pane=-0.5)
    assert w.hint == -4
    assert w.default_pane == -0.5


def test_describe_request_accepts_camel_and_snake_case():
    camel = DescribeRequest.model_validate(
        {"paneHint": "logs", "paneHints": [{"value": "api", "weight": 2}],
         "feedback": {"paneId": "%1", "rating": "match", "hintContext": "logs"}}
    )
    snake = DescribeRequest(pane_hint="logs")
    assert camel.pane_hint == snake.pane_hint == "logs"
    assert camel.pane_hints[0].weight == 2
    assert camel.feedback.pane_id == "%1"
    assert camel.feedback.hint_context == "logs"
    assert camel.debug is False


def test_describe_response_serializes_with_aliases():
    resp = DescribeResponse(
        session_panes=[ResultPane(id="%1", title="t", session="s", window="1", score=1.0, reasons=[])]
    )
    dumped = resp.model_dump(by_alias=True)
    assert "sessionPanes" in dumped
    assert dumped["sessionPanes"][0]["command"] is None


def test_health_response():
    assert HealthResponse(status="healthy").status == "healthy"
