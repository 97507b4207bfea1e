from pane_context.normalize import (
    canonical_hint,
    dedupe_in_order,
    fallback_segment,
    has_cjk,
    is_single_hiragana,
    normalize_hint_text,
    normalize_token,
    strip_edge_punctuation,
)


def test_normalize_hint_text_collapses_whitespace_and_nfkc():
    assert normalize_hint_text("  Ｄｅｖ \t\n  Pane  ") == "Dev Pane"
    assert normalize_hint_text(None) == ""


def test_canonical_hint_lowercases():
    assert canonical_hint(" Build   LOGS ") == "build logs"


def test_normalize_token_strips_edges_and_casefolds():
    assert normalize_token("(Straße)!") == "strasse"
    assert normalize_token("--%1--") == "%1"
    assert normalize_token("...") == ""


def test_strip_edge_punctuation_keeps_inner_characters():
    assert strip_edge_punctuation("'node.js'") == "node.js"
    assert strip_edge_punctuation("_tail_") == "tail"


def test_script_checks():
    assert has_cjk("ログを見る")
    assert has_cjk("dev 環境")
    assert not has_cjk("dev pane")
    assert is_single_hiragana("を")
    assert not is_single_hiragana("ログ")
    assert not is_single_hiragana("を見")


def test_fallback_segment_splits_on_punctuation():
    assert fallback_segment("api-server/logs, %1 #2") == ["api", "server", "logs", "%1", "#2"]
    assert fallback_segment("") == []


def test_dedupe_in_order():
    assert dedupe_in_order(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
