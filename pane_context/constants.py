from __future__ import annotations

"""Stop-word vocabularies used when turning a free-text hint into keywords.

Kept separate from the interpreter so both the English and Japanese lists can
be reviewed (and extended) without touching the weighting code.
"""

ENGLISH_STOP_WORDS = frozenset(
    [
        "the",
        "a",
        "an",
        "and",
        "or",
        "to",
        "for",
        "of",
        "in",
        "on",
        "with",
        "be",
        "is",
        "are",
        "was",
        "were",
        "me",
        "my",
        "please",
        "show",
        "give",
        "want",
        "need",
        "this",
        "that",
        "from",
        "into",
        "by",
        "about",
        "at",
        "it",
    ]
)

JAPANESE_STOP_WORDS = frozenset(
    [
        "の",
        "が",
        "を",
        "に",
        "は",
        "へ",
        "と",
        "で",
        "です",
        "ます",
        "ください",
        "下さい",
        "欲しい",
        "ほしい",
        "したい",
        "したく",
        "見たい",
        "みたい",
        "たい",
        "しましょう",
        "し",
        "して",
        "て",
        "よう",
        "ません",
        "から",
        "まで",
    ]
)

STOP_WORDS = ENGLISH_STOP_WORDS | JAPANESE_STOP_WORDS
