from __future__ import annotations

import random

import pytest

from serenity.services.sentiment import (
    NEGATIVE_WORDS,
    POSITIVE_WORDS,
    RESPONSE_TEMPLATES,
    Sentiment,
    classify,
    compose,
)


@pytest.mark.parametrize("word", NEGATIVE_WORDS)
def test_classify_negative_only_words(word: str) -> None:
    assert classify(f"I feel {word} today") is Sentiment.NEGATIVE


@pytest.mark.parametrize("word", POSITIVE_WORDS)
def test_classify_positive_only_words(word: str) -> None:
    assert classify(word.upper()) is Sentiment.POSITIVE


@pytest.mark.parametrize("text", ["", "   ", "The train leaves at noon.", "happy but sad"])
def test_classify_ties_are_neutral(text: str) -> None:
    assert classify(text) is Sentiment.NEUTRAL


def test_classify_counts_substring_hits_per_listed_word() -> None:
    # "hopeful" also matches "hope"; each listed word counts at most once.
    assert classify("Tired but grateful for a great friend") is Sentiment.POSITIVE
    assert classify("Stressed, anxious and worried but hopeful") is Sentiment.NEGATIVE


@pytest.mark.parametrize("sentiment", list(Sentiment))
def test_compose_returns_member_of_closed_set(sentiment: Sentiment) -> None:
    rng = random.Random(7)
    for _ in range(25):
        assert compose(sentiment, rng) in RESPONSE_TEMPLATES[sentiment]


@pytest.mark.parametrize("sentiment", list(Sentiment))
def test_compose_eventually_uses_every_template(sentiment: Sentiment) -> None:
    rng = random.Random(2024)
    seen = {compose(sentiment, rng) for _ in range(1000)}
    assert seen == set(RESPONSE_TEMPLATES[sentiment])


def test_compose_accepts_plain_string_sentiment() -> None:
    assert compose("negative") in RESPONSE_TEMPLATES[Sentiment.NEGATIVE]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("positive", Sentiment.POSITIVE),
        (" Negative ", Sentiment.NEGATIVE),
        (Sentiment.NEUTRAL, Sentiment.NEUTRAL),
        ("joyful", None),
        (None, None),
        (3, None),
    ],
)
def test_sentiment_coerce(value, expected) -> None:
    assert Sentiment.coerce(value) is expected
