"""Keyword sentiment heuristics and canned replies for degraded mode.

These helpers stand in for the remote model when it is unavailable or not
configured. Once a gateway reply is accepted they are never consulted.
"""

from __future__ import annotations

import random
from enum import Enum


class Sentiment(str, Enum):
    """Emotional tone attached to assistant turns."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"

    @classmethod
    def coerce(cls, value: object) -> "Sentiment | None":
        """Return the matching sentiment or ``None`` for anything unrecognized."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


POSITIVE_WORDS: tuple[str, ...] = (
    "happy",
    "good",
    "great",
    "wonderful",
    "excited",
    "love",
    "grateful",
    "thankful",
    "joy",
    "amazing",
    "better",
    "hope",
    "hopeful",
)

NEGATIVE_WORDS: tuple[str, ...] = (
    "sad",
    "angry",
    "upset",
    "depressed",
    "anxious",
    "worried",
    "stressed",
    "tired",
    "exhausted",
    "lonely",
    "scared",
    "hurt",
    "pain",
    "bad",
    "terrible",
    "awful",
)

RESPONSE_TEMPLATES: dict[Sentiment, tuple[str, ...]] = {
    Sentiment.POSITIVE: (
        "I'm so glad to hear that! It's wonderful when we can recognize and celebrate the good "
        "moments in our lives. What do you think contributed to this positive feeling?",
        "That's beautiful to hear. Positive emotions are worth savoring. Would you like to tell "
        "me more about what's bringing you joy?",
        "How lovely! It sounds like things are going well. Remember to take a moment to "
        "appreciate these feelings.",
    ),
    Sentiment.NEUTRAL: (
        "Thank you for sharing that with me. I'm here to listen whenever you need to talk. Is "
        "there anything specific on your mind today?",
        "I appreciate you opening up. Sometimes just expressing our thoughts can bring clarity. "
        "How are you feeling about things overall?",
        "I hear you. It's okay to just be present with whatever you're experiencing right now. "
        "Would you like to explore any particular thoughts?",
    ),
    Sentiment.NEGATIVE: (
        "I'm really sorry you're going through this. Your feelings are valid, and it takes "
        "courage to express them. I'm here with you. Would you like to tell me more?",
        "That sounds really difficult, and I want you to know that it's okay to feel this way. "
        "You don't have to face these feelings alone. What would feel most supportive right now?",
        "I hear you, and I'm truly sorry you're experiencing this. Remember, seeking support is "
        "a sign of strength. Let's take this one moment at a time together.",
    ),
}


def classify(text: str) -> Sentiment:
    """Classify text by counting positive and negative keyword hits."""
    lowered = (text or "").lower()
    positive_count = sum(1 for word in POSITIVE_WORDS if word in lowered)
    negative_count = sum(1 for word in NEGATIVE_WORDS if word in lowered)

    if positive_count > negative_count:
        return Sentiment.POSITIVE
    if negative_count > positive_count:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def compose(sentiment: Sentiment, rng: random.Random | None = None) -> str:
    """Pick one of the fixed empathetic templates for the given sentiment."""
    options = RESPONSE_TEMPLATES[Sentiment(sentiment)]
    chooser = rng or random
    return chooser.choice(options)
