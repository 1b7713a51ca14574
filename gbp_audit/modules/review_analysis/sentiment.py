"""Lexicon-based sentiment scoring for review comments."""

from gbp_audit.modules.review_analysis.lexicon import polarity, stem
from gbp_audit.results import SentimentResult
from gbp_audit.utils.helpers import clamp
from gbp_audit.utils.text_processing import tokenize


def label_for(score: float) -> str:
    """Map a [-1, 1] score to its sentiment label.

    Positive thresholds are tested before negative ones.
    """
    if score > 0.6:
        return "highly_positive"
    if score > 0.3:
        return "positive"
    if score < -0.6:
        return "highly_negative"
    if score < -0.3:
        return "negative"
    return "neutral"


def score_text(text: str) -> SentimentResult:
    """Score *text* as the mean stemmed-token polarity, clamped to [-1, 1]."""
    tokens = [stem(t) for t in tokenize(text or "")]
    if not tokens:
        return SentimentResult(score=0.0, magnitude=0.0, label="neutral")
    raw = sum(polarity(t) for t in tokens) / len(tokens)
    score = clamp(raw, -1.0, 1.0)
    return SentimentResult(score=score, magnitude=abs(score) * 2, label=label_for(score))
