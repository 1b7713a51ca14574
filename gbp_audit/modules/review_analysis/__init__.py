"""Review analysis: sentiment, themes, key phrases and spam detection."""

from gbp_audit.modules.review_analysis.analyzer import (
    AnalyzedReview,
    ReviewAnalysis,
    ReviewAnalyzer,
    review_priority,
)
from gbp_audit.modules.review_analysis.sentiment import label_for, score_text
from gbp_audit.modules.review_analysis.spam import check_review, detect_spam

__all__ = [
    "AnalyzedReview",
    "ReviewAnalysis",
    "ReviewAnalyzer",
    "review_priority",
    "label_for",
    "score_text",
    "check_review",
    "detect_spam",
]
