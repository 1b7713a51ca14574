"""Review Analyzer - sentiment, themes, spam candidates and response facts.

Takes the normalized review list for one listing and produces a
:class:`ReviewAnalysis`, the single input the Reviews category scorer needs.
Every per-review computation is pure; the analyzer keeps no state between
calls, so one instance can be shared across concurrent audits.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any

from gbp_audit.modules.review_analysis.sentiment import score_text
from gbp_audit.modules.review_analysis.spam import detect_spam
from gbp_audit.modules.review_analysis.themes import bucket_for, key_phrases, review_themes
from gbp_audit.results import SentimentResult, SpamFlag, ThemeExtract
from gbp_audit.signals import NormalizedReview
from gbp_audit.utils.helpers import ensure_aware, round_half_up, round_to, utcnow
from gbp_audit.utils.text_processing import term_frequencies

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
_REPLY_WINDOW = timedelta(hours=48)
_STALE_AFTER = timedelta(days=7)
_MAX_COMMON_THEMES = 5
_TARGET_RESPONSE_RATE = 80
_MIN_REVIEW_COUNT = 10
_NEGATIVE_SHARE_LIMIT = 30
_MAX_PRIORITY_REVIEWS = 5


@dataclass(frozen=True)
class AnalyzedReview:
    review: NormalizedReview
    sentiment: SentimentResult
    themes: ThemeExtract
    priority: str


@dataclass
class ReviewAnalysis:
    """Aggregate review facts for one listing."""

    count: int = 0
    average_rating: float = 0.0
    response_rate: int = 0
    replied_within_48h: int = 0
    unreplied_older_than_week: int = 0
    sentiment_distribution: dict[str, int] = field(
        default_factory=lambda: {"positive": 0, "neutral": 0, "negative": 0}
    )
    key_phrases: dict[str, ThemeExtract] = field(default_factory=dict)
    common_themes: list[dict[str, Any]] = field(default_factory=list)
    reviews: list[AnalyzedReview] = field(default_factory=list)
    spam_flags: list[SpamFlag] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def priority_reviews(self) -> list[AnalyzedReview]:
        """The first few high-priority reviews, in input order."""
        return [r for r in self.reviews if r.priority == "high"][:_MAX_PRIORITY_REVIEWS]

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible view, suitable for an audit details payload."""
        return {
            "count": self.count,
            "average_rating": self.average_rating,
            "response_rate": self.response_rate,
            "replied_within_48h": self.replied_within_48h,
            "unreplied_older_than_week": self.unreplied_older_than_week,
            "sentiment_distribution": dict(self.sentiment_distribution),
            "key_phrases": {k: list(v.terms) for k, v in self.key_phrases.items()},
            "common_themes": [dict(t) for t in self.common_themes],
            "reviews": [_review_view(item) for item in self.reviews],
            "priority_reviews": [_review_view(item) for item in self.priority_reviews],
            "spam_reviews": [asdict(f) for f in self.spam_flags],
            "suggestions": list(self.suggestions),
        }


def _review_view(item: AnalyzedReview) -> dict[str, Any]:
    return {
        "id": item.review.id,
        "reviewer_name": item.review.reviewer_name,
        "rating": item.review.rating,
        "comment_text": item.review.comment_text,
        "created_at": ensure_aware(item.review.created_at).isoformat(),
        "has_reply": item.review.has_reply,
        "sentiment": asdict(item.sentiment),
        "themes": list(item.themes.terms),
        "priority": item.priority,
    }


def review_priority(review: NormalizedReview) -> str:
    """Triage order for replying: low ratings and unanswered reviews first."""
    if review.rating <= 2 or not review.has_reply:
        return "high"
    if review.rating == 3:
        return "medium"
    return "low"


class ReviewAnalyzer:
    """Turns raw reviews into sentiment, themes, spam flags and response stats."""

    def analyze(
        self, reviews: list[NormalizedReview], as_of: datetime | None = None
    ) -> ReviewAnalysis:
        """Analyze every review of one listing.

        Args:
            reviews: Normalized reviews, in any order.
            as_of: Reference time for "older than a week" checks. Defaults
                   to now; pass an explicit value for reproducible output.

        Returns:
            A populated :class:`ReviewAnalysis`. An empty list yields the
            zero-valued analysis rather than an error.
        """
        as_of = ensure_aware(as_of or utcnow())
        total = len(reviews)
        if total == 0:
            analysis = ReviewAnalysis()
            analysis.suggestions = self._suggestions(analysis)
            return analysis

        corpus_tf = term_frequencies(r.comment_text or "" for r in reviews)
        analyzed = [
            AnalyzedReview(
                review=r,
                sentiment=score_text(r.comment_text),
                themes=ThemeExtract(source=r.id, terms=tuple(review_themes(r.comment_text or "", corpus_tf))),
                priority=review_priority(r),
            )
            for r in reviews
        ]

        replied = [r for r in reviews if r.has_reply]
        within_48h = sum(
            1
            for r in replied
            if r.reply_timestamp is not None
            and ensure_aware(r.reply_timestamp) - ensure_aware(r.created_at) <= _REPLY_WINDOW
        )
        stale = sum(
            1
            for r in reviews
            if not r.has_reply and as_of - ensure_aware(r.created_at) > _STALE_AFTER
        )

        analysis = ReviewAnalysis(
            count=total,
            average_rating=round_to(sum(r.rating for r in reviews) / total, 1),
            response_rate=round_half_up(len(replied) / total * 100),
            replied_within_48h=within_48h,
            unreplied_older_than_week=stale,
            sentiment_distribution=self._distribution(analyzed),
            key_phrases=self._key_phrases(analyzed),
            common_themes=self._common_themes(analyzed),
            reviews=analyzed,
            spam_flags=detect_spam(reviews),
        )
        analysis.suggestions = self._suggestions(analysis)
        logger.info(
            "Analyzed %d reviews: response rate %d%%, %d spam candidates",
            total, analysis.response_rate, len(analysis.spam_flags),
        )
        return analysis

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    @staticmethod
    def _distribution(analyzed: list[AnalyzedReview]) -> dict[str, int]:
        counts = Counter()
        for item in analyzed:
            label = item.sentiment.label
            if label in ("positive", "highly_positive"):
                counts["positive"] += 1
            elif label in ("negative", "highly_negative"):
                counts["negative"] += 1
            else:
                counts["neutral"] += 1
        total = len(analyzed)
        return {
            key: round_half_up(counts[key] / total * 100)
            for key in ("positive", "neutral", "negative")
        }

    @staticmethod
    def _key_phrases(analyzed: list[AnalyzedReview]) -> dict[str, ThemeExtract]:
        buckets: dict[str, list[str]] = {"positive": [], "neutral": [], "negative": []}
        for item in analyzed:
            buckets[bucket_for(item.sentiment.score)].append(item.review.comment_text or "")
        return {name: key_phrases(texts, name) for name, texts in buckets.items()}

    @staticmethod
    def _common_themes(analyzed: list[AnalyzedReview]) -> list[dict[str, Any]]:
        scores: dict[str, list[float]] = defaultdict(list)
        for item in analyzed:
            for theme in item.themes.terms:
                scores[theme].append(item.sentiment.score)
        table = [
            {
                "theme": theme,
                "count": len(values),
                "sentiment": round_to(sum(values) / len(values), 2),
            }
            for theme, values in scores.items()
            if len(values) > 1
        ]
        table.sort(key=lambda row: row["count"], reverse=True)
        return table[:_MAX_COMMON_THEMES]

    @staticmethod
    def _suggestions(analysis: ReviewAnalysis) -> list[str]:
        """Plain-text review-management advice."""
        suggestions: list[str] = []

        if analysis.response_rate < _TARGET_RESPONSE_RATE:
            suggestions.append(
                f"Increase your response rate from {analysis.response_rate}% to at least "
                f"{_TARGET_RESPONSE_RATE}% by replying to every review"
            )

        unanswered_negative = sum(
            1
            for item in analysis.reviews
            if item.sentiment.label in ("negative", "highly_negative") and not item.review.has_reply
        )
        if unanswered_negative:
            suggestions.append(
                f"Reply to {unanswered_negative} negative review(s) that have no response yet"
            )

        if analysis.unreplied_older_than_week:
            suggestions.append(
                f"{analysis.unreplied_older_than_week} review(s) have waited more than a week "
                "for a reply; respond to them first"
            )

        negative_themes = Counter()
        for item in analysis.reviews:
            if item.sentiment.score < 0:
                negative_themes.update(item.themes.terms)
        repeated = [(t, c) for t, c in negative_themes.most_common(1) if c > 1]
        if repeated:
            theme, count = repeated[0]
            suggestions.append(
                f'Address the recurring complaint about "{theme}" mentioned in {count} reviews'
            )

        if analysis.count < _MIN_REVIEW_COUNT:
            suggestions.append("Ask satisfied customers for reviews to build a larger review base")

        if analysis.sentiment_distribution.get("negative", 0) > _NEGATIVE_SHARE_LIMIT:
            suggestions.append(
                "More than 30% of reviews are negative; review service quality against the "
                "most common complaints"
            )

        if len(suggestions) < 3:
            suggestions.append(
                "Keep engaging with reviewers by thanking them and referencing their feedback"
            )
        return suggestions
