"""Reviews scorer: volume, average rating and response rate."""

import logging
from typing import Optional

from gbp_audit.modules.review_analysis import ReviewAnalysis
from gbp_audit.results import CategoryCheck, CategoryScoreResult, Recommendation

logger = logging.getLogger(__name__)

CATEGORY = "reviews"
RECOMMENDATION_THRESHOLD = 70


def _tier(value: float, tiers: tuple[tuple[float, int], ...]) -> int:
    """Points for the first (threshold, points) pair that *value* reaches."""
    for threshold, points in tiers:
        if value >= threshold:
            return points
    return 0


_COUNT_TIERS = ((100, 35), (50, 25), (25, 15), (10, 5))
_RATING_TIERS = ((4.5, 35), (4.0, 25), (3.5, 15), (3.0, 5))
_RESPONSE_TIERS = ((90, 30), (80, 25), (60, 15), (40, 5))


def calculate_reviews_score(count: int, average_rating: float, response_rate: float) -> int:
    score = (
        _tier(count, _COUNT_TIERS)
        + _tier(average_rating, _RATING_TIERS)
        + _tier(response_rate, _RESPONSE_TIERS)
    )
    return min(score, 100)


def score_reviews(
    analysis: ReviewAnalysis,
    review_count: Optional[int] = None,
    average_rating: Optional[float] = None,
) -> CategoryScoreResult:
    """Score the review profile.

    Args:
        analysis: Output of the Review Analyzer.
        review_count: Listing-level total, when the source reports more
                      reviews than were fetched.
        average_rating: Listing-level rating, same caveat.
    """
    count = review_count if review_count is not None else analysis.count
    rating = average_rating if average_rating is not None else analysis.average_rating
    response_rate = analysis.response_rate
    score = calculate_reviews_score(count, rating, response_rate)

    checks = [
        CategoryCheck(
            field="Review Count",
            status="pass" if count >= 50 else "fail",
            value=str(count),
            expected="50+ reviews",
        ),
        CategoryCheck(
            field="Average Rating",
            status="pass" if rating >= 4.0 else "fail",
            value=f"{rating:.1f}",
            expected="4.0 or higher",
        ),
        CategoryCheck(
            field="Response Rate",
            status="pass" if response_rate >= 80 else "fail",
            value=f"{response_rate}%",
            expected="80% or higher",
        ),
    ]

    recommendations: list[Recommendation] = []
    if score < RECOMMENDATION_THRESHOLD:
        if count < 50:
            recommendations.append(Recommendation(
                category=CATEGORY,
                priority="high",
                description="Increase your review count",
                action="Implement a review request campaign targeting satisfied customers",
                impact="Builds credibility and improves local search ranking",
            ))
        if rating < 4.0:
            recommendations.append(Recommendation(
                category=CATEGORY,
                priority="high",
                description="Improve your average rating",
                action="Address common complaints from negative reviews and improve service quality",
                impact="Directly affects customer perception and conversion rates",
            ))
        if response_rate < 80:
            recommendations.append(Recommendation(
                category=CATEGORY,
                priority="medium",
                description="Increase your review response rate",
                action="Respond to all reviews, both positive and negative, within 24-48 hours",
                impact="Shows engagement and concern for customer feedback",
            ))

    details = analysis.to_dict()
    details["count"] = count
    details["average_rating"] = rating
    return CategoryScoreResult(
        category=CATEGORY,
        score=score,
        checks=checks,
        recommendations=recommendations,
        details=details,
    )
