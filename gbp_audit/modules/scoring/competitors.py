"""Competitors scorer: review volume, rating and posting activity vs. local rivals."""

import logging
import math

from gbp_audit.results import CategoryCheck, CategoryScoreResult, Recommendation
from gbp_audit.signals import NormalizedCompetitor

logger = logging.getLogger(__name__)

CATEGORY = "competitors"
RECOMMENDATION_THRESHOLD = 70
_NEUTRAL_SCORE = 50


def _ratio_adjustment(value: float, average: float) -> int:
    if value >= average * 1.25:
        return 15
    if value >= average:
        return 10
    if value >= average * 0.75:
        return 5
    if value < average * 0.5:
        return -10
    return 0


def _rating_adjustment(rating: float, average: float) -> int:
    if rating >= average + 0.5:
        return 15
    if rating >= average:
        return 10
    if rating >= average - 0.5:
        return 5
    if rating < average - 1:
        return -10
    return 0


def score_competitors(
    review_count: int,
    average_rating: float,
    post_count: int,
    competitors: list[NormalizedCompetitor],
) -> CategoryScoreResult:
    """Compare the listing to the mean of its competitors.

    Starts from a neutral 50.  With no competitor data the score stays at
    50 and no recommendations are produced.
    """
    if not competitors:
        logger.info("No competitor data available for scoring")
        return CategoryScoreResult(
            category=CATEGORY,
            score=_NEUTRAL_SCORE,
            details={"competitors": [], "averages": None},
        )

    n = len(competitors)
    avg_reviews = sum(c.reviews for c in competitors) / n
    avg_rating = sum(c.rating for c in competitors) / n
    avg_posts = sum(c.posts for c in competitors) / n

    score = _NEUTRAL_SCORE
    score += _ratio_adjustment(review_count, avg_reviews)
    score += _rating_adjustment(average_rating, avg_rating)
    score += _ratio_adjustment(post_count, avg_posts)
    score = max(0, min(score, 100))

    checks = [
        CategoryCheck(
            field="Review Count vs Competitors",
            status="pass" if review_count >= avg_reviews else "fail",
            value=str(review_count),
            expected=f"At least {avg_reviews:.1f} (competitor average)",
        ),
        CategoryCheck(
            field="Rating vs Competitors",
            status="pass" if average_rating >= avg_rating else "fail",
            value=f"{average_rating:.1f}",
            expected=f"At least {avg_rating:.1f} (competitor average)",
        ),
        CategoryCheck(
            field="Posts vs Competitors",
            status="pass" if post_count >= avg_posts else "fail",
            value=str(post_count),
            expected=f"At least {avg_posts:.1f} (competitor average)",
        ),
    ]

    recommendations: list[Recommendation] = []
    if score < RECOMMENDATION_THRESHOLD:
        if review_count < avg_reviews * 0.8:
            recommendations.append(Recommendation(
                category=CATEGORY,
                priority="high",
                description="Close the review gap with competitors",
                action=f"Aim to get {math.ceil(avg_reviews - review_count)} more reviews to match competitors",
                impact="Helps you compete more effectively in local searches",
            ))
        if average_rating < avg_rating - 0.3:
            recommendations.append(Recommendation(
                category=CATEGORY,
                priority="medium",
                description="Improve your rating compared to competitors",
                action="Focus on service improvements in areas where competitors excel",
                impact="Helps you stand out in competitive local searches",
            ))
        if post_count < avg_posts * 0.7:
            recommendations.append(Recommendation(
                category=CATEGORY,
                priority="medium",
                description="Match competitors' posting activity",
                action=f"Create {math.ceil(avg_posts - post_count)} more posts to catch up to competitor activity",
                impact="Ensures your business maintains visibility compared to competitors",
            ))

    return CategoryScoreResult(
        category=CATEGORY,
        score=score,
        checks=checks,
        recommendations=recommendations,
        details={
            "competitors": [
                {"name": c.name, "reviews": c.reviews, "rating": c.rating, "posts": c.posts}
                for c in competitors
            ],
            "averages": {
                "reviews": round(avg_reviews, 1),
                "rating": round(avg_rating, 2),
                "posts": round(avg_posts, 1),
            },
        },
    )
