"""Posts scorer: cadence, recency, visual content and service coverage.

Two scoring modes exist.  The enriched mode derives a 0-20 sub-score from
the post list (including how many of the business's services the posts
mention) and scales it by five.  The legacy mode is kept for sources that
only report aggregate post statistics; it is used only when no enriched
sub-score is available.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from gbp_audit.results import CategoryCheck, CategoryScoreResult, Recommendation
from gbp_audit.signals import POST_TYPES, NormalizedPost
from gbp_audit.utils.helpers import days_between, round_half_up, round_to, utcnow

logger = logging.getLogger(__name__)

CATEGORY = "posts"
RECOMMENDATION_THRESHOLD = 70


# ---------------------------------------------------------------------------
# Enriched analysis
# ---------------------------------------------------------------------------

def _missing_services(posts: list[NormalizedPost], services: list[str]) -> list[str]:
    keywords: set[str] = set()
    for post in posts:
        keywords.update(k.lower() for k in post.keywords)
        content = post.content.lower()
        for service in services:
            if service.lower() in content:
                keywords.add(service.lower())

    missing = []
    for service in services:
        target = service.lower()
        covered = any(k == target or k in target or target in k for k in keywords)
        if not covered:
            missing.append(service)
    return missing


def analyze_posts(
    posts: list[NormalizedPost], services: list[str], as_of: datetime | None = None
) -> dict[str, Any]:
    """Compute post statistics and the enriched 0-20 sub-score.

    Returns:
        Dict with count, frequency (posts/week), last_post_age (days),
        with_photos, photo_percentage, types, service_coverage, issues and
        the ``score`` sub-score.
    """
    as_of = as_of or utcnow()
    count = len(posts)
    ordered = sorted(posts, key=lambda p: p.created_at, reverse=True)

    last_post_age = round_half_up(days_between(ordered[0].created_at, as_of)) if ordered else 0
    total_days = round_half_up(days_between(ordered[-1].created_at, as_of)) if ordered else 0
    frequency = count / (total_days / 7) if total_days > 0 else 0.0

    with_photos = sum(1 for p in posts if p.has_photo)
    photo_percentage = round_half_up(with_photos / count * 100) if count else 0
    types = {f"{t}s": sum(1 for p in posts if p.post_type == t) for t in POST_TYPES}

    missing = _missing_services(posts, services)
    coverage = (len(services) - len(missing)) / len(services) * 100 if services else 0.0

    issues: list[dict[str, str]] = []
    if frequency < 1:
        issues.append({
            "issue": "Low posting frequency",
            "suggestion": "Post at least once per week to maintain engagement",
            "impact": "Increased visibility and engagement",
        })
    if last_post_age > 30:
        issues.append({
            "issue": "Outdated content",
            "suggestion": "Create a new post as soon as possible",
            "impact": "Shows your business is active and responsive",
        })
    if photo_percentage < 50:
        issues.append({
            "issue": "Low visual content",
            "suggestion": "Include photos or videos in at least 50% of posts",
            "impact": "Higher engagement rates and better customer attention",
        })
    for service in missing:
        issues.append({
            "issue": f'Service gap: "{service}"',
            "suggestion": f'Create posts highlighting your "{service}" service',
            "impact": "Better visibility for all services you offer",
        })
    if sum(1 for n in types.values() if n > 0) < 3 and count >= 4:
        issues.append({
            "issue": "Limited post variety",
            "suggestion": "Use a mix of Updates, Offers, Events, and Products in your posts",
            "impact": "Higher customer engagement through varied content",
        })

    sub_score = 0
    if frequency >= 1:
        sub_score += 5
    elif frequency >= 0.5:
        sub_score += 3
    elif frequency > 0:
        sub_score += 1

    if ordered:
        if last_post_age <= 7:
            sub_score += 5
        elif last_post_age <= 14:
            sub_score += 4
        elif last_post_age <= 30:
            sub_score += 2
        elif last_post_age <= 60:
            sub_score += 1

    if photo_percentage >= 80:
        sub_score += 5
    elif photo_percentage >= 50:
        sub_score += 3
    elif photo_percentage >= 30:
        sub_score += 1

    if coverage >= 80:
        sub_score += 5
    elif coverage >= 60:
        sub_score += 4
    elif coverage >= 40:
        sub_score += 2
    elif coverage > 0:
        sub_score += 1

    return {
        "count": count,
        "frequency": round_to(frequency, 2),
        "last_post_age": last_post_age,
        "with_photos": with_photos,
        "photo_percentage": photo_percentage,
        "types": types,
        "posts": [
            {
                "id": p.id,
                "content": p.content,
                "created_at": p.created_at.isoformat(),
                "type": p.post_type,
                "has_photo": p.has_photo,
            }
            for p in ordered[:5]
        ],
        "service_coverage": {
            "total": len(services),
            "covered": len(services) - len(missing),
            "missing": missing,
            "percentage": round_half_up(coverage),
        },
        "issues": issues,
        "score": sub_score,
    }


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def legacy_posts_score(
    frequency: float, last_post_age: float, count: int, with_photos: int
) -> int:
    score = 0
    if frequency >= 2:
        score += 40
    elif frequency >= 1:
        score += 30
    elif frequency >= 0.5:
        score += 20
    elif frequency >= 0.25:
        score += 10

    if last_post_age <= 7:
        score += 30
    elif last_post_age <= 14:
        score += 20
    elif last_post_age <= 30:
        score += 10

    if count > 0:
        photo_percentage = with_photos / count * 100
        if photo_percentage >= 80:
            score += 30
        elif photo_percentage >= 60:
            score += 20
        elif photo_percentage >= 40:
            score += 10
    return min(score, 100)


def score_posts(
    posts: list[NormalizedPost],
    services: list[str],
    as_of: datetime | None = None,
    enriched_score: Optional[int] = None,
    enriched: bool = True,
) -> CategoryScoreResult:
    """Score posting activity.

    Args:
        posts: Normalized posts.
        services: Business services used for coverage analysis.
        as_of: Reference time for age calculations.
        enriched_score: Pre-computed 0-20 sub-score from the data source.
                        Takes precedence over everything else when set.
        enriched: When False and no *enriched_score* is supplied, score
                  with the legacy aggregate rules instead.
    """
    stats = analyze_posts(posts, services, as_of)

    if enriched_score is not None:
        stats["score"] = enriched_score
        score = enriched_score * 5
        mode = "enriched"
    elif enriched:
        score = stats["score"] * 5
        mode = "enriched"
    else:
        last_post_age = stats["last_post_age"] if stats["count"] else float("inf")
        score = legacy_posts_score(
            stats["frequency"], last_post_age, stats["count"], stats["with_photos"]
        )
        mode = "legacy"
    score = max(0, min(score, 100))

    checks = [
        CategoryCheck(
            field="Posting Frequency",
            status="pass" if stats["frequency"] >= 1 else "fail",
            value=f"{stats['frequency']} posts/week",
            expected="At least 1 post per week",
        ),
        CategoryCheck(
            field="Last Post",
            status="pass" if stats["count"] and stats["last_post_age"] <= 14 else "fail",
            value=f"{stats['last_post_age']} days ago" if stats["count"] else "No posts",
            expected="Within the last 14 days",
        ),
        CategoryCheck(
            field="Posts With Photos",
            status="pass" if stats["photo_percentage"] >= 80 else "fail",
            value=f"{stats['photo_percentage']}%",
            expected="80% or more",
        ),
        CategoryCheck(
            field="Service Coverage",
            status="pass" if not stats["service_coverage"]["missing"] else "fail",
            value=f"{stats['service_coverage']['covered']}/{stats['service_coverage']['total']}",
            expected="Every service mentioned in posts",
        ),
    ]

    recommendations: list[Recommendation] = []
    if score < RECOMMENDATION_THRESHOLD:
        if stats["frequency"] < 1:
            recommendations.append(Recommendation(
                category=CATEGORY,
                priority="high",
                description="Increase posting frequency",
                action="Post at least once per week about promotions, events, or business updates",
                impact="Keeps your profile active and engaged with customers",
            ))
        if not stats["count"] or stats["last_post_age"] > 14:
            recommendations.append(Recommendation(
                category=CATEGORY,
                priority="high",
                description="Create a new post soon",
                action="Publish a new update about your business within the next week",
                impact="Signals to Google that your profile is active and current",
            ))
        if stats["count"] > 0 and stats["with_photos"] / stats["count"] < 0.8:
            recommendations.append(Recommendation(
                category=CATEGORY,
                priority="medium",
                description="Include images in more posts",
                action="Add high-quality images to at least 80% of your posts",
                impact="Increases engagement and makes posts more visually appealing",
            ))

    stats["mode"] = mode
    logger.debug("Posts score (%s): %d", mode, score)
    return CategoryScoreResult(
        category=CATEGORY,
        score=score,
        checks=checks,
        recommendations=recommendations,
        details=stats,
    )
