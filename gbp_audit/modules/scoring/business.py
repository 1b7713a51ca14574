"""Business Details scorer: NAP completeness, description, photos, hours, website."""

import logging
import math
from datetime import datetime

from gbp_audit.results import CategoryCheck, CategoryScoreResult, Recommendation
from gbp_audit.signals import NormalizedBusinessInfo
from gbp_audit.utils.helpers import days_between, ensure_aware, utcnow

logger = logging.getLogger(__name__)

CATEGORY = "business_details"
RECOMMENDATION_THRESHOLD = 70


def _nap_points(name: str, address: str, phone: str) -> int:
    present = sum(1 for part in (name, address, phone) if part)
    if present == 3:
        return 20
    if present == 2:
        return 10
    return 0


def _description_points(length: int) -> int:
    if length >= 750:
        return 25
    if length >= 500:
        return 15
    if length >= 250:
        return 10
    return 0


def _photo_points(count: int) -> int:
    if count >= 10:
        return 20
    if count >= 5:
        return 15
    if count >= 1:
        return 5
    return 0


def _hours_points(days_since_update: int | None) -> int:
    if days_since_update is None:
        return 0
    if days_since_update <= 30:
        return 15
    if days_since_update <= 90:
        return 10
    if days_since_update <= 180:
        return 5
    return 0


def score_business_details(
    business: NormalizedBusinessInfo, as_of: datetime | None = None
) -> CategoryScoreResult:
    """Score listing completeness on a 0-100 scale.

    Args:
        business: Normalized listing data.
        as_of: Reference time for the hours-freshness check.

    Returns:
        CategoryScoreResult; recommendations are only emitted when the
        score falls below 70.
    """
    as_of = as_of or utcnow()
    info = business.details()
    updated_at = info["hours_updated"]
    days_since_update = (
        math.floor(days_between(updated_at, as_of)) if updated_at is not None else None
    )

    nap = _nap_points(info["name"], info["address"], info["phone"])
    desc = _description_points(info["description_length"])
    photos = _photo_points(info["photo_count"])
    hours = _hours_points(days_since_update)
    website = 20 if info["website"] else 0
    score = min(nap + desc + photos + hours + website, 100)

    checks = [
        CategoryCheck(
            field="NAP Completeness",
            status="pass" if nap == 20 else "fail",
            value=f"{nap} points",
            expected="Name, address and phone present",
        ),
        CategoryCheck(
            field="Description Length",
            status="pass" if desc == 25 else "fail",
            value=f"{info['description_length']} characters",
            expected="750+ characters",
        ),
        CategoryCheck(
            field="Photo Count",
            status="pass" if photos == 20 else "fail",
            value=str(info["photo_count"]),
            expected="10+ photos",
        ),
        CategoryCheck(
            field="Hours Freshness",
            status="pass" if hours == 15 else "fail",
            value="never" if days_since_update is None else f"{days_since_update} days ago",
            expected="Updated within 30 days",
        ),
        CategoryCheck(
            field="Website",
            status="pass" if website else "fail",
            value=info["website"] or "Not set",
            expected="Website link present",
        ),
    ]

    recommendations: list[Recommendation] = []
    if score < RECOMMENDATION_THRESHOLD:
        if not info["website"]:
            recommendations.append(Recommendation(
                category=CATEGORY,
                priority="high",
                description="Add a website to your business profile",
                action="Add your business website URL in the GBP dashboard",
                impact="Increases credibility and drives traffic to your website",
            ))
        if info["description_length"] < 750:
            recommendations.append(Recommendation(
                category=CATEGORY,
                priority="medium",
                description="Expand your business description",
                action="Add more details about your services, unique selling points, and business history",
                impact="Helps customers understand your business and improves discoverability",
            ))
        if info["photo_count"] < 5:
            recommendations.append(Recommendation(
                category=CATEGORY,
                priority="high",
                description="Add more photos to your profile",
                action="Upload at least 5 high-quality photos of your business, products, and services",
                impact="Significantly increases engagement and customer interest",
            ))
        if days_since_update is None or days_since_update > 30:
            recommendations.append(Recommendation(
                category=CATEGORY,
                priority="medium",
                description="Update your business hours",
                action="Verify and update your operating hours in the GBP dashboard",
                impact="Prevents customer confusion and missed opportunities",
            ))

    details = dict(info)
    if updated_at is not None:
        details["hours_updated"] = ensure_aware(updated_at).isoformat()
    logger.debug("Business details score: %d", score)
    return CategoryScoreResult(
        category=CATEGORY,
        score=score,
        checks=checks,
        recommendations=recommendations,
        details=details,
    )
