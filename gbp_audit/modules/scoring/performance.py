"""Performance scorer: interaction metrics against industry benchmarks."""

import logging
from dataclasses import asdict

from gbp_audit.results import CategoryCheck, CategoryScoreResult, Recommendation
from gbp_audit.signals import NormalizedPerformance, PerformanceMetric
from gbp_audit.utils.helpers import clamp, format_number, round_half_up

logger = logging.getLogger(__name__)

CATEGORY = "performance"
RECOMMENDATION_THRESHOLD = 70

METRIC_WEIGHTS: dict[str, float] = {
    "total_interactions": 0.20,
    "calls": 0.10,
    "bookings": 0.15,
    "direction_requests": 0.15,
    "website_clicks": 0.15,
    "messages": 0.10,
    "searches": 0.15,
}

_STATUS_BASE = {"above": 85, "equal": 70, "below": 50}


def score_metric(metric: PerformanceMetric) -> float:
    """Benchmark-relative base, nudged by up to +/-15 for the period trend."""
    base = _STATUS_BASE.get(metric.status, 50)
    base += clamp(metric.change_percent / 2, -15, 15)
    return clamp(base, 0, 100)


def score_performance(performance: NormalizedPerformance) -> CategoryScoreResult:
    metric_scores = {
        name: score_metric(getattr(performance, name)) for name in METRIC_WEIGHTS
    }
    score = round_half_up(
        sum(metric_scores[name] * weight for name, weight in METRIC_WEIGHTS.items())
    )
    score = int(clamp(score, 0, 100))

    checks = [
        CategoryCheck(
            field=name,
            status="fail" if getattr(performance, name).status == "below" else "pass",
            value=format_number(getattr(performance, name).current),
            expected=f"At or above benchmark ({format_number(getattr(performance, name).benchmark)})",
        )
        for name in METRIC_WEIGHTS
    ]

    recs: list[Recommendation] = []
    directions = performance.direction_requests
    if directions.change_percent < -5:
        recs.append(Recommendation(
            category=CATEGORY,
            priority="high",
            description=(
                f"Direction requests have declined by "
                f"{format_number(abs(directions.change_percent))}% since last month"
            ),
            action="Update your business address and service area, and verify your map pin is accurate",
            impact="Increase foot traffic and in-store conversions",
        ))
    if performance.calls.status == "below":
        recs.append(Recommendation(
            category=CATEGORY,
            priority="medium",
            description="Call volume is below industry benchmark",
            action="Make your phone number more prominent in posts and business description",
            impact="Increase direct client communication and booking opportunities",
        ))
    if performance.website_clicks.change_percent < 0:
        recs.append(Recommendation(
            category=CATEGORY,
            priority="medium",
            description="Website clicks have decreased compared to last month",
            action="Add a stronger call-to-action in your business description and posts",
            impact="Drive more traffic to your website",
        ))
    if performance.messages.status == "below":
        recs.append(Recommendation(
            category=CATEGORY,
            priority="low",
            description="Message volume is below benchmark",
            action="Enable messaging feature and respond quickly to incoming messages",
            impact="Improve customer engagement and satisfaction",
        ))
    if performance.bookings.status == "below":
        recs.append(Recommendation(
            category=CATEGORY,
            priority="high",
            description="Booking volume is below industry average",
            action="Highlight booking option in your profile and create posts about special offers",
            impact="Increase direct bookings and revenue",
        ))
    if score < RECOMMENDATION_THRESHOLD:
        recs.append(Recommendation(
            category=CATEGORY,
            priority="medium",
            description="Overall profile interaction can be improved",
            action="Create more engaging posts with professional images and clear calls-to-action",
            impact="Boost overall profile performance and visibility",
        ))

    details = {name: asdict(getattr(performance, name)) for name in METRIC_WEIGHTS}
    details["metric_scores"] = {k: round(v, 1) for k, v in metric_scores.items()}
    details["top_queries"] = list(performance.top_queries)
    return CategoryScoreResult(
        category=CATEGORY,
        score=score,
        checks=checks,
        recommendations=recs,
        details=details,
    )
