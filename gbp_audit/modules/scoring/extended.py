"""Photos, Q&A, Keywords and Duplicates scorers.

These categories are scored directly from upstream audit figures; most of
their recommendation text also comes from the data source.
"""

import logging
from dataclasses import asdict

from gbp_audit.results import CategoryCheck, CategoryScoreResult, Recommendation
from gbp_audit.signals import (
    NormalizedDuplicateListing,
    NormalizedKeywordUsage,
    NormalizedPhotoAudit,
    NormalizedQnA,
)
from gbp_audit.utils.helpers import clamp, format_number, round_half_up

logger = logging.getLogger(__name__)

DUPLICATE_PENALTY = 30


def score_photos(photos: NormalizedPhotoAudit) -> CategoryScoreResult:
    """Photo coverage is assessed upstream; its score is taken as-is.

    Category scores are whole numbers, so a fractional coverage score is
    rounded half up and anything outside 0..100 is clamped.  Whole numbers
    in range pass through unchanged.
    """
    score = int(clamp(round_half_up(photos.coverage_score), 0, 100))
    recs = [
        Recommendation(
            category="photos",
            priority="medium",
            description=text,
            action="Enhance business photos",
            impact="Improved visual appeal and customer trust",
        )
        for text in photos.recommendations
    ]
    return CategoryScoreResult(
        category="photos",
        score=score,
        checks=[
            CategoryCheck(
                field="Photo Coverage",
                status="pass" if not photos.recommendations else "fail",
                value=f"{photos.total_count} photos",
                expected="Interior, exterior, product and team photos",
            )
        ],
        recommendations=recs,
        details=asdict(photos),
    )


def score_qna(qna: NormalizedQnA) -> CategoryScoreResult:
    unanswered_share = qna.unanswered_count / max(qna.total_questions, 1)
    score = int(clamp(round_half_up(100 - unanswered_share * 100), 0, 100))
    recs = [
        Recommendation(
            category="qna",
            priority="medium",
            description=text,
            action="Optimize Q&A section",
            impact="Better customer interaction and SEO",
        )
        for text in qna.recommendations
    ]
    return CategoryScoreResult(
        category="qna",
        score=score,
        checks=[
            CategoryCheck(
                field="Unanswered Questions",
                status="pass" if qna.unanswered_count == 0 else "fail",
                value=str(qna.unanswered_count),
                expected="0",
            )
        ],
        recommendations=recs,
        details=asdict(qna),
    )


def score_keywords(keywords: NormalizedKeywordUsage) -> CategoryScoreResult:
    """Weighted count of target keywords found in description, posts and reviews."""
    raw = len(keywords.description) * 20 + len(keywords.posts) * 10 + len(keywords.reviews) * 5
    score = int(clamp(raw, 0, 100))
    recs = [
        Recommendation(
            category="keywords",
            priority="high",
            description=f"Add missing keyword '{gap}' to your business profile",
            action="Update business description and posts",
            impact="Improved search visibility for target keywords",
        )
        for gap in keywords.gaps
    ]
    checks = [
        CategoryCheck(
            field=f"Keyword: {kw}",
            status="fail" if kw in keywords.gaps else "pass",
            value="missing" if kw in keywords.gaps else "present",
            expected="Used in description, posts or reviews",
        )
        for kw in keywords.target_keywords
    ]
    return CategoryScoreResult(
        category="keywords",
        score=score,
        checks=checks,
        recommendations=recs,
        details=asdict(keywords),
    )


def score_duplicates(duplicates: list[NormalizedDuplicateListing]) -> CategoryScoreResult:
    score = max(0, 100 - len(duplicates) * DUPLICATE_PENALTY)
    recs = [
        Recommendation(
            category="duplicates",
            priority="high",
            description=(
                f'Potential duplicate listing found: "{dup.name}" '
                f"(match score: {format_number(dup.match_score)}%)"
            ),
            action="Contact Google to merge or remove duplicate listing",
            impact="Prevent split customer reviews and traffic",
        )
        for dup in duplicates
    ]
    if duplicates:
        logger.info("Found %d potential duplicate listings", len(duplicates))
    return CategoryScoreResult(
        category="duplicates",
        score=score,
        checks=[
            CategoryCheck(
                field="Duplicate Listings",
                status="pass" if not duplicates else "fail",
                value=str(len(duplicates)),
                expected="0",
            )
        ],
        recommendations=recs,
        details={"duplicate_listings": [asdict(d) for d in duplicates]},
    )
