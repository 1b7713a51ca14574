"""Heuristic spam-candidate detection for reviews."""

import logging
import re
from typing import Optional

from gbp_audit.results import SpamFlag
from gbp_audit.signals import NormalizedReview

logger = logging.getLogger(__name__)

_URL_RE = re.compile(r"http|www|\.com|\.org|\.net")
_OFF_TOPIC_RE = re.compile(
    r"crypto|bitcoin|investment|loan|diet|weight loss|viagra|casino|seo"
)
_GENERIC_RE = re.compile(r"great|awesome|good|excellent|terrible|worst|bad")

_EXTREME_RATINGS = (1, 5)

PROMOTIONAL_REASON = "Contains promotional URL or unrelated keywords"
SHORT_EXTREME_REASON = "Suspiciously short extreme rating"
GENERIC_EXTREME_REASON = "Generic text with extreme rating"


def check_review(review: NormalizedReview) -> Optional[SpamFlag]:
    """Return a SpamFlag for the first rule *review* trips, else None.

    Rules, in order:
      1. URL or off-topic keyword (0.9)
      2. fewer than 10 characters with a 1 or 5 star rating (0.6)
      3. a generic sentiment word, under 20 characters, 1 or 5 stars (0.5)
    """
    comment = (review.comment_text or "").lower()
    if not comment:
        return None

    reason: Optional[str] = None
    confidence = 0.0
    extreme = review.rating in _EXTREME_RATINGS

    if _URL_RE.search(comment) or _OFF_TOPIC_RE.search(comment):
        reason, confidence = PROMOTIONAL_REASON, 0.9
    elif len(comment) < 10 and extreme:
        reason, confidence = SHORT_EXTREME_REASON, 0.6
    elif _GENERIC_RE.search(comment) and len(comment) < 20 and extreme:
        reason, confidence = GENERIC_EXTREME_REASON, 0.5

    if reason is None:
        return None
    return SpamFlag(
        review_id=review.id,
        reviewer_name=review.reviewer_name,
        reason=reason,
        confidence=confidence,
    )


def detect_spam(reviews: list[NormalizedReview]) -> list[SpamFlag]:
    """Flag spam candidates across *reviews*, preserving input order."""
    flags = [flag for flag in (check_review(r) for r in reviews) if flag is not None]
    if flags:
        logger.info("Flagged %d of %d reviews as potential spam", len(flags), len(reviews))
    return flags
