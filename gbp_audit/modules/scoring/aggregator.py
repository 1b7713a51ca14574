"""Weighted aggregation of category scores into one overall score."""

from __future__ import annotations

import enum
import logging
from types import MappingProxyType
from typing import Mapping

from gbp_audit.utils.helpers import round_half_up

logger = logging.getLogger(__name__)

CORE_CATEGORIES = ("business_details", "reviews", "posts", "competitors")
EXTENDED_CATEGORIES = (
    "business_info",
    "performance",
    "photos",
    "qna",
    "keywords",
    "duplicates",
)
ALL_CATEGORIES = CORE_CATEGORIES + EXTENDED_CATEGORIES


class WeightProfile(enum.Enum):
    """The two weight sets an audit can be scored under.

    LEGACY covers the four core categories only.  EXTENDED spreads the
    weight over all ten categories.
    """

    LEGACY = "legacy"
    EXTENDED = "extended"

    @property
    def weights(self) -> Mapping[str, float]:
        return _PROFILE_WEIGHTS[self]


_PROFILE_WEIGHTS: dict[WeightProfile, Mapping[str, float]] = {
    WeightProfile.LEGACY: MappingProxyType({
        "business_details": 0.30,
        "reviews": 0.30,
        "posts": 0.25,
        "competitors": 0.15,
    }),
    WeightProfile.EXTENDED: MappingProxyType({
        "business_details": 0.10,
        "reviews": 0.15,
        "posts": 0.10,
        "competitors": 0.05,
        "business_info": 0.15,
        "performance": 0.15,
        "photos": 0.10,
        "qna": 0.05,
        "keywords": 0.10,
        "duplicates": 0.05,
    }),
}


def select_profile(scores: Mapping[str, float]) -> WeightProfile:
    """EXTENDED once every category has a score, else LEGACY.

    A partial extended set is aggregated under LEGACY; its scores are still
    reported but carry no weight there.
    """
    if all(category in scores for category in EXTENDED_CATEGORIES):
        return WeightProfile.EXTENDED
    return WeightProfile.LEGACY


def aggregate(
    scores: Mapping[str, float], profile: WeightProfile | None = None
) -> tuple[int, WeightProfile]:
    """Combine category scores under *profile* (auto-selected when None).

    Categories missing from *scores* contribute zero; weights are never
    renormalized over the categories that happen to be present.  Scores for
    categories the profile does not weight are ignored.

    Returns:
        ``(overall_score, profile_used)``.
    """
    profile = profile or select_profile(scores)
    unknown = set(scores) - set(ALL_CATEGORIES)
    if unknown:
        raise ValueError(f"Unknown categories: {sorted(unknown)}")

    # Sorted iteration keeps float summation independent of input order.
    total = sum(
        scores.get(category, 0) * weight
        for category, weight in sorted(profile.weights.items())
    )
    overall = max(0, min(round_half_up(total), 100))
    missing = [c for c in profile.weights if c not in scores]
    if missing:
        logger.warning(
            "Aggregating under %s profile with missing categories: %s",
            profile.value, ", ".join(missing),
        )
    return overall, profile
