"""Category scorers, score aggregation and recommendation synthesis."""

from gbp_audit.modules.scoring.aggregator import (
    ALL_CATEGORIES,
    CORE_CATEGORIES,
    EXTENDED_CATEGORIES,
    WeightProfile,
    aggregate,
    select_profile,
)
from gbp_audit.modules.scoring.business import score_business_details
from gbp_audit.modules.scoring.business_info import score_business_info
from gbp_audit.modules.scoring.competitors import score_competitors
from gbp_audit.modules.scoring.extended import (
    score_duplicates,
    score_keywords,
    score_photos,
    score_qna,
)
from gbp_audit.modules.scoring.performance import score_metric, score_performance
from gbp_audit.modules.scoring.posts import analyze_posts, legacy_posts_score, score_posts
from gbp_audit.modules.scoring.recommendations import sort_by_priority, synthesize
from gbp_audit.modules.scoring.reviews import calculate_reviews_score, score_reviews

__all__ = [
    "ALL_CATEGORIES",
    "CORE_CATEGORIES",
    "EXTENDED_CATEGORIES",
    "WeightProfile",
    "aggregate",
    "select_profile",
    "score_business_details",
    "score_business_info",
    "score_competitors",
    "score_duplicates",
    "score_keywords",
    "score_photos",
    "score_qna",
    "score_metric",
    "score_performance",
    "analyze_posts",
    "legacy_posts_score",
    "score_posts",
    "sort_by_priority",
    "synthesize",
    "calculate_reviews_score",
    "score_reviews",
]
