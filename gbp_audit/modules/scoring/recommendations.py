"""Recommendation synthesis across category results."""

from typing import Iterable

from gbp_audit.results import CategoryScoreResult, Recommendation


def sort_by_priority(recommendations: Iterable[Recommendation]) -> list[Recommendation]:
    """High before medium before low; equal priorities keep their order."""
    return sorted(recommendations, key=lambda r: r.rank, reverse=True)


def synthesize(results: Iterable[CategoryScoreResult]) -> list[Recommendation]:
    """Collect every category's recommendations into one prioritized list.

    Recommendations are not de-duplicated: the same advice surfacing from
    two categories appears twice.
    """
    collected: list[Recommendation] = []
    for result in results:
        collected.extend(result.recommendations)
    return sort_by_priority(collected)
