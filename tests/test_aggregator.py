"""Tests for weighted aggregation and recommendation synthesis."""

import pytest

from gbp_audit.results import CategoryScoreResult, Recommendation


def _rec(priority, description):
    return Recommendation(
        category="test",
        priority=priority,
        description=description,
        action="act",
        impact="impact",
    )


# ===========================================================================
# 1. Weight profiles
# ===========================================================================
class TestWeightProfiles:
    """Profile weights and selection."""

    @pytest.mark.parametrize("profile_name", ["LEGACY", "EXTENDED"])
    def test_weights_sum_to_one(self, profile_name):
        from gbp_audit.modules.scoring import WeightProfile

        profile = WeightProfile[profile_name]
        assert sum(profile.weights.values()) == pytest.approx(1.0)

    def test_legacy_covers_core_categories(self):
        from gbp_audit.modules.scoring import CORE_CATEGORIES, WeightProfile

        assert set(WeightProfile.LEGACY.weights) == set(CORE_CATEGORIES)

    def test_extended_covers_all_categories(self):
        from gbp_audit.modules.scoring import ALL_CATEGORIES, WeightProfile

        assert set(WeightProfile.EXTENDED.weights) == set(ALL_CATEGORIES)

    def test_weights_are_read_only(self):
        from gbp_audit.modules.scoring import WeightProfile

        with pytest.raises(TypeError):
            WeightProfile.LEGACY.weights["reviews"] = 1.0

    def test_core_only_selects_legacy(self):
        from gbp_audit.modules.scoring import WeightProfile, select_profile

        scores = {"business_details": 80, "reviews": 60, "posts": 90, "competitors": 50}
        assert select_profile(scores) is WeightProfile.LEGACY

    def test_partial_extended_stays_legacy(self):
        from gbp_audit.modules.scoring import WeightProfile, select_profile

        assert select_profile({"reviews": 60, "photos": 75}) is WeightProfile.LEGACY

    def test_all_categories_select_extended(self):
        from gbp_audit.modules.scoring import ALL_CATEGORIES, WeightProfile, select_profile

        scores = {c: 50 for c in ALL_CATEGORIES}
        assert select_profile(scores) is WeightProfile.EXTENDED
        del scores["duplicates"]
        assert select_profile(scores) is WeightProfile.LEGACY


# ===========================================================================
# 2. Aggregation
# ===========================================================================
class TestAggregate:
    """Weighted sum, rounding and missing categories."""

    def test_legacy_overall(self):
        from gbp_audit.modules.scoring import WeightProfile, aggregate

        overall, profile = aggregate(
            {"business_details": 80, "reviews": 60, "posts": 90, "competitors": 50}
        )
        assert profile is WeightProfile.LEGACY
        assert overall == 72

    def test_input_order_does_not_matter(self):
        from gbp_audit.modules.scoring import aggregate

        forward = {
            "business_details": 73, "reviews": 41, "posts": 88, "competitors": 65,
            "business_info": 92, "performance": 57, "photos": 75, "qna": 67,
            "keywords": 55, "duplicates": 40,
        }
        backward = dict(reversed(list(forward.items())))
        assert aggregate(forward) == aggregate(backward)

    def test_half_rounds_up(self):
        from gbp_audit.modules.scoring import aggregate

        # 90 * 0.25 = 22.5
        overall, _ = aggregate({"posts": 90})
        assert overall == 23

    def test_extra_good_score_never_lowers_overall(self):
        from gbp_audit.modules.scoring import WeightProfile, aggregate

        core = {"business_details": 80, "reviews": 60, "posts": 90, "competitors": 50}
        with_photos = dict(core, photos=100)

        overall, profile = aggregate(with_photos)
        assert profile is WeightProfile.LEGACY
        assert overall == aggregate(core)[0] == 72

    def test_missing_categories_contribute_zero(self):
        from gbp_audit.modules.scoring import WeightProfile, aggregate

        scores = {"business_details": 100, "reviews": 100, "posts": 100,
                  "competitors": 100, "photos": 100}
        overall, profile = aggregate(scores, WeightProfile.EXTENDED)
        assert profile is WeightProfile.EXTENDED
        # 0.10 + 0.15 + 0.10 + 0.05 + 0.10, no renormalization
        assert overall == 50

    def test_explicit_profile_overrides_selection(self):
        from gbp_audit.modules.scoring import WeightProfile, aggregate

        overall, profile = aggregate({"reviews": 100}, WeightProfile.EXTENDED)
        assert profile is WeightProfile.EXTENDED
        assert overall == 15

    def test_unknown_category_rejected(self):
        from gbp_audit.modules.scoring import aggregate

        with pytest.raises(ValueError):
            aggregate({"reviews": 50, "citations": 80})

    def test_bounds(self):
        from gbp_audit.modules.scoring import ALL_CATEGORIES, aggregate

        assert aggregate({c: 100 for c in ALL_CATEGORIES})[0] == 100
        assert aggregate({c: 0 for c in ALL_CATEGORIES})[0] == 0


# ===========================================================================
# 3. Recommendation synthesis
# ===========================================================================
class TestSynthesize:
    """Priority ordering across categories."""

    def test_priority_order_is_stable(self):
        from gbp_audit.modules.scoring import sort_by_priority

        recs = [_rec("low", "a"), _rec("high", "b"), _rec("medium", "c"), _rec("high", "d")]
        ordered = sort_by_priority(recs)
        assert [r.priority for r in ordered] == ["high", "high", "medium", "low"]
        assert [r.description for r in ordered] == ["b", "d", "c", "a"]

    def test_collects_across_categories(self):
        from gbp_audit.modules.scoring import synthesize

        results = [
            CategoryScoreResult(category="posts", score=40, recommendations=[_rec("medium", "p")]),
            CategoryScoreResult(category="reviews", score=20, recommendations=[_rec("high", "r")]),
            CategoryScoreResult(category="photos", score=90),
        ]
        assert [r.description for r in synthesize(results)] == ["r", "p"]

    def test_duplicates_are_kept(self):
        from gbp_audit.modules.scoring import synthesize

        same = _rec("high", "same advice")
        results = [
            CategoryScoreResult(category="a", score=10, recommendations=[same]),
            CategoryScoreResult(category="b", score=10, recommendations=[same]),
        ]
        assert len(synthesize(results)) == 2

    def test_empty(self):
        from gbp_audit.modules.scoring import synthesize

        assert synthesize([]) == []
