"""Tests for the audit orchestrator state machine."""

import asyncio
import threading
from dataclasses import replace
from datetime import timedelta

import pytest

from conftest import AS_OF, make_review
from gbp_audit.exceptions import (
    AnalysisFailure,
    InsufficientCredit,
    InvalidSignalData,
    RepositoryFailure,
)
from gbp_audit.modules.audit import (
    AuditOrchestrator,
    InMemoryAuditRepository,
    KeyedLocks,
    SignalProvider,
    StaticCreditChecker,
    StaticSignalProvider,
)


class SteppingClock:
    """Returns AS_OF, then one minute later on every call."""

    def __init__(self):
        self.calls = 0

    def __call__(self):
        value = AS_OF + timedelta(minutes=self.calls)
        self.calls += 1
        return value


class GatedProvider(SignalProvider):
    """Blocks every fetch for *entity_id* until ``release`` is set."""

    def __init__(self, inner, blocked_entity):
        self.inner = inner
        self.blocked_entity = blocked_entity
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def fetch_signals(self, user_id, entity_id):
        if entity_id == self.blocked_entity:
            self.started.set()
            await self.release.wait()
        return await self.inner.fetch_signals(user_id, entity_id)


class FailingRepository(InMemoryAuditRepository):
    def put(self, result):
        raise RepositoryFailure("disk full")


class ExplodingAnalyzer:
    def analyze(self, reviews, as_of=None):
        raise ValueError("lexicon unavailable")


class BlockingRepository(InMemoryAuditRepository):
    """Holds ``put`` for *entity_id* in its worker thread until released."""

    def __init__(self, blocked_entity):
        super().__init__()
        self.blocked_entity = blocked_entity
        self.entered = threading.Event()
        self.release = threading.Event()

    def put(self, result):
        if result.entity_id == self.blocked_entity:
            self.entered.set()
            self.release.wait(timeout=5)
        super().put(result)


class CountingCreditChecker(StaticCreditChecker):
    def __init__(self, balances):
        super().__init__(balances)
        self.lookups = 0

    async def get_balance(self, user_id):
        self.lookups += 1
        return await super().get_balance(user_id)


@pytest.fixture()
def provider(core_signals, full_signals):
    return StaticSignalProvider({"gbp-core": core_signals, "gbp-full": full_signals})


@pytest.fixture()
def credits():
    return StaticCreditChecker({"user-1": 5, "broke": 0})


@pytest.fixture()
def repository():
    return InMemoryAuditRepository()


@pytest.fixture()
def orchestrator(provider, credits, repository):
    return AuditOrchestrator(provider, credits, repository, clock=SteppingClock())


# ===========================================================================
# 1. Successful runs
# ===========================================================================
class TestRunAudit:
    """Full runs under both weight profiles."""

    @pytest.mark.asyncio
    async def test_core_signals_use_legacy_profile(self, orchestrator, repository):
        result = await orchestrator.run_audit("user-1", "gbp-core")

        assert result.profile == "legacy"
        assert set(result.category_scores) == {
            "business_details", "reviews", "posts", "competitors",
        }
        assert result.timestamp == AS_OF
        assert result.business_info_checks == []
        assert repository.get_latest("user-1", "gbp-core") == result

    @pytest.mark.asyncio
    async def test_full_signals_use_extended_profile(self, orchestrator):
        from gbp_audit.modules.scoring import WeightProfile
        from gbp_audit.utils.helpers import round_half_up

        result = await orchestrator.run_audit("user-1", "gbp-full")

        assert result.profile == "extended"
        assert len(result.category_scores) == 10
        assert len(result.business_info_checks) == 12
        expected = round_half_up(sum(
            result.category_scores[c] * w
            for c, w in sorted(WeightProfile.EXTENDED.weights.items())
        ))
        assert result.overall_score == expected
        assert result.category_scores["duplicates"] == 70
        assert result.category_scores["qna"] == 75
        assert result.category_scores["business_info"] == 100

    @pytest.mark.asyncio
    async def test_partial_extended_signals_keep_legacy_weights(
        self, provider, credits, repository, core_signals
    ):
        from gbp_audit.signals import NormalizedPhotoAudit

        provider.add("gbp-photos", replace(
            core_signals, photos=NormalizedPhotoAudit(coverage_score=100)
        ))
        core = await AuditOrchestrator(
            provider, credits, repository, clock=SteppingClock()
        ).run_audit("user-1", "gbp-core")
        with_photos = await AuditOrchestrator(
            provider, credits, repository, clock=SteppingClock()
        ).run_audit("user-1", "gbp-photos")

        assert with_photos.profile == "legacy"
        assert with_photos.overall_score == core.overall_score
        assert with_photos.category_scores["photos"] == 100
        assert "business_info" in with_photos.category_scores
        assert with_photos.details["photos"]["coverage_score"] == 100

    @pytest.mark.asyncio
    async def test_scores_within_bounds(self, orchestrator):
        result = await orchestrator.run_audit("user-1", "gbp-full")
        assert 0 <= result.overall_score <= 100
        assert all(0 <= s <= 100 for s in result.category_scores.values())

    @pytest.mark.asyncio
    async def test_recommendations_sorted_by_priority(self, orchestrator):
        result = await orchestrator.run_audit("user-1", "gbp-full")
        ranks = [r.rank for r in result.recommendations]
        assert ranks == sorted(ranks, reverse=True)
        assert any(r.category == "duplicates" for r in result.recommendations)

    @pytest.mark.asyncio
    async def test_details_per_category(self, orchestrator):
        result = await orchestrator.run_audit("user-1", "gbp-core")
        assert result.details["reviews"]["count"] == 5
        assert result.details["posts"]["count"] == 4
        assert "sab_check" not in result.details

    @pytest.mark.asyncio
    async def test_service_area_check_reported(self, orchestrator, provider, core_signals):
        from gbp_audit.signals import ServiceAreaCheck

        provider.add("gbp-sab", replace(
            core_signals,
            service_area=ServiceAreaCheck(is_service_area_business=True, issues=["No radius"]),
        ))
        result = await orchestrator.run_audit("user-1", "gbp-sab")
        assert result.details["sab_check"]["issues"] == ["No radius"]
        assert result.profile == "legacy"

    @pytest.mark.asyncio
    async def test_each_run_is_a_new_result(self, orchestrator):
        first = await orchestrator.run_audit("user-1", "gbp-core")
        second = await orchestrator.run_audit("user-1", "gbp-core")
        assert first.id != second.id
        assert second.timestamp > first.timestamp

    @pytest.mark.asyncio
    async def test_credit_is_not_deducted(self, orchestrator, credits):
        await orchestrator.run_audit("user-1", "gbp-core")
        assert await credits.get_balance("user-1") == 5


# ===========================================================================
# 2. Failure paths
# ===========================================================================
class TestRunFailures:
    """Nothing is stored unless the whole run succeeds."""

    @pytest.mark.asyncio
    async def test_insufficient_credit(self, orchestrator, provider, repository):
        with pytest.raises(InsufficientCredit) as exc_info:
            await orchestrator.run_audit("broke", "gbp-core")

        assert exc_info.value.balance == 0
        assert exc_info.value.required == 1
        assert provider.fetch_count == 0
        assert repository.get_latest("broke", "gbp-core") is None
        assert orchestrator.get_run_status()["broke:gbp-core"]["state"] == "failed"

    @pytest.mark.asyncio
    async def test_balance_looked_up_once(self, provider, repository):
        checker = CountingCreditChecker({"broke": 0})
        orchestrator = AuditOrchestrator(provider, checker, repository)

        with pytest.raises(InsufficientCredit) as exc_info:
            await orchestrator.run_audit("broke", "gbp-core")
        assert checker.lookups == 1
        assert exc_info.value.balance == 0

        checker.set_balance("broke", 1)
        await orchestrator.run_audit("broke", "gbp-core")
        assert checker.lookups == 2

    @pytest.mark.asyncio
    async def test_unknown_entity_fails_fetch(self, orchestrator, repository):
        with pytest.raises(AnalysisFailure) as exc_info:
            await orchestrator.run_audit("user-1", "gbp-missing")
        assert exc_info.value.stage == "fetch"
        assert repository.get_latest("user-1", "gbp-missing") is None

    @pytest.mark.asyncio
    async def test_invalid_rating(self, orchestrator, provider, repository, core_signals):
        bad = replace(core_signals, reviews=[make_review("bad", 7, "Seven stars")])
        provider.add("gbp-bad", bad)

        with pytest.raises(InvalidSignalData) as exc_info:
            await orchestrator.run_audit("user-1", "gbp-bad")

        assert exc_info.value.field == "reviews[0].rating"
        assert repository.get_latest("user-1", "gbp-bad") is None
        status = orchestrator.get_run_status()["user-1:gbp-bad"]
        assert status["state"] == "failed"
        assert status["stage"] == "validate"

    @pytest.mark.asyncio
    async def test_analyzer_failure(self, provider, credits, repository):
        orchestrator = AuditOrchestrator(
            provider, credits, repository, analyzer=ExplodingAnalyzer()
        )
        with pytest.raises(AnalysisFailure) as exc_info:
            await orchestrator.run_audit("user-1", "gbp-core")
        assert exc_info.value.stage == "analyze"
        assert repository.get_latest("user-1", "gbp-core") is None

    @pytest.mark.asyncio
    async def test_repository_failure_keeps_previous_latest(self, provider, credits):
        repository = InMemoryAuditRepository()
        good = AuditOrchestrator(provider, credits, repository, clock=SteppingClock())
        previous = await good.run_audit("user-1", "gbp-core")

        failing = FailingRepository()
        orchestrator = AuditOrchestrator(provider, credits, failing)
        with pytest.raises(RepositoryFailure):
            await orchestrator.run_audit("user-1", "gbp-core")

        assert repository.get_latest("user-1", "gbp-core") == previous
        assert orchestrator.get_run_status()["user-1:gbp-core"]["stage"] == "store"


# ===========================================================================
# 3. Latest audit and concurrency
# ===========================================================================
class TestLatestAudit:
    """Read-through latest lookups and per-key serialization."""

    @pytest.mark.asyncio
    async def test_runs_once_then_serves_stored(self, orchestrator, provider):
        first = await orchestrator.get_latest_audit("user-1", "gbp-core")
        second = await orchestrator.get_latest_audit("user-1", "gbp-core")

        assert first.id == second.id
        assert first.timestamp == second.timestamp
        assert provider.fetch_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_run(self, orchestrator, provider):
        results = await asyncio.gather(*(
            orchestrator.get_latest_audit("user-1", "gbp-core") for _ in range(5)
        ))
        assert len({r.id for r in results}) == 1
        assert provider.fetch_count == 1

    @pytest.mark.asyncio
    async def test_other_keys_do_not_wait(self, provider, credits, repository):
        gated = GatedProvider(provider, blocked_entity="gbp-core")
        orchestrator = AuditOrchestrator(gated, credits, repository)

        blocked = asyncio.create_task(orchestrator.run_audit("user-1", "gbp-core"))
        await gated.started.wait()

        other = await asyncio.wait_for(orchestrator.run_audit("user-1", "gbp-full"), timeout=5)
        assert other.entity_id == "gbp-full"
        assert not blocked.done()

        gated.release.set()
        assert (await blocked).entity_id == "gbp-core"

    @pytest.mark.asyncio
    async def test_slow_store_does_not_block_other_keys(self, provider, credits):
        repository = BlockingRepository(blocked_entity="gbp-core")
        orchestrator = AuditOrchestrator(provider, credits, repository)

        blocked = asyncio.create_task(orchestrator.run_audit("user-1", "gbp-core"))
        assert await asyncio.to_thread(repository.entered.wait, 5)

        try:
            other = await asyncio.wait_for(
                orchestrator.run_audit("user-1", "gbp-full"), timeout=5
            )
            assert other.entity_id == "gbp-full"
            assert not blocked.done()
        finally:
            repository.release.set()

        assert (await blocked).entity_id == "gbp-core"
        assert repository.get_latest("user-1", "gbp-full") == other

    @pytest.mark.asyncio
    async def test_failed_run_is_retried_on_next_request(self, orchestrator, provider, core_signals):
        with pytest.raises(AnalysisFailure):
            await orchestrator.get_latest_audit("user-1", "gbp-late")

        provider.add("gbp-late", core_signals)
        result = await orchestrator.get_latest_audit("user-1", "gbp-late")
        assert result.entity_id == "gbp-late"


# ===========================================================================
# 4. Insights and status
# ===========================================================================
class TestInsights:
    """Score history and run status reporting."""

    @pytest.mark.asyncio
    async def test_insights_most_recent_first(self, orchestrator):
        first = await orchestrator.run_audit("user-1", "gbp-core")
        second = await orchestrator.run_audit("user-1", "gbp-core")

        insights = await orchestrator.get_insights("user-1", "gbp-core")
        assert [i.timestamp for i in insights] == [second.timestamp, first.timestamp]
        assert insights[0].overall_score == second.overall_score

    @pytest.mark.asyncio
    async def test_insights_empty_for_unknown_key(self, orchestrator):
        assert await orchestrator.get_insights("user-1", "nobody") == []

    @pytest.mark.asyncio
    async def test_run_status_after_success(self, orchestrator):
        await orchestrator.run_audit("user-1", "gbp-core")
        status = orchestrator.get_run_status()["user-1:gbp-core"]
        assert status["state"] == "stored"
        assert status["stage"] == "done"


# ===========================================================================
# 5. Keyed locks
# ===========================================================================
class TestKeyedLocks:
    """Lock bookkeeping."""

    @pytest.mark.asyncio
    async def test_lock_released_and_dropped(self):
        locks = KeyedLocks()
        async with locks.hold("a"):
            assert locks.locked("a")
            assert len(locks) == 1
        assert not locks.locked("a")
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_same_key_serialized(self):
        locks = KeyedLocks()
        order = []

        async def worker(name):
            async with locks.hold("k"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))
        assert order == ["a-in", "a-out", "b-in", "b-out"]
