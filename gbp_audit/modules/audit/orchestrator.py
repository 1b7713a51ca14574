"""Audit Orchestrator - credit check, run, and store state machine.

A run moves through REQUESTED -> RUNNING -> STORED, or ends in FAILED.
Within RUNNING the Review Analyzer runs once, then every applicable
category scorer runs concurrently in worker threads, and finally the
scores are aggregated and the recommendations synthesized into a single
:class:`~gbp_audit.results.AuditResult`.  Nothing is persisted unless the
whole run succeeds.

Runs for the same ``(user_id, entity_id)`` are serialized by a per-key
lock, so a second concurrent ``get_latest_audit`` waits for the first run
and then reads its stored result instead of starting another.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Optional

from gbp_audit.exceptions import (
    AnalysisFailure,
    AuditError,
    InsufficientCredit,
    InvalidSignalData,
    RepositoryFailure,
)
from gbp_audit.modules.audit.credits import AUDIT_CREDIT_COST, CreditChecker
from gbp_audit.modules.audit.locks import KeyedLocks
from gbp_audit.modules.audit.providers import SignalProvider
from gbp_audit.modules.audit.repository import AuditRepository
from gbp_audit.modules.review_analysis import ReviewAnalysis, ReviewAnalyzer
from gbp_audit.modules.scoring import (
    aggregate,
    score_business_details,
    score_business_info,
    score_competitors,
    score_duplicates,
    score_keywords,
    score_performance,
    score_photos,
    score_posts,
    score_qna,
    score_reviews,
    synthesize,
)
from gbp_audit.results import AuditInsight, AuditResult, CategoryScoreResult
from gbp_audit.signals import AuditSignals
from gbp_audit.utils.helpers import utcnow

logger = logging.getLogger(__name__)


class RunState(str, enum.Enum):
    REQUESTED = "requested"
    RUNNING = "running"
    STORED = "stored"
    FAILED = "failed"


class AuditOrchestrator:
    """Runs audits end-to-end and serves stored results.

    Usage::

        orchestrator = AuditOrchestrator(provider, credits, repository)
        result = await orchestrator.run_audit("user-1", "gbp-42")
        latest = await orchestrator.get_latest_audit("user-1", "gbp-42")
        trend = await orchestrator.get_insights("user-1", "gbp-42")
    """

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def __init__(
        self,
        signal_provider: SignalProvider,
        credit_checker: CreditChecker,
        repository: AuditRepository,
        analyzer: ReviewAnalyzer | None = None,
        credit_cost: int = AUDIT_CREDIT_COST,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialise the orchestrator with its collaborators.

        Args:
            signal_provider: Source of normalized signals.
            credit_checker: Balance lookup consulted before each run.
            repository: Where completed audits are stored.
            analyzer: Review analyzer; a fresh one is created when *None*.
            credit_cost: Credits a run requires.  Never deducted here.
            clock: Returns the current UTC time; injectable for tests.
        """
        self._provider = signal_provider
        self._credits = credit_checker
        self._repository = repository
        self._analyzer = analyzer or ReviewAnalyzer()
        self._credit_cost = credit_cost
        self._clock = clock
        self._locks = KeyedLocks()
        self._run_status: dict[str, dict[str, Any]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run_audit(self, user_id: str, entity_id: str) -> AuditResult:
        """Run a fresh audit and store it as the latest for the key.

        Raises:
            InsufficientCredit: Balance below the run cost; nothing ran.
            InvalidSignalData: The signal bundle is malformed.
            AnalysisFailure: An analyzer or scorer failed; ``stage`` says where.
            RepositoryFailure: The result could not be stored.
        """
        async with self._locks.hold((user_id, entity_id)):
            return await self._run_locked(user_id, entity_id)

    async def get_latest_audit(self, user_id: str, entity_id: str) -> AuditResult:
        """Return the stored latest audit, running one first on a miss."""
        async with self._locks.hold((user_id, entity_id)):
            existing = await asyncio.to_thread(self._repository.get_latest, user_id, entity_id)
            if existing is not None:
                logger.info("Using stored audit %s for %s/%s", existing.id, user_id, entity_id)
                return existing
            logger.info("No stored audit for %s/%s, running one", user_id, entity_id)
            return await self._run_locked(user_id, entity_id)

    async def get_insights(self, user_id: str, entity_id: str) -> list[AuditInsight]:
        """Score history for the key, most recent first."""
        history = await asyncio.to_thread(self._repository.history, user_id, entity_id)
        return [r.insight() for r in history]

    def get_run_status(self) -> dict[str, dict[str, Any]]:
        """Last known state of every key that has been run."""
        return {key: dict(value) for key, value in self._run_status.items()}

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    async def _run_locked(self, user_id: str, entity_id: str) -> AuditResult:
        key = f"{user_id}:{entity_id}"
        self._set_state(key, RunState.REQUESTED, "credit check")

        balance = await self._credits.get_balance(user_id)
        logger.debug("Credit check for %s: balance %d, cost %d", key, balance, self._credit_cost)
        if balance < self._credit_cost:
            self._set_state(key, RunState.FAILED, "credit check")
            raise InsufficientCredit(user_id, balance, self._credit_cost)

        self._set_state(key, RunState.RUNNING, "fetch")
        try:
            result = await self._execute(key, user_id, entity_id)
        except AuditError:
            self._set_state(key, RunState.FAILED, self._run_status[key]["stage"])
            raise
        except Exception as exc:
            stage = self._run_status[key]["stage"]
            self._set_state(key, RunState.FAILED, stage)
            raise AnalysisFailure(stage, f"Audit failed during {stage}: {exc}") from exc

        self._set_state(key, RunState.RUNNING, "store")
        try:
            await asyncio.to_thread(self._repository.put, result)
        except RepositoryFailure:
            self._set_state(key, RunState.FAILED, "store")
            raise
        except Exception as exc:
            self._set_state(key, RunState.FAILED, "store")
            raise RepositoryFailure(f"Could not store audit {result.id}") from exc

        self._set_state(key, RunState.STORED, "done")
        logger.info(
            "Audit %s stored for %s: overall %d (%s profile)",
            result.id, key, result.overall_score, result.profile,
        )
        return result

    async def _execute(self, key: str, user_id: str, entity_id: str) -> AuditResult:
        as_of = self._clock()

        try:
            signals = await self._provider.fetch_signals(user_id, entity_id)
        except AuditError:
            raise
        except Exception as exc:
            logger.error("Signal fetch failed for %s: %s", key, exc)
            raise AnalysisFailure("fetch", f"Could not fetch signals: {exc}") from exc

        self._set_state(key, RunState.RUNNING, "validate")
        if signals is None:
            raise InvalidSignalData("signals")
        signals.validate()

        self._set_state(key, RunState.RUNNING, "analyze")
        try:
            analysis = await asyncio.to_thread(self._analyzer.analyze, signals.reviews, as_of)
        except Exception as exc:
            logger.error("Review analysis failed for %s: %s", key, exc)
            raise AnalysisFailure("analyze", f"Review analysis failed: {exc}") from exc

        self._set_state(key, RunState.RUNNING, "score")
        try:
            results = await self._score_all(signals, analysis, as_of)
        except Exception as exc:
            logger.error("Scoring failed for %s: %s", key, exc)
            raise AnalysisFailure("score", f"Category scoring failed: {exc}") from exc

        self._set_state(key, RunState.RUNNING, "aggregate")
        try:
            scores = {r.category: r.score for r in results}
            overall, profile = aggregate(scores)
            recommendations = synthesize(results)
        except Exception as exc:
            logger.error("Aggregation failed for %s: %s", key, exc)
            raise AnalysisFailure("aggregate", f"Aggregation failed: {exc}") from exc

        details: dict[str, Any] = {r.category: r.details for r in results}
        if signals.service_area is not None:
            details["sab_check"] = {
                "is_service_area_business": signals.service_area.is_service_area_business,
                "service_areas_defined": signals.service_area.service_areas_defined,
                "service_radius": signals.service_area.service_radius,
                "issues": list(signals.service_area.issues),
            }
        business_info = next((r for r in results if r.category == "business_info"), None)

        return AuditResult(
            id=uuid.uuid4().hex,
            entity_id=entity_id,
            user_id=user_id,
            timestamp=as_of,
            overall_score=overall,
            profile=profile.value,
            category_scores=scores,
            details=details,
            recommendations=recommendations,
            business_info_checks=list(business_info.checks) if business_info else [],
        )

    async def _score_all(
        self, signals: AuditSignals, analysis: ReviewAnalysis, as_of: datetime
    ) -> list[CategoryScoreResult]:
        """Run every applicable scorer concurrently, in a fixed category order."""
        business = signals.business
        review_count = business.review_count if business.review_count is not None else analysis.count
        rating = (
            business.average_rating if business.average_rating is not None
            else analysis.average_rating
        )

        jobs: list[tuple[Callable[..., CategoryScoreResult], tuple]] = [
            (score_business_details, (business, as_of)),
            (score_reviews, (analysis, business.review_count, business.average_rating)),
            (score_posts, (signals.posts, signals.services, as_of, signals.posts_score)),
            (score_competitors, (review_count, rating, len(signals.posts), signals.competitors)),
        ]
        # Extended categories only apply when the source supplied extended signals.
        if signals.has_extended:
            if not signals.has_all_extended:
                logger.info("Partial extended signals; weighting with the legacy profile")
            jobs.append((score_business_info, (business,)))
            if signals.performance is not None:
                jobs.append((score_performance, (signals.performance,)))
            if signals.photos is not None:
                jobs.append((score_photos, (signals.photos,)))
            if signals.qna is not None:
                jobs.append((score_qna, (signals.qna,)))
            if signals.keywords is not None:
                jobs.append((score_keywords, (signals.keywords,)))
            if signals.duplicates is not None:
                jobs.append((score_duplicates, (signals.duplicates,)))

        return list(await asyncio.gather(
            *(asyncio.to_thread(fn, *args) for fn, args in jobs)
        ))

    # ------------------------------------------------------------------
    # Status tracking
    # ------------------------------------------------------------------

    def _set_state(self, key: str, state: RunState, stage: str) -> None:
        """Log and record a run state transition."""
        msg = f"[{key}] {state.value}: {stage}"
        if state is RunState.FAILED:
            logger.error(msg)
        else:
            logger.info(msg)
        self._run_status[key] = {
            "state": state.value,
            "stage": stage,
            "updated_at": utcnow().isoformat(),
        }
