"""Value types produced by the analyzer, scorers, and orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional

from gbp_audit.utils.helpers import ensure_aware

PRIORITY_RANK: dict[str, int] = {"high": 3, "medium": 2, "low": 1}


@dataclass(frozen=True)
class SentimentResult:
    score: float
    magnitude: float
    label: str


@dataclass(frozen=True)
class ThemeExtract:
    """Up to ten deduplicated terms or phrases from one review or bucket."""

    source: str
    terms: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        deduped = tuple(dict.fromkeys(self.terms))[:10]
        object.__setattr__(self, "terms", deduped)


@dataclass(frozen=True)
class SpamFlag:
    review_id: str
    reviewer_name: str
    reason: str
    confidence: float


@dataclass(frozen=True)
class Recommendation:
    category: str
    priority: str
    description: str
    action: str
    impact: str

    @property
    def rank(self) -> int:
        return PRIORITY_RANK.get(self.priority, 0)


@dataclass(frozen=True)
class CategoryCheck:
    field: str
    status: str
    value: str
    expected: str
    recommendation: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status == "pass"


@dataclass
class CategoryScoreResult:
    """Outcome of one category scorer."""

    category: str
    score: int
    checks: list[CategoryCheck] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuditInsight:
    timestamp: datetime
    overall_score: int
    category_scores: dict[str, int]


@dataclass
class AuditResult:
    """A complete, immutable-by-convention audit of one entity.

    ``details`` and the nested lists are plain JSON-compatible structures so
    the whole result survives :meth:`to_dict` / :meth:`from_dict` unchanged,
    which is what the SQL repository stores.
    """

    id: str
    entity_id: str
    user_id: str
    timestamp: datetime
    overall_score: int
    profile: str
    category_scores: dict[str, int]
    details: dict[str, Any] = field(default_factory=dict)
    recommendations: list[Recommendation] = field(default_factory=list)
    business_info_checks: list[CategoryCheck] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "timestamp": ensure_aware(self.timestamp).isoformat(),
            "overall_score": self.overall_score,
            "profile": self.profile,
            "category_scores": dict(self.category_scores),
            "details": self.details,
            "recommendations": [asdict(r) for r in self.recommendations],
            "business_info_checks": [asdict(c) for c in self.business_info_checks],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuditResult":
        return cls(
            id=data["id"],
            entity_id=data["entity_id"],
            user_id=data["user_id"],
            timestamp=ensure_aware(datetime.fromisoformat(data["timestamp"])),
            overall_score=int(data["overall_score"]),
            profile=data["profile"],
            category_scores={k: int(v) for k, v in data["category_scores"].items()},
            details=data.get("details", {}),
            recommendations=[Recommendation(**r) for r in data.get("recommendations", [])],
            business_info_checks=[
                CategoryCheck(**c) for c in data.get("business_info_checks", [])
            ],
        )

    def insight(self) -> AuditInsight:
        return AuditInsight(
            timestamp=self.timestamp,
            overall_score=self.overall_score,
            category_scores=dict(self.category_scores),
        )
