"""Normalized input signals consumed by the audit pipeline.

Adapters outside this package (Business Profile, Places, rank trackers, ...)
convert their raw payloads into these frozen dataclasses.  ``AuditSignals``
bundles one entity's full set of inputs for a single run, and
``AuditSignals.from_dict`` is the boundary where malformed payloads are
rejected with :class:`~gbp_audit.exceptions.InvalidSignalData`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from gbp_audit.exceptions import InvalidSignalData
from gbp_audit.utils.helpers import ensure_aware

POST_TYPES = ("Update", "Offer", "Event", "Product")
BENCHMARK_STATUSES = ("above", "equal", "below")


# ---------------------------------------------------------------------------
# Reviews and posts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NormalizedReview:
    id: str
    reviewer_name: str
    rating: int
    comment_text: str
    created_at: datetime
    has_reply: bool = False
    reply_timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class NormalizedPost:
    id: str
    content: str
    created_at: datetime
    has_photo: bool = False
    post_type: str = "Update"
    keywords: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Business information
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NameInfo:
    value: str = ""
    keywords_included: bool = False
    keyword_stuffing: bool = False


@dataclass(frozen=True)
class CategoryInfo:
    primary: str = ""
    secondary: list[str] = field(default_factory=list)
    relevant: bool = False


@dataclass(frozen=True)
class ServiceInfo:
    items: list[str] = field(default_factory=list)
    complete: bool = False


@dataclass(frozen=True)
class AttributeInfo:
    items: list[str] = field(default_factory=list)
    identity_attributes: bool = False


@dataclass(frozen=True)
class DescriptionInfo:
    text: str = ""
    length: Optional[int] = None
    keywords_included: bool = False
    promotional_language: bool = False

    @property
    def char_count(self) -> int:
        """Reported length, falling back to the length of the text itself."""
        return self.length if self.length is not None else len(self.text)


@dataclass(frozen=True)
class OpeningDateInfo:
    date: str = ""
    present: bool = False


@dataclass(frozen=True)
class ContactInfo:
    phone: str = ""
    is_local: bool = False
    chat_enabled: bool = False
    website: str = ""
    website_relevant: bool = False


@dataclass(frozen=True)
class SocialProfiles:
    facebook: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    linkedin: Optional[str] = None
    consistent: bool = False

    def linked(self) -> dict[str, str]:
        """Platform -> handle for every profile that is set."""
        profiles = {
            "facebook": self.facebook,
            "twitter": self.twitter,
            "instagram": self.instagram,
            "linkedin": self.linkedin,
        }
        return {k: v for k, v in profiles.items() if v}


@dataclass(frozen=True)
class LocationInfo:
    address: str = ""
    service_area: str = ""
    accurate: bool = False


@dataclass(frozen=True)
class HoursInfo:
    complete: bool = False
    special_hours: bool = False
    days: dict[str, str] = field(default_factory=dict)
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class MediaInfo:
    photo_count: int = 0
    video_count: int = 0
    virtual_tour: bool = False


@dataclass(frozen=True)
class NapConsistency:
    consistent: bool = False
    issues: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class NormalizedBusinessInfo:
    """Everything known about the listing itself.

    The Business Details scorer reads a flattened view of these fields via
    :meth:`details`; the Business Info scorer walks the nested records.
    """

    name: NameInfo = field(default_factory=NameInfo)
    categories: CategoryInfo = field(default_factory=CategoryInfo)
    services: ServiceInfo = field(default_factory=ServiceInfo)
    attributes: AttributeInfo = field(default_factory=AttributeInfo)
    description: DescriptionInfo = field(default_factory=DescriptionInfo)
    opening_date: OpeningDateInfo = field(default_factory=OpeningDateInfo)
    contact: ContactInfo = field(default_factory=ContactInfo)
    social_profiles: SocialProfiles = field(default_factory=SocialProfiles)
    location: LocationInfo = field(default_factory=LocationInfo)
    hours: HoursInfo = field(default_factory=HoursInfo)
    media: MediaInfo = field(default_factory=MediaInfo)
    nap_consistency: NapConsistency = field(default_factory=NapConsistency)
    review_count: Optional[int] = None
    average_rating: Optional[float] = None

    def details(self) -> dict[str, Any]:
        """Flattened NAP/website/description/photos/hours view of the listing."""
        return {
            "name": self.name.value,
            "address": self.location.address,
            "phone": self.contact.phone,
            "website": self.contact.website,
            "category": self.categories.primary,
            "description": self.description.text,
            "description_length": self.description.char_count,
            "hours_updated": self.hours.updated_at,
            "photo_count": self.media.photo_count,
        }


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PerformanceMetric:
    current: float = 0
    previous: float = 0
    change_percent: float = 0
    benchmark: float = 0
    status: str = "below"


@dataclass(frozen=True)
class NormalizedPerformance:
    total_interactions: PerformanceMetric = field(default_factory=PerformanceMetric)
    calls: PerformanceMetric = field(default_factory=PerformanceMetric)
    bookings: PerformanceMetric = field(default_factory=PerformanceMetric)
    direction_requests: PerformanceMetric = field(default_factory=PerformanceMetric)
    website_clicks: PerformanceMetric = field(default_factory=PerformanceMetric)
    messages: PerformanceMetric = field(default_factory=PerformanceMetric)
    searches: PerformanceMetric = field(default_factory=PerformanceMetric)
    top_queries: list[dict[str, Any]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Photos, Q&A, competitors, duplicates, keywords, service area
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NormalizedPhotoAudit:
    total_count: int = 0
    types: dict[str, int] = field(default_factory=dict)
    user_uploaded: int = 0
    business_uploaded: int = 0
    coverage_score: float = 0
    recommendations: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class NormalizedQnA:
    total_questions: int = 0
    unanswered_count: int = 0
    engagement_rate: float = 0
    keywords_present: list[str] = field(default_factory=list)
    keywords_missing: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class NormalizedCompetitor:
    name: str
    reviews: int = 0
    rating: float = 0.0
    posts: int = 0


@dataclass(frozen=True)
class NormalizedDuplicateListing:
    name: str
    address: str = ""
    phone: str = ""
    website: Optional[str] = None
    match_score: float = 0
    url: str = ""
    differences: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class NormalizedKeywordUsage:
    target_keywords: list[str] = field(default_factory=list)
    description: list[str] = field(default_factory=list)
    posts: list[str] = field(default_factory=list)
    reviews: list[str] = field(default_factory=list)
    gaps: list[str] = field(default_factory=list)
    opportunities: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ServiceAreaCheck:
    is_service_area_business: bool = False
    service_areas_defined: bool = False
    service_radius: Optional[float] = None
    issues: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AuditSignals:
    """All normalized inputs for one audit run of one entity.

    Optional members that are ``None`` mean the category is not applicable.
    The extended weight profile only applies when every extended member is
    supplied (see :attr:`has_all_extended`); otherwise the run is weighted
    with the legacy profile and any extended scores are reported only.
    """

    business: NormalizedBusinessInfo
    reviews: list[NormalizedReview] = field(default_factory=list)
    posts: list[NormalizedPost] = field(default_factory=list)
    competitors: list[NormalizedCompetitor] = field(default_factory=list)
    services: list[str] = field(default_factory=list)
    performance: Optional[NormalizedPerformance] = None
    photos: Optional[NormalizedPhotoAudit] = None
    qna: Optional[NormalizedQnA] = None
    keywords: Optional[NormalizedKeywordUsage] = None
    duplicates: Optional[list[NormalizedDuplicateListing]] = None
    service_area: Optional[ServiceAreaCheck] = None
    posts_score: Optional[int] = None

    def _extended_parts(self) -> tuple:
        return (self.performance, self.photos, self.qna, self.keywords, self.duplicates)

    @property
    def has_extended(self) -> bool:
        """At least one extended signal was supplied."""
        return any(part is not None for part in self._extended_parts())

    @property
    def has_all_extended(self) -> bool:
        """Every extended signal was supplied."""
        return all(part is not None for part in self._extended_parts())

    def validate(self) -> None:
        """Raise InvalidSignalData for the first structurally invalid field."""
        if self.business is None:
            raise InvalidSignalData("business")
        for idx, review in enumerate(self.reviews):
            prefix = f"reviews[{idx}]"
            if not review.id:
                raise InvalidSignalData(f"{prefix}.id")
            if not isinstance(review.rating, (int, float)) or not 1 <= review.rating <= 5:
                raise InvalidSignalData(f"{prefix}.rating", f"Rating out of range: {review.rating!r}")
            if not isinstance(review.created_at, datetime):
                raise InvalidSignalData(f"{prefix}.created_at")
            if review.comment_text is None:
                raise InvalidSignalData(f"{prefix}.comment_text")
        for idx, post in enumerate(self.posts):
            if not isinstance(post.created_at, datetime):
                raise InvalidSignalData(f"posts[{idx}].created_at")
        if self.performance is not None:
            for name in _METRIC_NAMES:
                metric = getattr(self.performance, name)
                if metric.status not in BENCHMARK_STATUSES:
                    raise InvalidSignalData(
                        f"performance.{name}.status", f"Unknown benchmark status: {metric.status!r}"
                    )
        if self.posts_score is not None and not 0 <= self.posts_score <= 20:
            raise InvalidSignalData("posts_score", f"Posts sub-score out of range: {self.posts_score}")

    # ------------------------------------------------------------------
    # Construction from plain payloads
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuditSignals":
        """Build a bundle from a JSON-like payload, validating as it goes."""
        if not isinstance(data, dict) or "business" not in data:
            raise InvalidSignalData("business")

        reviews = [_review_from_dict(r, i) for i, r in enumerate(data.get("reviews") or [])]
        posts = [_post_from_dict(p, i) for i, p in enumerate(data.get("posts") or [])]
        competitors = [
            _competitor_from_dict(c, i) for i, c in enumerate(data.get("competitors") or [])
        ]

        performance = None
        if data.get("performance") is not None:
            perf = data["performance"]
            if not isinstance(perf, dict):
                raise InvalidSignalData("performance")
            performance = NormalizedPerformance(
                **{
                    name: _build(PerformanceMetric, perf.get(name, {}), f"performance.{name}")
                    for name in _METRIC_NAMES
                },
                top_queries=list(perf.get("top_queries", [])),
            )

        duplicates = None
        if data.get("duplicates") is not None:
            duplicates = []
            for i, d in enumerate(data["duplicates"]):
                prefix = f"duplicates[{i}]"
                if not isinstance(d, dict):
                    raise InvalidSignalData(prefix)
                _require(d, "name", prefix)
                duplicates.append(_build(NormalizedDuplicateListing, d, prefix))

        bundle = cls(
            business=_business_from_dict(data["business"]),
            reviews=reviews,
            posts=posts,
            competitors=competitors,
            services=list(data.get("services") or []),
            performance=performance,
            photos=_optional(NormalizedPhotoAudit, data.get("photos"), "photos"),
            qna=_optional(NormalizedQnA, data.get("qna"), "qna"),
            keywords=_optional(NormalizedKeywordUsage, data.get("keywords"), "keywords"),
            duplicates=duplicates,
            service_area=_optional(ServiceAreaCheck, data.get("service_area"), "service_area"),
            posts_score=data.get("posts_score"),
        )
        bundle.validate()
        return bundle


_METRIC_NAMES = (
    "total_interactions",
    "calls",
    "bookings",
    "direction_requests",
    "website_clicks",
    "messages",
    "searches",
)


def _require(data: dict[str, Any], key: str, prefix: str) -> Any:
    if key not in data or data[key] is None:
        raise InvalidSignalData(f"{prefix}.{key}")
    return data[key]


def _parse_datetime(value: Any, field_name: str) -> datetime:
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, str):
        try:
            return ensure_aware(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError as exc:
            raise InvalidSignalData(field_name, f"Unparseable timestamp: {value!r}") from exc
    raise InvalidSignalData(field_name)


def _build(cls: type, payload: Any, field_name: str):
    """Construct *cls* from *payload*, reporting unknown keys as *field_name*."""
    if not isinstance(payload, dict):
        raise InvalidSignalData(field_name)
    try:
        return cls(**payload)
    except TypeError as exc:
        raise InvalidSignalData(field_name, str(exc)) from exc


def _optional(cls: type, payload: Optional[dict[str, Any]], field_name: str):
    if payload is None:
        return None
    return _build(cls, payload, field_name)


def _competitor_from_dict(data: dict[str, Any], idx: int) -> NormalizedCompetitor:
    prefix = f"competitors[{idx}]"
    if not isinstance(data, dict):
        raise InvalidSignalData(prefix)
    name = _require(data, "name", prefix)
    values = {}
    for key, cast, default in (("reviews", int, 0), ("rating", float, 0.0), ("posts", int, 0)):
        raw = data.get(key, default)
        try:
            values[key] = cast(raw)
        except (TypeError, ValueError) as exc:
            raise InvalidSignalData(f"{prefix}.{key}", f"Not a number: {raw!r}") from exc
    return NormalizedCompetitor(name=name, **values)


def _review_from_dict(data: dict[str, Any], idx: int) -> NormalizedReview:
    prefix = f"reviews[{idx}]"
    reply = data.get("reply_timestamp")
    return NormalizedReview(
        id=str(_require(data, "id", prefix)),
        reviewer_name=data.get("reviewer_name", ""),
        rating=_require(data, "rating", prefix),
        comment_text=data.get("comment_text") or "",
        created_at=_parse_datetime(_require(data, "created_at", prefix), f"{prefix}.created_at"),
        has_reply=bool(data.get("has_reply", reply is not None)),
        reply_timestamp=_parse_datetime(reply, f"{prefix}.reply_timestamp") if reply else None,
    )


def _post_from_dict(data: dict[str, Any], idx: int) -> NormalizedPost:
    prefix = f"posts[{idx}]"
    return NormalizedPost(
        id=str(data.get("id", idx)),
        content=data.get("content", ""),
        created_at=_parse_datetime(_require(data, "created_at", prefix), f"{prefix}.created_at"),
        has_photo=bool(data.get("has_photo", False)),
        post_type=data.get("post_type", "Update"),
        keywords=list(data.get("keywords", [])),
    )


def _business_from_dict(data: dict[str, Any]) -> NormalizedBusinessInfo:
    if not isinstance(data, dict):
        raise InvalidSignalData("business")
    hours = dict(data.get("hours") or {})
    if hours.get("updated_at"):
        hours["updated_at"] = _parse_datetime(hours["updated_at"], "business.hours.updated_at")
    try:
        return NormalizedBusinessInfo(
            name=NameInfo(**data.get("name", {})),
            categories=CategoryInfo(**data.get("categories", {})),
            services=ServiceInfo(**data.get("services", {})),
            attributes=AttributeInfo(**data.get("attributes", {})),
            description=DescriptionInfo(**data.get("description", {})),
            opening_date=OpeningDateInfo(**data.get("opening_date", {})),
            contact=ContactInfo(**data.get("contact", {})),
            social_profiles=SocialProfiles(**data.get("social_profiles", {})),
            location=LocationInfo(**data.get("location", {})),
            hours=HoursInfo(**hours),
            media=MediaInfo(**data.get("media", {})),
            nap_consistency=NapConsistency(**data.get("nap_consistency", {})),
            review_count=data.get("review_count"),
            average_rating=data.get("average_rating"),
        )
    except TypeError as exc:
        raise InvalidSignalData("business", str(exc)) from exc
