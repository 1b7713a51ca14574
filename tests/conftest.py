"""Shared pytest fixtures for the GBP audit tests."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure project root is on sys.path so 'gbp_audit' is importable.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from gbp_audit.signals import (  # noqa: E402
    AttributeInfo,
    AuditSignals,
    CategoryInfo,
    ContactInfo,
    DescriptionInfo,
    HoursInfo,
    LocationInfo,
    MediaInfo,
    NameInfo,
    NapConsistency,
    NormalizedBusinessInfo,
    NormalizedCompetitor,
    NormalizedDuplicateListing,
    NormalizedKeywordUsage,
    NormalizedPerformance,
    NormalizedPhotoAudit,
    NormalizedPost,
    NormalizedQnA,
    NormalizedReview,
    OpeningDateInfo,
    PerformanceMetric,
    ServiceInfo,
    SocialProfiles,
)

AS_OF = datetime(2025, 3, 16, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _reset_db_engine():
    """Autouse fixture: reset the global DB engine before and after every test.

    This prevents cross-test pollution when tests create their own in-memory
    databases.
    """
    from gbp_audit.database import reset_engine
    reset_engine()
    yield
    reset_engine()


@pytest.fixture()
def test_db():
    """Provide an in-memory SQLite database with all tables created.

    Yields a database URL string. The engine is automatically torn down
    after the test by the autouse ``_reset_db_engine`` fixture.
    """
    from gbp_audit.database import reset_engine, init_db
    reset_engine()
    db_url = "sqlite:///:memory:"
    init_db(database_url=db_url, echo=False)
    yield db_url


@pytest.fixture()
def as_of():
    return AS_OF


# ---------------------------------------------------------------------------
# Signal builders
# ---------------------------------------------------------------------------

def make_review(
    review_id, rating, text, days_ago=10, replied=True, reply_after_hours=24, name=None
):
    created = AS_OF - timedelta(days=days_ago)
    return NormalizedReview(
        id=review_id,
        reviewer_name=name or f"Reviewer {review_id}",
        rating=rating,
        comment_text=text,
        created_at=created,
        has_reply=replied,
        reply_timestamp=created + timedelta(hours=reply_after_hours) if replied else None,
    )


def make_post(post_id, days_ago, has_photo=True, post_type="Update", keywords=None, content=""):
    return NormalizedPost(
        id=post_id,
        content=content,
        created_at=AS_OF - timedelta(days=days_ago),
        has_photo=has_photo,
        post_type=post_type,
        keywords=list(keywords or []),
    )


def make_business(**overrides):
    """A fully optimized listing; override nested records to break checks."""
    defaults = dict(
        name=NameInfo(value="Peak Fitness Denver", keywords_included=True),
        categories=CategoryInfo(primary="Gym", secondary=["Fitness Center"], relevant=True),
        services=ServiceInfo(items=["personal training", "yoga classes"], complete=True),
        attributes=AttributeInfo(items=["Wheelchair accessible"], identity_attributes=True),
        description=DescriptionInfo(text="x" * 900, keywords_included=True),
        opening_date=OpeningDateInfo(date="2015-06-01", present=True),
        contact=ContactInfo(
            phone="(303) 555-0100",
            is_local=True,
            chat_enabled=True,
            website="https://peakfitness.example/denver",
            website_relevant=True,
        ),
        social_profiles=SocialProfiles(facebook="peakfitness", consistent=True),
        location=LocationInfo(address="100 Main St, Denver, CO", service_area="Denver", accurate=True),
        hours=HoursInfo(
            complete=True,
            special_hours=True,
            days={"Monday": "6AM-10PM"},
            updated_at=AS_OF - timedelta(days=5),
        ),
        media=MediaInfo(photo_count=12, video_count=2, virtual_tour=True),
        nap_consistency=NapConsistency(consistent=True),
    )
    defaults.update(overrides)
    return NormalizedBusinessInfo(**defaults)


def make_performance(status="above", change=10.0):
    metric = PerformanceMetric(current=120, previous=110, change_percent=change, benchmark=100, status=status)
    return NormalizedPerformance(
        total_interactions=metric,
        calls=metric,
        bookings=metric,
        direction_requests=metric,
        website_clicks=metric,
        messages=metric,
        searches=metric,
    )


def sample_reviews():
    return [
        make_review("r1", 5, "Great trainers and a great atmosphere, love this gym"),
        make_review("r2", 5, "Excellent classes, great trainers, very friendly staff"),
        make_review("r3", 1, "Terrible customer service, rude staff and dirty showers", replied=False),
        make_review("r4", 2, "Awful experience, rude staff and broken equipment", replied=False, days_ago=3),
        make_review("r5", 4, "Good equipment and friendly staff", reply_after_hours=72),
    ]


def sample_posts():
    return [
        make_post("p1", 2, post_type="Update", keywords=["personal training"]),
        make_post("p2", 9, post_type="Offer", content="Try our yoga classes this spring"),
        make_post("p3", 16, has_photo=False, post_type="Event"),
        make_post("p4", 23, post_type="Update"),
    ]


@pytest.fixture()
def core_signals():
    return AuditSignals(
        business=make_business(),
        reviews=sample_reviews(),
        posts=sample_posts(),
        competitors=[
            NormalizedCompetitor(name="Iron Gym", reviews=6, rating=4.1, posts=3),
            NormalizedCompetitor(name="Flex Studio", reviews=4, rating=4.3, posts=5),
        ],
        services=["personal training", "yoga classes"],
    )


@pytest.fixture()
def full_signals(core_signals):
    return AuditSignals(
        business=core_signals.business,
        reviews=core_signals.reviews,
        posts=core_signals.posts,
        competitors=core_signals.competitors,
        services=core_signals.services,
        performance=make_performance(),
        photos=NormalizedPhotoAudit(
            total_count=12, coverage_score=75, recommendations=["Add team photos"]
        ),
        qna=NormalizedQnA(total_questions=8, unanswered_count=2, recommendations=["Answer open questions"]),
        keywords=NormalizedKeywordUsage(
            target_keywords=["gym", "personal training", "yoga"],
            description=["gym", "personal training"],
            posts=["personal training"],
            reviews=["gym"],
            gaps=["yoga"],
        ),
        duplicates=[NormalizedDuplicateListing(name="Peak Fitness", match_score=85)],
    )
