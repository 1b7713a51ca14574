"""Business Info scorer: twelve field-by-field profile checks.

Each check passes or fails as a whole; a failing check can produce several
recommendations, one per failing sub-condition (e.g. a description that is
both too short and promotional yields two).
"""

import logging

from gbp_audit.results import CategoryCheck, CategoryScoreResult, Recommendation
from gbp_audit.signals import NormalizedBusinessInfo
from gbp_audit.utils.helpers import round_half_up

logger = logging.getLogger(__name__)

CATEGORY = "business_info"
TOTAL_CHECKS = 12
MIN_DESCRIPTION_LENGTH = 750
MIN_PHOTOS = 5


def _rec(priority: str, description: str, action: str, impact: str) -> Recommendation:
    return Recommendation(
        category=CATEGORY,
        priority=priority,
        description=description,
        action=action,
        impact=impact,
    )


def score_business_info(info: NormalizedBusinessInfo) -> CategoryScoreResult:
    """Run the twelve business-info checks and score the pass ratio."""
    checks: list[CategoryCheck] = []
    recs: list[Recommendation] = []

    def record(field: str, passed: bool, value: str, expected: str, hint: str) -> None:
        checks.append(CategoryCheck(
            field=field,
            status="pass" if passed else "fail",
            value=value,
            expected=expected,
            recommendation=None if passed else hint,
        ))

    # 1. Business name
    name = info.name
    stuffed = name.keyword_stuffing
    record(
        "Business Name",
        name.keywords_included and not stuffed,
        name.value,
        "Name with keywords without stuffing",
        "Remove excess keywords from business name" if stuffed
        else "Add relevant keywords to business name",
    )
    if not (name.keywords_included and not stuffed):
        recs.append(_rec(
            "high",
            "Remove keyword stuffing from business name" if stuffed
            else "Add relevant keywords to business name",
            "Edit business name to be more natural while keeping primary keyword" if stuffed
            else "Include main service/location in business name",
            "Improves visibility in local searches without risking penalties",
        ))

    # 2. Categories
    cats = info.categories
    record(
        "Categories",
        cats.relevant,
        f"Primary: {cats.primary}, Secondary: {', '.join(cats.secondary)}",
        "Relevant categories for business type",
        "Update categories to match business offerings",
    )
    if not cats.relevant:
        recs.append(_rec(
            "high",
            "Update business categories to be more relevant",
            "Select categories that accurately reflect your primary and secondary business functions",
            "Ensures your business appears in relevant searches",
        ))

    # 3. Services
    record(
        "Services",
        info.services.complete,
        ", ".join(info.services.items),
        "Complete list of services",
        "Add missing services to your profile",
    )
    if not info.services.complete:
        recs.append(_rec(
            "medium",
            "Add more services to your business profile",
            "List all services you offer, especially those that differentiate your business",
            "Helps potential customers understand your full range of offerings",
        ))

    # 4. Attributes
    record(
        "Attributes/Features",
        info.attributes.identity_attributes,
        ", ".join(info.attributes.items),
        "Includes identity attributes",
        "Add identity attributes (e.g., 'Women-owned', 'Wheelchair accessible')",
    )
    if not info.attributes.identity_attributes:
        recs.append(_rec(
            "medium",
            "Add identity attributes to your profile",
            "Include attributes like 'Wheelchair accessible', 'Veteran-owned', etc. if applicable",
            "Improves inclusivity and helps customers find businesses aligned with their values",
        ))

    # 5. Description: length, keywords and tone are all required
    desc = info.description
    length = desc.char_count
    problems = []
    if length < MIN_DESCRIPTION_LENGTH:
        problems.append("too short")
    if not desc.keywords_included:
        problems.append("missing keywords")
    if desc.promotional_language:
        problems.append("contains promotional language")
    record(
        "Description",
        not problems,
        f"{length} characters",
        ">750 characters with keywords, no promotional language",
        f"Description is {', '.join(problems)}",
    )
    if length < MIN_DESCRIPTION_LENGTH:
        recs.append(_rec(
            "high",
            "Expand your business description",
            f"Add {MIN_DESCRIPTION_LENGTH - length} more characters to your description",
            "Provides more context for Google to understand your business",
        ))
    if not desc.keywords_included:
        recs.append(_rec(
            "medium",
            "Add relevant keywords to your description",
            "Naturally incorporate your primary keywords and services in your description",
            "Helps Google connect your business to relevant searches",
        ))
    if desc.promotional_language:
        recs.append(_rec(
            "medium",
            "Remove promotional language from description",
            "Replace promotional phrases like 'best in town' with factual descriptions of your services",
            "Avoids potential penalties from Google for inappropriate description content",
        ))

    # 6. Opening date
    opening = info.opening_date
    record(
        "Opening Date",
        opening.present,
        opening.date if opening.present else "Not set",
        "Date present",
        "Add your business opening date",
    )
    if not opening.present:
        recs.append(_rec(
            "low",
            "Add business opening date",
            "Enter your business establishment date in your profile",
            "Older businesses may receive preference in some search results",
        ))

    # 7. Contact: local phone, messaging and a relevant website
    contact = info.contact
    contact_problems = []
    if not contact.is_local:
        contact_problems.append("non-local phone")
    if not contact.chat_enabled:
        contact_problems.append("chat not enabled")
    if not contact.website_relevant:
        contact_problems.append("website not relevant")
    record(
        "Contact Information",
        not contact_problems,
        f"Phone: {contact.phone}, Website: {contact.website}",
        "Local phone, messaging enabled, relevant website",
        f"Issues: {', '.join(contact_problems)}",
    )
    if not contact.is_local:
        recs.append(_rec(
            "medium",
            "Use a local phone number",
            "Replace toll-free or non-local number with a local area code",
            "Increases trust with local customers and improves local SEO",
        ))
    if not contact.chat_enabled:
        recs.append(_rec(
            "low",
            "Enable messaging on your profile",
            "Turn on the messaging feature in your GBP dashboard",
            "Provides an additional way for customers to contact you",
        ))
    if not contact.website_relevant:
        recs.append(_rec(
            "medium",
            "Update website link to be more relevant",
            "Link to a location-specific page rather than your homepage",
            "Provides better user experience for customers",
        ))

    # 8. Social profiles
    social = info.social_profiles
    record(
        "Social Profiles",
        social.consistent,
        ", ".join(f"{k}: {v}" for k, v in social.linked().items()),
        "Consistent profiles across platforms",
        "Ensure consistent naming across social profiles",
    )
    if not social.consistent:
        recs.append(_rec(
            "low",
            "Make social media profiles consistent",
            "Use the same business name and format across all social platforms",
            "Improves brand recognition and customer trust",
        ))

    # 9. Location and service area
    loc = info.location
    record(
        "Location & Service Area",
        loc.accurate,
        f"{loc.address}, Service area: {loc.service_area}",
        "Accurate address and service area",
        "Verify location accuracy and update service area",
    )
    if not loc.accurate:
        recs.append(_rec(
            "high",
            "Update location accuracy",
            "Verify your pinpoint on Google Maps is correct and set appropriate service area",
            "Critical for appearing in local 'near me' searches",
        ))

    # 10. Hours: complete week plus special hours
    hours = info.hours
    hours_problems = []
    if not hours.complete:
        hours_problems.append("incomplete hours")
    if not hours.special_hours:
        hours_problems.append("missing special hours")
    record(
        "Business Hours",
        not hours_problems,
        "; ".join(f"{day}: {value}" for day, value in hours.days.items()),
        "Complete hours with special hours set",
        f"Issues: {', '.join(hours_problems)}",
    )
    if not hours.complete:
        recs.append(_rec(
            "high",
            "Complete your business hours for all days",
            "Add hours for all days of the week, or mark as closed on specific days",
            "Prevents customer frustration and missed visits",
        ))
    if not hours.special_hours:
        recs.append(_rec(
            "medium",
            "Add special hours for holidays",
            "Set up special hours for upcoming holidays and events",
            "Keeps customers informed about exceptions to regular hours",
        ))

    # 11. Media: photos, video and virtual tour
    media = info.media
    media_problems = []
    if media.photo_count < MIN_PHOTOS:
        media_problems.append("need more photos")
    if media.video_count == 0:
        media_problems.append("no videos")
    if not media.virtual_tour:
        media_problems.append("no virtual tour")
    record(
        "Photos & Videos",
        not media_problems,
        f"Photos: {media.photo_count}, Videos: {media.video_count}, "
        f"Virtual Tour: {'Yes' if media.virtual_tour else 'No'}",
        "5+ photos, 1+ videos, virtual tour",
        f"Issues: {', '.join(media_problems)}",
    )
    if media.photo_count < MIN_PHOTOS:
        recs.append(_rec(
            "high",
            "Add more photos to your profile",
            f"Add {MIN_PHOTOS - media.photo_count} more high-quality photos of your business",
            "Photos significantly increase engagement and click-through rates",
        ))
    if media.video_count == 0:
        recs.append(_rec(
            "medium",
            "Add a video to your profile",
            "Upload a short video showcasing your business or services",
            "Videos can increase engagement by up to 300%",
        ))
    if not media.virtual_tour:
        recs.append(_rec(
            "low",
            "Add a virtual tour",
            "Create a Google Street View virtual tour of your location",
            "Helps customers get familiar with your space before visiting",
        ))

    # 12. NAP consistency
    nap = info.nap_consistency
    record(
        "NAP Consistency",
        nap.consistent,
        "Consistent across platforms" if nap.consistent else ", ".join(nap.issues),
        "Name, address, phone consistent across web",
        "Fix inconsistent NAP information",
    )
    if not nap.consistent:
        recs.append(_rec(
            "high",
            "Fix NAP inconsistencies across platforms",
            "Ensure your name, address, and phone number are identical on all platforms",
            "Critical for local SEO and prevents customer confusion",
        ))

    passed = sum(1 for c in checks if c.passed)
    score = round_half_up(passed / TOTAL_CHECKS * 100)
    logger.debug("Business info: %d/%d checks passed", passed, TOTAL_CHECKS)
    return CategoryScoreResult(
        category=CATEGORY,
        score=score,
        checks=checks,
        recommendations=recs,
        details={"passed": passed, "total": TOTAL_CHECKS},
    )
