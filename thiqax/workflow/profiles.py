"""Profile completeness and experience helpers."""

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Iterable, Optional

from thiqax.workflow.types import NotificationIntent, NotificationType, ProfileSnapshot

PERSONAL_INFO_FIELDS = ("fullName", "email", "phone", "dateOfBirth", "currentLocation")
EDUCATION_FIELDS = ("institution", "degree", "fieldOfStudy", "startDate", "endDate")
EXPERIENCE_FIELDS = ("company", "position", "startDate")

# Sections reported by the eligibility check when a profile is incomplete
REQUIRED_SECTIONS = ("personalInfo", "education", "experience", "skills")

# 5 personal-info fields + education + experience + skills + photo
TOTAL_CHECKS = len(PERSONAL_INFO_FIELDS) + 4


@dataclass(frozen=True)
class CompletenessAssessment:
    is_complete: bool
    percentage: int
    missing_fields: tuple[str, ...]


@dataclass(frozen=True)
class CompletenessUpdate:
    profile: ProfileSnapshot
    became_complete: bool
    notifications: tuple[NotificationIntent, ...] = ()


def _has_all(entry: Any, fields: Iterable[str]) -> bool:
    return isinstance(entry, dict) and all(entry.get(f) for f in fields)


def assess_completeness(profile: ProfileSnapshot) -> CompletenessAssessment:
    missing = []
    personal = profile.personal_info or {}
    for field_name in PERSONAL_INFO_FIELDS:
        if not personal.get(field_name):
            missing.append(f"personalInfo.{field_name}")

    if not profile.education:
        missing.append("education")
    elif not any(_has_all(e, EDUCATION_FIELDS) for e in profile.education):
        missing.append("education (complete all required fields)")

    if not profile.experience:
        missing.append("experience")
    elif not any(_has_all(e, EXPERIENCE_FIELDS) for e in profile.experience):
        missing.append("experience (complete all required fields)")

    if not profile.skills:
        missing.append("skills")

    if not profile.photo_url:
        missing.append("profile photo")

    passed = TOTAL_CHECKS - len(missing)
    return CompletenessAssessment(
        is_complete=not missing,
        percentage=round(100 * passed / TOTAL_CHECKS),
        missing_fields=tuple(missing),
    )


def apply_completeness(profile: ProfileSnapshot, assessment: CompletenessAssessment) -> CompletenessUpdate:
    """Write completeness onto the profile; notify the user when it flips to complete."""
    became_complete = assessment.is_complete and not profile.profile_complete
    updated = replace(
        profile,
        profile_complete=assessment.is_complete,
        completion_percentage=assessment.percentage,
        missing_fields=assessment.missing_fields,
    )
    notifications = ()
    if became_complete:
        notifications = (
            NotificationIntent(
                recipient_id=profile.user_id,
                type=NotificationType.PROFILE_COMPLETE.value,
                title="Profile Completion",
                message="Congratulations! Your profile is now complete.",
                data={"profileId": profile.id},
            ),
        )
    return CompletenessUpdate(profile=updated, became_complete=became_complete, notifications=notifications)


def missing_sections(profile: ProfileSnapshot) -> list[str]:
    """Required sections that are empty."""
    sections = {
        "personalInfo": profile.personal_info,
        "education": profile.education,
        "experience": profile.experience,
        "skills": profile.skills,
    }
    return [name for name in REQUIRED_SECTIONS if not sections[name]]


def parse_date(value: Any) -> Optional[datetime]:
    """Accept datetimes, dates and ISO strings; anything else is None."""
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)
        except ValueError:
            return None
    return None


def months_between(start: datetime, end: datetime) -> int:
    return max(0, (end.year - start.year) * 12 + (end.month - start.month))


def experience_months(entries: Iterable[dict], now: datetime) -> int:
    """Total months of experience; open-ended entries run until ``now``."""
    total = 0
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        start = parse_date(entry.get("startDate"))
        if start is None:
            continue
        end = parse_date(entry.get("endDate")) or now
        total += months_between(start, end)
    return total


def applicant_data(profile: ProfileSnapshot, now: datetime) -> dict[str, Any]:
    """Profile snapshot copied onto the user's active applications."""
    personal = profile.personal_info or {}
    return {
        "name": personal.get("fullName"),
        "email": personal.get("email"),
        "phone": personal.get("phone"),
        "currentLocation": personal.get("currentLocation"),
        "education": list(profile.education),
        "experience": list(profile.experience),
        "skills": list(profile.skills),
        "lastSyncedAt": now.isoformat(),
    }
