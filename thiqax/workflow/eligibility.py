"""Job application eligibility.

Every rule is evaluated, so a caller sees all the reasons at once. Skill
and experience gaps are warnings: they are reported but never make a
profile ineligible.
"""

from dataclasses import dataclass, field
from datetime import datetime

from thiqax.workflow.profiles import experience_months, missing_sections
from thiqax.workflow.types import JobSnapshot, KycStatus, ProfileSnapshot, Role


@dataclass
class EligibilityResult:
    eligible: bool = True
    reasons: list[str] = field(default_factory=list)
    missing_requirements: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def fail(self, reason: str) -> None:
        self.eligible = False
        self.reasons.append(reason)


def check_eligibility(
    profile: ProfileSnapshot,
    role: str,
    job: JobSnapshot,
    now: datetime,
) -> EligibilityResult:
    """Decide whether ``profile`` (owned by a user with ``role``) may apply to ``job``."""
    result = EligibilityResult()

    if role != Role.JOB_SEEKER.value:
        result.fail("Only job seekers can apply for jobs")

    if profile.kyc_status != KycStatus.VERIFIED.value:
        result.fail("KYC verification is required")
        result.missing_requirements.append("KYC verification")

    if not profile.profile_complete:
        result.fail("Profile must be complete")
        for section in missing_sections(profile):
            result.missing_requirements.append(f"Complete profile section: {section}")

    if job.required_skills:
        have = {s.strip().lower() for s in profile.skills if isinstance(s, str)}
        missing_skills = [s for s in job.required_skills if s.strip().lower() not in have]
        if missing_skills:
            result.warnings.append("Profile is missing some preferred skills")
            result.missing_requirements.append(f"Skills: {', '.join(missing_skills)}")

    if job.experience_years and job.experience_years > 0:
        years = experience_months(profile.experience, now) // 12
        if years < job.experience_years:
            result.warnings.append(
                f"Job requires {job.experience_years} years of experience (profile shows {years})"
            )

    return result
