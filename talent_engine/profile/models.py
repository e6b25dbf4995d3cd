"""Profile and signal data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

RIASEC_DIMENSIONS = ("R", "I", "A", "S", "E", "C")
ASSESSMENT_DIMENSION_MAX = 30


class Visibility(str, Enum):
    PRIVATE = "private"
    SUBSCRIBERS_ONLY = "subscribers_only"


class WorkType(str, Enum):
    REMOTE = "remote"
    HYBRID = "hybrid"
    ONSITE = "onsite"
    ANY = "any"


class Seniority(str, Enum):
    JUNIOR = "Junior"
    MID = "Mid"
    SENIOR = "Senior"
    LEAD = "Lead"
    C_LEVEL = "C-Level"


class PortfolioItemType(str, Enum):
    CV = "cv"
    CERTIFICATE = "certificate"
    PROJECT = "project"
    IMAGE = "image"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def aware_utc(value: datetime) -> datetime:
    """Naive datetimes are stored as UTC (SQLite hands them back naive)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class Profile:
    """A person record as seen by the talent engine."""

    id: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    headline: str = ""
    bio: str = ""
    job_title: str = ""
    location: str = ""
    years_experience: Optional[int] = None
    talent_opt: bool = False
    visibility: Visibility = Visibility.PRIVATE
    looking_for_work: bool = False
    preferred_work_type: Optional[WorkType] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def display_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "display_name": self.display_name,
            "headline": self.headline,
            "job_title": self.job_title,
            "location": self.location,
            "years_experience": self.years_experience,
            "talent_opt": self.talent_opt,
            "visibility": self.visibility.value,
            "looking_for_work": self.looking_for_work,
            "preferred_work_type": self.preferred_work_type.value if self.preferred_work_type else None,
            "created_at": self.created_at.isoformat(),
        }


def dominant_code(scores: dict[str, int]) -> str:
    """Top three dimensions by score, descending, joined with '-'.

    Ties keep R-I-A-S-E-C order.
    """
    ranked = sorted(RIASEC_DIMENSIONS, key=lambda d: scores.get(d, 0), reverse=True)
    return "-".join(ranked[:3])


@dataclass(frozen=True)
class AssessmentScore:
    """Six-dimension RIASEC result, each dimension 0-30."""

    r: int = 0
    i: int = 0
    a: int = 0
    s: int = 0
    e: int = 0
    c: int = 0
    code: str = ""

    def __post_init__(self):
        for dim, value in zip(RIASEC_DIMENSIONS, self.vector):
            if not 0 <= value <= ASSESSMENT_DIMENSION_MAX:
                raise ValueError(
                    f"Assessment dimension {dim}={value} outside 0-{ASSESSMENT_DIMENSION_MAX}"
                )

    @property
    def vector(self) -> tuple[int, ...]:
        return (self.r, self.i, self.a, self.s, self.e, self.c)

    @property
    def profile_code(self) -> str:
        """Stored code when present, otherwise derived from the scores."""
        if self.code:
            return self.code
        return dominant_code(dict(zip(RIASEC_DIMENSIONS, self.vector)))

    def to_dict(self) -> dict:
        return {
            **dict(zip(RIASEC_DIMENSIONS, self.vector)),
            "profile_code": self.profile_code,
        }


@dataclass(frozen=True)
class InterviewSummary:
    """Outcome of an AI-interview session."""

    summary: str = ""
    soft_skills: tuple[str, ...] = ()
    primary_values: tuple[str, ...] = ()
    risk_factors: tuple[str, ...] = ()
    seniority: Optional[Seniority] = None

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "soft_skills": list(self.soft_skills),
            "primary_values": list(self.primary_values),
            "risk_factors": list(self.risk_factors),
            "seniority": self.seniority.value if self.seniority else None,
        }


@dataclass(frozen=True)
class CatalogSkill:
    """A skill referenced from the shared hard-skills catalog."""

    skill_id: str
    name: str = ""
    category: Optional[str] = None

    @property
    def identity(self) -> str:
        return self.skill_id


@dataclass(frozen=True)
class FreeTextSkill:
    """A skill the profile owner typed in, not in the catalog."""

    name: str

    @property
    def identity(self) -> str:
        return self.name

    @property
    def category(self) -> Optional[str]:
        return None


SkillRef = Union[CatalogSkill, FreeTextSkill]


@dataclass(frozen=True)
class SkillAssignment:
    """A skill held by a profile, with proficiency 1-5."""

    skill: SkillRef
    proficiency: int = 3

    def __post_init__(self):
        if not isinstance(self.skill, (CatalogSkill, FreeTextSkill)):
            raise TypeError(f"Unsupported skill reference: {self.skill!r}")
        if not 1 <= self.proficiency <= 5:
            raise ValueError(f"Skill proficiency {self.proficiency} outside 1-5")

    @property
    def is_catalog(self) -> bool:
        return isinstance(self.skill, CatalogSkill)

    @property
    def identity(self) -> str:
        return self.skill.identity

    @property
    def name(self) -> str:
        return self.skill.name


@dataclass(frozen=True)
class PortfolioItem:
    item_type: PortfolioItemType
    title: str
    description: str = ""
    file_url: str = ""
    external_url: str = ""
    sort_order: int = 0


@dataclass
class SignalSet:
    """Everything that signals talent-pool intent for one profile."""

    assessment: Optional[AssessmentScore] = None
    interview: Optional[InterviewSummary] = None
    skills: list[SkillAssignment] = field(default_factory=list)
    portfolio: list[PortfolioItem] = field(default_factory=list)

    def is_empty(self) -> bool:
        return (
            self.assessment is None
            and self.interview is None
            and not self.skills
            and not self.portfolio
        )


# Profile-owned history lists. Only relevant to the core as CV dedup targets.

@dataclass
class ExperienceRecord:
    company: str
    role: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_current: bool = False
    description: str = ""
    sort_order: int = 0


@dataclass
class EducationRecord:
    institution: str
    degree: str
    field_of_study: str = ""
    end_year: Optional[int] = None
    sort_order: int = 0


@dataclass
class CertificationRecord:
    name: str
    issuing_organization: str = ""
    sort_order: int = 0


@dataclass
class LanguageRecord:
    language: str
    proficiency: str = ""
    sort_order: int = 0


@dataclass
class ExistingRecords:
    """A profile's current history lists and skills, used as dedup targets."""

    experiences: list[ExperienceRecord] = field(default_factory=list)
    education: list[EducationRecord] = field(default_factory=list)
    certifications: list[CertificationRecord] = field(default_factory=list)
    languages: list[LanguageRecord] = field(default_factory=list)
    skills: list[SkillAssignment] = field(default_factory=list)
