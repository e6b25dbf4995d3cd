"""Data store collaborator interface consumed by the talent engine."""

from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Sequence, Union

from talent_engine.profile.models import (
    AssessmentScore,
    CatalogSkill,
    CertificationRecord,
    EducationRecord,
    ExistingRecords,
    ExperienceRecord,
    InterviewSummary,
    LanguageRecord,
    PortfolioItem,
    Profile,
    SkillAssignment,
    Visibility,
    WorkType,
)

HistoryRecord = Union[ExperienceRecord, EducationRecord, CertificationRecord, LanguageRecord, SkillAssignment]


@dataclass(frozen=True)
class ProfilePredicates:
    """Tier 1 predicates, applied by the store at fetch time.

    Empty collections and None bounds mean "no constraint".
    """

    text_query: str = ""
    looking_for_work_only: bool = False
    visibility: Optional[Visibility] = None
    locations: frozenset[str] = frozenset()
    work_types: frozenset[WorkType] = frozenset()
    min_experience: Optional[int] = None
    max_experience: Optional[int] = None


class TalentStore(Protocol):
    """Fetch and insert primitives the engine needs from the relational store.

    Row fetches return collections only; no total count is guaranteed.
    Batched fetches take many profile ids and return one mapping keyed by
    profile id; ids without data are simply absent.
    """

    def fetch_profiles(self, predicates: ProfilePredicates) -> list[Profile]:
        ...

    def fetch_assessments(self, profile_ids: Sequence[str]) -> dict[str, AssessmentScore]:
        ...

    def fetch_interviews(self, profile_ids: Sequence[str]) -> dict[str, InterviewSummary]:
        ...

    def fetch_skills(self, profile_ids: Sequence[str]) -> dict[str, list[SkillAssignment]]:
        ...

    def fetch_portfolio(self, profile_ids: Sequence[str]) -> dict[str, list[PortfolioItem]]:
        ...

    def fetch_skill_catalog(self) -> list[CatalogSkill]:
        ...

    def fetch_existing_records(self, profile_id: str) -> ExistingRecords:
        ...

    def insert_records(self, profile_id: str, kind: str, records: Iterable[HistoryRecord]) -> int:
        """Insert one kind's records as a single batch. Returns rows inserted."""
        ...
