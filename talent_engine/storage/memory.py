"""In-process TalentStore, with the same predicate semantics as the SQL store."""

import threading
from dataclasses import replace
from typing import Iterable, Optional, Sequence

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
    aware_utc,
    SkillAssignment,
)
from talent_engine.storage.store import HistoryRecord, ProfilePredicates
from talent_engine.utils.text_processing import contains_ci

_RECORD_TYPES = {
    "experience": ExperienceRecord,
    "education": EducationRecord,
    "certification": CertificationRecord,
    "language": LanguageRecord,
    "skill": SkillAssignment,
}


class InMemoryTalentStore:
    def __init__(self, catalog: Optional[Iterable[CatalogSkill]] = None):
        self._lock = threading.Lock()
        self.profiles: dict[str, Profile] = {}
        self.assessments: dict[str, AssessmentScore] = {}
        self.interviews: dict[str, InterviewSummary] = {}
        self.skills: dict[str, list[SkillAssignment]] = {}
        self.portfolio: dict[str, list[PortfolioItem]] = {}
        self.catalog: dict[str, CatalogSkill] = {s.skill_id: s for s in (catalog or [])}
        self.records: dict[str, dict[str, list]] = {}

    # Seeding helpers

    def add_profile(self, profile: Profile) -> Profile:
        with self._lock:
            self.profiles[profile.id] = profile
        return profile

    def set_assessment(self, profile_id: str, score: AssessmentScore):
        with self._lock:
            self.assessments[profile_id] = score

    def set_interview(self, profile_id: str, summary: InterviewSummary):
        with self._lock:
            self.interviews[profile_id] = summary

    def add_skill(self, profile_id: str, assignment: SkillAssignment):
        with self._lock:
            self.skills.setdefault(profile_id, []).append(assignment)

    def add_portfolio_item(self, profile_id: str, item: PortfolioItem):
        with self._lock:
            self.portfolio.setdefault(profile_id, []).append(item)

    # TalentStore

    def fetch_profiles(self, predicates: ProfilePredicates) -> list[Profile]:
        with self._lock:
            profiles = list(self.profiles.values())
        matched = [p for p in profiles if _matches(p, predicates)]
        matched.sort(key=lambda p: p.id)
        matched.sort(key=lambda p: aware_utc(p.created_at), reverse=True)
        return matched

    def fetch_assessments(self, profile_ids: Sequence[str]) -> dict[str, AssessmentScore]:
        with self._lock:
            return {pid: self.assessments[pid] for pid in profile_ids if pid in self.assessments}

    def fetch_interviews(self, profile_ids: Sequence[str]) -> dict[str, InterviewSummary]:
        with self._lock:
            return {pid: self.interviews[pid] for pid in profile_ids if pid in self.interviews}

    def fetch_skills(self, profile_ids: Sequence[str]) -> dict[str, list[SkillAssignment]]:
        with self._lock:
            return {
                pid: [self._resolve(a) for a in self.skills[pid]]
                for pid in profile_ids
                if self.skills.get(pid)
            }

    def fetch_portfolio(self, profile_ids: Sequence[str]) -> dict[str, list[PortfolioItem]]:
        with self._lock:
            return {pid: list(self.portfolio[pid]) for pid in profile_ids if self.portfolio.get(pid)}

    def fetch_skill_catalog(self) -> list[CatalogSkill]:
        with self._lock:
            return list(self.catalog.values())

    def fetch_existing_records(self, profile_id: str) -> ExistingRecords:
        with self._lock:
            records = self.records.get(profile_id, {})
            existing = ExistingRecords(
                experiences=list(records.get("experience", [])),
                education=list(records.get("education", [])),
                certifications=list(records.get("certification", [])),
                languages=list(records.get("language", [])),
            )
        existing.skills = self.fetch_skills([profile_id]).get(profile_id, [])
        return existing

    def insert_records(self, profile_id: str, kind: str, records: Iterable[HistoryRecord]) -> int:
        record_type = _RECORD_TYPES.get(kind)
        if record_type is None:
            raise ValueError(f"Unknown record kind: {kind!r}")
        records = list(records)
        for record in records:
            if not isinstance(record, record_type):
                raise TypeError(f"Expected {record_type.__name__} for {kind}, got {type(record).__name__}")

        with self._lock:
            if kind == "skill":
                self.skills.setdefault(profile_id, []).extend(records)
            else:
                target = self.records.setdefault(profile_id, {}).setdefault(kind, [])
                start = max((r.sort_order for r in target), default=-1) + 1
                target.extend(replace(r, sort_order=start + i) for i, r in enumerate(records))
        return len(records)

    def _resolve(self, assignment: SkillAssignment) -> SkillAssignment:
        skill = assignment.skill
        if isinstance(skill, CatalogSkill) and not skill.name and skill.skill_id in self.catalog:
            return replace(assignment, skill=self.catalog[skill.skill_id])
        return assignment


def _matches(profile: Profile, predicates: ProfilePredicates) -> bool:
    if predicates.text_query and not any(
        contains_ci(field, predicates.text_query)
        for field in (profile.first_name, profile.last_name, profile.email, profile.headline)
    ):
        return False
    if predicates.looking_for_work_only and not profile.looking_for_work:
        return False
    if predicates.visibility is not None and profile.visibility != predicates.visibility:
        return False
    if predicates.locations and profile.location not in predicates.locations:
        return False
    if predicates.work_types and profile.preferred_work_type not in predicates.work_types:
        return False
    # Like SQL, an unknown experience never satisfies a bound.
    if predicates.min_experience is not None and (
        profile.years_experience is None or profile.years_experience < predicates.min_experience
    ):
        return False
    if predicates.max_experience is not None and (
        profile.years_experience is None or profile.years_experience > predicates.max_experience
    ):
        return False
    return True
