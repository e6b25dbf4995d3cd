"""SQLAlchemy-backed TalentStore."""

import logging
from typing import Iterable, Iterator, Sequence

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, sessionmaker

from talent_engine.models import (
    AssessmentResult,
    CertificationRow,
    EducationRow,
    ExperienceRow,
    HardSkill,
    InterviewSession,
    LanguageRow,
    PortfolioItemRow,
    ProfileRow,
    ProfileSkill,
    SessionLocal,
    init_db,
)
from talent_engine.profile.models import (
    AssessmentScore,
    CatalogSkill,
    ExistingRecords,
    FreeTextSkill,
    InterviewSummary,
    PortfolioItem,
    Profile,
    SkillAssignment,
)
from talent_engine.storage.store import HistoryRecord, ProfilePredicates

logger = logging.getLogger("talent_engine.storage")

# Keeps IN (...) lists under SQLite's bound-parameter limit.
ID_CHUNK_SIZE = 500

_HISTORY_ROWS = {
    "experience": ExperienceRow,
    "education": EducationRow,
    "certification": CertificationRow,
    "language": LanguageRow,
}


def _chunks(ids: Sequence[str], size: int = ID_CHUNK_SIZE) -> Iterator[list[str]]:
    ids = list(ids)
    for start in range(0, len(ids), size):
        yield ids[start:start + size]


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SqlTalentStore:
    """Implements every store primitive with one query per call (per id chunk)."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def init_schema(self):
        init_db(self.session_factory.kw["bind"])

    def _session(self) -> Session:
        return self.session_factory()

    def fetch_profiles(self, predicates: ProfilePredicates) -> list[Profile]:
        db = self._session()
        try:
            query = db.query(ProfileRow)

            if predicates.text_query:
                pattern = _like_pattern(predicates.text_query)
                query = query.filter(or_(
                    ProfileRow.first_name.ilike(pattern, escape="\\"),
                    ProfileRow.last_name.ilike(pattern, escape="\\"),
                    ProfileRow.email.ilike(pattern, escape="\\"),
                    ProfileRow.headline.ilike(pattern, escape="\\"),
                ))
            if predicates.looking_for_work_only:
                query = query.filter(ProfileRow.looking_for_work.is_(True))
            if predicates.visibility is not None:
                query = query.filter(ProfileRow.visibility == predicates.visibility.value)
            if predicates.locations:
                query = query.filter(ProfileRow.location.in_(sorted(predicates.locations)))
            if predicates.work_types:
                query = query.filter(ProfileRow.preferred_work_type.in_(sorted(w.value for w in predicates.work_types)))
            if predicates.min_experience is not None:
                query = query.filter(ProfileRow.years_experience >= predicates.min_experience)
            if predicates.max_experience is not None:
                query = query.filter(ProfileRow.years_experience <= predicates.max_experience)

            rows = query.order_by(ProfileRow.created_at.desc(), ProfileRow.id).all()
            return [row.to_profile() for row in rows]
        finally:
            db.close()

    def fetch_assessments(self, profile_ids: Sequence[str]) -> dict[str, AssessmentScore]:
        result: dict[str, AssessmentScore] = {}
        db = self._session()
        try:
            for chunk in _chunks(profile_ids):
                rows = (
                    db.query(AssessmentResult)
                    .filter(AssessmentResult.profile_id.in_(chunk))
                    .order_by(AssessmentResult.completed_at.desc(), AssessmentResult.id.desc())
                    .all()
                )
                for row in rows:
                    if row.profile_id in result:
                        continue  # latest result wins
                    try:
                        result[row.profile_id] = row.to_score()
                    except ValueError as e:
                        logger.warning("Skipping assessment %d for profile %s: %s", row.id, row.profile_id, e)
        finally:
            db.close()
        return result

    def fetch_interviews(self, profile_ids: Sequence[str]) -> dict[str, InterviewSummary]:
        result: dict[str, InterviewSummary] = {}
        db = self._session()
        try:
            for chunk in _chunks(profile_ids):
                rows = (
                    db.query(InterviewSession)
                    .filter(InterviewSession.profile_id.in_(chunk))
                    .order_by(InterviewSession.completed_at.desc(), InterviewSession.id.desc())
                    .all()
                )
                for row in rows:
                    if row.profile_id in result:
                        continue
                    try:
                        result[row.profile_id] = row.to_summary()
                    except ValueError as e:
                        logger.warning("Skipping interview %d for profile %s: %s", row.id, row.profile_id, e)
        finally:
            db.close()
        return result

    def fetch_skills(self, profile_ids: Sequence[str]) -> dict[str, list[SkillAssignment]]:
        result: dict[str, list[SkillAssignment]] = {}
        db = self._session()
        try:
            for chunk in _chunks(profile_ids):
                rows = (
                    db.query(ProfileSkill, HardSkill)
                    .outerjoin(HardSkill, ProfileSkill.skill_id == HardSkill.id)
                    .filter(ProfileSkill.profile_id.in_(chunk))
                    .order_by(ProfileSkill.created_at, ProfileSkill.id)
                    .all()
                )
                for assignment, catalog in rows:
                    skill = _skill_ref(assignment, catalog)
                    if skill is None:
                        logger.warning("Profile skill %d has neither catalog id nor name; skipped", assignment.id)
                        continue
                    try:
                        result.setdefault(assignment.profile_id, []).append(
                            SkillAssignment(skill=skill, proficiency=assignment.proficiency_level or 3)
                        )
                    except ValueError as e:
                        logger.warning("Skipping profile skill %d: %s", assignment.id, e)
        finally:
            db.close()
        return result

    def fetch_portfolio(self, profile_ids: Sequence[str]) -> dict[str, list[PortfolioItem]]:
        result: dict[str, list[PortfolioItem]] = {}
        db = self._session()
        try:
            for chunk in _chunks(profile_ids):
                rows = (
                    db.query(PortfolioItemRow)
                    .filter(PortfolioItemRow.profile_id.in_(chunk))
                    .order_by(PortfolioItemRow.sort_order, PortfolioItemRow.id)
                    .all()
                )
                for row in rows:
                    try:
                        result.setdefault(row.profile_id, []).append(row.to_item())
                    except ValueError as e:
                        logger.warning("Skipping portfolio item %d: %s", row.id, e)
        finally:
            db.close()
        return result

    def fetch_skill_catalog(self) -> list[CatalogSkill]:
        db = self._session()
        try:
            rows = db.query(HardSkill).order_by(HardSkill.category, HardSkill.name).all()
            return [row.to_catalog_skill() for row in rows]
        finally:
            db.close()

    def fetch_existing_records(self, profile_id: str) -> ExistingRecords:
        db = self._session()
        try:
            def _records(model):
                rows = (
                    db.query(model)
                    .filter(model.profile_id == profile_id)
                    .order_by(model.sort_order, model.id)
                    .all()
                )
                return [row.to_record() for row in rows]

            existing = ExistingRecords(
                experiences=_records(ExperienceRow),
                education=_records(EducationRow),
                certifications=_records(CertificationRow),
                languages=_records(LanguageRow),
            )
        finally:
            db.close()
        existing.skills = self.fetch_skills([profile_id]).get(profile_id, [])
        return existing

    def insert_records(self, profile_id: str, kind: str, records: Iterable[HistoryRecord]) -> int:
        """Insert all records of one kind in a single transaction."""
        records = list(records)
        if not records:
            return 0

        db = self._session()
        try:
            if kind == "skill":
                rows = [_skill_row(profile_id, r) for r in records]
            else:
                model = _HISTORY_ROWS.get(kind)
                if model is None:
                    raise ValueError(f"Unknown record kind: {kind!r}")
                # New rows go after the profile's existing ones, keeping their relative order.
                start = (
                    db.query(func.max(model.sort_order)).filter(model.profile_id == profile_id).scalar()
                )
                start = 0 if start is None else start + 1
                rows = [
                    model(profile_id=profile_id, **{**_record_fields(r), "sort_order": start + i})
                    for i, r in enumerate(records)
                ]
            db.add_all(rows)
            db.commit()
            logger.info("Inserted %d %s rows for profile %s", len(rows), kind, profile_id)
            return len(rows)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


def _skill_ref(assignment: ProfileSkill, catalog: HardSkill | None):
    """Catalog reference wins when a row carries both identities."""
    if assignment.skill_id:
        if catalog is not None:
            return catalog.to_catalog_skill()
        return CatalogSkill(skill_id=assignment.skill_id)
    if assignment.custom_skill_name and assignment.custom_skill_name.strip():
        return FreeTextSkill(name=assignment.custom_skill_name.strip())
    return None


def _skill_row(profile_id: str, assignment: SkillAssignment) -> ProfileSkill:
    if not isinstance(assignment, SkillAssignment):
        raise TypeError(f"Expected SkillAssignment, got {type(assignment).__name__}")
    if assignment.is_catalog:
        return ProfileSkill(
            profile_id=profile_id,
            skill_id=assignment.identity,
            proficiency_level=assignment.proficiency,
        )
    return ProfileSkill(
        profile_id=profile_id,
        custom_skill_name=assignment.name,
        proficiency_level=assignment.proficiency,
    )


def _record_fields(record) -> dict:
    fields = dict(vars(record))
    fields.pop("sort_order", None)
    return fields
