"""JSON API routes - talent search, pool stats, skill catalog, CV import."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from talent_engine.cv_import.merge import (
    MergeSelection,
    ParsedSkill,
    classify_cv,
    commit_selection,
)
from talent_engine.errors import CollaboratorError, InputError, PartialCommitError, SearchCancelled
from talent_engine.matching.matcher import score_and_rank
from talent_engine.matching.scorer import TargetProfile
from talent_engine.profile.models import (
    CertificationRecord,
    EducationRecord,
    ExperienceRecord,
    LanguageRecord,
)
from talent_engine.search.filters import SearchFilterSet
from talent_engine.talent.qualification import talent_pool_stats

from .dependencies import EngineServices, get_services

logger = logging.getLogger("talent_engine.web")

router = APIRouter(prefix="/api")


# Request bodies


class FilterBody(BaseModel):
    query: str = ""
    looking_for_work_only: bool = False
    has_completed_assessment: bool = False
    subscribers_only: bool = False
    riasec_codes: list[str] = Field(default_factory=list)
    skill_ids: list[str] = Field(default_factory=list)
    soft_skills: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    seniority_levels: list[str] = Field(default_factory=list)
    work_types: list[str] = Field(default_factory=list)
    min_experience: Optional[int] = None
    max_experience: Optional[int] = None


class TargetBody(BaseModel):
    assessment: Optional[list[float]] = None
    required_skills: list[str] = Field(default_factory=list)
    accepted_seniority: list[str] = Field(default_factory=list)
    accepted_work_types: list[str] = Field(default_factory=list)


class SearchBody(BaseModel):
    filters: FilterBody = Field(default_factory=FilterBody)
    page: int = 0
    page_size: Optional[int] = None
    target: Optional[TargetBody] = None


class ExperienceBody(BaseModel):
    company: str = ""
    role: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_current: bool = False
    description: str = ""
    sort_order: int = 0


class EducationBody(BaseModel):
    institution: str = ""
    degree: str = ""
    field_of_study: str = ""
    end_year: Optional[int] = None
    sort_order: int = 0


class CertificationBody(BaseModel):
    name: str
    issuing_organization: str = ""
    sort_order: int = 0


class LanguageBody(BaseModel):
    language: str
    proficiency: str = ""
    sort_order: int = 0


class SkillBody(BaseModel):
    name: str
    sort_order: int = 0


class CommitBody(BaseModel):
    experiences: list[ExperienceBody] = Field(default_factory=list)
    education: list[EducationBody] = Field(default_factory=list)
    certifications: list[CertificationBody] = Field(default_factory=list)
    languages: list[LanguageBody] = Field(default_factory=list)
    skills: list[SkillBody] = Field(default_factory=list)

    def to_selection(self) -> MergeSelection:
        return MergeSelection(
            experiences=[ExperienceRecord(**e.model_dump()) for e in self.experiences],
            education=[EducationRecord(**e.model_dump()) for e in self.education],
            certifications=[CertificationRecord(**c.model_dump()) for c in self.certifications],
            languages=[LanguageRecord(**lang.model_dump()) for lang in self.languages],
            skills=[ParsedSkill(**s.model_dump()) for s in self.skills],
        )


def _error(status_code: int, status: str, detail: str) -> JSONResponse:
    return JSONResponse({"status": status, "detail": detail}, status_code=status_code)


# Search


@router.post("/talent/search")
def search_talent(body: SearchBody, services: EngineServices = Depends(get_services)):
    page_size = body.page_size if body.page_size is not None else services.config.search.default_page_size

    try:
        filters = SearchFilterSet.from_dict(body.filters.model_dump())
        target = TargetProfile.from_dict(body.target.model_dump()) if body.target else None
        page = services.search.search(filters, page=body.page, page_size=page_size)
    except InputError as e:
        return _error(422, "invalid_input", str(e))
    except SearchCancelled as e:
        return _error(504, "search_cancelled", str(e))
    except CollaboratorError as e:
        logger.error("Talent search failed: %s", e)
        return _error(502, "search_failed", str(e))

    payload = page.to_dict()
    if target is not None:
        ranked = score_and_rank(page.results, target, services.config.matching)
        payload["results"] = [r.to_dict() for r in ranked]
    return payload


@router.get("/talent/stats")
def talent_stats(services: EngineServices = Depends(get_services)):
    try:
        stats = talent_pool_stats(services.store, services.aggregator)
    except CollaboratorError as e:
        logger.error("Talent stats failed: %s", e)
        return _error(502, "stats_failed", str(e))
    return {"status": "ok", **stats.to_dict()}


# Skill catalog


@router.get("/skills/catalog")
def skill_catalog(services: EngineServices = Depends(get_services)):
    try:
        skills = services.catalog.all()
        categories = services.catalog.categories()
    except CollaboratorError as e:
        return _error(502, "catalog_failed", str(e))
    return {
        "status": "ok",
        "categories": categories,
        "skills": [{"id": s.skill_id, "name": s.name, "category": s.category} for s in skills],
    }


@router.post("/skills/catalog/invalidate")
def invalidate_skill_catalog(services: EngineServices = Depends(get_services)):
    services.catalog.invalidate()
    return {"status": "ok"}


# CV import


@router.post("/profiles/{profile_id}/cv-import/preview")
def cv_import_preview(
    profile_id: str,
    file: UploadFile = File(...),
    services: EngineServices = Depends(get_services),
):
    if services.parser is None:
        return _error(503, "parser_unavailable", "No CV parser endpoint configured")
    if not file.filename:
        return _error(422, "invalid_input", "Uploaded file has no name")

    document = file.file.read()
    try:
        parsed = services.parser.parse(document, file.filename)
        try:
            existing = services.store.fetch_existing_records(profile_id)
        except Exception as e:
            raise CollaboratorError("fetch_existing_records", str(e)) from e
        preview = classify_cv(parsed, existing, services.catalog)
    except CollaboratorError as e:
        logger.error("CV preview for profile %s failed: %s", profile_id, e)
        return _error(502, "import_failed", str(e))

    return {
        "status": "ok",
        "confidence": parsed.confidence,
        "total_new": preview.total_new,
        "total_duplicates": preview.total_duplicates,
        "total_selected": preview.total_selected,
        "experiences": [c.to_dict(_record_dict) for c in preview.experiences],
        "education": [c.to_dict(_record_dict) for c in preview.education],
        "certifications": [c.to_dict(_record_dict) for c in preview.certifications],
        "languages": [c.to_dict(_record_dict) for c in preview.languages],
        "skills": [c.to_dict(_record_dict) for c in preview.skills],
    }


@router.post("/profiles/{profile_id}/cv-import/commit")
def cv_import_commit(
    profile_id: str,
    body: CommitBody,
    services: EngineServices = Depends(get_services),
):
    try:
        report = commit_selection(services.store, profile_id, body.to_selection(), services.catalog)
    except PartialCommitError as e:
        return JSONResponse(e.report.to_dict(), status_code=207)
    return report.to_dict()


def _record_dict(record) -> dict:
    return dict(vars(record))
