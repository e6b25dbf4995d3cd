"""CV import: classify parsed items as new or duplicate, then commit a selection.

Duplicate rules (all comparisons lowercase + trim, None as ""):

- experience: (company, role)
- education: (institution, degree)
- certification: name
- language: language name
- skill: name against existing catalog-resolved and free-text skill names
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Generic, Optional, Sequence, TypeVar

from talent_engine.errors import PartialCommitError
from talent_engine.profile.models import (
    CertificationRecord,
    EducationRecord,
    ExistingRecords,
    ExperienceRecord,
    FreeTextSkill,
    LanguageRecord,
    SkillAssignment,
)
from talent_engine.storage.store import TalentStore
from talent_engine.talent.catalog import SkillCatalogCache
from talent_engine.utils.text_processing import normalize, normalized_set

logger = logging.getLogger("talent_engine.cv_import")

KIND_EXPERIENCE = "experience"
KIND_EDUCATION = "education"
KIND_CERTIFICATION = "certification"
KIND_LANGUAGE = "language"
KIND_SKILL = "skill"

ENTITY_KINDS = (KIND_EXPERIENCE, KIND_EDUCATION, KIND_CERTIFICATION, KIND_LANGUAGE, KIND_SKILL)

DEFAULT_IMPORTED_PROFICIENCY = 3

T = TypeVar("T")


@dataclass
class ClassifiedItem(Generic[T]):
    item: T
    is_duplicate: bool
    selected: bool

    def to_dict(self, serialize: Callable[[T], object]) -> dict:
        return {"item": serialize(self.item), "is_duplicate": self.is_duplicate, "selected": self.selected}


@dataclass
class ParsedSkill:
    name: str
    sort_order: int = 0


@dataclass
class ParsedCV:
    """Structured output of the document parser."""

    experiences: list[ExperienceRecord] = field(default_factory=list)
    education: list[EducationRecord] = field(default_factory=list)
    certifications: list[CertificationRecord] = field(default_factory=list)
    languages: list[LanguageRecord] = field(default_factory=list)
    skills: list[ParsedSkill] = field(default_factory=list)
    confidence: str = "high"


def _classify(
    parsed: Sequence[T],
    existing_keys: set,
    key: Callable[[T], object],
) -> list[ClassifiedItem[T]]:
    """New items are pre-selected; duplicates are pre-deselected."""
    classified = []
    for item in parsed:
        duplicate = key(item) in existing_keys
        classified.append(ClassifiedItem(item=item, is_duplicate=duplicate, selected=not duplicate))
    return classified


def _experience_key(e) -> tuple[str, str]:
    return (normalize(e.company), normalize(e.role))


def _education_key(e) -> tuple[str, str]:
    return (normalize(e.institution), normalize(e.degree))


def classify_experiences(parsed, existing) -> list[ClassifiedItem[ExperienceRecord]]:
    return _classify(parsed, {_experience_key(e) for e in existing}, _experience_key)


def classify_education(parsed, existing) -> list[ClassifiedItem[EducationRecord]]:
    return _classify(parsed, {_education_key(e) for e in existing}, _education_key)


def classify_certifications(parsed, existing) -> list[ClassifiedItem[CertificationRecord]]:
    return _classify(parsed, {normalize(c.name) for c in existing}, lambda c: normalize(c.name))


def classify_languages(parsed, existing) -> list[ClassifiedItem[LanguageRecord]]:
    return _classify(parsed, {normalize(lang.language) for lang in existing}, lambda lang: normalize(lang.language))


def classify_skills(
    parsed: Sequence[ParsedSkill],
    existing: Sequence[SkillAssignment],
    catalog: Optional[SkillCatalogCache] = None,
) -> list[ClassifiedItem[ParsedSkill]]:
    """Match against the union of catalog-resolved and free-text names."""
    names = []
    for assignment in existing:
        names.append(assignment.name)
        if assignment.is_catalog and catalog is not None:
            entry = catalog.get(assignment.identity)
            if entry is not None:
                names.append(entry.name)
    # Empty names never act as a wildcard, so they are not dedup targets.
    existing_names = normalized_set(names)
    return _classify(parsed, existing_names, lambda s: normalize(s.name))


@dataclass
class MergeSelection:
    """The items the caller confirmed for import."""

    experiences: list[ExperienceRecord] = field(default_factory=list)
    education: list[EducationRecord] = field(default_factory=list)
    certifications: list[CertificationRecord] = field(default_factory=list)
    languages: list[LanguageRecord] = field(default_factory=list)
    skills: list[ParsedSkill] = field(default_factory=list)

    def items(self, kind: str) -> list:
        return list(getattr(self, _ATTR_BY_KIND[kind]))


@dataclass
class MergePreview:
    experiences: list[ClassifiedItem[ExperienceRecord]] = field(default_factory=list)
    education: list[ClassifiedItem[EducationRecord]] = field(default_factory=list)
    certifications: list[ClassifiedItem[CertificationRecord]] = field(default_factory=list)
    languages: list[ClassifiedItem[LanguageRecord]] = field(default_factory=list)
    skills: list[ClassifiedItem[ParsedSkill]] = field(default_factory=list)

    def kind(self, kind: str) -> list[ClassifiedItem]:
        try:
            return getattr(self, _ATTR_BY_KIND[kind])
        except KeyError:
            raise ValueError(f"Unknown entity kind: {kind!r}") from None

    def _all(self) -> list[ClassifiedItem]:
        return [c for k in ENTITY_KINDS for c in self.kind(k)]

    @property
    def total_new(self) -> int:
        return sum(1 for c in self._all() if not c.is_duplicate)

    @property
    def total_duplicates(self) -> int:
        return sum(1 for c in self._all() if c.is_duplicate)

    @property
    def total_selected(self) -> int:
        return sum(1 for c in self._all() if c.selected)

    def select(self, kind: str, index: int, selected: bool = True):
        """Override the default selection for one item."""
        self.kind(kind)[index].selected = selected

    def select_all_new(self):
        for c in self._all():
            c.selected = not c.is_duplicate

    def deselect_all(self):
        for c in self._all():
            c.selected = False

    def selection(self) -> MergeSelection:
        return MergeSelection(**{
            _ATTR_BY_KIND[k]: [c.item for c in self.kind(k) if c.selected]
            for k in ENTITY_KINDS
        })


_ATTR_BY_KIND = {
    KIND_EXPERIENCE: "experiences",
    KIND_EDUCATION: "education",
    KIND_CERTIFICATION: "certifications",
    KIND_LANGUAGE: "languages",
    KIND_SKILL: "skills",
}


def classify_cv(
    parsed: ParsedCV,
    existing: ExistingRecords,
    catalog: Optional[SkillCatalogCache] = None,
) -> MergePreview:
    preview = MergePreview(
        experiences=classify_experiences(parsed.experiences, existing.experiences),
        education=classify_education(parsed.education, existing.education),
        certifications=classify_certifications(parsed.certifications, existing.certifications),
        languages=classify_languages(parsed.languages, existing.languages),
        skills=classify_skills(parsed.skills, existing.skills, catalog),
    )
    logger.info(
        "CV classified: %d new, %d already present",
        preview.total_new, preview.total_duplicates,
    )
    return preview


@dataclass
class CommitReport:
    committed: dict[str, int] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "status": "ok" if self.ok else "partial_failure",
            "committed": self.committed,
            "failed": self.failed,
            "skipped": self.skipped,
        }


def _skill_assignments(
    skills: Sequence[ParsedSkill], catalog: Optional[SkillCatalogCache]
) -> list[SkillAssignment]:
    """Catalog reference when the name is in the catalog, free text otherwise."""
    assignments = []
    for parsed in skills:
        entry = catalog.find_by_name(parsed.name) if catalog is not None else None
        skill = entry if entry is not None else FreeTextSkill(name=parsed.name.strip())
        assignments.append(SkillAssignment(skill=skill, proficiency=DEFAULT_IMPORTED_PROFICIENCY))
    return assignments


def commit_selection(
    store: TalentStore,
    profile_id: str,
    selection: MergeSelection,
    catalog: Optional[SkillCatalogCache] = None,
    max_workers: int = len(ENTITY_KINDS),
) -> CommitReport:
    """Insert each selected kind as one batch; kinds run concurrently.

    Not a transaction across kinds: a failed kind leaves the others committed.
    Raises PartialCommitError (carrying the report) if any kind failed.
    """
    report = CommitReport()
    batches = {}
    for kind in ENTITY_KINDS:
        items = sorted(selection.items(kind), key=lambda i: i.sort_order)
        if not items:
            report.skipped.append(kind)
            continue
        if kind == KIND_SKILL:
            # Skill lookups hit the catalog cache; failures there fail only this kind.
            batches[kind] = lambda items=items: _skill_assignments(items, catalog)
        else:
            batches[kind] = lambda items=items: items

    def _insert(kind: str) -> int:
        return store.insert_records(profile_id, kind, batches[kind]())

    if batches:
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            futures = {kind: executor.submit(_insert, kind) for kind in batches}
            for kind, future in futures.items():
                try:
                    report.committed[kind] = future.result()
                except Exception as e:
                    logger.error("CV import of %s for profile %s failed: %s", kind, profile_id, e)
                    report.failed[kind] = str(e)

    logger.info(
        "CV import for profile %s: committed=%s failed=%s skipped=%s",
        profile_id, sorted(report.committed), sorted(report.failed), report.skipped,
    )

    if report.failed:
        raise PartialCommitError(report)
    return report
