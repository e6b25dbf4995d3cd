"""Search filter value object, validation, and the Tier 1 / Tier 2 split."""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from talent_engine.errors import InputError
from talent_engine.profile.models import Profile, Seniority, Visibility, WorkType
from talent_engine.storage.store import ProfilePredicates
from talent_engine.talent.aggregator import CandidateSignals
from talent_engine.utils.text_processing import any_contains_ci, normalize_code


@dataclass(frozen=True)
class SearchFilterSet:
    """Immutable set of search filters. Empty sets and None bounds are no-ops."""

    query: str = ""
    looking_for_work_only: bool = False
    has_completed_assessment: bool = False
    subscribers_only: bool = False
    riasec_codes: frozenset[str] = frozenset()
    skill_ids: frozenset[str] = frozenset()
    soft_skills: frozenset[str] = frozenset()
    locations: frozenset[str] = frozenset()
    seniority_levels: frozenset[Seniority] = frozenset()
    work_types: frozenset[WorkType] = frozenset()
    min_experience: Optional[int] = None
    max_experience: Optional[int] = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "SearchFilterSet":
        """Build from loosely typed input (JSON body, CLI args). Raises InputError."""
        return cls(
            query=(raw.get("query") or "").strip(),
            looking_for_work_only=bool(raw.get("looking_for_work_only", False)),
            has_completed_assessment=bool(raw.get("has_completed_assessment", False)),
            subscribers_only=bool(raw.get("subscribers_only", False)),
            riasec_codes=_str_set(raw.get("riasec_codes")),
            skill_ids=_str_set(raw.get("skill_ids")),
            soft_skills=_str_set(raw.get("soft_skills")),
            locations=_str_set(raw.get("locations")),
            seniority_levels=_enum_set(Seniority, raw.get("seniority_levels"), "seniority level"),
            work_types=_enum_set(WorkType, raw.get("work_types"), "work type"),
            min_experience=_optional_int(raw.get("min_experience"), "min_experience"),
            max_experience=_optional_int(raw.get("max_experience"), "max_experience"),
        )

    def validate(self):
        """Reject malformed filter sets before anything is fetched."""
        for name in ("min_experience", "max_experience"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise InputError(f"{name} must not be negative (got {value})")
        if (
            self.min_experience is not None
            and self.max_experience is not None
            and self.min_experience > self.max_experience
        ):
            raise InputError(
                f"min_experience ({self.min_experience}) is greater than max_experience ({self.max_experience})"
            )
        for level in self.seniority_levels:
            if not isinstance(level, Seniority):
                raise InputError(f"Unknown seniority level: {level!r}")
        for work_type in self.work_types:
            if not isinstance(work_type, WorkType):
                raise InputError(f"Unknown work type: {work_type!r}")

    def to_predicates(self) -> ProfilePredicates:
        """Tier 1: everything the store can apply without joined data."""
        return ProfilePredicates(
            text_query=self.query,
            looking_for_work_only=self.looking_for_work_only,
            visibility=Visibility.SUBSCRIBERS_ONLY if self.subscribers_only else None,
            locations=self.locations,
            work_types=self.work_types,
            min_experience=self.min_experience,
            max_experience=self.max_experience,
        )

    def matches_derived(self, profile: Profile, candidate: CandidateSignals) -> bool:
        """Tier 2: predicates that need the aggregated signals."""
        signals = candidate.signals

        if self.has_completed_assessment and signals.assessment is None:
            return False

        if self.riasec_codes:
            if signals.assessment is None:
                return False
            code = normalize_code(signals.assessment.profile_code)
            if not any(normalize_code(c) and normalize_code(c) in code for c in self.riasec_codes):
                return False

        if self.seniority_levels:
            seniority = signals.interview.seniority if signals.interview else None
            if seniority not in self.seniority_levels:
                return False

        if self.soft_skills:
            tags = signals.interview.soft_skills if signals.interview else ()
            if not any(any_contains_ci(tags, wanted) for wanted in self.soft_skills):
                return False

        if self.skill_ids:
            held = {a.identity for a in signals.skills}
            if held.isdisjoint(self.skill_ids):
                return False

        return True


def _str_set(values: Optional[Iterable[Any]]) -> frozenset[str]:
    if not values:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    return frozenset(str(v).strip() for v in values if v is not None and str(v).strip())


def _enum_set(enum_cls, values: Optional[Iterable[Any]], label: str) -> frozenset:
    members = set()
    for value in _str_set(values):
        try:
            members.add(enum_cls(value))
        except ValueError:
            raise InputError(f"Unknown {label}: {value!r}") from None
    return frozenset(members)


def _optional_int(value: Any, name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InputError(f"{name} must be an integer (got {value!r})") from None
