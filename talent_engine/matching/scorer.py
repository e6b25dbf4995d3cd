"""Composite match score: assessment distance, skills overlap, seniority bonus.

This is the only implementation of the formula; every caller goes through
``score_candidate``.
"""

import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from talent_engine.errors import InputError
from talent_engine.profile.models import Profile, Seniority, WorkType
from talent_engine.talent.aggregator import CandidateSignals
from talent_engine.utils.text_processing import normalize

# Composite weights, in percent. Product constants.
WEIGHT_ASSESSMENT = 30
WEIGHT_SKILLS = 50
SENIORITY_BONUS = 20

# Assessment score when either vector is missing.
NEUTRAL_ASSESSMENT_SCORE = 50

ASSESSMENT_DIMENSIONS = 6


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class TargetProfile:
    """What the caller is looking for."""

    assessment: Optional[tuple[float, ...]] = None
    required_skills: tuple[str, ...] = ()
    accepted_seniority: frozenset[Seniority] = frozenset()
    accepted_work_types: frozenset[WorkType] = frozenset()

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "TargetProfile":
        assessment = raw.get("assessment")
        if assessment is not None:
            if len(assessment) != ASSESSMENT_DIMENSIONS:
                raise InputError(f"Target assessment needs {ASSESSMENT_DIMENSIONS} values (got {len(assessment)})")
            assessment = tuple(float(v) for v in assessment)
        try:
            seniority = frozenset(Seniority(v) for v in raw.get("accepted_seniority") or ())
            work_types = frozenset(WorkType(v) for v in raw.get("accepted_work_types") or ())
        except ValueError as e:
            raise InputError(str(e)) from None
        return cls(
            assessment=assessment,
            required_skills=tuple(s.strip() for s in raw.get("required_skills") or () if s and s.strip()),
            accepted_seniority=seniority,
            accepted_work_types=work_types,
        )


@dataclass(frozen=True)
class MatchCandidate:
    """The slice of a candidate the scorer reads."""

    profile_id: str
    assessment: Optional[tuple[float, ...]] = None
    skill_names: tuple[str, ...] = ()
    seniority: Optional[Seniority] = None
    work_type: Optional[WorkType] = None
    looking_for_work: bool = False

    @classmethod
    def from_signals(cls, profile: Profile, candidate: CandidateSignals) -> "MatchCandidate":
        signals = candidate.signals
        return cls(
            profile_id=profile.id,
            assessment=signals.assessment.vector if signals.assessment else None,
            skill_names=candidate.skill_names,
            seniority=signals.interview.seniority if signals.interview else None,
            work_type=profile.preferred_work_type,
            looking_for_work=profile.looking_for_work,
        )


@dataclass(frozen=True)
class SkillsOverlap:
    score: int
    overlap: tuple[str, ...]
    missing: tuple[str, ...]


@dataclass(frozen=True)
class MatchResult:
    profile_id: str
    total: int
    assessment_score: int
    skills_score: int
    seniority_match: bool
    work_type_match: bool
    skills_overlap: tuple[str, ...]
    missing_skills: tuple[str, ...]
    looking_for_work: bool = False

    def to_dict(self) -> dict:
        return {
            "profile_id": self.profile_id,
            "total": self.total,
            "assessment_score": self.assessment_score,
            "skills_score": self.skills_score,
            "seniority_match": self.seniority_match,
            "work_type_match": self.work_type_match,
            "skills_overlap": list(self.skills_overlap),
            "missing_skills": list(self.missing_skills),
        }


def assessment_distance_score(
    candidate: Optional[Sequence[float]],
    target: Optional[Sequence[float]],
    scale_max: float,
) -> int:
    """100 for identical vectors, 0 for maximally distant ones.

    ``scale_max`` is the top of the scale the vectors are expressed in
    (30 for raw RIASEC results, 100 for percentages). Missing data gives
    the neutral score, not zero.
    """
    if candidate is None or target is None:
        return NEUTRAL_ASSESSMENT_SCORE
    if len(candidate) != ASSESSMENT_DIMENSIONS or len(target) != ASSESSMENT_DIMENSIONS:
        raise ValueError(
            f"Assessment vectors need {ASSESSMENT_DIMENSIONS} dimensions "
            f"(got {len(candidate)} and {len(target)})"
        )
    if scale_max <= 0:
        raise ValueError(f"scale_max must be positive (got {scale_max})")

    total_diff = sum(abs(c - t) for c, t in zip(candidate, target))
    max_diff = ASSESSMENT_DIMENSIONS * scale_max
    score = round_half_up(100 * (1 - total_diff / max_diff))
    return max(0, min(100, score))


def skills_overlap(candidate_skills: Sequence[str], required_skills: Sequence[str]) -> SkillsOverlap:
    """Case-insensitive overlap of candidate skills with the required list."""
    if not required_skills:
        return SkillsOverlap(score=100, overlap=tuple(candidate_skills), missing=())

    held = {normalize(s) for s in candidate_skills}
    overlap = tuple(s for s in required_skills if normalize(s) in held)
    missing = tuple(s for s in required_skills if normalize(s) not in held)
    score = round_half_up(100 * len(overlap) / len(required_skills))
    return SkillsOverlap(score=score, overlap=overlap, missing=missing)


def score_candidate(candidate: MatchCandidate, target: TargetProfile, scale_max: float) -> MatchResult:
    assessment_score = assessment_distance_score(candidate.assessment, target.assessment, scale_max)
    skills = skills_overlap(candidate.skill_names, target.required_skills)

    seniority_match = not target.accepted_seniority or candidate.seniority in target.accepted_seniority
    work_type_match = (
        not target.accepted_work_types
        or candidate.work_type == WorkType.ANY
        or candidate.work_type in target.accepted_work_types
    )

    weighted = (assessment_score * WEIGHT_ASSESSMENT + skills.score * WEIGHT_SKILLS) / 100
    total = round_half_up(weighted + (SENIORITY_BONUS if seniority_match else 0))

    return MatchResult(
        profile_id=candidate.profile_id,
        total=total,
        assessment_score=assessment_score,
        skills_score=skills.score,
        seniority_match=seniority_match,
        work_type_match=work_type_match,
        skills_overlap=skills.overlap,
        missing_skills=skills.missing,
        looking_for_work=candidate.looking_for_work,
    )


def rank_key(result: MatchResult) -> tuple[bool, int]:
    """Available candidates first, then by total score descending."""
    return (not result.looking_for_work, -result.total)
