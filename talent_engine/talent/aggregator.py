"""Batched signal aggregation: one fetch per signal category, never per profile."""

import logging
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Optional, Sequence

from talent_engine.errors import CollaboratorError, SearchCancelled
from talent_engine.profile.models import CatalogSkill, SignalSet, SkillAssignment
from talent_engine.storage.store import TalentStore
from talent_engine.talent.catalog import SkillCatalogCache

logger = logging.getLogger("talent_engine.talent.aggregator")

TOP_SKILLS_COUNT = 3

# How often a waiting join re-checks the caller's cancel event.
_CANCEL_POLL_SECONDS = 0.05

SIGNAL_CATEGORIES = ("assessment", "interview", "skills", "portfolio")


@dataclass(frozen=True)
class CandidateSignals:
    """Per-profile signal summary. Derived fields are computed once, at build time."""

    profile_id: str
    signals: SignalSet
    skill_names: tuple[str, ...] = ()
    skill_categories: tuple[str, ...] = ()
    top_skills: tuple[str, ...] = ()
    skills_count: int = 0

    @property
    def has_assessment(self) -> bool:
        return self.signals.assessment is not None

    @property
    def has_interview(self) -> bool:
        return self.signals.interview is not None

    @classmethod
    def build(
        cls,
        profile_id: str,
        signals: SignalSet,
        catalog: Optional[SkillCatalogCache] = None,
    ) -> "CandidateSignals":
        names: list[str] = []
        categories: list[str] = []
        for assignment in signals.skills:
            name, category = _resolve_skill(assignment, catalog)
            if name:
                names.append(name)
            if category and category not in categories:
                categories.append(category)

        return cls(
            profile_id=profile_id,
            signals=signals,
            skill_names=tuple(names),
            skill_categories=tuple(categories),
            top_skills=tuple(names[:TOP_SKILLS_COUNT]),
            skills_count=len(signals.skills),
        )

    def to_dict(self) -> dict:
        s = self.signals
        return {
            "assessment": s.assessment.to_dict() if s.assessment else None,
            "interview": s.interview.to_dict() if s.interview else None,
            "skills": list(self.skill_names),
            "skill_categories": list(self.skill_categories),
            "top_skills": list(self.top_skills),
            "skills_count": self.skills_count,
            "portfolio_count": len(s.portfolio),
        }


def _resolve_skill(
    assignment: SkillAssignment, catalog: Optional[SkillCatalogCache]
) -> tuple[str, Optional[str]]:
    """Display name and category for one assignment, preferring the catalog."""
    skill = assignment.skill
    if isinstance(skill, CatalogSkill):
        entry = catalog.get(skill.skill_id) if catalog is not None else None
        if entry is not None:
            return entry.name, entry.category or skill.category
        return skill.name, skill.category
    return skill.name, None


@dataclass
class SignalAggregator:
    """Joins assessment, interview, skills and portfolio data for a batch of profiles."""

    store: TalentStore
    catalog: Optional[SkillCatalogCache] = None
    max_workers: int = 4
    _fetchers: dict = field(init=False, repr=False)

    def __post_init__(self):
        self._fetchers = {
            "assessment": self.store.fetch_assessments,
            "interview": self.store.fetch_interviews,
            "skills": self.store.fetch_skills,
            "portfolio": self.store.fetch_portfolio,
        }

    def aggregate(
        self,
        profile_ids: Sequence[str],
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> dict[str, CandidateSignals]:
        """Return a CandidateSignals for every requested id (empty signals included)."""
        ids = list(dict.fromkeys(profile_ids))
        if not ids:
            return {}

        _check_cancelled(cancel_event)
        fetched = self._fetch_all(ids, cancel_event, timeout)

        assessments = fetched["assessment"]
        interviews = fetched["interview"]
        skills = fetched["skills"]
        portfolio = fetched["portfolio"]

        result = {}
        for pid in ids:
            signals = SignalSet(
                assessment=assessments.get(pid),
                interview=interviews.get(pid),
                skills=list(skills.get(pid, [])),
                portfolio=list(portfolio.get(pid, [])),
            )
            result[pid] = CandidateSignals.build(pid, signals, self.catalog)

        logger.debug(
            "Aggregated signals for %d profiles (%d assessments, %d interviews)",
            len(ids), len(assessments), len(interviews),
        )
        return result

    def _fetch_all(
        self,
        ids: list[str],
        cancel_event: Optional[threading.Event],
        timeout: Optional[float],
    ) -> dict[str, dict]:
        """Fan out one batched fetch per category and join on all of them."""
        deadline = time.monotonic() + timeout if timeout is not None else None
        executor = ThreadPoolExecutor(
            max_workers=max(1, min(self.max_workers, len(SIGNAL_CATEGORIES))),
            thread_name_prefix="signal-fetch",
        )
        try:
            futures: dict[Future, str] = {
                executor.submit(self._fetchers[category], ids): category
                for category in SIGNAL_CATEGORIES
            }
            pending = set(futures)
            while pending:
                wait_for = None
                if cancel_event is not None:
                    wait_for = _CANCEL_POLL_SECONDS
                if deadline is not None:
                    remaining = max(0.0, deadline - time.monotonic())
                    wait_for = remaining if wait_for is None else min(wait_for, remaining)

                done, pending = wait(pending, timeout=wait_for, return_when=FIRST_EXCEPTION)

                for future in done:
                    exc = future.exception()
                    if exc is not None:
                        category = futures[future]
                        logger.error("Batched %s fetch failed for %d profiles: %s", category, len(ids), exc)
                        raise CollaboratorError(f"fetch_{category}", str(exc)) from exc

                if pending:
                    _check_cancelled(cancel_event)
                    if deadline is not None and time.monotonic() >= deadline:
                        logger.warning("Signal aggregation timed out after %.2fs", timeout)
                        raise SearchCancelled(f"signal aggregation exceeded {timeout}s")

            _check_cancelled(cancel_event)
            return {category: future.result() or {} for future, category in futures.items()}
        finally:
            executor.shutdown(wait=False, cancel_futures=True)


def _check_cancelled(cancel_event: Optional[threading.Event]):
    if cancel_event is not None and cancel_event.is_set():
        raise SearchCancelled("request cancelled by caller")
