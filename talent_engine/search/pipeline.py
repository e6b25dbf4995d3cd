"""Talent search: Tier 1 fetch, qualification, Tier 2 filtering, count, then paginate."""

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from talent_engine.errors import CollaboratorError, InputError
from talent_engine.profile.models import Profile, aware_utc
from talent_engine.search.filters import SearchFilterSet
from talent_engine.storage.store import TalentStore
from talent_engine.talent.aggregator import CandidateSignals, SignalAggregator
from talent_engine.talent.qualification import qualify

logger = logging.getLogger("talent_engine.search")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass
class CandidateSummary:
    """One row of a search page."""

    profile: Profile
    candidate: CandidateSignals

    @property
    def has_assessment(self) -> bool:
        return self.candidate.has_assessment

    @property
    def has_interview(self) -> bool:
        return self.candidate.has_interview

    @property
    def skills_count(self) -> int:
        return self.candidate.skills_count

    @property
    def top_skills(self) -> tuple[str, ...]:
        return self.candidate.top_skills

    def to_dict(self) -> dict:
        return {
            "profile": self.profile.to_dict(),
            "signals": self.candidate.to_dict(),
            "has_assessment": self.has_assessment,
            "has_interview": self.has_interview,
            "skills_count": self.skills_count,
            "top_skills": list(self.top_skills),
        }


@dataclass
class SearchPage:
    results: list[CandidateSummary] = field(default_factory=list)
    total_count: int = 0
    page: int = 0
    page_size: int = DEFAULT_PAGE_SIZE
    skill_category_facets: dict[str, int] = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return max(1, (self.total_count + self.page_size - 1) // self.page_size)

    def to_dict(self) -> dict:
        return {
            "status": "ok",
            "total_count": self.total_count,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
            "skill_category_facets": self.skill_category_facets,
            "results": [r.to_dict() for r in self.results],
        }


class TalentSearch:
    """Runs the full filter pipeline on every call.

    Nothing is cached between calls: qualification depends on signals that
    can change at any time, so every page request re-runs the whole query.
    """

    def __init__(
        self,
        store: TalentStore,
        aggregator: SignalAggregator,
        max_page_size: int = MAX_PAGE_SIZE,
        fetch_timeout: Optional[float] = None,
    ):
        self.store = store
        self.aggregator = aggregator
        self.max_page_size = max_page_size
        self.fetch_timeout = fetch_timeout

    def search(
        self,
        filters: SearchFilterSet,
        page: int = 0,
        page_size: int = DEFAULT_PAGE_SIZE,
        cancel_event: Optional[threading.Event] = None,
    ) -> SearchPage:
        """Return one page of qualified, filtered candidates and the full filtered total.

        Raises InputError for malformed filters or paging, CollaboratorError
        when a store fetch fails, SearchCancelled when cancelled. Zero
        matches is a normal, empty page.
        """
        filters.validate()
        self._validate_paging(page, page_size)

        # Tier 1: store pushdown
        try:
            profiles = self.store.fetch_profiles(filters.to_predicates())
        except Exception as e:
            logger.error("Profile fetch failed: %s", e)
            raise CollaboratorError("fetch_profiles", str(e)) from e

        if not profiles:
            logger.info("Search returned no profiles at store level")
            return SearchPage(page=page, page_size=page_size)

        signals = self.aggregator.aggregate(
            [p.id for p in profiles],
            cancel_event=cancel_event,
            timeout=self.fetch_timeout,
        )

        qualified = [p for p in profiles if qualify(p, signals[p.id].signals)]
        if not qualified:
            logger.info("Search: %d profiles fetched, none qualify", len(profiles))
            return SearchPage(page=page, page_size=page_size)

        # Tier 2: derived predicates over joined signals
        filtered = [p for p in qualified if filters.matches_derived(p, signals[p.id])]

        # Stable: ties keep store order
        filtered.sort(key=lambda p: aware_utc(p.created_at), reverse=True)

        total_count = len(filtered)
        facets = _category_facets(signals[p.id] for p in filtered)

        start = page * page_size
        page_profiles = filtered[start:start + page_size]

        logger.info(
            "Search: %d fetched, %d qualified, %d after derived filters, page %d returns %d",
            len(profiles), len(qualified), total_count, page, len(page_profiles),
        )

        return SearchPage(
            results=[CandidateSummary(profile=p, candidate=signals[p.id]) for p in page_profiles],
            total_count=total_count,
            page=page,
            page_size=page_size,
            skill_category_facets=facets,
        )

    def _validate_paging(self, page: int, page_size: int):
        if page < 0:
            raise InputError(f"page must not be negative (got {page})")
        if page_size < 1:
            raise InputError(f"page_size must be at least 1 (got {page_size})")
        if page_size > self.max_page_size:
            raise InputError(f"page_size must not exceed {self.max_page_size} (got {page_size})")


def _category_facets(candidates) -> dict[str, int]:
    counts: Counter[str] = Counter()
    for candidate in candidates:
        counts.update(set(candidate.skill_categories))
    return dict(counts.most_common())
