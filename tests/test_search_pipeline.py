"""Tests for the talent search pipeline."""

from datetime import datetime, timedelta, timezone

import pytest

from talent_engine.errors import CollaboratorError, InputError
from talent_engine.profile.models import (
    AssessmentScore,
    CatalogSkill,
    FreeTextSkill,
    InterviewSummary,
    Profile,
    Seniority,
    SkillAssignment,
    Visibility,
    WorkType,
)
from talent_engine.search.filters import SearchFilterSet
from talent_engine.search.pipeline import TalentSearch
from talent_engine.storage.memory import InMemoryTalentStore
from talent_engine.talent.aggregator import SignalAggregator
from talent_engine.talent.catalog import SkillCatalogCache

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_profile(pid: str, day: int, **kwargs) -> Profile:
    defaults = dict(
        id=pid,
        email=f"{pid}@example.com",
        first_name=pid.upper(),
        created_at=BASE + timedelta(days=day),
    )
    defaults.update(kwargs)
    return Profile(**defaults)


class RecordingAggregator(SignalAggregator):
    def __post_init__(self):
        super().__post_init__()
        self.calls = []

    def aggregate(self, profile_ids, cancel_event=None, timeout=None):
        self.calls.append(list(profile_ids))
        return super().aggregate(profile_ids, cancel_event=cancel_event, timeout=timeout)


@pytest.fixture
def store():
    store = InMemoryTalentStore(catalog=[
        CatalogSkill(skill_id="sk-py", name="Python", category="Programming"),
        CatalogSkill(skill_id="sk-fig", name="Figma", category="Design"),
    ])
    # Opted in, no signals
    store.add_profile(make_profile(
        "alice", 1, talent_opt=True, looking_for_work=True, location="Berlin",
        preferred_work_type=WorkType.REMOTE, years_experience=5, visibility=Visibility.SUBSCRIBERS_ONLY,
    ))
    # Qualifies through assessment and interview
    store.add_profile(make_profile("bob", 2, location="Berlin", years_experience=10))
    store.set_assessment("bob", AssessmentScore(r=30, i=25, a=5, s=0, e=10, c=0))
    store.set_interview("bob", InterviewSummary(
        soft_skills=("Team Communication", "Mentoring"), seniority=Seniority.SENIOR,
    ))
    store.add_skill("bob", SkillAssignment(skill=CatalogSkill(skill_id="sk-py")))
    # Qualifies through a single free-text skill
    store.add_profile(make_profile("carol", 3, location="Lisbon", years_experience=2, looking_for_work=True))
    store.add_skill("carol", SkillAssignment(skill=FreeTextSkill(name="Figma")))
    # Never qualifies
    store.add_profile(make_profile("dave", 4, location="Berlin", years_experience=7, looking_for_work=True))
    # Qualifies through a catalog skill
    store.add_profile(make_profile("erin", 5, location="Lisbon", years_experience=3))
    store.add_skill("erin", SkillAssignment(skill=CatalogSkill(skill_id="sk-fig")))
    store.set_assessment("erin", AssessmentScore(r=0, i=5, a=30, s=20, e=0, c=10))
    return store


@pytest.fixture
def aggregator(store):
    return RecordingAggregator(store, catalog=SkillCatalogCache(store.fetch_skill_catalog))


@pytest.fixture
def search(store, aggregator):
    return TalentSearch(store, aggregator)


def ids(page):
    return [r.profile.id for r in page.results]


class TestTalentSearch:
    def test_only_qualified_profiles_newest_first(self, search):
        page = search.search(SearchFilterSet())
        assert ids(page) == ["erin", "carol", "bob", "alice"]
        assert page.total_count == 4

    def test_total_count_independent_of_paging(self, search):
        filters = SearchFilterSet()
        pages = [search.search(filters, page=n, page_size=3) for n in range(2)]
        assert [p.total_count for p in pages] == [4, 4]
        assert ids(pages[0]) == ["erin", "carol", "bob"]
        assert ids(pages[1]) == ["alice"]
        assert pages[0].total_pages == 2

    def test_page_past_end_is_empty(self, search):
        page = search.search(SearchFilterSet(), page=5, page_size=10)
        assert page.results == []
        assert page.total_count == 4

    def test_naive_and_aware_created_at_sort_together(self, store, search):
        # Naive timestamps are UTC: day 6 sorts first, day 0 sorts last
        store.add_profile(make_profile(
            "fred", 6, talent_opt=True, created_at=(BASE + timedelta(days=6)).replace(tzinfo=None),
        ))
        store.add_profile(make_profile(
            "gina", 0, talent_opt=True, created_at=BASE.replace(tzinfo=None),
        ))
        page = search.search(SearchFilterSet())
        assert ids(page) == ["fred", "erin", "carol", "bob", "alice", "gina"]

    def test_text_query(self, search):
        page = search.search(SearchFilterSet(query="CAROL"))
        assert ids(page) == ["carol"]

    def test_looking_for_work_excludes_unqualified(self, search):
        page = search.search(SearchFilterSet(looking_for_work_only=True))
        assert ids(page) == ["carol", "alice"]

    def test_subscribers_only(self, search):
        page = search.search(SearchFilterSet(subscribers_only=True))
        assert ids(page) == ["alice"]

    def test_location_any_of(self, search):
        page = search.search(SearchFilterSet(locations=frozenset({"Lisbon"})))
        assert ids(page) == ["erin", "carol"]

    def test_experience_bounds_inclusive(self, search):
        page = search.search(SearchFilterSet(min_experience=3, max_experience=5))
        assert ids(page) == ["erin", "alice"]

    def test_has_completed_assessment(self, search):
        page = search.search(SearchFilterSet(has_completed_assessment=True))
        assert ids(page) == ["erin", "bob"]

    @pytest.mark.parametrize("code,expected", [
        ("R-I", ["bob"]),
        ("r-i-e", ["bob"]),
        ("A", ["erin"]),
        ("X", []),
    ])
    def test_riasec_code(self, search, code, expected):
        page = search.search(SearchFilterSet(riasec_codes=frozenset({code})))
        assert ids(page) == expected

    def test_seniority(self, search):
        page = search.search(SearchFilterSet(seniority_levels=frozenset({Seniority.SENIOR, Seniority.LEAD})))
        assert ids(page) == ["bob"]

    def test_soft_skill_substring(self, search):
        page = search.search(SearchFilterSet(soft_skills=frozenset({"communication"})))
        assert ids(page) == ["bob"]

    def test_skill_ids_match_catalog_and_free_text_identity(self, search):
        assert ids(search.search(SearchFilterSet(skill_ids=frozenset({"sk-fig"})))) == ["erin"]
        assert ids(search.search(SearchFilterSet(skill_ids=frozenset({"Figma"})))) == ["carol"]

    def test_facets_count_all_filtered_candidates(self, search):
        page = search.search(SearchFilterSet(), page=0, page_size=1)
        assert page.skill_category_facets == {"Design": 1, "Programming": 1}

    def test_summary_fields(self, search):
        page = search.search(SearchFilterSet(query="bob"))
        summary = page.results[0]
        assert summary.has_assessment
        assert summary.has_interview
        assert summary.skills_count == 1
        assert summary.top_skills == ("Python",)
        assert page.to_dict()["status"] == "ok"

    def test_no_store_matches_skips_aggregation(self, search, aggregator):
        page = search.search(SearchFilterSet(query="nobody"))
        assert page.total_count == 0
        assert page.results == []
        assert aggregator.calls == []

    def test_zero_matches_is_not_an_error(self, search):
        page = search.search(SearchFilterSet(riasec_codes=frozenset({"C-C-C"})))
        assert page.total_count == 0
        assert page.total_pages == 1

    @pytest.mark.parametrize("filters,page,page_size", [
        (SearchFilterSet(min_experience=10, max_experience=5), 0, 20),
        (SearchFilterSet(min_experience=-1), 0, 20),
        (SearchFilterSet(), -1, 20),
        (SearchFilterSet(), 0, 0),
        (SearchFilterSet(), 0, 101),
    ])
    def test_invalid_input_rejected_before_fetch(self, search, aggregator, filters, page, page_size):
        with pytest.raises(InputError):
            search.search(filters, page=page, page_size=page_size)
        assert aggregator.calls == []

    def test_store_failure(self, aggregator):
        class BrokenStore(InMemoryTalentStore):
            def fetch_profiles(self, predicates):
                raise ConnectionError("database unavailable")

        search = TalentSearch(BrokenStore(), aggregator)
        with pytest.raises(CollaboratorError) as exc_info:
            search.search(SearchFilterSet())
        assert exc_info.value.operation == "fetch_profiles"


class TestSearchFilterSetFromDict:
    def test_builds_sets_and_enums(self):
        filters = SearchFilterSet.from_dict({
            "query": "  python ",
            "locations": ["Berlin", "", "Lisbon"],
            "seniority_levels": ["Senior"],
            "work_types": ["remote"],
            "min_experience": "3",
        })
        assert filters.query == "python"
        assert filters.locations == frozenset({"Berlin", "Lisbon"})
        assert filters.seniority_levels == frozenset({Seniority.SENIOR})
        assert filters.work_types == frozenset({WorkType.REMOTE})
        assert filters.min_experience == 3

    @pytest.mark.parametrize("raw", [
        {"seniority_levels": ["Principal"]},
        {"work_types": ["office"]},
        {"max_experience": "ten"},
    ])
    def test_bad_values(self, raw):
        with pytest.raises(InputError):
            SearchFilterSet.from_dict(raw)

    def test_subscribers_only_maps_to_visibility(self):
        predicates = SearchFilterSet(subscribers_only=True).to_predicates()
        assert predicates.visibility == Visibility.SUBSCRIBERS_ONLY
        assert SearchFilterSet().to_predicates().visibility is None
