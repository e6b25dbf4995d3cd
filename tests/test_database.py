"""Tests for the SQLAlchemy-backed talent store."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

from talent_engine.models import (
    AssessmentResult,
    HardSkill,
    InterviewSession,
    PortfolioItemRow,
    ProfileRow,
    ProfileSkill,
    create_session_factory,
)
from talent_engine.profile.models import (
    CatalogSkill,
    CertificationRecord,
    ExperienceRecord,
    FreeTextSkill,
    LanguageRecord,
    Seniority,
    SkillAssignment,
    Visibility,
    WorkType,
)
from talent_engine.search.filters import SearchFilterSet
from talent_engine.search.pipeline import TalentSearch
from talent_engine.storage.database import SqlTalentStore
from talent_engine.storage.store import ProfilePredicates
from talent_engine.talent.aggregator import SignalAggregator
from talent_engine.talent.catalog import SkillCatalogCache

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def store():
    """Create a temporary SQLite database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        session_factory = create_session_factory(f"sqlite:///{os.path.join(tmpdir, 'test.db')}")
        store = SqlTalentStore(session_factory)
        store.init_schema()
        yield store
        session_factory.kw["bind"].dispose()


@pytest.fixture
def seeded(store):
    db = store.session_factory()
    try:
        db.add_all([
            HardSkill(id="sk-py", name="Python", category="Programming"),
            HardSkill(id="sk-fig", name="Figma", category="Design"),
            ProfileRow(
                id="alice", email="alice@example.com", first_name="Alice", headline="Data_Engineer 100%",
                talent_opt=True, looking_for_work=True, location="Berlin", years_experience=5,
                preferred_work_type="remote", visibility="subscribers_only", created_at=BASE,
            ),
            ProfileRow(
                id="bob", email="bob@example.com", first_name="Bob", location="Lisbon",
                years_experience=None, created_at=BASE + timedelta(days=1),
            ),
            ProfileRow(
                id="carol", email="carol@example.com", first_name="Carol", location="Berlin",
                years_experience=12, preferred_work_type="onsite", created_at=BASE + timedelta(days=2),
            ),
        ])
        db.flush()
        db.add_all([
            AssessmentResult(profile_id="bob", score_r=10, score_i=20, completed_at=BASE),
            AssessmentResult(profile_id="bob", score_r=30, score_i=5, score_a=25, completed_at=BASE + timedelta(days=3)),
            InterviewSession(
                profile_id="bob", soft_skills=["Mentoring"], seniority="Senior", completed_at=BASE,
            ),
            ProfileSkill(profile_id="bob", skill_id="sk-py", proficiency_level=4),
            ProfileSkill(profile_id="bob", skill_id="sk-fig", custom_skill_name="figma (old)"),
            ProfileSkill(profile_id="carol", custom_skill_name="  Terraform "),
            PortfolioItemRow(profile_id="carol", item_type="project", title="Infra repo", sort_order=1),
            PortfolioItemRow(profile_id="carol", item_type="hologram", title="Broken", sort_order=2),
        ])
        db.commit()
    finally:
        db.close()
    return store


class TestFetchProfiles:
    def test_all_newest_first(self, seeded):
        profiles = seeded.fetch_profiles(ProfilePredicates())
        assert [p.id for p in profiles] == ["carol", "bob", "alice"]

    def test_text_query_case_insensitive(self, seeded):
        assert [p.id for p in seeded.fetch_profiles(ProfilePredicates(text_query="ALICE"))] == ["alice"]

    def test_text_query_wildcards_are_literal(self, seeded):
        assert [p.id for p in seeded.fetch_profiles(ProfilePredicates(text_query="100%"))] == ["alice"]
        assert [p.id for p in seeded.fetch_profiles(ProfilePredicates(text_query="a_e"))] == ["alice"]
        assert seeded.fetch_profiles(ProfilePredicates(text_query="b%b")) == []

    def test_filters(self, seeded):
        predicates = ProfilePredicates(
            looking_for_work_only=True,
            visibility=Visibility.SUBSCRIBERS_ONLY,
            locations=frozenset({"Berlin"}),
            work_types=frozenset({WorkType.REMOTE}),
        )
        assert [p.id for p in seeded.fetch_profiles(predicates)] == ["alice"]

    def test_experience_bounds_skip_unknown(self, seeded):
        predicates = ProfilePredicates(min_experience=0, max_experience=10)
        assert [p.id for p in seeded.fetch_profiles(predicates)] == ["alice"]

    def test_converts_enums(self, seeded):
        alice = seeded.fetch_profiles(ProfilePredicates(text_query="alice"))[0]
        assert alice.visibility == Visibility.SUBSCRIBERS_ONLY
        assert alice.preferred_work_type == WorkType.REMOTE


class TestBatchedFetches:
    def test_latest_assessment_wins(self, seeded):
        assessments = seeded.fetch_assessments(["alice", "bob", "carol"])
        assert list(assessments) == ["bob"]
        assert assessments["bob"].r == 30
        assert assessments["bob"].profile_code == "R-A-I"

    def test_interviews(self, seeded):
        interviews = seeded.fetch_interviews(["bob"])
        assert interviews["bob"].seniority == Seniority.SENIOR
        assert interviews["bob"].soft_skills == ("Mentoring",)

    def test_skills_prefer_catalog(self, seeded):
        skills = seeded.fetch_skills(["bob", "carol"])
        assert [(s.identity, s.name, s.proficiency) for s in skills["bob"]] == [
            ("sk-py", "Python", 4), ("sk-fig", "Figma", 3),
        ]
        assert skills["carol"][0].skill == FreeTextSkill(name="Terraform")

    def test_invalid_portfolio_rows_skipped(self, seeded):
        portfolio = seeded.fetch_portfolio(["carol"])
        assert [p.title for p in portfolio["carol"]] == ["Infra repo"]

    def test_empty_id_list(self, seeded):
        assert seeded.fetch_assessments([]) == {}
        assert seeded.fetch_skills([]) == {}

    def test_large_batches_are_chunked(self, seeded):
        ids = [f"missing-{i}" for i in range(1200)] + ["bob"]
        assert list(seeded.fetch_assessments(ids)) == ["bob"]

    def test_skill_catalog(self, seeded):
        assert seeded.fetch_skill_catalog() == [
            CatalogSkill(skill_id="sk-fig", name="Figma", category="Design"),
            CatalogSkill(skill_id="sk-py", name="Python", category="Programming"),
        ]


class TestInsertRecords:
    def test_history_appends_after_existing(self, seeded):
        seeded.insert_records("alice", "experience", [ExperienceRecord(company="Acme", role="Engineer")])
        seeded.insert_records("alice", "experience", [
            ExperienceRecord(company="Globex", role="Lead", start_date="2021-01", is_current=True),
        ])
        experiences = seeded.fetch_existing_records("alice").experiences
        assert [(e.company, e.sort_order) for e in experiences] == [("Acme", 0), ("Globex", 1)]
        assert experiences[1].is_current

    def test_certifications_and_languages(self, seeded):
        seeded.insert_records("alice", "certification", [CertificationRecord(name="CKA", issuing_organization="CNCF")])
        seeded.insert_records("alice", "language", [LanguageRecord(language="German", proficiency="B2")])
        existing = seeded.fetch_existing_records("alice")
        assert existing.certifications[0].issuing_organization == "CNCF"
        assert existing.languages[0].language == "German"

    def test_skills(self, seeded):
        count = seeded.insert_records("alice", "skill", [
            SkillAssignment(skill=CatalogSkill(skill_id="sk-py", name="Python")),
            SkillAssignment(skill=FreeTextSkill(name="dbt"), proficiency=2),
        ])
        assert count == 2
        skills = seeded.fetch_existing_records("alice").skills
        assert [(s.identity, s.proficiency) for s in skills] == [("sk-py", 3), ("dbt", 2)]

    def test_empty_batch(self, seeded):
        assert seeded.insert_records("alice", "experience", []) == 0

    def test_unknown_kind(self, seeded):
        with pytest.raises(ValueError):
            seeded.insert_records("alice", "award", [ExperienceRecord(company="x", role="y")])


class TestSearchOverSql:
    def test_end_to_end(self, seeded):
        catalog = SkillCatalogCache(seeded.fetch_skill_catalog)
        search = TalentSearch(seeded, SignalAggregator(seeded, catalog=catalog))
        page = search.search(SearchFilterSet(locations=frozenset({"Berlin", "Lisbon"})))
        assert [r.profile.id for r in page.results] == ["carol", "bob", "alice"]
        assert page.skill_category_facets == {"Programming": 1, "Design": 1}

        page = search.search(SearchFilterSet(skill_ids=frozenset({"sk-fig"})))
        assert [r.profile.id for r in page.results] == ["bob"]
