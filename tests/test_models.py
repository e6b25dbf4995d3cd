"""Tests for profile and signal data models."""

from datetime import datetime, timedelta, timezone

import pytest

from talent_engine.profile.models import (
    AssessmentScore,
    CatalogSkill,
    FreeTextSkill,
    InterviewSummary,
    PortfolioItem,
    PortfolioItemType,
    Profile,
    SignalSet,
    SkillAssignment,
    aware_utc,
    dominant_code,
)


class TestDominantCode:
    def test_top_three_descending(self):
        scores = {"R": 5, "I": 25, "A": 10, "S": 30, "E": 1, "C": 12}
        assert dominant_code(scores) == "S-I-C"

    def test_ties_keep_riasec_order(self):
        scores = {"R": 10, "I": 10, "A": 10, "S": 10, "E": 10, "C": 10}
        assert dominant_code(scores) == "R-I-A"

    def test_missing_dimensions_count_as_zero(self):
        assert dominant_code({"C": 3, "E": 2}) == "C-E-R"


class TestAssessmentScore:
    def test_vector_order(self):
        score = AssessmentScore(r=1, i=2, a=3, s=4, e=5, c=6)
        assert score.vector == (1, 2, 3, 4, 5, 6)

    def test_derived_code(self):
        score = AssessmentScore(r=30, i=0, a=20, s=0, e=25, c=0)
        assert score.profile_code == "R-E-A"

    def test_stored_code_wins(self):
        score = AssessmentScore(r=30, code="I-A-S")
        assert score.profile_code == "I-A-S"

    @pytest.mark.parametrize("value", [-1, 31])
    def test_out_of_range_rejected(self, value):
        with pytest.raises(ValueError):
            AssessmentScore(r=value)

    def test_bounds_accepted(self):
        AssessmentScore(r=0, i=30)

    def test_to_dict(self):
        d = AssessmentScore(r=30, i=20, a=10).to_dict()
        assert d["R"] == 30
        assert d["profile_code"] == "R-I-A"


class TestSkillAssignment:
    def test_catalog_identity_is_id(self):
        a = SkillAssignment(skill=CatalogSkill(skill_id="sk-1", name="Python"))
        assert a.is_catalog
        assert a.identity == "sk-1"
        assert a.name == "Python"

    def test_free_text_identity_is_name(self):
        a = SkillAssignment(skill=FreeTextSkill(name="Underwater Welding"), proficiency=5)
        assert not a.is_catalog
        assert a.identity == "Underwater Welding"
        assert a.skill.category is None

    def test_default_proficiency(self):
        assert SkillAssignment(skill=FreeTextSkill(name="Go")).proficiency == 3

    @pytest.mark.parametrize("level", [0, 6])
    def test_proficiency_range(self, level):
        with pytest.raises(ValueError):
            SkillAssignment(skill=FreeTextSkill(name="Go"), proficiency=level)

    def test_rejects_plain_string(self):
        with pytest.raises(TypeError):
            SkillAssignment(skill="Go")


class TestSignalSet:
    def test_empty(self):
        assert SignalSet().is_empty()

    @pytest.mark.parametrize("signals", [
        SignalSet(assessment=AssessmentScore()),
        SignalSet(interview=InterviewSummary()),
        SignalSet(skills=[SkillAssignment(skill=FreeTextSkill(name="Go"))]),
        SignalSet(portfolio=[PortfolioItem(item_type=PortfolioItemType.PROJECT, title="Site")]),
    ])
    def test_any_signal_makes_it_non_empty(self, signals):
        assert not signals.is_empty()


class TestProfile:
    def test_display_name(self):
        assert Profile(id="p1", first_name="Ada", last_name="Lovelace").display_name == "Ada Lovelace"

    def test_display_name_falls_back_to_email(self):
        assert Profile(id="p1", email="ada@example.com").display_name == "ada@example.com"

    def test_to_dict_serializes_enums(self):
        d = Profile(id="p1").to_dict()
        assert d["visibility"] == "private"
        assert d["preferred_work_type"] is None


class TestAwareUtc:
    def test_naive_is_read_as_utc(self):
        assert aware_utc(datetime(2024, 1, 1, 12)) == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    def test_aware_is_unchanged(self):
        plus_two = timezone(timedelta(hours=2))
        value = datetime(2024, 1, 1, 12, tzinfo=plus_two)
        assert aware_utc(value) is value
