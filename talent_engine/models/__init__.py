"""ORM models for the talent engine store."""

from .base import Base, SessionLocal, create_session_factory, engine, init_db
from .history import CertificationRow, EducationRow, ExperienceRow, LanguageRow, PortfolioItemRow
from .profile import ProfileRow
from .signals import AssessmentResult, InterviewSession
from .skill import HardSkill, ProfileSkill

__all__ = [
    "Base",
    "SessionLocal",
    "create_session_factory",
    "engine",
    "init_db",
    "ProfileRow",
    "AssessmentResult",
    "InterviewSession",
    "HardSkill",
    "ProfileSkill",
    "PortfolioItemRow",
    "ExperienceRow",
    "EducationRow",
    "CertificationRow",
    "LanguageRow",
]
