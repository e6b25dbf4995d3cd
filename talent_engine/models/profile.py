"""Profile model: one row per person record."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from talent_engine.profile.models import Profile, Visibility, WorkType

from .base import Base


class ProfileRow(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(255), default="")
    last_name: Mapped[str] = mapped_column(String(255), default="")
    headline: Mapped[str] = mapped_column(String(500), default="")
    bio: Mapped[str] = mapped_column(Text, default="")
    job_title: Mapped[str] = mapped_column(String(255), default="")
    location: Mapped[str] = mapped_column(String(255), default="", index=True)
    years_experience: Mapped[int | None] = mapped_column(Integer, nullable=True)

    talent_opt: Mapped[bool] = mapped_column(Boolean, default=False)
    visibility: Mapped[str] = mapped_column(String(20), default=Visibility.PRIVATE.value)
    looking_for_work: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    preferred_work_type: Mapped[str | None] = mapped_column(String(10), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    assessments: Mapped[list["AssessmentResult"]] = relationship(back_populates="profile", cascade="all, delete-orphan")
    interviews: Mapped[list["InterviewSession"]] = relationship(back_populates="profile", cascade="all, delete-orphan")
    skills: Mapped[list["ProfileSkill"]] = relationship(back_populates="profile", cascade="all, delete-orphan")
    portfolio_items: Mapped[list["PortfolioItemRow"]] = relationship(back_populates="profile", cascade="all, delete-orphan")
    experiences: Mapped[list["ExperienceRow"]] = relationship(back_populates="profile", cascade="all, delete-orphan")
    educations: Mapped[list["EducationRow"]] = relationship(back_populates="profile", cascade="all, delete-orphan")
    certifications: Mapped[list["CertificationRow"]] = relationship(back_populates="profile", cascade="all, delete-orphan")
    languages: Mapped[list["LanguageRow"]] = relationship(back_populates="profile", cascade="all, delete-orphan")

    def to_profile(self) -> Profile:
        """Convert DB row to the Profile dataclass."""
        return Profile(
            id=self.id,
            email=self.email or "",
            first_name=self.first_name or "",
            last_name=self.last_name or "",
            headline=self.headline or "",
            bio=self.bio or "",
            job_title=self.job_title or "",
            location=self.location or "",
            years_experience=self.years_experience,
            talent_opt=bool(self.talent_opt),
            visibility=Visibility(self.visibility or Visibility.PRIVATE.value),
            looking_for_work=bool(self.looking_for_work),
            preferred_work_type=WorkType(self.preferred_work_type) if self.preferred_work_type else None,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
