"""Hard-skills catalog and per-profile skill assignments."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from talent_engine.profile.models import CatalogSkill

from .base import Base


class HardSkill(Base):
    __tablename__ = "hard_skills_catalog"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    def to_catalog_skill(self) -> CatalogSkill:
        return CatalogSkill(skill_id=self.id, name=self.name, category=self.category)


class ProfileSkill(Base):
    __tablename__ = "profile_skills"
    __table_args__ = (
        CheckConstraint(
            "skill_id IS NOT NULL OR custom_skill_name IS NOT NULL",
            name="ck_profile_skill_identity",
        ),
        CheckConstraint("proficiency_level BETWEEN 1 AND 5", name="ck_profile_skill_proficiency"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    skill_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("hard_skills_catalog.id"), nullable=True)
    custom_skill_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    proficiency_level: Mapped[int] = mapped_column(Integer, default=3)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    profile: Mapped["ProfileRow"] = relationship(back_populates="skills")
