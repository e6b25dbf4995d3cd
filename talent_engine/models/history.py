"""Portfolio items and the ordered history lists (experience, education, ...)."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from talent_engine.profile.models import (
    CertificationRecord,
    EducationRecord,
    ExperienceRecord,
    LanguageRecord,
    PortfolioItem,
    PortfolioItemType,
)

from .base import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PortfolioItemRow(Base):
    __tablename__ = "portfolio_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    item_type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(255), default="")
    description: Mapped[str] = mapped_column(Text, default="")
    file_url: Mapped[str] = mapped_column(String(2048), default="")
    external_url: Mapped[str] = mapped_column(String(2048), default="")
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    profile: Mapped["ProfileRow"] = relationship(back_populates="portfolio_items")

    def to_item(self) -> PortfolioItem:
        return PortfolioItem(
            item_type=PortfolioItemType(self.item_type),
            title=self.title or "",
            description=self.description or "",
            file_url=self.file_url or "",
            external_url=self.external_url or "",
            sort_order=self.sort_order or 0,
        )


class ExperienceRow(Base):
    __tablename__ = "experiences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    company: Mapped[str] = mapped_column(String(255), default="")
    role: Mapped[str] = mapped_column(String(255), default="")
    start_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    end_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_current: Mapped[bool] = mapped_column(Boolean, default=False)
    description: Mapped[str] = mapped_column(Text, default="")
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    profile: Mapped["ProfileRow"] = relationship(back_populates="experiences")

    def to_record(self) -> ExperienceRecord:
        return ExperienceRecord(
            company=self.company or "",
            role=self.role or "",
            start_date=self.start_date,
            end_date=self.end_date,
            is_current=bool(self.is_current),
            description=self.description or "",
            sort_order=self.sort_order or 0,
        )


class EducationRow(Base):
    __tablename__ = "educations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    institution: Mapped[str] = mapped_column(String(255), default="")
    degree: Mapped[str] = mapped_column(String(255), default="")
    field_of_study: Mapped[str] = mapped_column(String(255), default="")
    end_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    profile: Mapped["ProfileRow"] = relationship(back_populates="educations")

    def to_record(self) -> EducationRecord:
        return EducationRecord(
            institution=self.institution or "",
            degree=self.degree or "",
            field_of_study=self.field_of_study or "",
            end_year=self.end_year,
            sort_order=self.sort_order or 0,
        )


class CertificationRow(Base):
    __tablename__ = "certifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    issuing_organization: Mapped[str] = mapped_column(String(255), default="")
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    profile: Mapped["ProfileRow"] = relationship(back_populates="certifications")

    def to_record(self) -> CertificationRecord:
        return CertificationRecord(
            name=self.name or "",
            issuing_organization=self.issuing_organization or "",
            sort_order=self.sort_order or 0,
        )


class LanguageRow(Base):
    __tablename__ = "languages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    language: Mapped[str] = mapped_column(String(100), default="")
    proficiency: Mapped[str] = mapped_column(String(50), default="")
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    profile: Mapped["ProfileRow"] = relationship(back_populates="languages")

    def to_record(self) -> LanguageRecord:
        return LanguageRecord(
            language=self.language or "",
            proficiency=self.proficiency or "",
            sort_order=self.sort_order or 0,
        )
