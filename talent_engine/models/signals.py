"""Assessment results and AI-interview sessions."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from talent_engine.profile.models import AssessmentScore, InterviewSummary, Seniority

from .base import Base


class AssessmentResult(Base):
    __tablename__ = "assessment_results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    score_r: Mapped[int] = mapped_column(Integer, default=0)
    score_i: Mapped[int] = mapped_column(Integer, default=0)
    score_a: Mapped[int] = mapped_column(Integer, default=0)
    score_s: Mapped[int] = mapped_column(Integer, default=0)
    score_e: Mapped[int] = mapped_column(Integer, default=0)
    score_c: Mapped[int] = mapped_column(Integer, default=0)
    profile_code: Mapped[str] = mapped_column(String(10), default="")
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    profile: Mapped["ProfileRow"] = relationship(back_populates="assessments")

    def to_score(self) -> AssessmentScore:
        return AssessmentScore(
            r=self.score_r or 0,
            i=self.score_i or 0,
            a=self.score_a or 0,
            s=self.score_s or 0,
            e=self.score_e or 0,
            c=self.score_c or 0,
            code=self.profile_code or "",
        )


class InterviewSession(Base):
    __tablename__ = "interview_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    summary: Mapped[str] = mapped_column(Text, default="")
    soft_skills: Mapped[list] = mapped_column(JSON, default=list)
    primary_values: Mapped[list] = mapped_column(JSON, default=list)
    risk_factors: Mapped[list] = mapped_column(JSON, default=list)
    seniority: Mapped[str | None] = mapped_column(String(20), nullable=True)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    profile: Mapped["ProfileRow"] = relationship(back_populates="interviews")

    def to_summary(self) -> InterviewSummary:
        return InterviewSummary(
            summary=self.summary or "",
            soft_skills=tuple(self.soft_skills or ()),
            primary_values=tuple(self.primary_values or ()),
            risk_factors=tuple(self.risk_factors or ()),
            seniority=Seniority(self.seniority) if self.seniority else None,
        )
