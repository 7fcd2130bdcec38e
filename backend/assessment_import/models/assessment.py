from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assessment_import.db.base import Base
from assessment_import.models.types import BigIntId, UTCDateTime, utcnow

if TYPE_CHECKING:  # pragma: no cover
    from assessment_import.models.assessment_model import Answer, AssessmentModel, Question
    from assessment_import.models.import_batch import ImportBatch


ASSESSMENT_STATUS_COMPLETED = "completed"


class Assessment(Base):
    __tablename__ = "assessments"
    __table_args__ = (
        Index("idx_assessments_model", "model_id"),
        Index("idx_assessments_import_batch", "import_batch_id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    model_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("models.id", ondelete="CASCADE"),
    )
    session_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="in_progress")
    started_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    import_batch_id: Mapped[int | None] = mapped_column(
        BigIntId,
        ForeignKey("import_batches.id", ondelete="CASCADE"),
        nullable=True,
    )
    external_assessment_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    respondent_meta: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    model: Mapped[AssessmentModel] = relationship("AssessmentModel")
    import_batch: Mapped[ImportBatch | None] = relationship("ImportBatch", back_populates="assessments")
    responses: Mapped[list[AssessmentResponse]] = relationship(
        "AssessmentResponse",
        back_populates="assessment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class AssessmentResponse(Base):
    __tablename__ = "assessment_responses"
    __table_args__ = (
        UniqueConstraint("assessment_id", "question_id", name="uq_assessment_responses_question"),
        Index("idx_assessment_responses_assessment", "assessment_id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    assessment_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("assessments.id", ondelete="CASCADE"),
    )
    question_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("questions.id", ondelete="CASCADE"),
    )
    answer_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("answers.id", ondelete="CASCADE"),
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    assessment: Mapped[Assessment] = relationship("Assessment", back_populates="responses")
    question: Mapped[Question] = relationship("Question")
    answer: Mapped[Answer] = relationship("Answer")


__all__ = ["ASSESSMENT_STATUS_COMPLETED", "Assessment", "AssessmentResponse"]
