from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assessment_import.db.base import Base
from assessment_import.models.types import BigIntId, UTCDateTime, utcnow


class AssessmentModel(Base):
    __tablename__ = "models"
    __table_args__ = (
        UniqueConstraint("slug", name="uq_models_slug"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(128))
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[str] = mapped_column(String(32), default="1.0", server_default="1.0")
    status: Mapped[str] = mapped_column(String(32), default="draft", server_default="draft")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, onupdate=utcnow)

    dimensions: Mapped[list[Dimension]] = relationship(
        "Dimension", back_populates="model", order_by="Dimension.sort_order"
    )
    questions: Mapped[list[Question]] = relationship(
        "Question", back_populates="model", order_by=lambda: [Question.sort_order, Question.id]
    )


class Dimension(Base):
    __tablename__ = "dimensions"
    __table_args__ = (
        UniqueConstraint("model_id", "key", name="uq_dimensions_model_key"),
        Index("idx_dimensions_model_sort", "model_id", "sort_order"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    model_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("models.id", ondelete="CASCADE"),
    )
    key: Mapped[str] = mapped_column(String(64))
    label: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    model: Mapped[AssessmentModel] = relationship("AssessmentModel", back_populates="dimensions")
    questions: Mapped[list[Question]] = relationship("Question", back_populates="dimension")


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        Index("idx_questions_model_sort", "model_id", "sort_order", "id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    model_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("models.id", ondelete="CASCADE"),
    )
    dimension_id: Mapped[int | None] = mapped_column(
        BigIntId,
        ForeignKey("dimensions.id", ondelete="SET NULL"),
        nullable=True,
    )
    text: Mapped[str] = mapped_column(Text)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    model: Mapped[AssessmentModel] = relationship("AssessmentModel", back_populates="questions")
    dimension: Mapped[Dimension | None] = relationship("Dimension", back_populates="questions")
    answers: Mapped[list[Answer]] = relationship(
        "Answer", back_populates="question", order_by=lambda: [Answer.sort_order, Answer.id]
    )


class Answer(Base):
    __tablename__ = "answers"
    __table_args__ = (
        Index("idx_answers_question_sort", "question_id", "sort_order", "id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    question_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("questions.id", ondelete="CASCADE"),
    )
    text: Mapped[str] = mapped_column(Text)
    score: Mapped[int] = mapped_column(Integer)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    question: Mapped[Question] = relationship("Question", back_populates="answers")


__all__ = ["Answer", "AssessmentModel", "Dimension", "Question"]
