from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assessment_import.db.base import Base
from assessment_import.models.types import BigIntId, UTCDateTime, utcnow

if TYPE_CHECKING:  # pragma: no cover
    from assessment_import.models.admin_user import AdminUser
    from assessment_import.models.assessment import Assessment
    from assessment_import.models.assessment_model import Question


class ImportBatch(Base):
    __tablename__ = "import_batches"
    __table_args__ = (
        Index("idx_import_batches_created", "created_at"),
        Index("idx_import_batches_source", "source"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    source: Mapped[str] = mapped_column(String(128))
    filename: Mapped[str | None] = mapped_column(String(255), nullable=True)
    imported_by_admin_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("admin_users.id", ondelete="RESTRICT"),
    )
    assessment_count: Mapped[int] = mapped_column(Integer, default=0)
    question_mappings: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    # `metadata` is reserved on declarative classes
    batch_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    imported_by: Mapped[AdminUser] = relationship("AdminUser")
    assessments: Mapped[list[Assessment]] = relationship(
        "Assessment",
        back_populates="import_batch",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    question_mapping_rows: Mapped[list[ImportQuestionMapping]] = relationship(
        "ImportQuestionMapping",
        back_populates="import_batch",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ImportQuestionMapping(Base):
    """Pinned external question id -> internal question id for one source and model."""

    __tablename__ = "import_question_mappings"
    __table_args__ = (
        UniqueConstraint(
            "source",
            "model_id",
            "external_question_id",
            name="uq_import_question_mappings_external",
        ),
        Index("idx_import_question_mappings_batch", "import_batch_id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    source: Mapped[str] = mapped_column(String(128))
    model_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("models.id", ondelete="CASCADE"),
    )
    external_question_id: Mapped[str] = mapped_column(String(255))
    question_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("questions.id", ondelete="CASCADE"),
    )
    import_batch_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("import_batches.id", ondelete="CASCADE"),
    )
    confidence: Mapped[float] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    import_batch: Mapped[ImportBatch] = relationship("ImportBatch", back_populates="question_mapping_rows")
    question: Mapped[Question] = relationship("Question")


__all__ = ["ImportBatch", "ImportQuestionMapping"]
