"""Batch history and administrative rollback."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, joinedload

from assessment_import.core.errors import ErrorCode
from assessment_import.core.exceptions import raise_app_error
from assessment_import.models.assessment import Assessment, AssessmentResponse
from assessment_import.models.import_batch import ImportBatch, ImportQuestionMapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchDeletionSummary:
    batch_id: int
    assessments_deleted: int
    responses_deleted: int
    mappings_deleted: int


def list_import_batches(db: Session, *, source: str | None = None, limit: int | None = None) -> list[ImportBatch]:
    statement = (
        select(ImportBatch)
        .options(joinedload(ImportBatch.imported_by))
        .order_by(ImportBatch.created_at.desc(), ImportBatch.id.desc())
    )
    if source:
        statement = statement.where(ImportBatch.source == source)
    if limit is not None:
        statement = statement.limit(limit)
    return list(db.execute(statement).scalars())


def get_import_batch(db: Session, batch_id: int) -> ImportBatch:
    batch = db.execute(
        select(ImportBatch)
        .options(joinedload(ImportBatch.imported_by))
        .where(ImportBatch.id == batch_id)
    ).scalar_one_or_none()
    if batch is None:
        raise_app_error(ErrorCode.IMPORT_BATCH_NOT_FOUND, detail=f"Import batch {batch_id} does not exist")
    return batch


def count_batch_responses(db: Session, batch_id: int) -> int:
    statement = (
        select(func.count(AssessmentResponse.id))
        .join(Assessment, Assessment.id == AssessmentResponse.assessment_id)
        .where(Assessment.import_batch_id == batch_id)
    )
    return int(db.execute(statement).scalar_one())


def delete_import_batch(db: Session, batch_id: int) -> BatchDeletionSummary:
    """Remove a batch with every assessment, response and mapping it created.

    Rows are deleted explicitly child-first so the result does not depend on
    the database enforcing ``ON DELETE CASCADE``. The caller commits.
    """

    batch = get_import_batch(db, batch_id)
    assessment_ids = select(Assessment.id).where(Assessment.import_batch_id == batch.id)

    responses_deleted = db.execute(
        delete(AssessmentResponse)
        .where(AssessmentResponse.assessment_id.in_(assessment_ids))
        .execution_options(synchronize_session=False)
    ).rowcount
    assessments_deleted = db.execute(
        delete(Assessment)
        .where(Assessment.import_batch_id == batch.id)
        .execution_options(synchronize_session=False)
    ).rowcount
    mappings_deleted = db.execute(
        delete(ImportQuestionMapping)
        .where(ImportQuestionMapping.import_batch_id == batch.id)
        .execution_options(synchronize_session=False)
    ).rowcount
    db.execute(delete(ImportBatch).where(ImportBatch.id == batch.id).execution_options(synchronize_session=False))
    db.expunge(batch)

    logger.info(
        "Rolled back import batch id=%s: assessments=%d responses=%d mappings=%d",
        batch_id,
        assessments_deleted,
        responses_deleted,
        mappings_deleted,
    )
    return BatchDeletionSummary(
        batch_id=batch_id,
        assessments_deleted=assessments_deleted,
        responses_deleted=responses_deleted,
        mappings_deleted=mappings_deleted,
    )


__all__ = [
    "BatchDeletionSummary",
    "count_batch_responses",
    "delete_import_batch",
    "get_import_batch",
    "list_import_batches",
]
