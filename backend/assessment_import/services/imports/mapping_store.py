from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from assessment_import.models.assessment_model import Question
from assessment_import.models.import_batch import ImportBatch, ImportQuestionMapping
from assessment_import.services.imports.question_matcher import QuestionMatch

logger = logging.getLogger(__name__)


class MappingStore:
    """Persisted ``(source, model, external id) -> question`` resolutions.

    Only mappings whose question still belongs to the model are returned, so a
    question moved or deleted after the first import is matched afresh.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def _base_query(self, source: str, model_id: int):
        return (
            select(ImportQuestionMapping)
            .join(Question, Question.id == ImportQuestionMapping.question_id)
            .where(
                ImportQuestionMapping.source == source,
                ImportQuestionMapping.model_id == model_id,
                Question.model_id == model_id,
            )
        )

    def lookup(self, source: str, model_id: int, external_question_id: str) -> int | None:
        statement = self._base_query(source, model_id).where(
            ImportQuestionMapping.external_question_id == external_question_id
        )
        mapping = self._db.execute(statement).scalar_one_or_none()
        return mapping.question_id if mapping is not None else None

    def load(self, source: str, model_id: int) -> dict[str, int]:
        rows = self._db.execute(self._base_query(source, model_id)).scalars()
        return {row.external_question_id: row.question_id for row in rows}

    def list_mappings(self, source: str, model_id: int) -> list[ImportQuestionMapping]:
        statement = (
            self._base_query(source, model_id)
            .options(joinedload(ImportQuestionMapping.question))
            .order_by(ImportQuestionMapping.external_question_id)
        )
        return list(self._db.execute(statement).scalars())

    def persist(
        self,
        *,
        batch: ImportBatch,
        model_id: int,
        matches: Iterable[QuestionMatch],
    ) -> list[ImportQuestionMapping]:
        """Store newly resolved matches; pinned and unmatched entries are skipped.

        A row left behind by a question that no longer belongs to the model is
        repointed at the new match and handed over to ``batch``.
        """

        stale = {
            row.external_question_id: row
            for row in self._db.execute(
                select(ImportQuestionMapping).where(
                    ImportQuestionMapping.source == batch.source,
                    ImportQuestionMapping.model_id == model_id,
                )
            ).scalars()
        }
        rows: list[ImportQuestionMapping] = []
        seen: set[str] = set()
        for match in matches:
            if match.pinned or match.internal_id is None or match.external_id in seen:
                continue
            seen.add(match.external_id)
            row = stale.get(match.external_id)
            if row is None:
                row = ImportQuestionMapping(
                    source=batch.source,
                    model_id=model_id,
                    external_question_id=match.external_id,
                )
                self._db.add(row)
            row.question_id = match.internal_id
            row.import_batch_id = batch.id
            row.confidence = match.confidence
            rows.append(row)
        if rows:
            self._db.flush()
        logger.debug(
            "Stored %d question mappings for source=%s model_id=%s batch_id=%s",
            len(rows),
            batch.source,
            model_id,
            batch.id,
        )
        return rows


__all__ = ["MappingStore"]
