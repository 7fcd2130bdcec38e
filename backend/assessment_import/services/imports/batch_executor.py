"""Atomic persistence of a validated import plan as one import batch."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from assessment_import.core.errors import ErrorCode
from assessment_import.models.admin_user import AdminUser
from assessment_import.models.assessment import (
    ASSESSMENT_STATUS_COMPLETED,
    Assessment,
    AssessmentResponse,
)
from assessment_import.models.assessment_model import AssessmentModel
from assessment_import.models.import_batch import ImportBatch
from assessment_import.models.types import utcnow
from assessment_import.services.imports.mapping_store import MappingStore
from assessment_import.services.imports.validator import ImportPlan, ImportValidator, ValidationReport

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "import.json"


class ImportRejected(Exception):
    """The payload failed validation; nothing was written."""

    error_code = ErrorCode.IMPORT_REJECTED

    def __init__(self, report: ValidationReport) -> None:
        super().__init__(f"Import rejected with {len(report.errors)} error(s)")
        self.report = report


class ImportFailed(Exception):
    """Persisting a valid plan failed and the batch was rolled back."""

    error_code = ErrorCode.IMPORT_FAILED

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


@dataclass(frozen=True)
class ImportExecutionSummary:
    batch_id: int
    imported_count: int
    responses_imported: int
    warnings: list[str]


def build_session_id(batch_id: int, external_assessment_id: str) -> str:
    return f"import-{batch_id}-{external_assessment_id}"


class BatchExecutor:
    """Re-validate a payload and write it as one import batch.

    All rows are written inside a savepoint; the caller commits the outer
    transaction.
    """

    def __init__(self, db: Session, validator: ImportValidator | None = None) -> None:
        self._db = db
        self._validator = validator or ImportValidator(db)

    def execute(
        self,
        raw: Any,
        *,
        model_slug: str,
        imported_by: AdminUser,
        filename: str | None = None,
        source: str | None = None,
    ) -> ImportExecutionSummary:
        plan = self._validator.build_plan(raw, model_slug=model_slug, source=source)
        model = plan.model
        if not plan.report.valid or model is None:
            logger.info(
                "Import rejected for model=%s source=%s: %s",
                model_slug,
                plan.source,
                "; ".join(plan.report.errors),
            )
            raise ImportRejected(plan.report)

        try:
            with self._db.begin_nested():
                batch = self._persist(plan, model, imported_by=imported_by, filename=filename)
        except Exception as exc:
            logger.exception(
                "Import failed for model=%s source=%s; batch rolled back",
                model_slug,
                plan.source,
            )
            raise ImportFailed(f"Import could not be saved: {exc.__class__.__name__}") from exc

        logger.info(
            "Created import batch id=%s source=%s model=%s assessments=%d responses=%d by admin_id=%s",
            batch.id,
            batch.source,
            model.slug,
            len(plan.assessments),
            plan.response_count,
            imported_by.id,
        )
        return ImportExecutionSummary(
            batch_id=batch.id,
            imported_count=len(plan.assessments),
            responses_imported=plan.response_count,
            warnings=list(plan.report.warnings),
        )

    def _persist(
        self,
        plan: ImportPlan,
        model: AssessmentModel,
        *,
        imported_by: AdminUser,
        filename: str | None,
    ) -> ImportBatch:
        now = utcnow()
        original_model_name = None
        if plan.payload is not None and plan.payload.model_info is not None:
            original_model_name = plan.payload.model_info.name

        batch = ImportBatch(
            source=plan.source,
            filename=(filename or "").strip() or DEFAULT_FILENAME,
            imported_by_admin_id=imported_by.id,
            assessment_count=len(plan.assessments),
            question_mappings=dict(plan.question_mappings),
            batch_metadata={
                "modelSlug": model.slug,
                "originalModelName": original_model_name,
                "dimensionMappings": dict(plan.report.dimension_mappings),
                "importedAt": now.isoformat(),
                "warnings": list(plan.report.warnings),
                "pinnedQuestionIds": plan.pinned_question_ids,
                "emptyAssessments": plan.empty_assessments,
                "responsesImported": plan.response_count,
            },
            created_at=now,
        )
        self._db.add(batch)
        self._db.flush()

        assessments: list[tuple[Assessment, list]] = []
        for planned in plan.assessments:
            completed_at = planned.completed_at or now
            assessment = Assessment(
                model_id=model.id,
                session_id=build_session_id(batch.id, planned.external_assessment_id),
                status=ASSESSMENT_STATUS_COMPLETED,
                started_at=completed_at,
                completed_at=completed_at,
                import_batch_id=batch.id,
                external_assessment_id=planned.external_assessment_id,
                respondent_meta=planned.respondent_meta or None,
            )
            assessments.append((assessment, planned.responses))
        self._db.add_all([assessment for assessment, _ in assessments])
        self._db.flush()

        responses = [
            AssessmentResponse(
                assessment_id=assessment.id,
                question_id=response.question_id,
                answer_id=response.answer_id,
                created_at=now,
            )
            for assessment, planned_responses in assessments
            for response in planned_responses
        ]
        if responses:
            self._db.add_all(responses)
            self._db.flush()

        MappingStore(self._db).persist(
            batch=batch,
            model_id=model.id,
            matches=plan.report.question_matches,
        )
        return batch


__all__ = [
    "BatchExecutor",
    "DEFAULT_FILENAME",
    "ImportExecutionSummary",
    "ImportFailed",
    "ImportRejected",
    "build_session_id",
]
