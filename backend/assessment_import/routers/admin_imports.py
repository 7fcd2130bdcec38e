from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from assessment_import.core.errors import ErrorCode
from assessment_import.core.exceptions import BaseAppException, raise_app_error
from assessment_import.deps import admin as admin_deps
from assessment_import.models.admin_user import AdminUser
from assessment_import.models.import_batch import ImportBatch
from assessment_import.schemas.imports import (
    ImportBatchDeleteResponse,
    ImportBatchDetail,
    ImportBatchItem,
    ImportBatchesResponse,
    ImportedByOut,
    ImportExecuteRequest,
    ImportExecuteResponse,
    ImportPreviewRequest,
    QuestionMappingItem,
    QuestionMappingsResponse,
    QuestionMatchOut,
    ValidationResultOut,
)
from assessment_import.services.imports.batch_admin import (
    count_batch_responses,
    delete_import_batch,
    get_import_batch,
    list_import_batches,
)
from assessment_import.services.imports.batch_executor import (
    BatchExecutor,
    ImportFailed,
    ImportRejected,
)
from assessment_import.services.imports.catalog import load_model_by_slug
from assessment_import.services.imports.mapping_store import MappingStore
from assessment_import.services.imports.validator import ImportValidator, ValidationReport, resolve_source


router = APIRouter(prefix="/admin/imports", tags=["admin_imports"])


def _normalise_limit(raw: int | None) -> int | None:
    if raw is None:
        return None
    if raw < 1 or raw > 1000:
        raise_app_error(ErrorCode.IMPORT_INVALID_FILTER, detail="limit must be between 1 and 1000")
    return raw


def to_validation_out(report: ValidationReport) -> ValidationResultOut:
    return ValidationResultOut(
        valid=report.valid,
        errors=list(report.errors),
        warnings=list(report.warnings),
        question_matches=[QuestionMatchOut(**asdict(match)) for match in report.question_matches],
        assessment_count=report.assessment_count,
        dimension_mappings=dict(report.dimension_mappings),
    )


def _imported_by(admin: AdminUser | None) -> ImportedByOut | None:
    if admin is None:
        return None
    return ImportedByOut(id=admin.id, user_id=admin.user_id, display_name=admin.display_name)


def _batch_item(batch: ImportBatch) -> dict:
    return {
        "id": batch.id,
        "source": batch.source,
        "filename": batch.filename or "",
        "assessment_count": batch.assessment_count,
        "created_at": batch.created_at,
        "imported_by": _imported_by(batch.imported_by),
    }


@router.post("/preview", response_model=ValidationResultOut)
def preview_import(
    payload: ImportPreviewRequest,
    _: AdminUser = Depends(admin_deps.get_current_admin),
    db: Session = Depends(admin_deps.get_db),
) -> ValidationResultOut:
    report = ImportValidator(db).validate(
        payload.import_data,
        model_slug=payload.model_slug,
        source=payload.source,
    )
    return to_validation_out(report)


@router.post(
    "/execute",
    response_model=ImportExecuteResponse,
    status_code=status.HTTP_201_CREATED,
)
def execute_import(
    payload: ImportExecuteRequest,
    admin: AdminUser = Depends(admin_deps.get_current_admin),
    db: Session = Depends(admin_deps.get_db),
) -> ImportExecuteResponse:
    executor = BatchExecutor(db)
    try:
        summary = executor.execute(
            payload.import_data,
            model_slug=payload.model_slug,
            imported_by=admin,
            filename=payload.filename,
            source=payload.source,
        )
        db.commit()
    except ImportRejected as exc:
        db.rollback()
        raise_app_error(
            exc.error_code,
            detail=exc.report.errors[0] if exc.report.errors else None,
            extra={"validation": to_validation_out(exc.report).model_dump(by_alias=True)},
        )
    except ImportFailed as exc:
        db.rollback()
        raise_app_error(exc.error_code, detail=exc.detail)
    except BaseAppException:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        raise_app_error(ErrorCode.IMPORT_FAILED)

    return ImportExecuteResponse(
        batch_id=summary.batch_id,
        imported_count=summary.imported_count,
        responses_imported=summary.responses_imported,
        warnings=summary.warnings,
    )


@router.get("/batches", response_model=ImportBatchesResponse)
def list_batches(
    source: str | None = Query(default=None, max_length=128),
    limit: int | None = Query(default=None),
    _: AdminUser = Depends(admin_deps.get_current_admin),
    db: Session = Depends(admin_deps.get_db),
) -> ImportBatchesResponse:
    batches = list_import_batches(
        db,
        source=source.strip() if source and source.strip() else None,
        limit=_normalise_limit(limit),
    )
    return ImportBatchesResponse(items=[ImportBatchItem(**_batch_item(batch)) for batch in batches])


@router.get("/batches/{batch_id}", response_model=ImportBatchDetail)
def get_batch(
    batch_id: int,
    _: AdminUser = Depends(admin_deps.get_current_admin),
    db: Session = Depends(admin_deps.get_db),
) -> ImportBatchDetail:
    batch = get_import_batch(db, batch_id)
    return ImportBatchDetail(
        **_batch_item(batch),
        question_mappings=dict(batch.question_mappings or {}),
        metadata=dict(batch.batch_metadata or {}),
        response_count=count_batch_responses(db, batch.id),
    )


@router.delete("/batches/{batch_id}", response_model=ImportBatchDeleteResponse)
def delete_batch(
    batch_id: int,
    _: AdminUser = Depends(admin_deps.get_current_admin),
    db: Session = Depends(admin_deps.get_db),
) -> ImportBatchDeleteResponse:
    try:
        summary = delete_import_batch(db, batch_id)
        db.commit()
    except BaseAppException:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        raise_app_error(ErrorCode.COMMON_UNEXPECTED_ERROR)

    return ImportBatchDeleteResponse(
        batch_id=summary.batch_id,
        assessments_deleted=summary.assessments_deleted,
        responses_deleted=summary.responses_deleted,
        mappings_deleted=summary.mappings_deleted,
    )


@router.get("/mappings", response_model=QuestionMappingsResponse)
def list_question_mappings(
    model_slug: str = Query(..., alias="modelSlug", min_length=1),
    source: str | None = Query(default=None, max_length=128),
    _: AdminUser = Depends(admin_deps.get_current_admin),
    db: Session = Depends(admin_deps.get_db),
) -> QuestionMappingsResponse:
    model = load_model_by_slug(db, model_slug)
    if model is None:
        raise_app_error(ErrorCode.IMPORT_MODEL_NOT_FOUND, detail=f'Model "{model_slug}" was not found')

    resolved_source = resolve_source(None, source)
    rows = MappingStore(db).list_mappings(resolved_source, model.id)
    return QuestionMappingsResponse(
        source=resolved_source,
        model_slug=model.slug,
        items=[
            QuestionMappingItem(
                external_question_id=row.external_question_id,
                question_id=row.question_id,
                question_text=row.question.text,
                confidence=row.confidence,
                import_batch_id=row.import_batch_id,
                created_at=row.created_at,
            )
            for row in rows
        ],
    )
