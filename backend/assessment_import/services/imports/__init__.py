"""Assessment import reconciliation services."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "BatchDeletionSummary": (
        "assessment_import.services.imports.batch_admin",
        "BatchDeletionSummary",
    ),
    "BatchExecutor": (
        "assessment_import.services.imports.batch_executor",
        "BatchExecutor",
    ),
    "ImportExecutionSummary": (
        "assessment_import.services.imports.batch_executor",
        "ImportExecutionSummary",
    ),
    "ImportFailed": (
        "assessment_import.services.imports.batch_executor",
        "ImportFailed",
    ),
    "ImportPlan": (
        "assessment_import.services.imports.validator",
        "ImportPlan",
    ),
    "ImportRejected": (
        "assessment_import.services.imports.batch_executor",
        "ImportRejected",
    ),
    "ImportValidator": (
        "assessment_import.services.imports.validator",
        "ImportValidator",
    ),
    "MappingStore": (
        "assessment_import.services.imports.mapping_store",
        "MappingStore",
    ),
    "QuestionMatch": (
        "assessment_import.services.imports.question_matcher",
        "QuestionMatch",
    ),
    "QuestionMatcher": (
        "assessment_import.services.imports.question_matcher",
        "QuestionMatcher",
    ),
    "UnnormalizableValue": (
        "assessment_import.services.imports.answer_normalizer",
        "UnnormalizableValue",
    ),
    "ValidationReport": (
        "assessment_import.services.imports.validator",
        "ValidationReport",
    ),
    "delete_import_batch": (
        "assessment_import.services.imports.batch_admin",
        "delete_import_batch",
    ),
    "get_import_batch": (
        "assessment_import.services.imports.batch_admin",
        "get_import_batch",
    ),
    "list_import_batches": (
        "assessment_import.services.imports.batch_admin",
        "list_import_batches",
    ),
    "normalize_answer": (
        "assessment_import.services.imports.answer_normalizer",
        "normalize_answer",
    ),
    "similarity": (
        "assessment_import.services.imports.similarity",
        "similarity",
    ),
}

__all__ = sorted(_LAZY_IMPORTS)


def __getattr__(name: str) -> Any:
    try:
        module_path, attribute = _LAZY_IMPORTS[name]
    except KeyError as exc:
        raise AttributeError(name) from exc

    module = import_module(module_path)
    value = getattr(module, attribute)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return list(__all__)
