"""Import plan construction shared by preview and execute.

``ImportValidator.build_plan`` parses the payload, matches questions,
normalises every answer and collects errors and warnings in one pass. Preview
returns the plan's report; execute persists the plan it builds itself.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping, Sequence

from pydantic import ValidationError
from sqlalchemy.orm import Session

from assessment_import.core.config import settings
from assessment_import.core.exceptions import format_error_locations
from assessment_import.models.assessment_model import AssessmentModel
from assessment_import.schemas.imports import ImportPayload
from assessment_import.services.imports.answer_normalizer import (
    Scale,
    UnnormalizableValue,
    normalize_answer,
    resolve_external_scale,
)
from assessment_import.services.imports.catalog import (
    InternalQuestion,
    load_dimensions,
    load_model_by_slug,
    load_question_catalog,
)
from assessment_import.services.imports.mapping_store import MappingStore
from assessment_import.services.imports.question_matcher import QuestionMatch, QuestionMatcher

logger = logging.getLogger(__name__)

MODEL_DEFINITION_KEYS = ("formatVersion", "model", "dimensions", "questions")


@dataclass(frozen=True)
class PlannedResponse:
    external_question_id: str
    question_id: int
    answer_id: int


@dataclass(frozen=True)
class PlannedAssessment:
    external_assessment_id: str
    respondent_meta: dict[str, Any]
    completed_at: datetime | None
    responses: list[PlannedResponse]


@dataclass(frozen=True)
class ValidationReport:
    errors: list[str]
    warnings: list[str]
    question_matches: list[QuestionMatch]
    assessment_count: int
    dimension_mappings: dict[str, str] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class ImportPlan:
    report: ValidationReport
    source: str
    model: AssessmentModel | None
    payload: ImportPayload | None
    assessments: list[PlannedAssessment] = field(default_factory=list)
    question_mappings: dict[str, int] = field(default_factory=dict)

    @property
    def pinned_question_ids(self) -> list[int]:
        return sorted(
            {match.internal_id for match in self.report.question_matches if match.pinned and match.internal_id}
        )

    @property
    def empty_assessments(self) -> list[str]:
        return [item.external_assessment_id for item in self.assessments if not item.responses]

    @property
    def response_count(self) -> int:
        return sum(len(item.responses) for item in self.assessments)


def resolve_source(raw: Any, requested: str | None) -> str:
    payload_source = raw.get("source") if isinstance(raw, Mapping) else None
    for candidate in (requested, payload_source):
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return settings.import_default_source


def count_assessments(raw: Any) -> int:
    if isinstance(raw, Mapping) and isinstance(raw.get("assessments"), list):
        return len(raw["assessments"])
    return 0


def _percent(value: float) -> str:
    return f"{value * 100:.0f}%"


class ImportValidator:
    """Dry-run reconciliation of an external payload against one model."""

    def __init__(
        self,
        db: Session,
        *,
        matcher_factory: Callable[[Sequence[InternalQuestion]], QuestionMatcher] = QuestionMatcher.from_settings,
    ) -> None:
        self._db = db
        self._matcher_factory = matcher_factory

    def validate(self, raw: Any, *, model_slug: str, source: str | None = None) -> ValidationReport:
        return self.build_plan(raw, model_slug=model_slug, source=source).report

    def build_plan(self, raw: Any, *, model_slug: str, source: str | None = None) -> ImportPlan:
        errors: list[str] = []
        warnings: list[str] = []
        resolved_source = resolve_source(raw, source)
        assessment_count = count_assessments(raw)

        model = load_model_by_slug(self._db, model_slug)
        if model is None:
            errors.append(f'Model "{model_slug}" was not found')

        payload = self._parse_payload(raw, errors)
        if payload is not None:
            self._check_structure(payload, errors)

        if model is None or payload is None:
            report = ValidationReport(
                errors=errors,
                warnings=warnings,
                question_matches=[],
                assessment_count=assessment_count,
            )
            return ImportPlan(report=report, source=resolved_source, model=model, payload=payload)

        matcher = self._matcher_factory(load_question_catalog(self._db, model.id))
        pins = MappingStore(self._db).load(resolved_source, model.id)
        matches = [
            matcher.match(question, pinned_question_id=pins.get(question.external_id))
            for question in payload.questions
        ]
        warnings.extend(self._match_warnings(matches))
        warnings.extend(self._dimension_warnings(payload, model))
        assessments = self._plan_assessments(payload, matches, matcher, warnings)

        question_mappings: dict[str, int] = {}
        dimension_mappings: dict[str, str] = {}
        for match in matches:
            if match.internal_id is None:
                continue
            question_mappings.setdefault(match.external_id, match.internal_id)
            internal = matcher.question(match.internal_id)
            if internal is not None and internal.dimension_key and internal.dimension_label:
                dimension_mappings.setdefault(internal.dimension_key, internal.dimension_label)

        report = ValidationReport(
            errors=errors,
            warnings=warnings,
            question_matches=matches,
            assessment_count=assessment_count,
            dimension_mappings=dimension_mappings,
        )
        logger.info(
            "Validated import for model=%s source=%s: %d errors, %d warnings, %d/%d questions matched",
            model.slug,
            resolved_source,
            len(errors),
            len(warnings),
            len(question_mappings),
            len(matches),
        )
        return ImportPlan(
            report=report,
            source=resolved_source,
            model=model,
            payload=payload,
            assessments=assessments,
            question_mappings=question_mappings,
        )

    def _parse_payload(self, raw: Any, errors: list[str]) -> ImportPayload | None:
        if not isinstance(raw, Mapping):
            errors.append("Import data must be a JSON object")
            return None
        if all(key in raw for key in MODEL_DEFINITION_KEYS):
            errors.append(
                "This file looks like a model definition (formatVersion, model, dimensions, questions); "
                "import it as a model instead of as assessments"
            )
            return None
        try:
            return ImportPayload.model_validate(raw)
        except ValidationError as exc:
            errors.extend(format_error_locations(exc.errors()))
            return None

    def _check_structure(self, payload: ImportPayload, errors: list[str]) -> None:
        if not payload.assessments:
            errors.append("Import data contains no assessments")

        id_counts = Counter(question.external_id for question in payload.questions)
        duplicates = [external_id for external_id, count in id_counts.items() if count > 1]
        if duplicates:
            errors.append(f"Duplicate question externalId: {', '.join(duplicates)}")

        for assessment in payload.assessments:
            unknown = list(
                dict.fromkeys(
                    answer.external_question_id
                    for answer in assessment.answers
                    if answer.external_question_id not in id_counts
                )
            )
            if unknown:
                errors.append(
                    f'Assessment "{assessment.external_assessment_id}" references unknown question id(s): '
                    f"{', '.join(unknown)}"
                )

    def _match_warnings(self, matches: Sequence[QuestionMatch]) -> list[str]:
        warnings: list[str] = []
        targets: dict[int, list[str]] = {}
        for match in matches:
            if match.band == "good":
                warnings.append(
                    f'Question "{match.external_id}" matched "{match.internal_text}" with '
                    f"{_percent(match.confidence)} confidence; manual review recommended"
                )
            elif match.band == "unmatched":
                warnings.append(
                    f'Question "{match.external_id}" has no match at or above '
                    f"{_percent(settings.import_accept_threshold)} (best {_percent(match.best_score)}); "
                    "its answers will be skipped"
                )
            if match.internal_id is not None:
                bucket = targets.setdefault(match.internal_id, [])
                if match.external_id not in bucket:
                    bucket.append(match.external_id)

        for question_id, external_ids in targets.items():
            if len(external_ids) > 1:
                warnings.append(
                    f"Questions {', '.join(external_ids)} all map to internal question {question_id}; "
                    "only the first answer per assessment is imported"
                )
        return warnings

    def _dimension_warnings(self, payload: ImportPayload, model: AssessmentModel) -> list[str]:
        if payload.model_info is None or not payload.model_info.dimensions:
            return []
        known: set[str] = set()
        for dimension in load_dimensions(self._db, model.id):
            known.add(dimension.key.strip().lower())
            known.add(dimension.label.strip().lower())
        return [
            f'Dimension "{name}" has no matching dimension in model "{model.slug}"'
            for name in payload.model_info.dimensions
            if name.strip().lower() not in known
        ]

    def _plan_assessments(
        self,
        payload: ImportPayload,
        matches: Sequence[QuestionMatch],
        matcher: QuestionMatcher,
        warnings: list[str],
    ) -> list[PlannedAssessment]:
        matches_by_external: dict[str, QuestionMatch] = {}
        scales: dict[str, Scale | None] = {}
        payload_scale = (
            Scale(payload.scale.minimum, payload.scale.maximum) if payload.scale is not None else None
        )
        for question, match in zip(payload.questions, matches):
            if question.external_id in matches_by_external:
                continue
            matches_by_external[question.external_id] = match
            scales[question.external_id] = resolve_external_scale(question, payload_scale)

        unnormalizable: Counter[tuple[str, str]] = Counter()
        duplicate_answers = 0
        missing_completed = 0
        planned: list[PlannedAssessment] = []

        for assessment in payload.assessments:
            if assessment.completed_at is None:
                missing_completed += 1
            answered: set[int] = set()
            responses: list[PlannedResponse] = []
            for answer in assessment.answers:
                match = matches_by_external.get(answer.external_question_id)
                if match is None or match.internal_id is None:
                    continue
                if match.internal_id in answered:
                    duplicate_answers += 1
                    continue
                answered.add(match.internal_id)
                internal = matcher.question(match.internal_id)
                if internal is None:
                    continue
                try:
                    selected = normalize_answer(
                        answer.raw_value,
                        internal.answers,
                        scales[answer.external_question_id],
                    )
                except UnnormalizableValue as exc:
                    unnormalizable[(answer.external_question_id, exc.reason)] += 1
                    continue
                responses.append(
                    PlannedResponse(
                        external_question_id=answer.external_question_id,
                        question_id=internal.id,
                        answer_id=selected.id,
                    )
                )
            planned.append(
                PlannedAssessment(
                    external_assessment_id=assessment.external_assessment_id,
                    respondent_meta=dict(assessment.respondent_meta),
                    completed_at=assessment.completed_at,
                    responses=responses,
                )
            )

        for (external_id, reason), count in unnormalizable.items():
            warnings.append(
                f'Question "{external_id}": {count} answer(s) could not be normalized ({reason}) and will be skipped'
            )
        if duplicate_answers:
            warnings.append(
                f"{duplicate_answers} duplicate answer(s) to an already answered question will be ignored"
            )
        assessment_ids = Counter(item.external_assessment_id for item in payload.assessments)
        duplicated_ids = [value for value, count in assessment_ids.items() if count > 1]
        if duplicated_ids:
            warnings.append(
                f"Duplicate externalAssessmentId: {', '.join(duplicated_ids)}; each entry is imported separately"
            )
        if missing_completed:
            warnings.append(
                f"{missing_completed} assessment(s) have no completedAt; the import time will be used"
            )
        empty = sum(1 for item in planned if not item.responses)
        if empty:
            warnings.append(f"{empty} assessment(s) have no importable answers")
        return planned


__all__ = [
    "ImportPlan",
    "ImportValidator",
    "MODEL_DEFINITION_KEYS",
    "PlannedAssessment",
    "PlannedResponse",
    "ValidationReport",
    "count_assessments",
    "resolve_source",
]
