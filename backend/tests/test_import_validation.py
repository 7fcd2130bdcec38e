from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from assessment_import.models.assessment import Assessment
from assessment_import.models.import_batch import ImportBatch
from assessment_import.services.imports.validator import ImportValidator
from tests.utils.catalog import assessment, seed_model

WORKFLOW = "Does your team use AI tools in daily workflow?"
GOVERNANCE = "How mature is your data governance program?"


def _payload(**overrides: Any) -> dict[str, Any]:
    document: dict[str, Any] = {
        "source": "legacy_ai_maturity",
        "scale": {"min": 0, "max": 4},
        "questions": [
            {"externalId": "Q1", "text": "Do you use AI in your workflow?"},
            {"externalId": "Q2", "text": GOVERNANCE, "dimensionHint": "data"},
        ],
        "assessments": [
            assessment("A1", {"Q1": 4, "Q2": 0}),
            assessment("A2", {"Q1": 2, "Q2": "3"}),
        ],
    }
    document.update(overrides)
    return document


def _validate(db: Session, payload: Any, **kwargs: Any):
    return ImportValidator(db).validate(payload, model_slug=kwargs.pop("model_slug", "ai-maturity"), **kwargs)


def test_valid_payload_reports_matches_and_mappings(db_session: Session) -> None:
    seeded = seed_model()

    report = _validate(db_session, _payload())

    assert report.valid is True
    assert report.errors == []
    assert report.assessment_count == 2
    by_id = {match.external_id: match for match in report.question_matches}
    assert by_id["Q1"].internal_id == seeded.question(WORKFLOW).id
    assert by_id["Q1"].band == "good"
    assert by_id["Q2"].internal_id == seeded.question(GOVERNANCE).id
    assert by_id["Q2"].band == "excellent"
    assert by_id["Q2"].confidence == 1.0
    assert report.dimension_mappings == {"adoption": "Adoption", "data": "Data"}
    assert any('Question "Q1" matched' in warning for warning in report.warnings)


def test_unmatched_question_warns_but_stays_valid(db_session: Session) -> None:
    seed_model()
    payload = _payload(
        questions=[
            {"externalId": "Q1", "text": WORKFLOW},
            {"externalId": "Q3", "text": "Banana"},
        ],
        assessments=[assessment("A1", {"Q1": 1, "Q3": 2})],
    )

    report = _validate(db_session, payload)

    assert report.valid is True
    unmatched = next(match for match in report.question_matches if match.external_id == "Q3")
    assert unmatched.internal_id is None
    assert unmatched.band == "unmatched"
    assert unmatched.best_score < 0.5
    assert any('Question "Q3" has no match' in warning for warning in report.warnings)


def test_duplicate_external_ids_invalidate_but_count_assessments(db_session: Session) -> None:
    seed_model()
    payload = _payload(
        questions=[
            {"externalId": "Q1", "text": WORKFLOW},
            {"externalId": "Q1", "text": GOVERNANCE},
        ],
        assessments=[assessment(f"A{index}", {"Q1": 1}) for index in range(10)],
    )

    report = _validate(db_session, payload)

    assert report.valid is False
    assert report.assessment_count == 10
    assert any("Duplicate question externalId: Q1" in error for error in report.errors)


def test_unknown_model_is_an_error(db_session: Session) -> None:
    seed_model()

    report = _validate(db_session, _payload(), model_slug="missing-model")

    assert report.valid is False
    assert report.errors == ['Model "missing-model" was not found']
    assert report.question_matches == []
    assert report.assessment_count == 2


def test_shape_errors_are_reported_with_location(db_session: Session) -> None:
    seed_model()
    payload = _payload(questions=[{"externalId": "Q1"}])

    report = _validate(db_session, payload)

    assert report.valid is False
    assert "questions.0.text: Field required" in report.errors
    assert report.assessment_count == 2


def test_non_object_payload_is_rejected(db_session: Session) -> None:
    seed_model()

    report = _validate(db_session, ["not", "an", "object"])

    assert report.valid is False
    assert report.errors == ["Import data must be a JSON object"]
    assert report.assessment_count == 0


def test_zero_assessments_is_an_error(db_session: Session) -> None:
    seed_model()

    report = _validate(db_session, _payload(assessments=[]))

    assert report.valid is False
    assert "Import data contains no assessments" in report.errors
    assert report.assessment_count == 0


def test_model_definition_file_is_detected(db_session: Session) -> None:
    seed_model()
    definition = {
        "formatVersion": "1.0",
        "model": {"slug": "ai-maturity"},
        "dimensions": [],
        "questions": [],
    }

    report = _validate(db_session, definition)

    assert report.valid is False
    assert any("model definition" in error for error in report.errors)


def test_unknown_question_reference_is_an_error(db_session: Session) -> None:
    seed_model()
    payload = _payload(assessments=[assessment("A1", {"Q1": 1, "Q404": 2})])

    report = _validate(db_session, payload)

    assert report.valid is False
    assert 'Assessment "A1" references unknown question id(s): Q404' in report.errors


def test_normalisation_problems_are_aggregated_per_question(db_session: Session) -> None:
    seed_model()
    payload = _payload(
        assessments=[
            assessment("A1", {"Q1": "often", "Q2": 9}),
            assessment("A2", {"Q1": "rarely", "Q2": True}),
        ]
    )

    report = _validate(db_session, payload)

    assert report.valid is True
    assert 'Question "Q1": 2 answer(s) could not be normalized (non-numeric value) and will be skipped' in report.warnings
    assert 'Question "Q2": 1 answer(s) could not be normalized (value outside scale 0-4) and will be skipped' in report.warnings
    assert 'Question "Q2": 1 answer(s) could not be normalized (boolean value) and will be skipped' in report.warnings
    assert "2 assessment(s) have no importable answers" in report.warnings


def test_many_to_one_and_duplicate_answers_warn(db_session: Session) -> None:
    seed_model()
    payload = _payload(
        questions=[
            {"externalId": "Q1", "text": WORKFLOW},
            {"externalId": "Q1b", "text": "Does your team use AI tools in daily workflow"},
        ],
        assessments=[assessment("A1", {"Q1": 1, "Q1b": 3})],
    )

    report = _validate(db_session, payload)

    assert report.valid is True
    assert any("Questions Q1, Q1b all map to internal question" in warning for warning in report.warnings)
    assert "1 duplicate answer(s) to an already answered question will be ignored" in report.warnings


def test_metadata_warnings(db_session: Session) -> None:
    seed_model()
    payload = _payload(
        modelInfo={"name": "Legacy AI Maturity", "dimensions": ["Adoption", "Culture"]},
        assessments=[
            assessment("A1", {"Q1": 1}),
            {"externalAssessmentId": "A1", "answers": [{"externalQuestionId": "Q2", "rawValue": 2}]},
        ],
    )

    report = _validate(db_session, payload)

    assert report.valid is True
    assert 'Dimension "Culture" has no matching dimension in model "ai-maturity"' in report.warnings
    assert not any('"Adoption"' in warning for warning in report.warnings)
    assert any("Duplicate externalAssessmentId: A1" in warning for warning in report.warnings)
    assert "1 assessment(s) have no completedAt; the import time will be used" in report.warnings


def test_validation_is_deterministic_and_read_only(db_session: Session) -> None:
    seed_model()
    payload = _payload()

    first = _validate(db_session, payload)
    second = _validate(db_session, payload)

    assert first == second
    assert db_session.scalar(select(func.count(ImportBatch.id))) == 0
    assert db_session.scalar(select(func.count(Assessment.id))) == 0


@pytest.mark.parametrize(
    ("requested", "expected"),
    [(None, "legacy_ai_maturity"), ("other_system", "other_system")],
)
def test_source_resolution(db_session: Session, requested: str | None, expected: str) -> None:
    seed_model()

    plan = ImportValidator(db_session).build_plan(_payload(), model_slug="ai-maturity", source=requested)

    assert plan.source == expected
