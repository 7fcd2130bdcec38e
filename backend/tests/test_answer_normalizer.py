from __future__ import annotations

import pytest

from assessment_import.schemas.imports import ExternalQuestion
from assessment_import.services.imports.answer_normalizer import (
    Scale,
    UnnormalizableValue,
    coerce_raw_value,
    nearest_answer,
    normalize_answer,
    project,
    resolve_external_scale,
)
from assessment_import.services.imports.catalog import InternalAnswer

ANSWERS = tuple(
    InternalAnswer(id=index + 1, text=f"Level {index + 1}", score=score, sort_order=index)
    for index, score in enumerate((100, 200, 300, 400, 500))
)


def test_top_of_external_scale_selects_highest_answer() -> None:
    selected = normalize_answer(4, ANSWERS, Scale(0, 4))

    assert selected.score == 500


@pytest.mark.parametrize("answer", ANSWERS)
def test_endpoints_and_steps_round_trip(answer: InternalAnswer) -> None:
    raw = (answer.score - 100) / 100

    assert normalize_answer(raw, ANSWERS, Scale(0, 4)).id == answer.id


def test_projection_is_linear() -> None:
    assert project(0, Scale(0, 4), Scale(100, 500)) == 100
    assert project(2, Scale(0, 4), Scale(100, 500)) == 300
    assert project(7, Scale(1, 10), Scale(0, 90)) == pytest.approx(60)


def test_ties_go_to_lower_sort_order() -> None:
    answers = (
        InternalAnswer(id=1, text="Low", score=100, sort_order=0),
        InternalAnswer(id=2, text="High", score=200, sort_order=1),
    )

    assert nearest_answer(answers, 150).id == 1


def test_missing_external_scale_uses_internal_range() -> None:
    assert normalize_answer("300", ANSWERS, None).score == 300
    assert normalize_answer(340, ANSWERS, None).score == 300

    with pytest.raises(UnnormalizableValue):
        normalize_answer(4, ANSWERS, None)


@pytest.mark.parametrize("raw", [True, False, None, "", "high", [1], float("nan")])
def test_non_numeric_values_are_rejected(raw: object) -> None:
    with pytest.raises(UnnormalizableValue):
        coerce_raw_value(raw)


def test_numeric_strings_are_accepted() -> None:
    assert coerce_raw_value(" 3.5 ") == 3.5
    assert coerce_raw_value(2) == 2.0


def test_out_of_range_value_is_unnormalizable() -> None:
    with pytest.raises(UnnormalizableValue) as excinfo:
        normalize_answer(5, ANSWERS, Scale(0, 4))

    assert "outside scale 0-4" in excinfo.value.reason


def test_question_without_answers_is_unnormalizable() -> None:
    with pytest.raises(UnnormalizableValue) as excinfo:
        normalize_answer(1, (), Scale(0, 4))

    assert excinfo.value.reason == "question has no answers"


def test_single_answer_question_always_selects_it() -> None:
    only = (InternalAnswer(id=9, text="Yes", score=1, sort_order=0),)

    assert normalize_answer(3, only, Scale(1, 5)).id == 9


def test_scale_resolution_order() -> None:
    payload_scale = Scale(1, 10)

    declared = ExternalQuestion.model_validate(
        {"externalId": "a", "text": "t", "scale": {"min": 0, "max": 4}, "answerOptions": [{"score": 1}, {"score": 7}]}
    )
    from_options = ExternalQuestion.model_validate(
        {"externalId": "b", "text": "t", "answerOptions": [{"score": 1, "text": "No"}, {"score": 3, "text": "Yes"}]}
    )
    degenerate_options = ExternalQuestion.model_validate(
        {"externalId": "c", "text": "t", "answerOptions": [{"score": 2}, {"score": 2}]}
    )
    bare = ExternalQuestion.model_validate({"externalId": "d", "text": "t"})

    assert resolve_external_scale(declared, payload_scale) == Scale(0, 4)
    assert resolve_external_scale(from_options, payload_scale) == Scale(1, 3)
    assert resolve_external_scale(degenerate_options, payload_scale) == payload_scale
    assert resolve_external_scale(bare, None) is None
