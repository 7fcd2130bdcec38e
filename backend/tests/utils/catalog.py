from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from assessment_import.models.assessment_model import Answer, AssessmentModel, Dimension, Question
from tests.factories import AnswerFactory, AssessmentModelFactory, DimensionFactory, QuestionFactory

DEFAULT_SCORES: tuple[int, ...] = (100, 200, 300, 400, 500)

AI_MATURITY_QUESTIONS: tuple[tuple[str, str | None], ...] = (
    ("Does your team use AI tools in daily workflow?", "adoption"),
    ("How mature is your data governance program?", "data"),
    ("Has leadership defined a strategy for machine learning investments?", "strategy"),
)


@dataclass
class SeededModel:
    model: AssessmentModel
    dimensions: dict[str, Dimension] = field(default_factory=dict)
    questions: list[Question] = field(default_factory=list)
    answers: dict[int, list[Answer]] = field(default_factory=dict)

    def question(self, text: str) -> Question:
        return next(item for item in self.questions if item.text == text)


def seed_model(
    *,
    slug: str = "ai-maturity",
    questions: Sequence[tuple[str, str | None]] = AI_MATURITY_QUESTIONS,
    scores: Sequence[int] = DEFAULT_SCORES,
    dimension_labels: dict[str, str] | None = None,
) -> SeededModel:
    """Create a model whose questions each carry one answer per score."""

    model = AssessmentModelFactory(slug=slug, name="AI Maturity")
    seeded = SeededModel(model=model)
    labels = dimension_labels or {}
    for index, (text, dimension_key) in enumerate(questions):
        dimension = None
        if dimension_key is not None:
            dimension = seeded.dimensions.get(dimension_key)
            if dimension is None:
                dimension = DimensionFactory(
                    model=model,
                    key=dimension_key,
                    label=labels.get(dimension_key, dimension_key.title()),
                    sort_order=len(seeded.dimensions),
                )
                seeded.dimensions[dimension_key] = dimension
        question = QuestionFactory(model=model, dimension=dimension, text=text, sort_order=index)
        seeded.questions.append(question)
        seeded.answers[question.id] = [
            AnswerFactory(question=question, text=f"Level {position + 1}", score=score, sort_order=position)
            for position, score in enumerate(scores)
        ]
    return seeded


def assessment(external_id: str, answers: dict[str, object], **extra: object) -> dict[str, object]:
    document: dict[str, object] = {
        "externalAssessmentId": external_id,
        "completedAt": "2024-05-01T10:00:00Z",
        "answers": [
            {"externalQuestionId": question_id, "rawValue": value} for question_id, value in answers.items()
        ],
    }
    document.update(extra)
    return document


__all__ = ["AI_MATURITY_QUESTIONS", "DEFAULT_SCORES", "SeededModel", "assessment", "seed_model"]
