"""Read-only snapshots of a model's questions and scored answers."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload, selectinload

from assessment_import.models.assessment_model import AssessmentModel, Dimension, Question


@dataclass(frozen=True, slots=True)
class InternalAnswer:
    id: int
    text: str
    score: float
    sort_order: int


@dataclass(frozen=True, slots=True)
class InternalQuestion:
    id: int
    text: str
    sort_order: int
    dimension_key: str | None
    dimension_label: str | None
    answers: tuple[InternalAnswer, ...]


def load_model_by_slug(db: Session, slug: str) -> AssessmentModel | None:
    return db.execute(
        select(AssessmentModel).where(AssessmentModel.slug == slug.strip())
    ).scalar_one_or_none()


def load_dimensions(db: Session, model_id: int) -> list[Dimension]:
    return list(
        db.execute(
            select(Dimension)
            .where(Dimension.model_id == model_id)
            .order_by(Dimension.sort_order, Dimension.id)
        ).scalars()
    )


def load_question_catalog(db: Session, model_id: int) -> list[InternalQuestion]:
    """Return the model's questions ordered by ``(sort_order, id)``."""

    statement = (
        select(Question)
        .options(selectinload(Question.answers), joinedload(Question.dimension))
        .where(Question.model_id == model_id)
        .order_by(Question.sort_order, Question.id)
    )
    catalog: list[InternalQuestion] = []
    for question in db.execute(statement).unique().scalars():
        answers = tuple(
            InternalAnswer(
                id=answer.id,
                text=answer.text,
                score=float(answer.score),
                sort_order=answer.sort_order,
            )
            for answer in sorted(question.answers, key=lambda item: (item.sort_order, item.id))
        )
        dimension = question.dimension
        catalog.append(
            InternalQuestion(
                id=question.id,
                text=question.text,
                sort_order=question.sort_order,
                dimension_key=dimension.key if dimension is not None else None,
                dimension_label=dimension.label if dimension is not None else None,
                answers=answers,
            )
        )
    return catalog


__all__ = [
    "InternalAnswer",
    "InternalQuestion",
    "load_dimensions",
    "load_model_by_slug",
    "load_question_catalog",
]
