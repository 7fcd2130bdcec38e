"""Project raw external answer values onto a question's scored answers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

from assessment_import.schemas.imports import ExternalQuestion
from assessment_import.services.imports.catalog import InternalAnswer

_TIE_PRECISION = 9


class UnnormalizableValue(ValueError):
    """Raised when a raw value cannot be mapped onto an internal answer."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True, slots=True)
class Scale:
    minimum: float
    maximum: float

    @property
    def span(self) -> float:
        return self.maximum - self.minimum

    @property
    def degenerate(self) -> bool:
        return self.span <= 0

    def contains(self, value: float) -> bool:
        return self.minimum <= value <= self.maximum


def coerce_raw_value(raw: Any) -> float:
    if isinstance(raw, bool):
        raise UnnormalizableValue("boolean value")
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            raise UnnormalizableValue("empty value")
        try:
            value = float(text)
        except ValueError:
            raise UnnormalizableValue("non-numeric value") from None
    elif raw is None:
        raise UnnormalizableValue("missing value")
    else:
        raise UnnormalizableValue("non-numeric value")

    if not math.isfinite(value):
        raise UnnormalizableValue("non-numeric value")
    return value


def resolve_external_scale(question: ExternalQuestion, payload_scale: Scale | None) -> Scale | None:
    """Return the declared or inferred external scale, or ``None`` for identity.

    Precedence: the question's own ``scale``, the score range of its
    ``answerOptions`` when that range is not a single point, then the
    payload-wide ``scale``.
    """

    if question.scale is not None:
        return Scale(question.scale.minimum, question.scale.maximum)
    if question.answer_options:
        scores = [option.score for option in question.answer_options]
        inferred = Scale(min(scores), max(scores))
        if not inferred.degenerate:
            return inferred
    return payload_scale


def internal_scale(answers: Sequence[InternalAnswer]) -> Scale:
    scores = [answer.score for answer in answers]
    return Scale(min(scores), max(scores))


def project(value: float, source: Scale, target: Scale) -> float:
    if source.degenerate or target.degenerate:
        return target.minimum
    ratio = (value - source.minimum) / source.span
    return target.minimum + ratio * target.span


def nearest_answer(answers: Sequence[InternalAnswer], projected: float) -> InternalAnswer:
    # Ties resolve to the lower sort_order, then the lower id.
    return min(
        answers,
        key=lambda answer: (
            round(abs(answer.score - projected), _TIE_PRECISION),
            answer.sort_order,
            answer.id,
        ),
    )


def normalize_answer(
    raw: Any,
    answers: Sequence[InternalAnswer],
    external_scale: Scale | None,
) -> InternalAnswer:
    if not answers:
        raise UnnormalizableValue("question has no answers")

    value = coerce_raw_value(raw)
    target = internal_scale(answers)
    source = external_scale or target
    if not source.contains(value):
        raise UnnormalizableValue(
            f"value outside scale {_format_number(source.minimum)}-{_format_number(source.maximum)}"
        )
    return nearest_answer(answers, project(value, source, target))


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


__all__ = [
    "Scale",
    "UnnormalizableValue",
    "coerce_raw_value",
    "internal_scale",
    "nearest_answer",
    "normalize_answer",
    "project",
    "resolve_external_scale",
]
