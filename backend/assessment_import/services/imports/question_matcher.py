"""Best-candidate matching of external questions onto a model's questions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

from assessment_import.core.config import settings
from assessment_import.schemas.imports import ExternalQuestion
from assessment_import.services.imports.catalog import InternalQuestion
from assessment_import.services.imports.similarity import (
    EXACT_CEILING,
    SimilarityWeights,
    similarity,
)

MatchBand = Literal["pinned", "excellent", "good", "unmatched"]


@dataclass(frozen=True, slots=True)
class QuestionMatch:
    external_id: str
    external_text: str
    internal_id: int | None
    internal_text: str | None
    confidence: float
    dimension: str | None
    band: MatchBand
    pinned: bool = False
    best_score: float = 0.0

    @property
    def matched(self) -> bool:
        return self.internal_id is not None


def _normalise_key(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip().lower()
    return trimmed or None


class QuestionMatcher:
    """Pick the single best internal question for each external question.

    Candidates are ranked by score, then by whether the dimension hint
    agreed, then by lower ``sort_order``, then by catalogue position, so the
    same payload against the same model always yields the same match.
    """

    def __init__(
        self,
        questions: Sequence[InternalQuestion],
        *,
        weights: SimilarityWeights,
        accept_threshold: float,
        excellent_threshold: float,
        dimension_bonus: float,
    ) -> None:
        self._questions = list(questions)
        self._by_id = {question.id: question for question in self._questions}
        self._weights = weights
        self._accept_threshold = accept_threshold
        self._excellent_threshold = excellent_threshold
        self._dimension_bonus = dimension_bonus

    @classmethod
    def from_settings(cls, questions: Sequence[InternalQuestion]) -> "QuestionMatcher":
        return cls(
            questions,
            weights=SimilarityWeights.from_settings(),
            accept_threshold=settings.import_accept_threshold,
            excellent_threshold=settings.import_excellent_threshold,
            dimension_bonus=settings.import_dimension_bonus,
        )

    def question(self, question_id: int) -> InternalQuestion | None:
        return self._by_id.get(question_id)

    def match(self, external: ExternalQuestion, *, pinned_question_id: int | None = None) -> QuestionMatch:
        if pinned_question_id is not None:
            pinned = self._by_id.get(pinned_question_id)
            if pinned is not None:
                return QuestionMatch(
                    external_id=external.external_id,
                    external_text=external.text,
                    internal_id=pinned.id,
                    internal_text=pinned.text,
                    confidence=1.0,
                    dimension=pinned.dimension_key,
                    band="pinned",
                    pinned=True,
                    best_score=1.0,
                )

        hint = _normalise_key(external.dimension_hint)
        best_rank: tuple[float, bool, int, int] | None = None
        best_question: InternalQuestion | None = None
        for index, candidate in enumerate(self._questions):
            score = similarity(external.text, candidate.text, self._weights)
            has_bonus = hint is not None and hint == _normalise_key(candidate.dimension_key)
            if has_bonus and score > 0:
                ceiling = 1.0 if score >= 1.0 else EXACT_CEILING
                score = min(score + self._dimension_bonus, ceiling)
            rank = (score, has_bonus, -candidate.sort_order, -index)
            if best_rank is None or rank > best_rank:
                best_rank = rank
                best_question = candidate

        best_score = best_rank[0] if best_rank is not None else 0.0
        if best_question is None or best_score < self._accept_threshold:
            return QuestionMatch(
                external_id=external.external_id,
                external_text=external.text,
                internal_id=None,
                internal_text=None,
                confidence=0.0,
                dimension=external.dimension_hint,
                band="unmatched",
                best_score=best_score,
            )

        band: MatchBand = "excellent" if best_score >= self._excellent_threshold else "good"
        return QuestionMatch(
            external_id=external.external_id,
            external_text=external.text,
            internal_id=best_question.id,
            internal_text=best_question.text,
            confidence=best_score,
            dimension=best_question.dimension_key,
            band=band,
            best_score=best_score,
        )


__all__ = ["MatchBand", "QuestionMatch", "QuestionMatcher"]
