"""Free-text normalisation and similarity scoring for question matching.

Scores blend a token-level measure (tolerant of word order and extra words)
with a normalised Levenshtein similarity (tolerant of typos and small
rewording). Both run on the normalised strings, so two texts that differ only
in case, punctuation or spacing score exactly 1.0.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from rapidfuzz import fuzz
from rapidfuzz.distance import Levenshtein

from assessment_import.core.config import settings

TokenScorer = Literal["token_set", "jaccard"]

_PUNCTUATION = re.compile(r"[^\w\s]+")
_WHITESPACE = re.compile(r"\s+")
_WORD = re.compile(r"\w+")

EXACT_CEILING = 0.999


@dataclass(frozen=True, slots=True)
class SimilarityWeights:
    token: float = 0.5
    edit: float = 0.5
    token_scorer: TokenScorer = "token_set"

    @classmethod
    def from_settings(cls) -> "SimilarityWeights":
        return cls(
            token=settings.import_similarity_token_weight,
            edit=settings.import_similarity_edit_weight,
            token_scorer=settings.import_similarity_token_scorer,
        )


def normalize_text(value: str | None) -> str:
    if not value:
        return ""
    lowered = value.lower()
    stripped = _PUNCTUATION.sub(" ", lowered)
    return _WHITESPACE.sub(" ", stripped).strip()


def tokenize(normalized: str) -> list[str]:
    return _WORD.findall(normalized)


def jaccard_similarity(left: set[str], right: set[str]) -> float:
    if not left or not right:
        return 0.0
    return len(left & right) / len(left | right)


def edit_similarity(left: str, right: str) -> float:
    """``1 - levenshtein(left, right) / max(len(left), len(right))``."""

    if not left or not right:
        return 0.0
    return Levenshtein.normalized_similarity(left, right)


def _token_score(left: str, right: str, scorer: TokenScorer) -> float:
    if scorer == "jaccard":
        return jaccard_similarity(set(tokenize(left)), set(tokenize(right)))
    return fuzz.token_set_ratio(left, right) / 100.0


def similarity(a: str | None, b: str | None, weights: SimilarityWeights | None = None) -> float:
    weights = weights or SimilarityWeights.from_settings()
    left = normalize_text(a)
    right = normalize_text(b)
    if not left or not right:
        return 0.0
    if left == right:
        return 1.0

    total_weight = weights.token + weights.edit
    if total_weight <= 0:
        return 0.0
    blended = (
        weights.token * _token_score(left, right, weights.token_scorer)
        + weights.edit * edit_similarity(left, right)
    ) / total_weight
    # Differing normalised texts never reach a perfect score.
    return min(max(blended, 0.0), EXACT_CEILING)


__all__ = [
    "EXACT_CEILING",
    "SimilarityWeights",
    "edit_similarity",
    "jaccard_similarity",
    "normalize_text",
    "similarity",
    "tokenize",
]
