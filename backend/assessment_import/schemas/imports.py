from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


class ScaleRange(CamelModel):
    minimum: float = Field(alias="min")
    maximum: float = Field(alias="max")

    @model_validator(mode="after")
    def _check_bounds(self) -> "ScaleRange":
        if not self.minimum < self.maximum:
            raise ValueError("scale min must be lower than max")
        return self


# ---- external payload ------------------------------------------------------


class _PayloadModel(CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)


class ExternalAnswerOption(_PayloadModel):
    score: float
    text: str | None = None


class ExternalQuestion(_PayloadModel):
    external_id: str = Field(min_length=1)
    text: str
    dimension_hint: str | None = None
    scale: ScaleRange | None = None
    answer_options: list[ExternalAnswerOption] = Field(default_factory=list)


class ExternalAnswer(_PayloadModel):
    external_question_id: str = Field(min_length=1)
    raw_value: Any


class ExternalAssessment(_PayloadModel):
    external_assessment_id: str = Field(min_length=1)
    respondent_meta: dict[str, Any] = Field(default_factory=dict)
    completed_at: datetime | None = None
    answers: list[ExternalAnswer] = Field(default_factory=list)


class ExternalModelInfo(_PayloadModel):
    name: str | None = None
    dimensions: list[str] = Field(default_factory=list)


class ImportPayload(_PayloadModel):
    source: str | None = None
    model_info: ExternalModelInfo | None = None
    scale: ScaleRange | None = None
    questions: list[ExternalQuestion]
    assessments: list[ExternalAssessment]


# ---- admin API -------------------------------------------------------------


class ImportPreviewRequest(CamelModel):
    import_data: Any
    model_slug: str = Field(min_length=1, max_length=128)
    source: str | None = Field(default=None, max_length=128)


class ImportExecuteRequest(ImportPreviewRequest):
    filename: str | None = Field(default=None, max_length=255)


class QuestionMatchOut(CamelModel):
    external_id: str
    external_text: str
    internal_id: int | None
    internal_text: str | None
    confidence: float
    dimension: str | None
    band: Literal["pinned", "excellent", "good", "unmatched"]
    pinned: bool
    best_score: float

    model_config = ConfigDict(from_attributes=True)


class ValidationResultOut(CamelModel):
    valid: bool
    errors: list[str]
    warnings: list[str]
    question_matches: list[QuestionMatchOut]
    assessment_count: int
    dimension_mappings: dict[str, str]


class ImportExecuteResponse(CamelModel):
    batch_id: int
    imported_count: int
    responses_imported: int
    warnings: list[str]


class ImportedByOut(CamelModel):
    id: int
    user_id: str
    display_name: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ImportBatchItem(CamelModel):
    id: int
    source: str
    filename: str
    assessment_count: int
    created_at: datetime
    imported_by: ImportedByOut | None


class ImportBatchesResponse(CamelModel):
    items: list[ImportBatchItem]


class ImportBatchDetail(ImportBatchItem):
    question_mappings: dict[str, int]
    metadata: dict[str, Any]
    response_count: int


class ImportBatchDeleteResponse(CamelModel):
    batch_id: int
    assessments_deleted: int
    responses_deleted: int
    mappings_deleted: int


class QuestionMappingItem(CamelModel):
    external_question_id: str
    question_id: int
    question_text: str
    confidence: float
    import_batch_id: int
    created_at: datetime


class QuestionMappingsResponse(CamelModel):
    source: str
    model_slug: str
    items: list[QuestionMappingItem]
