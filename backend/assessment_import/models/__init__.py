from .admin_user import AdminUser  # noqa: F401
from .assessment_model import (  # noqa: F401
    Answer,
    AssessmentModel,
    Dimension,
    Question,
)
from .assessment import Assessment, AssessmentResponse  # noqa: F401
from .import_batch import ImportBatch, ImportQuestionMapping  # noqa: F401

__all__ = [
    "AdminUser",
    "Answer",
    "Assessment",
    "AssessmentModel",
    "AssessmentResponse",
    "Dimension",
    "ImportBatch",
    "ImportQuestionMapping",
    "Question",
]
