"""Factory exports for tests."""

from .base import SQLAlchemyFactory, set_factory_session
from .admin import AdminUserFactory
from .models import (
    AnswerFactory,
    AssessmentModelFactory,
    DimensionFactory,
    QuestionFactory,
)

__all__ = [
    "SQLAlchemyFactory",
    "set_factory_session",
    "AdminUserFactory",
    "AnswerFactory",
    "AssessmentModelFactory",
    "DimensionFactory",
    "QuestionFactory",
]
