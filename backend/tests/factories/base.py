from __future__ import annotations

from typing import ClassVar

import factory
from sqlalchemy.orm import Session


class _SessionRegistry:
    session: ClassVar[Session | None] = None


def set_factory_session(session: Session | None) -> None:
    """Point every factory at the session owned by the current test."""

    _SessionRegistry.session = session


class SQLAlchemyFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Flushes created rows so their ids are usable straight away."""

    class Meta:
        abstract = True
        sqlalchemy_session = _SessionRegistry
        sqlalchemy_session_persistence = "flush"

    @classmethod
    def _create(cls, model_class, *args, **kwargs):  # type: ignore[override]
        session = _SessionRegistry.session
        if session is None:
            raise RuntimeError("Factory session has not been configured")
        instance = model_class(*args, **kwargs)
        session.add(instance)
        session.flush()
        return instance
