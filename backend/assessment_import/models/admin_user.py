from __future__ import annotations
from datetime import datetime

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from assessment_import.db.base import Base
from assessment_import.models.types import BigIntId, UTCDateTime, utcnow


class AdminUser(Base):
    """Platform administrator; the identity recorded as an import's ``importedBy``."""

    __tablename__ = "admin_users"
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_admin_users_user_id"),
        Index("idx_admin_users_is_active", "is_active"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64))
    display_name: Mapped[str | None] = mapped_column(String(191), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, onupdate=utcnow)


__all__ = ["AdminUser"]
