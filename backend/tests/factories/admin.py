from __future__ import annotations

import factory

from assessment_import.models.admin_user import AdminUser

from .base import SQLAlchemyFactory


class AdminUserFactory(SQLAlchemyFactory):
    class Meta:
        model = AdminUser

    user_id = factory.Sequence(lambda n: f"admin{n:03d}")
    display_name = factory.Sequence(lambda n: f"Import Operator {n}")
    is_active = True
