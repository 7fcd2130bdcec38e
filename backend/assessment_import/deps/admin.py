from collections.abc import Iterator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from assessment_import.core.errors import ErrorCode
from assessment_import.core.exceptions import raise_app_error
from assessment_import.core.security import validate_jwt_token
from assessment_import.db.session import SessionLocal
from assessment_import.models.admin_user import AdminUser


security = HTTPBearer()


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> AdminUser:
    """Resolve the bearer token's ``sub`` claim to an active admin user."""

    claims = validate_jwt_token(
        credentials.credentials,
        required_roles={"admin"},
        error_on_invalid=ErrorCode.ADMIN_AUTH_ADMIN_TOKEN_INVALID,
        error_on_expired=ErrorCode.ADMIN_AUTH_ADMIN_TOKEN_INVALID,
        error_on_forbidden=ErrorCode.ADMIN_AUTH_ADMIN_TOKEN_SCOPE_INVALID,
    )

    try:
        admin_id = int(claims.subject)
    except (TypeError, ValueError):
        raise_app_error(ErrorCode.ADMIN_AUTH_ADMIN_TOKEN_INVALID)

    admin = db.get(AdminUser, admin_id)
    if admin is None or not admin.is_active:
        raise_app_error(ErrorCode.ADMIN_AUTH_ADMIN_NOT_FOUND_OR_INACTIVE)
    return admin


__all__ = ["get_current_admin", "get_db", "security"]
