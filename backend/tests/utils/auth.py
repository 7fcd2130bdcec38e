from __future__ import annotations

from assessment_import.core.security import create_access_token


def auth_header_for(admin_id: int, *, role: str = "admin") -> dict[str, str]:
    token = create_access_token(str(admin_id), extra={"role": role}, expires_delta_minutes=15)
    return {"Authorization": f"Bearer {token}"}


__all__ = ["auth_header_for"]
