from __future__ import annotations

from enum import Enum

from starlette import status


class ErrorCode(str, Enum):
    """Application error catalogue.

    Each member carries the public error code, the owning domain, a short
    machine-friendly label, the default human readable message and the HTTP
    status used when the error reaches the API boundary.
    """

    COMMON_VALIDATION_ERROR = (
        "E00001",
        "COMMON",
        "VALIDATION_ERROR",
        "Request validation failed",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    COMMON_UNAUTHENTICATED = (
        "E00002",
        "COMMON",
        "UNAUTHENTICATED",
        "Authentication is required",
        status.HTTP_401_UNAUTHORIZED,
    )
    COMMON_PERMISSION_DENIED = (
        "E00003",
        "COMMON",
        "PERMISSION_DENIED",
        "You do not have permission to perform this action",
        status.HTTP_403_FORBIDDEN,
    )
    COMMON_RESOURCE_NOT_FOUND = (
        "E00004",
        "COMMON",
        "RESOURCE_NOT_FOUND",
        "Resource not found",
        status.HTTP_404_NOT_FOUND,
    )
    COMMON_UNEXPECTED_ERROR = (
        "E00999",
        "COMMON",
        "UNEXPECTED_ERROR",
        "An unexpected error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

    ADMIN_AUTH_ADMIN_TOKEN_INVALID = (
        "E01001",
        "ADMIN_AUTH",
        "ADMIN_TOKEN_INVALID",
        "Admin token is invalid or expired",
        status.HTTP_401_UNAUTHORIZED,
    )
    ADMIN_AUTH_ADMIN_TOKEN_SCOPE_INVALID = (
        "E01002",
        "ADMIN_AUTH",
        "ADMIN_TOKEN_SCOPE_INVALID",
        "Admin token does not grant the admin role",
        status.HTTP_403_FORBIDDEN,
    )
    ADMIN_AUTH_ADMIN_NOT_FOUND_OR_INACTIVE = (
        "E01003",
        "ADMIN_AUTH",
        "ADMIN_NOT_FOUND_OR_INACTIVE",
        "Admin user not found or inactive",
        status.HTTP_403_FORBIDDEN,
    )

    IMPORT_MODEL_NOT_FOUND = (
        "E02001",
        "IMPORT",
        "MODEL_NOT_FOUND",
        "Assessment model not found",
        status.HTTP_404_NOT_FOUND,
    )
    IMPORT_REJECTED = (
        "E02002",
        "IMPORT",
        "REJECTED",
        "Import payload failed validation",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    IMPORT_FAILED = (
        "E02003",
        "IMPORT",
        "FAILED",
        "Import could not be persisted",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    IMPORT_BATCH_NOT_FOUND = (
        "E02004",
        "IMPORT",
        "BATCH_NOT_FOUND",
        "Import batch not found",
        status.HTTP_404_NOT_FOUND,
    )
    IMPORT_INVALID_FILTER = (
        "E02005",
        "IMPORT",
        "INVALID_FILTER",
        "Query parameters are invalid",
        status.HTTP_400_BAD_REQUEST,
    )

    def __new__(cls, code: str, domain: str, label: str, message: str, http_status: int) -> "ErrorCode":
        member = str.__new__(cls, code)
        member._value_ = code
        member.domain = domain
        member.label = label
        member.message = message
        member.http_status = http_status
        return member


__all__ = ["ErrorCode"]
