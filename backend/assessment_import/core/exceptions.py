from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from assessment_import.core.errors import ErrorCode

logger = logging.getLogger(__name__)


class BaseAppException(Exception):
    """Error rendered as ``{"error": {code, domain, name, message, detail?, extra?}}``."""

    def __init__(
        self,
        error_code: ErrorCode,
        *,
        detail: Any | None = None,
        extra: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(error_code.value)
        self.error_code = error_code
        self.detail = detail
        self.extra = extra or {}
        self.status_code = status_code or error_code.http_status

    def to_response_body(self) -> dict[str, Any]:
        error: dict[str, Any] = {
            "code": self.error_code.value,
            "domain": self.error_code.domain,
            "name": self.error_code.label,
            "message": self.error_code.message,
        }
        if self.detail not in (None, ""):
            error["detail"] = self.detail
        if self.extra:
            error["extra"] = self.extra
        return {"error": error}


def raise_app_error(
    error_code: ErrorCode,
    *,
    detail: Any | None = None,
    extra: dict[str, Any] | None = None,
    status_code: int | None = None,
) -> None:
    raise BaseAppException(error_code, detail=detail, extra=extra, status_code=status_code)


def format_error_locations(errors: Iterable[Mapping[str, Any]], *, skip: tuple[str, ...] = ()) -> list[str]:
    """Render pydantic errors as ``"a.0.b: message"`` lines."""

    lines: list[str] = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if str(part) not in skip]
        message = error.get("msg", "Invalid value")
        lines.append(f"{'.'.join(location)}: {message}" if location else message)
    return lines


def _build_response(exc: BaseAppException) -> JSONResponse:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Request failed with %s (%s): %s", exc.error_code.value, exc.error_code.label, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_response_body()))


async def base_exception_handler(_: Request, exc: BaseAppException) -> JSONResponse:
    return _build_response(exc)


def _from_http_exception(exc: StarletteHTTPException) -> BaseAppException:
    detail = exc.detail
    status_code = exc.status_code

    if status_code == status.HTTP_401_UNAUTHORIZED:
        return BaseAppException(ErrorCode.COMMON_UNAUTHENTICATED, detail=detail)
    if status_code == status.HTTP_403_FORBIDDEN:
        # HTTPBearer answers 403 "Not authenticated" when the header is missing
        if isinstance(detail, str) and detail.lower() == "not authenticated":
            return BaseAppException(
                ErrorCode.COMMON_UNAUTHENTICATED,
                detail=detail,
                status_code=status.HTTP_401_UNAUTHORIZED,
            )
        return BaseAppException(ErrorCode.COMMON_PERMISSION_DENIED, detail=detail, status_code=status_code)
    if status_code == status.HTTP_404_NOT_FOUND:
        return BaseAppException(ErrorCode.COMMON_RESOURCE_NOT_FOUND, detail=detail)
    return BaseAppException(
        ErrorCode.COMMON_UNEXPECTED_ERROR,
        detail=detail,
        status_code=status_code,
    )


async def http_exception_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _build_response(_from_http_exception(exc))


async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return _build_response(
        BaseAppException(
            ErrorCode.COMMON_VALIDATION_ERROR,
            detail="Request validation failed",
            extra={"errors": format_error_locations(exc.errors(), skip=("body",))},
        )
    )


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception", exc_info=exc)
    return _build_response(BaseAppException(ErrorCode.COMMON_UNEXPECTED_ERROR))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAppException, base_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    "BaseAppException",
    "format_error_locations",
    "raise_app_error",
    "register_exception_handlers",
]
