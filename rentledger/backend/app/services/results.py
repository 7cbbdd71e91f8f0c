from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

from fastapi import HTTPException

T = TypeVar("T")

INVALID = "invalid"
UNAUTHORIZED = "unauthorized"
NOT_FOUND = "not_found"

_HTTP_STATUS = {INVALID: 422, UNAUTHORIZED: 403, NOT_FOUND: 404}


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None  # invalid | unauthorized | not_found
    message: Optional[str] = None
    field_errors: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def success(cls, value: T) -> "ServiceResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def invalid(cls, field_errors: dict[str, list[str]], message: str = "validation failed") -> "ServiceResult[Any]":
        return cls(ok=False, error=INVALID, message=message, field_errors=field_errors)

    @classmethod
    def unauthorized(cls, message: str) -> "ServiceResult[Any]":
        return cls(ok=False, error=UNAUTHORIZED, message=message)

    @classmethod
    def not_found(cls, message: str) -> "ServiceResult[Any]":
        return cls(ok=False, error=NOT_FOUND, message=message)

    def unwrap_or_http(self) -> T:
        """Router helper: the value, or the matching HTTPException."""
        if self.ok:
            return self.value  # type: ignore[return-value]
        detail: Any = self.message
        if self.field_errors:
            detail = {"message": self.message, "errors": self.field_errors}
        raise HTTPException(status_code=_HTTP_STATUS.get(self.error or "", 400), detail=detail)
