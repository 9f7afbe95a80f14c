"""
Error taxonomy for the registration flows.

Lower layers (normalizer, validator, encryptor) raise these; the flow engine and
the dispatcher convert every one of them into a FlowResult before it reaches a
caller.
"""
from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Dict, List, Optional

import httpx


class ErrorType(Enum):
    VALIDATION = HTTPStatus.BAD_REQUEST
    AUTHENTICATION = HTTPStatus.UNAUTHORIZED
    AUTHORIZATION = HTTPStatus.FORBIDDEN
    NOT_FOUND = HTTPStatus.NOT_FOUND
    CONFLICT = HTTPStatus.CONFLICT
    CONNECTION = HTTPStatus.SERVICE_UNAVAILABLE
    INTERNAL_SERVER_ERROR = HTTPStatus.INTERNAL_SERVER_ERROR

    @property
    def status_code(self) -> int:
        return int(self.value)

    @property
    def status_message(self) -> str:
        return self.value.phrase

    @classmethod
    def from_status(cls, status_code: int) -> "ErrorType":
        mapping = {
            400: cls.VALIDATION,
            401: cls.AUTHENTICATION,
            403: cls.AUTHORIZATION,
            404: cls.NOT_FOUND,
            409: cls.CONFLICT,
            503: cls.CONNECTION,
        }
        return mapping.get(int(status_code), cls.INTERNAL_SERVER_ERROR)


class EhrApiError(Exception):
    """Base error for everything that talks to, or prepares a call for, the EHR gateway."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.INTERNAL_SERVER_ERROR,
        status_code: Optional[int] = None,
        status_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.status_code = int(status_code) if status_code is not None else error_type.status_code
        self.status_message = status_message or error_type.status_message

    def __repr__(self) -> str:
        return (
            f"EhrApiError(message={self.message!r}, statusMessage={self.status_message!r}, "
            f"statusCode={self.status_code}, errorType={self.error_type.name})"
        )

    @classmethod
    def from_response(cls, resp: httpx.Response) -> "EhrApiError":
        body = ""
        try:
            body = (resp.text or "")[:500]
        except Exception:
            body = ""
        return cls(
            f"Error: {body}" if body else f"HTTP {resp.status_code}",
            error_type=ErrorType.from_status(resp.status_code),
            status_code=resp.status_code,
            status_message=resp.reason_phrase or None,
        )

    @classmethod
    def from_exception(cls, exc: Exception) -> "EhrApiError":
        if isinstance(exc, EhrApiError):
            return exc
        if isinstance(exc, httpx.HTTPStatusError):
            return cls.from_response(exc.response)
        if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
            return cls(f"Connection error: {exc}", error_type=ErrorType.CONNECTION)
        return cls(f"Unexpected Error: {exc}", error_type=ErrorType.INTERNAL_SERVER_ERROR)


class MalformedPayload(EhrApiError):
    def __init__(self, message: str):
        super().__init__(message, error_type=ErrorType.VALIDATION)


class ValidationFailed(EhrApiError):
    def __init__(self, field_errors: List[Dict[str, str]]):
        self.field_errors = list(field_errors)
        detail = ", ".join(f"{e['field']}: {e['message']}" for e in self.field_errors)
        super().__init__(detail or "invalid payload", error_type=ErrorType.VALIDATION)


class RemoteStepFailure(EhrApiError):
    pass


class UnknownStep(EhrApiError):
    def __init__(self, alias):
        self.alias = alias
        super().__init__(f"Invalid step: {alias}", error_type=ErrorType.VALIDATION)


class EncryptionError(EhrApiError):
    def __init__(self, message: str):
        super().__init__(message, error_type=ErrorType.INTERNAL_SERVER_ERROR)
