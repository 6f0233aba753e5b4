# renobudget/errors.py
from typing import Dict, Optional

from pydantic import ValidationError

from renobudget.schemas.error_type import ErrorType


class DomainError(Exception):
    """Base class of every failure the request surface knows how to map."""

    status_code = 500
    error_type = ErrorType.SYSTEM_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {
            "success": False,
            "error": self.message,
            "errorType": self.error_type.value,
        }


class ValidationFailure(DomainError, ValueError):
    status_code = 400
    error_type = ErrorType.VALIDATION_ERROR

    def __init__(self, message: str, fields: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.fields = fields or {}

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["fields"] = self.fields
        return payload


class Unauthenticated(DomainError):
    status_code = 401
    error_type = ErrorType.UNAUTHENTICATED


class PermissionDenied(DomainError, PermissionError):
    status_code = 403
    error_type = ErrorType.PERMISSION_DENIED


class NotFound(DomainError, LookupError):
    status_code = 404
    error_type = ErrorType.NOT_FOUND


class Conflict(DomainError):
    status_code = 409
    error_type = ErrorType.CONFLICT


class PersistenceFailure(DomainError):
    status_code = 500
    error_type = ErrorType.PERSISTENCE_ERROR

    def __init__(self, message: str, transient: bool = False):
        super().__init__(message)
        self.transient = transient


def validation_failure_from_pydantic(exc: ValidationError, prefix: str = "") -> ValidationFailure:
    '''
    Convert a pydantic ValidationError into a field-keyed ValidationFailure.

    :param exc: error raised by model_validate
    :param prefix: dotted path of the payload part that was validated, e.g. "items.3"
    :return: ValidationFailure whose fields map "items.0.quantity" -> message
    '''
    fields: Dict[str, str] = {}
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        key = ".".join(p for p in (prefix, loc) if p) or "payload"
        fields.setdefault(key, err.get("msg", "invalid value"))
    return ValidationFailure("Validation failed", fields)
