"""Error kinds surfaced by the creative lab API.

Each one is an HTTPException so it flows through FastAPI the same way as the
service's ad hoc HTTP errors: the caller gets ``{"detail": message}`` and the
status code below.
"""

import enum

from fastapi import HTTPException, status


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    LOCKED = "locked"
    UPLOAD_REJECTED = "upload_rejected"
    EXTERNAL_SERVICE = "external_service"


class CreativeLabError(HTTPException):
    kind: ErrorKind
    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code_default, detail=detail)


class NotFound(CreativeLabError):
    kind = ErrorKind.NOT_FOUND
    status_code_default = status.HTTP_404_NOT_FOUND


class ValidationError(CreativeLabError):
    kind = ErrorKind.VALIDATION
    status_code_default = status.HTTP_400_BAD_REQUEST


class LockedError(CreativeLabError):
    kind = ErrorKind.LOCKED
    status_code_default = status.HTTP_409_CONFLICT


class UploadRejected(CreativeLabError):
    kind = ErrorKind.UPLOAD_REJECTED
    status_code_default = status.HTTP_400_BAD_REQUEST


class ExternalServiceError(CreativeLabError):
    kind = ErrorKind.EXTERNAL_SERVICE
    status_code_default = status.HTTP_502_BAD_GATEWAY


_ERRORS_BY_KIND = {
    ErrorKind.NOT_FOUND: NotFound,
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.LOCKED: LockedError,
    ErrorKind.UPLOAD_REJECTED: UploadRejected,
    ErrorKind.EXTERNAL_SERVICE: ExternalServiceError,
}


def error_for(kind: ErrorKind, message: str) -> CreativeLabError:
    return _ERRORS_BY_KIND[kind](message)
