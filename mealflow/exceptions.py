"""
Unified exception system.

Every business exception derives from BaseAppException and carries:
- type:        error category (input_error / not_found / validation_error / ...)
- code:        machine-readable code (PATIENT_NOT_FOUND / UNKNOWN_RECIPE / ...)
- message:     human-readable description
- detail:      optional extra payload (dict / list / None)
- http_status: HTTP status used by the exception handler

Services only raise; exception_handler renders the response.
"""


class BaseAppException(Exception):
    """Base class for all application exceptions."""

    type = 'error'
    code = 'UNKNOWN_ERROR'
    http_status = 500

    def __init__(self, message, code=None, detail=None, http_status=None):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)


class InputShapeError(BaseAppException):
    """Malformed or missing request fields. Raised before storage is touched, 400."""

    type = 'input_error'
    code = 'INVALID_INPUT'
    http_status = 400


class NotFoundError(BaseAppException):
    """A patient / tray / meal request id does not resolve, 404."""

    type = 'not_found'
    code = 'NOT_FOUND'
    http_status = 404


class ValidationError(BaseAppException):
    """
    Safety-rule violation for a meal request, 422.

    message is the newline-joined list of violations; detail['violations']
    keeps them as a list.
    """

    type = 'validation_error'
    code = 'SAFETY_VIOLATION'
    http_status = 422


class InvalidStateError(BaseAppException):
    """Illegal state transition, e.g. advancing a retrieved tray, 400."""

    type = 'invalid_state'
    code = 'INVALID_STATE'
    http_status = 400


class StorageError(BaseAppException):
    """
    Unexpected persistence failure, 500.

    The message is logged server-side only; callers get a generic message.
    """

    type = 'error'
    code = 'STORAGE_ERROR'
    http_status = 500
