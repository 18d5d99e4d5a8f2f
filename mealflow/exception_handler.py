"""
Unified exception handler.

Registered as DRF's EXCEPTION_HANDLER. The front end tells outcomes apart
with one rule:
  response.type present  -> something went wrong
  no type field          -> success

Error body:
{
    "type":    "input_error" | "not_found" | "validation_error" | "invalid_state" | "error",
    "code":    "PATIENT_NOT_FOUND",
    "message": "Patient not found",
    "detail":  { ... }  // optional
}
"""

import logging

from django.db import DatabaseError
from django.http import JsonResponse
from rest_framework.exceptions import ParseError
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.views import exception_handler as drf_default_handler

from .exceptions import BaseAppException, StorageError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = 'Internal server error'


def _storage_failure_response():
    body = {
        'type': StorageError.type,
        'code': StorageError.code,
        'message': GENERIC_ERROR_MESSAGE,
    }
    return JsonResponse(body, status=StorageError.http_status)


def unified_exception_handler(exc, context):
    """
    DRF exception handler entry point.

    Priority:
    1. StorageError / DatabaseError -> logged with traceback, generic 500
    2. BaseAppException subclasses  -> unified format, message verbatim
    3. DRF ParseError / ValidationError (bad JSON etc.) -> input_error 400
    4. anything else                -> DRF default handling
    """
    view = context.get('view')
    view_name = type(view).__name__ if view is not None else '-'

    # --- 1. persistence failures: detail stays in the log ---
    if isinstance(exc, (StorageError, DatabaseError)):
        logger.error("[API] storage failure in %s: %s", view_name, exc, exc_info=exc)
        return _storage_failure_response()

    # --- 2. our own exceptions ---
    if isinstance(exc, BaseAppException):
        body = {
            'type': exc.type,
            'code': exc.code,
            'message': exc.message,
        }
        if exc.detail is not None:
            body['detail'] = exc.detail
        return JsonResponse(body, status=exc.http_status)

    # --- 3. DRF's own request errors ---
    if isinstance(exc, (ParseError, DRFValidationError)):
        body = {
            'type': 'input_error',
            'code': 'INVALID_INPUT',
            'message': 'Request could not be parsed',
            'detail': exc.detail,
        }
        return JsonResponse(body, status=400)

    # --- 4. the rest goes to DRF ---
    return drf_default_handler(exc, context)
