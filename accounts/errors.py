"""
Error taxonomy shared by the OTP, session and transfer services.

Services report business outcomes as result dicts rather than raising:
    {'success': False, 'error_code': ErrorCode.X, 'message': '...'}
Views map error_code to an HTTP status per handler.
"""

import enum
import logging

from rest_framework.exceptions import (
    AuthenticationFailed, NotAuthenticated, ValidationError,
)
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ErrorCode(str, enum.Enum):
    VALIDATION_ERROR = 'VALIDATION_ERROR'
    RATE_LIMITED = 'RATE_LIMITED'
    EXPIRED = 'EXPIRED'
    NOT_FOUND = 'NOT_FOUND'
    MISMATCH = 'MISMATCH'
    TOO_MANY_ATTEMPTS = 'TOO_MANY_ATTEMPTS'
    EXPIRED_VERIFICATION = 'EXPIRED_VERIFICATION'
    ACCOUNT_NOT_FOUND = 'ACCOUNT_NOT_FOUND'
    ACCOUNT_EXISTS = 'ACCOUNT_EXISTS'
    SESSION_MINT_FAILURE = 'SESSION_MINT_FAILURE'
    DOWNSTREAM_ERROR = 'DOWNSTREAM_ERROR'
    RECIPIENT_NOT_FOUND = 'RECIPIENT_NOT_FOUND'
    SELF_TRANSFER = 'SELF_TRANSFER'
    INSUFFICIENT_BALANCE = 'INSUFFICIENT_BALANCE'
    SYSTEM_ERROR = 'SYSTEM_ERROR'

    def __str__(self):
        return self.value


def ok(message='', **data):
    return {'success': True, 'message': message, **data}


def fail(error_code, message, **data):
    return {'success': False, 'error_code': ErrorCode(error_code), 'message': message, **data}


def error_body(result):
    """Render a failed service result as the JSON body clients receive."""
    body = {'success': False, 'error': result['message'], 'errorCode': str(result['error_code'])}
    for key in ('attemptsRemaining', 'minutesLeft'):
        if key in result:
            body[key] = result[key]
    return body


def _flatten_detail(detail):
    if isinstance(detail, dict):
        for value in detail.values():
            return _flatten_detail(value)
        return ''
    if isinstance(detail, list):
        return _flatten_detail(detail[0]) if detail else ''
    return str(detail)


def api_exception_handler(exc, context):
    """DRF exception handler: reshape framework errors into {success, error, errorCode}."""
    response = exception_handler(exc, context)
    if response is None:
        logger.error('Unhandled API error in %s: %s', context.get('view'), exc, exc_info=True)
        return response

    if isinstance(exc, ValidationError):
        code = ErrorCode.VALIDATION_ERROR.value
        message = _flatten_detail(exc.detail)
    elif isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
        code = 'UNAUTHORIZED'
        message = _flatten_detail(exc.detail)
    else:
        code = getattr(exc, 'default_code', 'error').upper()
        message = _flatten_detail(getattr(exc, 'detail', str(exc)))

    response.data = {'success': False, 'error': message, 'errorCode': code}
    return response
