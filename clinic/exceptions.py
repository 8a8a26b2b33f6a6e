"""
API error types and the project-wide DRF exception handler.

Services raise these exceptions; views let them propagate and
:func:`api_exception_handler` renders every failure as the
``{success: false, message, error}`` envelope.
"""
from __future__ import annotations

import logging

from django.conf import settings
from rest_framework import exceptions, status
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class BadRequest(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request.'
    default_code = 'validation_error'


class InvalidTransition(BadRequest):
    default_detail = 'Invalid status transition.'


class DuplicateEmail(BadRequest):
    default_detail = 'User already exists with this email.'
    default_code = 'duplicate_email'


class DuplicateRecord(BadRequest):
    default_detail = 'A record with these details already exists.'
    default_code = 'duplicate_record'


class InvalidCredentials(exceptions.AuthenticationFailed):
    default_detail = 'Invalid email or password.'
    default_code = 'invalid_credentials'


class AccountDisabled(exceptions.AuthenticationFailed):
    default_detail = 'Account is deactivated. Please contact administrator.'
    default_code = 'account_disabled'


class InvalidToken(exceptions.AuthenticationFailed):
    default_detail = 'Invalid token or token expired.'
    default_code = 'invalid_token'


class StaleToken(exceptions.AuthenticationFailed):
    default_detail = 'User recently changed password. Please log in again.'
    default_code = 'stale_token'


class Forbidden(exceptions.PermissionDenied):
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'


class PatientNotFound(exceptions.NotFound):
    default_detail = 'Patient not found.'


class DoctorNotFound(exceptions.NotFound):
    default_detail = 'Doctor not found.'


class SlotConflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Doctor is not available at this time slot.'
    default_code = 'slot_conflict'


# DRF's built-in codes mapped onto the envelope's error codes.
_CODE_ALIASES = {
    'not_authenticated': 'missing_token',
    'authentication_failed': 'invalid_token',
    'permission_denied': 'forbidden',
    'invalid': 'validation_error',
    'parse_error': 'validation_error',
}


def _first_message(data) -> str:
    if isinstance(data, dict):
        for value in data.values():
            return _first_message(value)
    if isinstance(data, (list, tuple)) and data:
        return _first_message(data[0])
    return str(data)


def api_exception_handler(exc, context):
    # rest_framework.views loads the authentication classes, which import this module.
    from rest_framework.views import exception_handler as drf_exception_handler

    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception('Unhandled error in %s', view.__class__.__name__ if view else 'view')
        body = {'success': False, 'message': 'Internal server error', 'error': 'server_error'}
        if settings.DEBUG:
            body['detail'] = str(exc)
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, exceptions.ValidationError):
        body = {
            'success': False,
            'message': _first_message(resp.data),
            'error': 'validation_error',
            'errors': resp.data,
        }
        return Response(body, status=resp.status_code, headers=_passthrough_headers(resp))

    codes = exc.get_codes() if isinstance(exc, exceptions.APIException) else None
    code = codes if isinstance(codes, str) else 'api_error'
    if resp.status_code == status.HTTP_404_NOT_FOUND:
        code = 'not_found'
    elif resp.status_code == status.HTTP_403_FORBIDDEN and code == 'api_error':
        code = 'forbidden'
    code = _CODE_ALIASES.get(code, code)

    if isinstance(resp.data, dict) and 'detail' in resp.data:
        message = str(resp.data['detail'])
    else:
        message = _first_message(resp.data)
    if resp.status_code == status.HTTP_401_UNAUTHORIZED:
        logger.warning('Authentication rejected (%s): %s', code, message)
    return Response(
        {'success': False, 'message': message, 'error': code},
        status=resp.status_code,
        headers=_passthrough_headers(resp),
    )


def _passthrough_headers(resp) -> dict:
    return {k: v for k, v in resp.items() if k in ('WWW-Authenticate', 'Retry-After')}
