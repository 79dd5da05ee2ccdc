"""
API error types and the project wide exception handler.

Every error leaves the API in the same envelope::

    {"ok": false, "error": {"code": "<code>", "message": <str or dict>}}

``code`` is one of ``invalid_argument``, ``conflict``, ``not_found``,
``unauthorized``, ``unauthenticated``, ``forbidden``,
``awaiting_approval``, ``throttled``, ``timeout`` or ``internal``.
"""
from __future__ import annotations

import logging

import requests
from django.conf import settings
from django.db import IntegrityError, OperationalError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler, set_rollback

logger = logging.getLogger(__name__)


class InvalidArgument(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid argument.'
    default_code = 'invalid_argument'


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'conflict'


class NotFound(exceptions.APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class Unauthorized(exceptions.APIException):
    """Bad credentials.  The message never says which part was wrong."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Invalid credentials.'
    default_code = 'unauthorized'


class Forbidden(exceptions.APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Insufficient permissions.'
    default_code = 'forbidden'


class AwaitingApproval(exceptions.APIException):
    """A doctor authenticated but the clinic has not approved the profile yet."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Waiting for clinic approval.'
    default_code = 'awaiting_approval'

    def __init__(self, detail=None, code=None, *, extra: dict | None = None):
        super().__init__(detail, code)
        self.extra = extra or {}


class Timeout(exceptions.APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Store unavailable, try again later.'
    default_code = 'timeout'


_DRF_CODES = (
    (exceptions.ValidationError, 'invalid_argument'),
    (exceptions.ParseError, 'invalid_argument'),
    (exceptions.UnsupportedMediaType, 'invalid_argument'),
    (exceptions.NotAuthenticated, 'unauthenticated'),
    (exceptions.AuthenticationFailed, 'unauthenticated'),
    (exceptions.PermissionDenied, 'forbidden'),
    (exceptions.NotFound, 'not_found'),
    (exceptions.MethodNotAllowed, 'method_not_allowed'),
    (exceptions.Throttled, 'throttled'),
)

_OWN_ERRORS = (InvalidArgument, Conflict, NotFound, Unauthorized, Forbidden, AwaitingApproval, Timeout)


def _error_code(exc) -> str:
    if isinstance(exc, _OWN_ERRORS):
        return exc.default_code
    if isinstance(exc, Http404):
        return 'not_found'
    for klass, code in _DRF_CODES:
        if isinstance(exc, klass):
            return code
    return 'api_error'


def _envelope(code: str, message, status_code: int, extra: dict | None = None) -> Response:
    body = {'ok': False, 'error': {'code': code, 'message': message}}
    if extra:
        body.update(extra)
    return Response(body, status=status_code)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is not None:
        # normalize response
        if isinstance(resp.data, dict):
            detail = resp.data.get('detail') or resp.data
        else:
            detail = resp.data
        out = _envelope(_error_code(exc), detail, resp.status_code, getattr(exc, 'extra', None))
        for header in ('WWW-Authenticate', 'Retry-After'):
            if header in resp:
                out[header] = resp[header]
        return out

    set_rollback()
    request = context.get('request')
    where = getattr(request, 'path', '-')
    if isinstance(exc, (OperationalError, requests.Timeout, requests.ConnectionError)):
        logger.warning('store or upstream unavailable in %s: %s', where, exc)
        return _envelope('timeout', Timeout.default_detail, status.HTTP_503_SERVICE_UNAVAILABLE)
    if isinstance(exc, IntegrityError):
        logger.info('integrity error in %s: %s', where, exc)
        return _envelope('conflict', Conflict.default_detail, status.HTTP_409_CONFLICT)
    logger.exception('unhandled error in %s', where)
    message = str(exc) if settings.DEBUG else 'Internal server error'
    return _envelope('internal', message, status.HTTP_500_INTERNAL_SERVER_ERROR)
