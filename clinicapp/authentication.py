"""
Bearer token authentication for the API.

Sessions are signed JWT access tokens issued by
``djangorestframework-simplejwt``.  Keeping the subclass here gives the
settings module a stable import path and keeps view modules out of the
authentication import chain, which avoids circular imports when Django
REST framework loads its authentication classes.
"""
from __future__ import annotations

from rest_framework_simplejwt.authentication import JWTAuthentication as _JWTAuthentication
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.tokens import AccessToken


class JWTAuthentication(_JWTAuthentication):
    """``Authorization: Bearer <access token>`` resolved to an active account.

    Disabled accounts are refused by the parent class, so disabling an
    account also ends its live sessions.
    """

    www_authenticate_realm = 'clinic'


def account_from_token(raw_token: str):
    """Resolve a raw access token outside a DRF request (WebSocket handshakes).

    Returns ``None`` when the token is invalid or the account is disabled.
    """
    auth = JWTAuthentication()
    try:
        validated = AccessToken(raw_token)
        return auth.get_user(validated)
    except (TokenError, InvalidToken, AuthenticationFailed):
        return None
