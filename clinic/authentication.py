"""
Bearer token authentication.

Tokens are simplejwt access tokens carrying the user id in the ``id``
claim.  The header may be ``Bearer <token>`` or the bare token.  Beyond
signature and expiry, a token is rejected when the account's password
changed after the token's ``iat``.
"""
from __future__ import annotations

from rest_framework_simplejwt import authentication
from rest_framework_simplejwt.exceptions import InvalidToken as JWTInvalidToken
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

from .exceptions import AccountDisabled, InvalidToken, StaleToken
from .models import User


def issue_token(user: User) -> str:
    """Return a signed access token for ``user``."""
    return str(AccessToken.for_user(user))


class JWTAuthentication(authentication.JWTAuthentication):

    def get_raw_token(self, header: bytes):
        parts = header.split()
        if not parts:
            return None
        if len(parts) == 1:
            return parts[0]
        if len(parts) == 2 and parts[0].decode('latin-1').lower() == 'bearer':
            return parts[1]
        raise InvalidToken('Authorization header must be "Bearer <token>".')

    def get_validated_token(self, raw_token: bytes):
        try:
            return super().get_validated_token(raw_token)
        except JWTInvalidToken:
            raise InvalidToken()

    def get_user(self, validated_token) -> User:
        user_id = validated_token.get(api_settings.USER_ID_CLAIM)
        if user_id is None:
            raise InvalidToken()
        user = User.objects.filter(pk=user_id).first()
        if user is None:
            raise InvalidToken('User belonging to this token no longer exists.')
        if user.changed_password_after(validated_token.get('iat')):
            raise StaleToken()
        if not user.is_active:
            raise AccountDisabled()
        return user
