"""
JWT Authentication for FinMo
"""

import jwt
import logging
from datetime import datetime, timedelta, timezone

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

logger = logging.getLogger(__name__)


class JWTAuthentication(BaseAuthentication):
    def authenticate_header(self, request):
        return 'Bearer'

    def authenticate(self, request):
        auth_header = request.headers.get('Authorization', '')

        if not auth_header.startswith('Bearer '):
            return None

        token = auth_header[7:]

        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=['HS256']
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationFailed('Token has expired')
        except jwt.InvalidTokenError:
            raise AuthenticationFailed('Invalid token')

        if payload.get('type') != 'access':
            raise AuthenticationFailed('Invalid token type')

        from accounts.models import Account
        try:
            account = Account.objects.get(id=payload['user_id'], is_active=True)
        except (Account.DoesNotExist, DjangoValidationError, KeyError, ValueError):
            raise AuthenticationFailed('Account not found')

        return (account, token)


def generate_access_token(account):
    payload = {
        'user_id': str(account.id),
        'phone': account.phone_number,
        'exp': datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_ACCESS_TOKEN_LIFETIME_MINUTES),
        'iat': datetime.now(timezone.utc),
        'type': 'access',
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm='HS256')


def generate_refresh_token(account):
    """
    Long-lived token returned alongside the access token.

    No endpoint redeems it yet; session refresh is handled client-side by
    repeating the OTP flow. JWTAuthentication refuses it as an access token.
    """
    payload = {
        'user_id': str(account.id),
        'exp': datetime.now(timezone.utc) + timedelta(days=settings.JWT_REFRESH_TOKEN_LIFETIME_DAYS),
        'iat': datetime.now(timezone.utc),
        'type': 'refresh',
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm='HS256')
