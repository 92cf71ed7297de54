"""
Session exchange - turns a freshly verified phone into a JWT session.
"""

import logging
from datetime import timedelta

import jwt
from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from accounts.authentication import generate_access_token, generate_refresh_token
from accounts.errors import ErrorCode, fail, ok
from accounts.models import Account, PhoneVerification
from accounts.phone import mask_phone, normalize_phone

logger = logging.getLogger(__name__)

_DEFAULT_EXCHANGE_WINDOW_MINUTES = 5


def _recent_verification(phone):
    """Latest verification for phone issued and confirmed inside the exchange window, locked."""
    window = getattr(settings, 'SESSION_EXCHANGE_WINDOW_MINUTES', _DEFAULT_EXCHANGE_WINDOW_MINUTES)
    cutoff = timezone.now() - timedelta(minutes=window)
    return (
        PhoneVerification.objects.select_for_update()
        .filter(phone=phone, verified=True, created_at__gte=cutoff, verified_at__gte=cutoff)
        .order_by('-created_at', '-id')
        .first()
    )


def _mint_tokens(account):
    try:
        access_token = generate_access_token(account)
        refresh_token = generate_refresh_token(account)
    except (jwt.PyJWTError, TypeError, ValueError) as e:
        logger.error(f'Session mint failed for account {account.id}: {e}', exc_info=True)
        return None
    if not access_token or not refresh_token:
        logger.error(f'Session mint returned empty tokens for account {account.id}')
        return None
    return access_token, refresh_token


def exchange_session(phone):
    """
    Exchange a just-verified phone for an access/refresh token pair.

    The verification is consumed (verified flipped back to False) so the
    same confirmation cannot mint a second session.
    """
    validation = normalize_phone(phone)
    if not validation['valid']:
        return fail(ErrorCode.VALIDATION_ERROR, validation['error'])
    phone = validation['normalized']

    with transaction.atomic():
        verification = _recent_verification(phone)
        if not verification:
            logger.info(f'exchange_session: no recent verification for {mask_phone(phone)}')
            return fail(
                ErrorCode.EXPIRED_VERIFICATION,
                'Phone verification expired or not found. Please verify your phone again.',
            )

        account = Account.objects.filter(phone_number=phone, is_active=True).first()
        if not account:
            return fail(ErrorCode.ACCOUNT_NOT_FOUND, 'No account found with this phone number')

        tokens = _mint_tokens(account)
        if not tokens:
            return fail(ErrorCode.SESSION_MINT_FAILURE, 'Failed to generate session')

        verification.verified = False
        verification.save(update_fields=['verified'])

    access_token, refresh_token = tokens
    logger.info(f'OTP login successful for account: {account.id}')
    return ok(
        'Login successful',
        access_token=access_token,
        refresh_token=refresh_token,
        email=account.email,
        account=account,
    )


def register_account(phone, display_name=''):
    """
    Create a phone-first account from a just-verified phone and log it in.

    Opens a zero balance for every supported token.
    """
    from wallet.models import WalletBalance

    validation = normalize_phone(phone)
    if not validation['valid']:
        return fail(ErrorCode.VALIDATION_ERROR, validation['error'])
    phone = validation['normalized']

    try:
        with transaction.atomic():
            verification = _recent_verification(phone)
            if not verification:
                return fail(
                    ErrorCode.EXPIRED_VERIFICATION,
                    'Phone verification expired or not found. Please verify your phone again.',
                )

            if Account.objects.filter(phone_number=phone).exists():
                return fail(ErrorCode.ACCOUNT_EXISTS, 'An account with this phone number already exists')

            account = Account.objects.create_user(phone_number=phone, display_name=display_name or '')
            WalletBalance.objects.bulk_create([
                WalletBalance(account=account, token=symbol)
                for symbol in settings.SUPPORTED_TOKENS
            ])

            tokens = _mint_tokens(account)
            if not tokens:
                transaction.set_rollback(True)
                return fail(ErrorCode.SESSION_MINT_FAILURE, 'Failed to generate session')

            verification.verified = False
            verification.save(update_fields=['verified'])
    except IntegrityError:
        logger.warning(f'register_account: concurrent sign-up for {mask_phone(phone)}')
        return fail(ErrorCode.ACCOUNT_EXISTS, 'An account with this phone number already exists')

    access_token, refresh_token = tokens
    logger.info(f'Account created: {account.id} ({mask_phone(phone)})')
    return ok(
        'Account created',
        access_token=access_token,
        refresh_token=refresh_token,
        email=account.email,
        account=account,
    )
