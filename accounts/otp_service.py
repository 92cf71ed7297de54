"""
OTP Service - issues and verifies phone OTPs, sends codes via Twilio SMS
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from accounts.errors import ErrorCode, fail, ok
from accounts.models import Account, PhoneThrottle, PhoneVerification, VerificationAttempt
from accounts.phone import mask_phone, normalize_phone

logger = logging.getLogger(__name__)

_DEFAULT_OTP_EXPIRY_MINUTES = 10
_DEFAULT_MAX_OTP_PER_HOUR = 3
_DEFAULT_MAX_ATTEMPTS = 5

OTP_MESSAGE_TEMPLATE = (
    'Your FinMo verification code is: {code}. '
    'Valid for {minutes} minutes. Do not share this code.'
)


def _get_otp_config():
    """Returns (otp_expiry_minutes, max_otp_per_hour, max_attempts)."""
    return (
        getattr(settings, 'OTP_EXPIRY_MINUTES', _DEFAULT_OTP_EXPIRY_MINUTES),
        getattr(settings, 'OTP_MAX_PER_HOUR', _DEFAULT_MAX_OTP_PER_HOUR),
        getattr(settings, 'OTP_MAX_ATTEMPTS', _DEFAULT_MAX_ATTEMPTS),
    )


def issue_otp(phone, ip_address=None, is_login=False):
    """
    Generate, store and send an OTP for a phone number.

    Args:
        phone: Raw phone number (e.g., '08031234567' or '+2348031234567')
        ip_address: Request IP, recorded on the attempt log
        is_login: When True, refuse numbers with no account

    Returns:
        dict: {'success': bool, 'message': str, 'phone': str} or a failure with error_code
    """
    validation = normalize_phone(phone)
    if not validation['valid']:
        return fail(ErrorCode.VALIDATION_ERROR, validation['error'])
    phone = validation['normalized']

    otp_expiry, max_per_hour, _ = _get_otp_config()

    if is_login and not Account.objects.filter(phone_number=phone, is_active=True).exists():
        logger.info(f'issue_otp: login requested for unknown account {mask_phone(phone)}')
        return fail(
            ErrorCode.ACCOUNT_NOT_FOUND,
            'No account found with this phone number. Please check the number or sign up first.',
        )

    with transaction.atomic():
        # Serialize count-then-insert for this phone
        PhoneThrottle.objects.get_or_create(phone=phone)
        PhoneThrottle.objects.select_for_update().get(phone=phone)

        now = timezone.now()
        window_start = now - timedelta(hours=1)
        recent = VerificationAttempt.objects.filter(phone=phone, attempted_at__gte=window_start)
        recent_count = recent.count()

        if recent_count >= max_per_hour:
            oldest = recent.order_by('attempted_at').values_list('attempted_at', flat=True).first()
            seconds_left = (oldest + timedelta(hours=1) - now).total_seconds() if oldest else 3600
            minutes_left = max(1, int(-(-seconds_left // 60)))
            logger.warning(
                f'OTP rate limit hit: {mask_phone(phone)} sent {recent_count} in last hour (max={max_per_hour})'
            )
            return fail(
                ErrorCode.RATE_LIMITED,
                f'Too many verification attempts. Please try again in {minutes_left} minute'
                f'{"s" if minutes_left != 1 else ""}.',
                minutesLeft=minutes_left,
            )

        code = PhoneVerification.generate_code()
        verification = PhoneVerification.objects.create(
            phone=phone,
            otp_hash=PhoneVerification.hash_code(code),
            expires_at=now + timedelta(minutes=otp_expiry),
            created_at=now,
        )
        VerificationAttempt.objects.create(phone=phone, ip_address=ip_address or None, attempted_at=now)

    logger.info(f'issue_otp: phone={mask_phone(phone)}, expiry={otp_expiry}m, attempt {recent_count + 1}/{max_per_hour}')

    body = OTP_MESSAGE_TEMPLATE.format(code=code, minutes=otp_expiry)
    if not send_sms(phone, body):
        # Keep the row for audit but make it unusable
        PhoneVerification.objects.filter(pk=verification.pk).update(expires_at=timezone.now())
        logger.error(f'OTP send FAILED: {mask_phone(phone)}')
        return fail(ErrorCode.DOWNSTREAM_ERROR, 'Failed to send verification code. Please try again later.')

    logger.info(f'OTP sent successfully: {mask_phone(phone)}')
    return ok('Verification code sent', phone=phone)


def verify_otp(phone, code):
    """
    Verify an OTP against the latest unverified record for the phone.

    Returns:
        dict: {'success': True, 'message': str, 'phone': str} or a failure with error_code
    """
    validation = normalize_phone(phone)
    if not validation['valid']:
        return fail(ErrorCode.VALIDATION_ERROR, validation['error'])
    phone = validation['normalized']

    _, _, max_attempts = _get_otp_config()

    with transaction.atomic():
        verification = (
            PhoneVerification.objects.select_for_update()
            .filter(phone=phone, verified=False)
            .order_by('-created_at', '-id')
            .first()
        )

        if not verification:
            return fail(ErrorCode.NOT_FOUND, 'No verification request found')

        if verification.is_expired:
            return fail(ErrorCode.EXPIRED, 'Verification code has expired. Please request a new code.')

        if verification.attempts >= max_attempts:
            return fail(ErrorCode.TOO_MANY_ATTEMPTS, 'Too many failed attempts. Please request a new code.')

        if not verification.matches(str(code)):
            verification.attempts += 1
            verification.save(update_fields=['attempts'])
            logger.info(f'verify_otp: mismatch for {mask_phone(phone)} ({verification.attempts}/{max_attempts})')
            return fail(
                ErrorCode.MISMATCH,
                'Invalid verification code',
                attemptsRemaining=max_attempts - verification.attempts,
            )

        verification.verified = True
        verification.verified_at = timezone.now()
        verification.save(update_fields=['verified', 'verified_at'])

    logger.info(f'Phone verified successfully: {mask_phone(phone)}')
    return ok('Phone number verified successfully', phone=phone)


def send_sms(phone, body):
    """
    Send an SMS via Twilio using env-configured credentials.

    Returns:
        bool: True when Twilio accepted the message
    """
    account_sid = settings.TWILIO_ACCOUNT_SID
    auth_token = settings.TWILIO_AUTH_TOKEN
    from_number = settings.TWILIO_PHONE_NUMBER

    if not account_sid or not auth_token or not from_number:
        logger.error(
            'Twilio credentials not configured: sid=%s, token=%s, from=%s',
            bool(account_sid), bool(auth_token), bool(from_number),
        )
        return False

    try:
        from twilio.rest import Client
        client = Client(account_sid, auth_token)
    except Exception as e:
        logger.error(f'Twilio client init error: {e}', exc_info=True)
        return False

    try:
        message = client.messages.create(body=body, from_=from_number, to=phone)
    except Exception as e:
        logger.error(f'Twilio SMS failed to {mask_phone(phone)}: {e}')
        return False

    logger.info(f'SMS sent to {mask_phone(phone)}, SID: {message.sid}, status: {message.status}')
    return True
