"""
Transfer orchestration - validates a send request, resolves the recipient
and hands the balance movement to the atomic ledger procedure.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import IntegrityError, transaction

from accounts.errors import ErrorCode, fail, ok
from accounts.models import Account
from accounts.phone import mask_phone, normalize_phone
from wallet.ledger import (
    IdempotencyConflict, InsufficientBalance, WalletNotFound, ensure_same_transfer, process_internal_transfer,
)
from wallet.models import Transaction

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = 'Unable to process transaction. Please try again later.'
IDEMPOTENCY_CONFLICT_MESSAGE = 'Idempotency key reused with different parameters'

_DEFAULT_MIN_AMOUNT = Decimal('0.01')
_DEFAULT_MAX_AMOUNT = Decimal('1000000')


def _to_decimal(value):
    if isinstance(value, bool) or value is None:
        return None
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def validate_amount(amount, token):
    """
    Check amount bounds and token precision, in order.

    Returns:
        (Decimal, None) when valid, (None, failure dict) otherwise
    """
    min_amount = Decimal(str(getattr(settings, 'TRANSFER_MIN_AMOUNT', _DEFAULT_MIN_AMOUNT)))
    max_amount = Decimal(str(getattr(settings, 'TRANSFER_MAX_AMOUNT', _DEFAULT_MAX_AMOUNT)))

    value = _to_decimal(amount)
    if value is None or not value.is_finite():
        return None, fail(ErrorCode.VALIDATION_ERROR, 'Amount must be a valid number')
    if value <= 0:
        return None, fail(ErrorCode.VALIDATION_ERROR, 'Amount must be greater than zero')
    if value < min_amount:
        return None, fail(ErrorCode.VALIDATION_ERROR, f'Minimum transfer amount is {min_amount}')
    if value > max_amount:
        return None, fail(ErrorCode.VALIDATION_ERROR, f'Maximum transfer amount is {max_amount:,}')

    decimals = settings.SUPPORTED_TOKENS.get(token)
    if decimals is None:
        return None, fail(ErrorCode.VALIDATION_ERROR, f'Unsupported token: {token}')

    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        return None, fail(
            ErrorCode.VALIDATION_ERROR,
            f'{token} supports at most {decimals} decimal places',
        )

    return value, None


def resolve_recipient(recipient_phone=None, recipient_wallet=None):
    """
    Returns:
        (Account, None) or (None, failure dict)
    """
    if recipient_phone:
        validation = normalize_phone(recipient_phone)
        if not validation['valid']:
            return None, fail(ErrorCode.VALIDATION_ERROR, validation['error'])
        account = Account.objects.filter(phone_number=validation['normalized'], is_active=True).first()
        if not account:
            logger.info(f'Transfer recipient not found: {mask_phone(validation["normalized"])}')
            return None, fail(ErrorCode.RECIPIENT_NOT_FOUND, 'Recipient not found on FinMo')
        return account, None

    if recipient_wallet:
        account = Account.objects.filter(wallet_address__iexact=recipient_wallet.strip(), is_active=True).first()
        if not account:
            return None, fail(ErrorCode.RECIPIENT_NOT_FOUND, 'Recipient not found on FinMo')
        return account, None

    return None, fail(ErrorCode.VALIDATION_ERROR, 'Recipient phone number or wallet address is required')


def notify_recipient(transaction_id):
    """Queue the incoming-transfer SMS. The transfer is already committed, so broker errors are only logged."""
    from wallet.tasks import task_notify_transfer_recipient
    try:
        task_notify_transfer_recipient.delay(transaction_id)
    except Exception as e:
        logger.error(f'Could not queue transfer notification {transaction_id}: {e}', exc_info=True)


def transfer(sender, amount, token, recipient_phone=None, recipient_wallet=None, idempotency_key=None):
    """
    Internal (off-chain, zero-fee) transfer between two FinMo accounts.

    Returns:
        dict: {'success': True, 'transaction_id': str, 'message': str} or a failure with error_code
    """
    token = (token or '').upper()
    value, error = validate_amount(amount, token)
    if error:
        return error

    recipient, error = resolve_recipient(recipient_phone, recipient_wallet)
    if error:
        return error

    if recipient.pk == sender.pk:
        return fail(ErrorCode.SELF_TRANSFER, 'You cannot send funds to yourself')

    logger.info(f'Processing transfer: sender={sender.id} amount={value} token={token}')

    try:
        tx, created = process_internal_transfer(
            sender_id=sender.id,
            recipient_id=recipient.id,
            amount=value,
            token=token,
            sender_wallet=sender.wallet_address,
            recipient_wallet=recipient.wallet_address,
            transaction_type='internal',
            idempotency_key=idempotency_key,
        )
    except IdempotencyConflict as e:
        logger.warning(f'Transfer rejected: {e}')
        return fail(ErrorCode.VALIDATION_ERROR, IDEMPOTENCY_CONFLICT_MESSAGE)
    except InsufficientBalance as e:
        logger.info(f'Transfer rejected: {e}')
        return fail(ErrorCode.INSUFFICIENT_BALANCE, 'Insufficient balance')
    except WalletNotFound as e:
        logger.error(f'Transfer failed, wallet missing: {e}')
        return fail(ErrorCode.SYSTEM_ERROR, GENERIC_FAILURE_MESSAGE)
    except IntegrityError as e:
        # Concurrent retry with the same idempotency key committed first
        existing = None
        if idempotency_key:
            existing = Transaction.objects.filter(sender=sender, idempotency_key=idempotency_key).first()
        if existing:
            try:
                ensure_same_transfer(existing, recipient.id, value, token)
            except IdempotencyConflict:
                return fail(ErrorCode.VALIDATION_ERROR, IDEMPOTENCY_CONFLICT_MESSAGE)
            return ok('Transfer completed instantly!', transaction_id=str(existing.id))
        logger.error(f'Transfer integrity error for sender {sender.id}: {e}', exc_info=True)
        return fail(ErrorCode.SYSTEM_ERROR, GENERIC_FAILURE_MESSAGE)
    except Exception as e:
        logger.error(f'Transfer failed for sender {sender.id}: {e}', exc_info=True)
        return fail(ErrorCode.SYSTEM_ERROR, GENERIC_FAILURE_MESSAGE)

    if created:
        tx_id = str(tx.id)
        transaction.on_commit(lambda: notify_recipient(tx_id), robust=True)

    return ok('Transfer completed instantly!', transaction_id=str(tx.id))
