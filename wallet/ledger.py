"""
Atomic ledger procedure for balance movements between accounts.

process_internal_transfer() is the only code path that mutates
WalletBalance for transfers. Debit, credit and the Transaction row are
committed together or not at all; both balance rows are locked with
SELECT ... FOR UPDATE in primary-key order so concurrent transfers from
the same sender serialize on the sender's row.
"""

import logging
import uuid
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from wallet.models import LedgerEntry, Transaction, WalletBalance

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base class for ledger procedure failures."""


class InsufficientBalance(LedgerError):
    pass


class WalletNotFound(LedgerError):
    pass


class IdempotencyConflict(LedgerError):
    """Idempotency key already used for a transfer with different parameters."""


def _as_uuid(value):
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def ensure_same_transfer(existing, recipient_id, amount, token):
    """Raise IdempotencyConflict unless existing matches the requested transfer."""
    if (existing.recipient_id != _as_uuid(recipient_id)
            or existing.token != token
            or Decimal(existing.amount) != Decimal(amount)):
        raise IdempotencyConflict(
            f'Idempotency key {existing.idempotency_key} already used by transaction {existing.id}'
        )


def process_internal_transfer(sender_id, recipient_id, amount, token, sender_wallet, recipient_wallet,
                              transaction_type='internal', idempotency_key=None):
    """
    Move `amount` of `token` from sender to recipient as one unit.

    Returns:
        (Transaction, created): created is False when idempotency_key matched
        an already committed transfer and nothing was moved.

    Raises:
        WalletNotFound: sender holds no balance row for the token
        IdempotencyConflict: idempotency_key was used for a different transfer
        InsufficientBalance: sender balance is below amount
        LedgerError: invalid arguments
    """
    sender_id = _as_uuid(sender_id)
    recipient_id = _as_uuid(recipient_id)
    amount = Decimal(amount)

    if amount <= 0:
        raise LedgerError('Amount must be positive')
    if sender_id == recipient_id:
        raise LedgerError('Sender and recipient must be different accounts')

    with transaction.atomic():
        if idempotency_key:
            existing = Transaction.objects.filter(
                sender_id=sender_id, idempotency_key=idempotency_key,
            ).first()
            if existing:
                ensure_same_transfer(existing, recipient_id, amount, token)
                logger.info(f'Ledger: idempotent replay {idempotency_key} -> {existing.id}')
                return existing, False

        WalletBalance.objects.get_or_create(account_id=recipient_id, token=token)

        locked = {
            row.account_id: row
            for row in WalletBalance.objects.select_for_update()
            .filter(account_id__in=[sender_id, recipient_id], token=token)
            .order_by('pk')
        }
        sender_balance = locked.get(sender_id)
        recipient_balance = locked[recipient_id]

        if sender_balance is None:
            raise WalletNotFound(f'No {token} balance for sender {sender_id}')

        if sender_balance.balance < amount:
            raise InsufficientBalance(
                f'Sender {sender_id} has {sender_balance.balance} {token}, needs {amount}'
            )

        tx = Transaction.objects.create(
            sender_id=sender_id,
            recipient_id=recipient_id,
            sender_wallet=sender_wallet,
            recipient_wallet=recipient_wallet,
            amount=amount,
            token=token,
            transaction_type=transaction_type,
            status='completed',
            idempotency_key=idempotency_key or None,
        )

        now = timezone.now()
        sender_before = sender_balance.balance
        recipient_before = recipient_balance.balance

        WalletBalance.objects.filter(pk=sender_balance.pk).update(balance=F('balance') - amount, updated_at=now)
        WalletBalance.objects.filter(pk=recipient_balance.pk).update(balance=F('balance') + amount, updated_at=now)

        LedgerEntry.objects.bulk_create([
            LedgerEntry(
                transaction=tx, balance=sender_balance, entry_type='debit', amount=amount,
                balance_before=sender_before, balance_after=sender_before - amount,
            ),
            LedgerEntry(
                transaction=tx, balance=recipient_balance, entry_type='credit', amount=amount,
                balance_before=recipient_before, balance_after=recipient_before + amount,
            ),
        ])

    logger.info(f'Ledger: {transaction_type} transfer {tx.id} {amount} {token} {sender_id} -> {recipient_id}')
    return tx, True


def credit_balance(account_id, token, amount):
    """Credit an account directly (operator top-ups). Returns the new balance."""
    amount = Decimal(amount)
    if amount <= 0:
        raise LedgerError('Amount must be positive')

    with transaction.atomic():
        WalletBalance.objects.get_or_create(account_id=_as_uuid(account_id), token=token)
        row = WalletBalance.objects.select_for_update().get(account_id=_as_uuid(account_id), token=token)
        WalletBalance.objects.filter(pk=row.pk).update(balance=F('balance') + amount, updated_at=timezone.now())
        row.refresh_from_db(fields=['balance'])

    logger.info(f'Ledger: credited {amount} {token} to {account_id}, balance now {row.balance}')
    return row.balance
