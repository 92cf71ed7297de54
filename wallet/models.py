import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

AMOUNT_DIGITS = 36
AMOUNT_DECIMALS = 18


class WalletBalance(models.Model):
    account = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='balances')
    token = models.CharField(max_length=10, db_index=True)
    balance = models.DecimalField(max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_DECIMALS, default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['token']
        constraints = [
            models.UniqueConstraint(fields=['account', 'token'], name='unique_balance_per_token'),
            models.CheckConstraint(condition=Q(balance__gte=0), name='balance_non_negative'),
        ]

    def __str__(self):
        return f'{self.account} - {self.balance} {self.token}'


class Transaction(models.Model):
    """Append-only transfer ledger. Rows are written only by wallet.ledger."""

    TX_TYPES = [
        ('internal', 'Internal'),
        ('external', 'External'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='sent_transactions'
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, null=True, blank=True,
        related_name='received_transactions'
    )
    sender_wallet = models.CharField(max_length=42)
    recipient_wallet = models.CharField(max_length=42)
    amount = models.DecimalField(max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_DECIMALS)
    token = models.CharField(max_length=10, db_index=True)
    transaction_type = models.CharField(max_length=10, choices=TX_TYPES, default='internal', db_index=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='completed')
    idempotency_key = models.CharField(max_length=64, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['sender', 'idempotency_key'],
                condition=Q(idempotency_key__isnull=False),
                name='unique_idempotency_key_per_sender',
            ),
        ]
        indexes = [
            models.Index(fields=['sender', 'created_at'], name='wallet_tx_sender_idx'),
            models.Index(fields=['recipient', 'created_at'], name='wallet_tx_recipient_idx'),
        ]

    def __str__(self):
        return f'{self.transaction_type} {self.amount} {self.token} ({self.status})'


class LedgerEntry(models.Model):
    ENTRY_TYPES = [
        ('debit', 'Debit'),
        ('credit', 'Credit'),
    ]

    transaction = models.ForeignKey(Transaction, on_delete=models.PROTECT, related_name='entries')
    balance = models.ForeignKey(WalletBalance, on_delete=models.PROTECT, related_name='entries')
    entry_type = models.CharField(max_length=6, choices=ENTRY_TYPES)
    amount = models.DecimalField(max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_DECIMALS)
    balance_before = models.DecimalField(max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_DECIMALS)
    balance_after = models.DecimalField(max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_DECIMALS)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = 'Ledger entries'

    def __str__(self):
        return f'{self.entry_type} {self.amount} on {self.balance_id}'
