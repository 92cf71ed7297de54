from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase, override_settings
from kombu.exceptions import OperationalError

from accounts.errors import ErrorCode
from accounts.models import Account
from wallet.models import Transaction, WalletBalance
from wallet.transfer_service import (
    GENERIC_FAILURE_MESSAGE, IDEMPOTENCY_CONFLICT_MESSAGE, transfer, validate_amount,
)


class ValidateAmountTest(TestCase):
    def test_valid_amounts(self):
        for amount in (25.5, '25.50', Decimal('0.01'), 1000000, '0.123456'):
            with self.subTest(amount=amount):
                value, error = validate_amount(amount, 'USDC')
                self.assertIsNone(error)
                self.assertIsInstance(value, Decimal)

    def test_rejections_in_order(self):
        cases = [
            ('abc', 'Amount must be a valid number'),
            (None, 'Amount must be a valid number'),
            (True, 'Amount must be a valid number'),
            ('Infinity', 'Amount must be a valid number'),
            (0, 'Amount must be greater than zero'),
            (-5, 'Amount must be greater than zero'),
            ('0.009', 'Minimum transfer amount is 0.01'),
            ('1000000.01', 'Maximum transfer amount is 1,000,000'),
        ]
        for amount, message in cases:
            with self.subTest(amount=amount):
                value, error = validate_amount(amount, 'USDC')
                self.assertIsNone(value)
                self.assertEqual(error['error_code'], ErrorCode.VALIDATION_ERROR)
                self.assertEqual(error['message'], message)

    def test_unsupported_token(self):
        _, error = validate_amount('10', 'DOGE')

        self.assertEqual(error['message'], 'Unsupported token: DOGE')

    def test_precision_follows_token_decimals(self):
        _, error = validate_amount('1.0000001', 'USDC')
        self.assertEqual(error['message'], 'USDC supports at most 6 decimal places')

        value, error = validate_amount('1.0000001', 'ETH')
        self.assertIsNone(error)
        self.assertEqual(value, Decimal('1.0000001'))

    @override_settings(TRANSFER_MIN_AMOUNT='1', TRANSFER_MAX_AMOUNT='500')
    def test_bounds_follow_settings(self):
        self.assertEqual(validate_amount('0.5', 'USDC')[1]['message'], 'Minimum transfer amount is 1')
        self.assertEqual(validate_amount('501', 'USDC')[1]['message'], 'Maximum transfer amount is 500')


class TransferTest(TestCase):
    def setUp(self):
        self.sender = Account.objects.create_user(phone_number='+2348031234567')
        self.recipient = Account.objects.create_user(phone_number='+2348039876543')
        WalletBalance.objects.create(account=self.sender, token='USDC', balance=Decimal('100'))
        WalletBalance.objects.create(account=self.recipient, token='USDC', balance=Decimal('0'))

    def _balance(self, account):
        return WalletBalance.objects.get(account=account, token='USDC').balance

    def test_transfer_by_local_phone(self):
        result = transfer(self.sender, 25.50, 'usdc', recipient_phone='08039876543')

        self.assertTrue(result['success'])
        self.assertEqual(result['message'], 'Transfer completed instantly!')
        tx = Transaction.objects.get(pk=result['transaction_id'])
        self.assertEqual(tx.amount, Decimal('25.5'))
        self.assertEqual(tx.token, 'USDC')
        self.assertEqual(tx.recipient, self.recipient)
        self.assertEqual(tx.sender_wallet, self.sender.wallet_address)
        self.assertEqual(self._balance(self.sender), Decimal('74.5'))
        self.assertEqual(self._balance(self.recipient), Decimal('25.5'))

    def test_transfer_by_wallet_address_ignores_case(self):
        result = transfer(self.sender, '1', 'USDC', recipient_wallet=self.recipient.wallet_address.upper().replace('0X', '0x'))

        self.assertTrue(result['success'])
        self.assertEqual(self._balance(self.recipient), Decimal('1'))

    def test_phone_takes_precedence_over_wallet(self):
        third = Account.objects.create_user(phone_number='+254712345678')

        result = transfer(
            self.sender, '1', 'USDC', recipient_phone='+2348039876543', recipient_wallet=third.wallet_address,
        )

        self.assertEqual(Transaction.objects.get(pk=result['transaction_id']).recipient, self.recipient)

    def test_unknown_recipient(self):
        result = transfer(self.sender, '1', 'USDC', recipient_phone='+2348030000000')

        self.assertEqual(result['error_code'], ErrorCode.RECIPIENT_NOT_FOUND)
        self.assertEqual(result['message'], 'Recipient not found on FinMo')

    def test_missing_recipient(self):
        result = transfer(self.sender, '1', 'USDC')

        self.assertEqual(result['error_code'], ErrorCode.VALIDATION_ERROR)

    def test_self_transfer(self):
        result = transfer(self.sender, '1', 'USDC', recipient_phone='08031234567')

        self.assertEqual(result['error_code'], ErrorCode.SELF_TRANSFER)
        self.assertEqual(self._balance(self.sender), Decimal('100'))

    def test_insufficient_balance_rolls_back(self):
        result = transfer(self.sender, '150', 'USDC', recipient_phone='+2348039876543')

        self.assertEqual(result['error_code'], ErrorCode.INSUFFICIENT_BALANCE)
        self.assertEqual(result['message'], 'Insufficient balance')
        self.assertEqual(self._balance(self.sender), Decimal('100'))
        self.assertEqual(self._balance(self.recipient), Decimal('0'))
        self.assertFalse(Transaction.objects.exists())

    def test_invalid_amount_checked_before_recipient(self):
        result = transfer(self.sender, '0', 'USDC', recipient_phone='+2348030000000')

        self.assertEqual(result['error_code'], ErrorCode.VALIDATION_ERROR)

    def test_idempotent_retry_moves_funds_once(self):
        first = transfer(self.sender, '10', 'USDC', recipient_phone='+2348039876543', idempotency_key='k-1')
        second = transfer(self.sender, '10', 'USDC', recipient_phone='+2348039876543', idempotency_key='k-1')

        self.assertEqual(first['transaction_id'], second['transaction_id'])
        self.assertEqual(self._balance(self.sender), Decimal('90'))

    def test_notification_queued_after_commit(self):
        with patch('wallet.tasks.task_notify_transfer_recipient.delay') as mock_delay:
            with self.captureOnCommitCallbacks(execute=True):
                result = transfer(self.sender, '5', 'USDC', recipient_phone='+2348039876543')

        mock_delay.assert_called_once_with(result['transaction_id'])

    def test_unexpected_ledger_error_is_generic(self):
        with patch('wallet.transfer_service.process_internal_transfer', side_effect=RuntimeError('db down')):
            result = transfer(self.sender, '5', 'USDC', recipient_phone='+2348039876543')

        self.assertEqual(result['error_code'], ErrorCode.SYSTEM_ERROR)
        self.assertEqual(result['message'], GENERIC_FAILURE_MESSAGE)

    def test_reused_key_with_different_amount_is_rejected(self):
        first = transfer(self.sender, '10', 'USDC', recipient_phone='+2348039876543', idempotency_key='k-2')

        second = transfer(self.sender, '50', 'USDC', recipient_phone='+2348039876543', idempotency_key='k-2')

        self.assertTrue(first['success'])
        self.assertFalse(second['success'])
        self.assertEqual(second['error_code'], ErrorCode.VALIDATION_ERROR)
        self.assertEqual(second['message'], IDEMPOTENCY_CONFLICT_MESSAGE)
        self.assertEqual(self._balance(self.sender), Decimal('90'))
        self.assertEqual(Transaction.objects.count(), 1)

    def test_reused_key_with_different_recipient_is_rejected(self):
        other = Account.objects.create_user(phone_number='+254712345678')
        transfer(self.sender, '10', 'USDC', recipient_phone='+2348039876543', idempotency_key='k-3')

        result = transfer(self.sender, '10', 'USDC', recipient_wallet=other.wallet_address, idempotency_key='k-3')

        self.assertEqual(result['message'], IDEMPOTENCY_CONFLICT_MESSAGE)
        self.assertEqual(WalletBalance.objects.filter(account=other).count(), 0)

    def test_broker_outage_does_not_fail_committed_transfer(self):
        with patch('wallet.tasks.task_notify_transfer_recipient.delay', side_effect=OperationalError('redis down')):
            with self.captureOnCommitCallbacks(execute=True):
                result = transfer(self.sender, '10', 'USDC', recipient_phone='+2348039876543')

        self.assertTrue(result['success'])
        self.assertTrue(Transaction.objects.filter(pk=result['transaction_id']).exists())
        self.assertEqual(self._balance(self.sender), Decimal('90'))
