from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase

from accounts.models import Account
from wallet.models import Transaction
from wallet.tasks import _format_amount, task_notify_transfer_recipient


class TransferNotificationTaskTest(TestCase):
    def setUp(self):
        self.sender = Account.objects.create_user(phone_number='+2348031234567', display_name='Ada')
        self.recipient = Account.objects.create_user(phone_number='+2348039876543')
        self.tx = Transaction.objects.create(
            sender=self.sender, recipient=self.recipient,
            sender_wallet=self.sender.wallet_address, recipient_wallet=self.recipient.wallet_address,
            amount=Decimal('25.5'), token='USDC',
        )

    @patch('accounts.otp_service.send_sms', return_value=True)
    def test_recipient_is_texted(self, mock_send):
        result = task_notify_transfer_recipient.apply(args=[str(self.tx.id)]).get()

        self.assertTrue(result['success'])
        mock_send.assert_called_once_with(
            '+2348039876543',
            'FinMo: You received 25.50 USDC from Ada. Open the app to view your balance.',
        )

    def test_unknown_transaction(self):
        result = task_notify_transfer_recipient.apply(args=['00000000-0000-0000-0000-000000000000']).get()

        self.assertFalse(result['success'])

    def test_format_amount(self):
        self.assertEqual(_format_amount(Decimal('5')), '5.00')
        self.assertEqual(_format_amount(Decimal('0.000001000000000000')), '0.000001')
        self.assertEqual(_format_amount(Decimal('1E+2')), '100.00')
