from decimal import Decimal
from unittest.mock import patch

from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APIClient

from accounts.authentication import generate_access_token
from accounts.models import Account
from wallet.ledger import credit_balance
from wallet.models import Transaction, WalletBalance

SENDER = '+2348031234567'
RECIPIENT = '+2348039876543'


class WalletViewTestBase(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.sender = Account.objects.create_user(phone_number=SENDER)
        self.recipient = Account.objects.create_user(phone_number=RECIPIENT)
        WalletBalance.objects.create(account=self.sender, token='USDC', balance=Decimal('100'))
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {generate_access_token(self.sender)}')


class ProcessTransactionViewTest(WalletViewTestBase):
    def test_transfer_success(self):
        response = self.client.post('/api/wallet/process-transaction/', {
            'recipient_phone': '08039876543', 'amount': 25.50, 'token': 'USDC',
        }, format='json')

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['message'], 'Transfer completed instantly!')
        self.assertTrue(Transaction.objects.filter(pk=body['transaction_id']).exists())

    def test_requires_bearer_token(self):
        self.client.credentials()

        response = self.client.post('/api/wallet/process-transaction/', {
            'recipient_phone': RECIPIENT, 'amount': 1, 'token': 'USDC',
        }, format='json')

        self.assertEqual(response.status_code, 401)
        self.assertFalse(Transaction.objects.exists())

    def test_external_type_is_refused(self):
        response = self.client.post('/api/wallet/process-transaction/', {
            'recipient_wallet': '0x' + 'ab' * 20, 'amount': 1, 'token': 'USDC', 'transaction_type': 'external',
        }, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'External transfers are not supported')

    def test_business_failures_are_400(self):
        cases = [
            ({'recipient_phone': RECIPIENT, 'amount': 500, 'token': 'USDC'}, 'INSUFFICIENT_BALANCE'),
            ({'recipient_phone': SENDER, 'amount': 1, 'token': 'USDC'}, 'SELF_TRANSFER'),
            ({'recipient_phone': '+2348030000000', 'amount': 1, 'token': 'USDC'}, 'RECIPIENT_NOT_FOUND'),
            ({'recipient_phone': RECIPIENT, 'amount': 0.001, 'token': 'USDC'}, 'VALIDATION_ERROR'),
            ({'recipient_phone': RECIPIENT, 'amount': 1, 'token': 'DOGE'}, 'VALIDATION_ERROR'),
        ]
        for payload, code in cases:
            with self.subTest(code=code, payload=payload):
                response = self.client.post('/api/wallet/process-transaction/', payload, format='json')
                self.assertEqual(response.status_code, 400)
                body = response.json()
                self.assertFalse(body['success'])
                self.assertEqual(body['errorCode'], code)
        self.assertEqual(WalletBalance.objects.get(account=self.sender, token='USDC').balance, Decimal('100'))

    def test_idempotency_key_replay(self):
        payload = {'recipient_phone': RECIPIENT, 'amount': '5', 'token': 'USDC', 'idempotency_key': 'tap-1'}

        first = self.client.post('/api/wallet/process-transaction/', payload, format='json').json()
        second = self.client.post('/api/wallet/process-transaction/', payload, format='json').json()

        self.assertEqual(first['transaction_id'], second['transaction_id'])
        self.assertEqual(WalletBalance.objects.get(account=self.sender, token='USDC').balance, Decimal('95'))


class WalletReadViewTest(WalletViewTestBase):
    def test_balances(self):
        response = self.client.get('/api/wallet/balances/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [
            {'token': 'USDC', 'balance': '100', 'updated_at': response.json()[0]['updated_at']},
        ])

    def test_transaction_history_both_directions(self):
        self.client.post('/api/wallet/process-transaction/', {
            'recipient_phone': RECIPIENT, 'amount': '3', 'token': 'USDC',
        }, format='json')
        credit_balance(self.recipient.id, 'USDC', Decimal('1'))
        recipient_client = APIClient()
        recipient_client.credentials(HTTP_AUTHORIZATION=f'Bearer {generate_access_token(self.recipient)}')
        recipient_client.post('/api/wallet/process-transaction/', {
            'recipient_phone': SENDER, 'amount': '1', 'token': 'USDC',
        }, format='json')

        response = self.client.get('/api/wallet/transactions/')

        self.assertEqual(response.status_code, 200)
        results = response.json()['results']
        self.assertEqual(len(results), 2)
        self.assertEqual(sorted(r['direction'] for r in results), ['received', 'sent'])

    def test_history_filter_by_token(self):
        self.client.post('/api/wallet/process-transaction/', {
            'recipient_phone': RECIPIENT, 'amount': '3', 'token': 'USDC',
        }, format='json')

        response = self.client.get('/api/wallet/transactions/', {'token': 'dai'})

        self.assertEqual(response.json()['count'], 0)


@patch('accounts.otp_service.send_sms', return_value=True)
class PhoneToTransferFlowTest(TestCase):
    """Sign up by SMS code, get funded, send to another account."""

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.recipient = Account.objects.create_user(phone_number=RECIPIENT)

    def test_full_flow(self, mock_send):
        issued = self.client.post('/api/auth/issue-otp/', {'phoneNumber': '08031234567'}, format='json')
        self.assertEqual(issued.json()['phoneNumber'], SENDER)
        code = mock_send.call_args[0][1].split('is: ')[1][:6]

        confirmed = self.client.post('/api/auth/confirm-otp/', {'phoneNumber': SENDER, 'otp': code}, format='json')
        self.assertEqual(confirmed.status_code, 200)

        registered = self.client.post('/api/auth/register/', {'phoneNumber': SENDER}, format='json')
        self.assertEqual(registered.status_code, 201)
        sender = Account.objects.get(phone_number=SENDER)
        credit_balance(sender.id, 'USDC', Decimal('100'))

        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {registered.json()["access_token"]}')
        sent = self.client.post('/api/wallet/process-transaction/', {
            'recipient_phone': '08039876543', 'amount': 25.50, 'token': 'USDC',
        }, format='json')

        self.assertEqual(sent.status_code, 200)
        self.assertEqual(WalletBalance.objects.get(account=sender, token='USDC').balance, Decimal('74.5'))
        self.assertEqual(WalletBalance.objects.get(account=self.recipient, token='USDC').balance, Decimal('25.5'))
