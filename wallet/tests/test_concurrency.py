import threading
from decimal import Decimal

from django.db import connection
from django.test import TransactionTestCase, skipUnlessDBFeature

from accounts.models import Account
from wallet.ledger import InsufficientBalance, process_internal_transfer
from wallet.models import LedgerEntry, Transaction, WalletBalance


@skipUnlessDBFeature('has_select_for_update')
class ConcurrentTransferTest(TransactionTestCase):
    def setUp(self):
        self.sender = Account.objects.create_user(phone_number='+2348031234567')
        self.first = Account.objects.create_user(phone_number='+2348039876543')
        self.second = Account.objects.create_user(phone_number='+254712345678')
        WalletBalance.objects.create(account=self.sender, token='USDC', balance=Decimal('100'))

    def _race(self, recipients, amount):
        barrier = threading.Barrier(len(recipients))
        outcomes = []

        def send(recipient):
            try:
                barrier.wait()
                process_internal_transfer(
                    sender_id=self.sender.id, recipient_id=recipient.id, amount=amount, token='USDC',
                    sender_wallet=self.sender.wallet_address, recipient_wallet=recipient.wallet_address,
                )
                outcomes.append('ok')
            except InsufficientBalance:
                outcomes.append('insufficient')
            finally:
                connection.close()

        threads = [threading.Thread(target=send, args=(r,)) for r in recipients]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return outcomes

    def test_jointly_overdrawing_transfers_do_not_both_succeed(self):
        outcomes = self._race([self.first, self.second], Decimal('60'))

        self.assertEqual(sorted(outcomes), ['insufficient', 'ok'])
        self.assertEqual(WalletBalance.objects.get(account=self.sender, token='USDC').balance, Decimal('40'))
        self.assertEqual(Transaction.objects.count(), 1)
        self.assertEqual(LedgerEntry.objects.count(), 2)

    def test_transfers_within_balance_both_apply(self):
        outcomes = self._race([self.first, self.second], Decimal('50'))

        self.assertEqual(outcomes, ['ok', 'ok'])
        self.assertEqual(WalletBalance.objects.get(account=self.sender, token='USDC').balance, Decimal('0'))
        total = sum(WalletBalance.objects.filter(token='USDC').values_list('balance', flat=True))
        self.assertEqual(total, Decimal('100'))
