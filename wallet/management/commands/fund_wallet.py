"""
Credit a token balance for an account identified by phone number.

    python manage.py fund_wallet 08031234567 100 --token USDC
"""

from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from accounts.models import Account
from accounts.phone import normalize_phone
from wallet.ledger import LedgerError, credit_balance


class Command(BaseCommand):
    help = 'Credit a FinMo account balance (dev/ops top-up)'

    def add_arguments(self, parser):
        parser.add_argument('phone')
        parser.add_argument('amount')
        parser.add_argument('--token', default='USDC')

    def handle(self, *args, **options):
        validation = normalize_phone(options['phone'])
        if not validation['valid']:
            raise CommandError(validation['error'])

        token = options['token'].upper()
        if token not in settings.SUPPORTED_TOKENS:
            raise CommandError(f'Unsupported token: {token}')

        try:
            amount = Decimal(options['amount'])
        except InvalidOperation:
            raise CommandError(f'Invalid amount: {options["amount"]}')

        try:
            account = Account.objects.get(phone_number=validation['normalized'])
        except Account.DoesNotExist:
            raise CommandError(f'No account for {validation["normalized"]}')

        try:
            balance = credit_balance(account.id, token, amount)
        except LedgerError as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS(f'Credited {amount} {token} to {account}. Balance: {balance}'))
