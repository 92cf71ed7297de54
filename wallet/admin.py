from django.contrib import admin
from wallet.models import LedgerEntry, Transaction, WalletBalance


@admin.register(WalletBalance)
class WalletBalanceAdmin(admin.ModelAdmin):
    list_display = ['account', 'token', 'balance', 'updated_at']
    list_filter = ['token']
    search_fields = ['account__phone_number', 'account__display_name', 'account__wallet_address']
    # Balances move only through the ledger procedure
    readonly_fields = ['account', 'token', 'balance', 'created_at', 'updated_at']


class LedgerEntryInline(admin.TabularInline):
    model = LedgerEntry
    extra = 0
    can_delete = False
    readonly_fields = ['balance', 'entry_type', 'amount', 'balance_before', 'balance_after', 'created_at']


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['id', 'sender', 'recipient', 'amount', 'token', 'transaction_type', 'status', 'created_at']
    list_filter = ['transaction_type', 'status', 'token']
    search_fields = ['id', 'sender__phone_number', 'recipient__phone_number', 'sender_wallet', 'recipient_wallet']
    readonly_fields = [
        'id', 'sender', 'recipient', 'sender_wallet', 'recipient_wallet', 'amount', 'token',
        'transaction_type', 'status', 'idempotency_key', 'created_at',
    ]
    inlines = [LedgerEntryInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
