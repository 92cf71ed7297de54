"""
Wallet Serializers
"""

from rest_framework import serializers
from wallet.models import Transaction, WalletBalance


class ProcessTransactionSerializer(serializers.Serializer):
    recipient_phone = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
    recipient_wallet = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)
    # Bounds and precision are checked by the transfer service so messages stay consistent
    amount = serializers.JSONField()
    token = serializers.CharField(max_length=10)
    transaction_type = serializers.ChoiceField(choices=['internal', 'external'], default='internal')
    idempotency_key = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)


class WalletBalanceSerializer(serializers.ModelSerializer):
    balance = serializers.DecimalField(max_digits=36, decimal_places=18, coerce_to_string=True, normalize_output=True)

    class Meta:
        model = WalletBalance
        fields = ['token', 'balance', 'updated_at']
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(max_digits=36, decimal_places=18, coerce_to_string=True, normalize_output=True)
    direction = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = [
            'id', 'sender_wallet', 'recipient_wallet', 'amount', 'token',
            'transaction_type', 'status', 'direction', 'created_at',
        ]
        read_only_fields = fields

    def get_direction(self, obj):
        request = self.context.get('request')
        if request and obj.sender_id == request.user.pk:
            return 'sent'
        return 'received'
