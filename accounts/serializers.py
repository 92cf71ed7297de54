"""
Accounts Serializers
"""

from rest_framework import serializers

from accounts.models import Account


class IssueOTPSerializer(serializers.Serializer):
    # Phone validation happens in the service so its error is returned verbatim
    phoneNumber = serializers.CharField(max_length=32)
    ipAddress = serializers.IPAddressField(required=False, allow_null=True, allow_blank=True)
    isLogin = serializers.BooleanField(required=False, default=False)


class ConfirmOTPSerializer(serializers.Serializer):
    phoneNumber = serializers.CharField(max_length=32)
    # Any non-empty guess reaches the verifier so malformed codes count as wrong attempts
    otp = serializers.CharField(max_length=32, trim_whitespace=True)


class PhoneOnlySerializer(serializers.Serializer):
    phoneNumber = serializers.CharField(max_length=32)


class RegisterSerializer(serializers.Serializer):
    phoneNumber = serializers.CharField(max_length=32)
    displayName = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')


class AccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = Account
        fields = ['id', 'phone_number', 'email', 'wallet_address', 'display_name', 'date_joined']
        read_only_fields = fields
