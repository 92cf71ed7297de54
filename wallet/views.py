"""
Wallet API Views - internal transfers, balances, transaction history
"""

import logging

from django.db.models import Q
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiResponse
from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.errors import ErrorCode, error_body, fail
from wallet.filters import TransactionFilter
from wallet.models import Transaction, WalletBalance
from wallet.serializers import ProcessTransactionSerializer, TransactionSerializer, WalletBalanceSerializer
from wallet.transfer_service import transfer

logger = logging.getLogger(__name__)


@extend_schema(
    tags=['Wallet: Transfers'],
    summary='Send funds to another FinMo account',
    description=(
        'Internal transfers settle instantly and carry no fee. The recipient is resolved by '
        '`recipient_phone` first, then `recipient_wallet`. Send an `idempotency_key` to make '
        'retries safe: a repeated key returns the original transaction without moving funds again.'
    ),
    request=ProcessTransactionSerializer,
    responses={
        200: OpenApiResponse(description='Transfer committed'),
        400: OpenApiResponse(description='Validation or business rule failure, see error message'),
        401: OpenApiResponse(description='Missing or invalid bearer token'),
    },
    examples=[
        OpenApiExample(
            'By phone',
            value={'recipient_phone': '08039876543', 'amount': 25.50, 'token': 'USDC',
                   'transaction_type': 'internal', 'idempotency_key': 'send-7f3a'},
            request_only=True,
        ),
        OpenApiExample(
            'Success',
            value={'success': True, 'transaction_id': '5b0f1c2e-...', 'message': 'Transfer completed instantly!'},
            response_only=True,
        ),
    ],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def process_transaction(request):
    serializer = ProcessTransactionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    if data['transaction_type'] != 'internal':
        result = fail(ErrorCode.VALIDATION_ERROR, 'External transfers are not supported')
        return Response(error_body(result), status=status.HTTP_400_BAD_REQUEST)

    result = transfer(
        request.user,
        amount=data['amount'],
        token=data['token'],
        recipient_phone=data.get('recipient_phone') or None,
        recipient_wallet=data.get('recipient_wallet') or None,
        idempotency_key=data.get('idempotency_key') or None,
    )

    if not result['success']:
        # All transfer rejections share one status; errorCode tells them apart
        return Response(error_body(result), status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'success': True,
        'transaction_id': result['transaction_id'],
        'message': result['message'],
    })


@extend_schema(tags=['Wallet: Balances'], summary='Balances per token', responses=WalletBalanceSerializer(many=True))
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def balances(request):
    qs = WalletBalance.objects.filter(account=request.user).order_by('token')
    return Response(WalletBalanceSerializer(qs, many=True).data)


@extend_schema(tags=['Wallet: History'], summary='Transfers sent or received by the caller')
class TransactionListView(generics.ListAPIView):
    serializer_class = TransactionSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = TransactionFilter
    ordering_fields = ['created_at', 'amount']
    ordering = ['-created_at']

    def get_queryset(self):
        user = self.request.user
        return Transaction.objects.filter(Q(sender=user) | Q(recipient=user))
