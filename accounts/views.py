"""
Accounts API Views - phone OTP issue/confirm, session exchange, sign-up, profile
"""

import logging

from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiResponse
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle

from accounts.errors import ErrorCode, error_body
from accounts.otp_service import issue_otp, verify_otp
from accounts.serializers import (
    AccountSerializer, ConfirmOTPSerializer, IssueOTPSerializer,
    PhoneOnlySerializer, RegisterSerializer,
)
from accounts.session_service import exchange_session, register_account

logger = logging.getLogger(__name__)

ISSUE_STATUS = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.ACCOUNT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.DOWNSTREAM_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

CONFIRM_STATUS = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.EXPIRED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.MISMATCH: status.HTTP_400_BAD_REQUEST,
    ErrorCode.TOO_MANY_ATTEMPTS: status.HTTP_429_TOO_MANY_REQUESTS,
}

SESSION_STATUS = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EXPIRED_VERIFICATION: status.HTTP_403_FORBIDDEN,
    ErrorCode.ACCOUNT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ACCOUNT_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.SESSION_MINT_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class OTPThrottle(AnonRateThrottle):
    scope = 'otp'


def _client_ip(request):
    xff = request.META.get('HTTP_X_FORWARDED_FOR')
    if xff:
        return xff.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR') or None


def _failure(result, status_map):
    code = status_map.get(result['error_code'], status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(error_body(result), status=code)


@extend_schema(
    tags=['Auth: Phone OTP'],
    summary='Send a verification code by SMS',
    request=IssueOTPSerializer,
    responses={
        200: OpenApiResponse(description='Code sent'),
        400: OpenApiResponse(description='Invalid phone number'),
        404: OpenApiResponse(description='Login requested for a number with no account'),
        429: OpenApiResponse(description='More than 3 codes requested in the last hour'),
        500: OpenApiResponse(description='SMS not configured or delivery failed'),
    },
    examples=[
        OpenApiExample('Sign-up', value={'phoneNumber': '08031234567'}, request_only=True),
        OpenApiExample('Login', value={'phoneNumber': '+2348031234567', 'isLogin': True}, request_only=True),
    ],
)
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([OTPThrottle])
def issue_otp_view(request):
    serializer = IssueOTPSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    data = serializer.validated_data
    ip = data.get('ipAddress') or _client_ip(request)

    result = issue_otp(data['phoneNumber'], ip_address=ip, is_login=data['isLogin'])
    if not result['success']:
        return _failure(result, ISSUE_STATUS)

    return Response({
        'success': True,
        'message': result['message'],
        'phoneNumber': result['phone'],
    })


@extend_schema(
    tags=['Auth: Phone OTP'],
    summary='Confirm a verification code',
    request=ConfirmOTPSerializer,
    responses={
        200: OpenApiResponse(description='Phone verified'),
        400: OpenApiResponse(description='Wrong or expired code (includes attemptsRemaining)'),
        404: OpenApiResponse(description='No pending verification'),
        429: OpenApiResponse(description='Too many wrong attempts'),
    },
)
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def confirm_otp_view(request):
    serializer = ConfirmOTPSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = verify_otp(serializer.validated_data['phoneNumber'], serializer.validated_data['otp'])
    if not result['success']:
        return _failure(result, CONFIRM_STATUS)

    return Response({
        'success': True,
        'message': result['message'],
        'phoneNumber': result['phone'],
    })


@extend_schema(
    tags=['Auth: Phone OTP'],
    summary='Exchange a verified phone for a session',
    request=PhoneOnlySerializer,
    responses={
        200: OpenApiResponse(description='access_token, refresh_token and email'),
        403: OpenApiResponse(description='Verification older than 5 minutes or already used'),
        404: OpenApiResponse(description='No account for this phone'),
        500: OpenApiResponse(description='Session could not be minted'),
    },
)
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def exchange_session_view(request):
    serializer = PhoneOnlySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = exchange_session(serializer.validated_data['phoneNumber'])
    if not result['success']:
        return _failure(result, SESSION_STATUS)

    return Response({
        'success': True,
        'access_token': result['access_token'],
        'refresh_token': result['refresh_token'],
        'email': result['email'],
    })


@extend_schema(
    tags=['Auth: Phone OTP'],
    summary='Create an account for a verified phone',
    request=RegisterSerializer,
    responses={
        201: OpenApiResponse(description='Account created and logged in'),
        403: OpenApiResponse(description='Verification older than 5 minutes or already used'),
        409: OpenApiResponse(description='Phone already registered'),
    },
)
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def register_view(request):
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = register_account(
        serializer.validated_data['phoneNumber'],
        display_name=serializer.validated_data['displayName'],
    )
    if not result['success']:
        return _failure(result, SESSION_STATUS)

    return Response({
        'success': True,
        'access_token': result['access_token'],
        'refresh_token': result['refresh_token'],
        'email': result['email'],
        'account': AccountSerializer(result['account']).data,
    }, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Auth: Phone OTP'], summary='Current account', responses=AccountSerializer)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response(AccountSerializer(request.user).data)
