import hashlib
import secrets
import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
from django.utils import timezone


def synthetic_email(phone_number):
    """Accounts are phone-first; the auth store still wants a unique email."""
    digits = phone_number.lstrip('+')
    domain = getattr(settings, 'SYNTHETIC_EMAIL_DOMAIN', 'finmo.app')
    return f'{digits}@{domain}'


def generate_wallet_address():
    return '0x' + secrets.token_hex(20)


class AccountManager(BaseUserManager):
    def create_user(self, phone_number, email=None, password=None, **extra_fields):
        if not phone_number:
            raise ValueError('Account must have a phone number')
        email = self.normalize_email(email or synthetic_email(phone_number))
        extra_fields.setdefault('wallet_address', generate_wallet_address())
        account = self.model(phone_number=phone_number, email=email, **extra_fields)
        if password:
            account.set_password(password)
        else:
            account.set_unusable_password()
        account.save(using=self._db)
        return account

    def create_superuser(self, phone_number, email=None, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        return self.create_user(phone_number, email=email, password=password, **extra_fields)


class Account(AbstractBaseUser, PermissionsMixin):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    phone_number = models.CharField(max_length=20, unique=True, db_index=True)
    email = models.EmailField(unique=True)
    wallet_address = models.CharField(max_length=42, unique=True, db_index=True)
    display_name = models.CharField(max_length=50, blank=True, default='')

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(default=timezone.now)

    objects = AccountManager()

    USERNAME_FIELD = 'phone_number'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = 'Account'
        verbose_name_plural = 'Accounts'

    def __str__(self):
        return self.display_name or self.phone_number or str(self.id)[:8]

    def get_display_name(self):
        if self.display_name:
            return self.display_name
        return f'FinMo-{self.phone_number[-4:]}'


class PhoneVerification(models.Model):
    phone = models.CharField(max_length=20, db_index=True)
    otp_hash = models.CharField(max_length=64)
    expires_at = models.DateTimeField()
    verified = models.BooleanField(default=False)
    verified_at = models.DateTimeField(null=True, blank=True)
    attempts = models.PositiveSmallIntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['phone', 'verified', 'created_at'], name='phone_verif_lookup_idx'),
        ]

    def __str__(self):
        return f'Verification for {self.phone[:6]}***'

    @property
    def is_expired(self):
        return self.expires_at < timezone.now()

    @staticmethod
    def generate_code():
        return f'{secrets.randbelow(1_000_000):06d}'

    @staticmethod
    def hash_code(code):
        return hashlib.sha256(code.encode('utf-8')).hexdigest()

    def matches(self, code):
        return secrets.compare_digest(self.hash_code(code), self.otp_hash)


class VerificationAttempt(models.Model):
    """Append-only log of OTP issuance, used for the per-phone hourly cap."""

    phone = models.CharField(max_length=20, db_index=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    attempted_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-attempted_at']

    def __str__(self):
        return f'{self.phone[:6]}*** at {self.attempted_at}'


class PhoneThrottle(models.Model):
    """Lock row serializing OTP issuance per phone."""

    phone = models.CharField(max_length=20, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.phone
