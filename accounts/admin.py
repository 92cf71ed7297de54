from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from accounts.models import Account, PhoneVerification, VerificationAttempt


@admin.register(Account)
class AccountAdmin(BaseUserAdmin):
    list_display = ['phone_number', 'email', 'display_name', 'wallet_address', 'is_active', 'date_joined']
    list_filter = ['is_active', 'is_staff']
    search_fields = ['phone_number', 'email', 'display_name', 'wallet_address']
    ordering = ['-date_joined']
    readonly_fields = ['wallet_address', 'date_joined', 'last_login']
    fieldsets = (
        (None, {'fields': ('phone_number', 'email', 'password')}),
        ('Profile', {'fields': ('display_name', 'wallet_address')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Dates', {'fields': ('date_joined', 'last_login')}),
    )
    add_fieldsets = (
        (None, {'classes': ('wide',), 'fields': ('phone_number', 'email', 'password1', 'password2')}),
    )


@admin.register(PhoneVerification)
class PhoneVerificationAdmin(admin.ModelAdmin):
    list_display = ['phone', 'verified', 'attempts', 'expires_at', 'created_at']
    list_filter = ['verified']
    search_fields = ['phone']
    # otp_hash is never shown
    exclude = ['otp_hash']
    readonly_fields = ['phone', 'verified', 'verified_at', 'attempts', 'expires_at', 'created_at']


@admin.register(VerificationAttempt)
class VerificationAttemptAdmin(admin.ModelAdmin):
    list_display = ['phone', 'ip_address', 'attempted_at']
    search_fields = ['phone', 'ip_address']
    readonly_fields = ['phone', 'ip_address', 'attempted_at']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
