"""
FinMo - Django Settings
"""

import os
from pathlib import Path
from dotenv import load_dotenv
import dj_database_url

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('SECRET_KEY', 'finmo-insecure-dev-key-change-in-production')
DEBUG = os.getenv('DEBUG', 'True').lower() == 'true'
ALLOWED_HOSTS = os.getenv('ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',')

# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    # Third-party
    'corsheaders',
    'rest_framework',
    'django_filters',
    'drf_spectacular',
    # FinMo apps
    'accounts',
    'wallet',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'config.middleware.PreflightMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'

# Custom user model
AUTH_USER_MODEL = 'accounts.Account'

# Database
DATABASES = {
    'default': dj_database_url.config(
        default=f'sqlite:///{BASE_DIR / "db.sqlite3"}'
    )
}

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# Static files
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# ============ REST Framework ============
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'accounts.authentication.JWTAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_THROTTLE_CLASSES': [
        'rest_framework.throttling.AnonRateThrottle',
        'rest_framework.throttling.UserRateThrottle',
    ],
    'DEFAULT_THROTTLE_RATES': {
        'anon': os.getenv('THROTTLE_ANON_RATE', '60/minute'),
        'user': os.getenv('THROTTLE_USER_RATE', '120/minute'),
        'otp': os.getenv('THROTTLE_OTP_RATE', '10/minute'),
    },
    'DEFAULT_FILTER_BACKENDS': [
        'django_filters.rest_framework.DjangoFilterBackend',
        'rest_framework.filters.OrderingFilter',
    ],
    'DEFAULT_PAGINATION_CLASS': 'rest_framework.pagination.PageNumberPagination',
    'PAGE_SIZE': 20,
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'EXCEPTION_HANDLER': 'accounts.errors.api_exception_handler',
}

# ============ API Documentation (drf-spectacular) ============
SPECTACULAR_SETTINGS = {
    'TITLE': 'FinMo Wallet API',
    'DESCRIPTION': (
        '# FinMo Wallet API\n\n'
        'Phone-first crypto wallet: SMS OTP sign-in and instant, zero-fee internal transfers '
        'between FinMo accounts.\n\n'
        '---\n\n'
        '## Sign-in flow\n'
        '1. `POST /api/auth/issue-otp/` sends a 6-digit code by SMS (max 3 per phone per hour, valid 10 minutes)\n'
        '2. `POST /api/auth/confirm-otp/` checks the code (5 wrong attempts lock the code)\n'
        '3. `POST /api/auth/exchange-session/` (existing account) or `POST /api/auth/register/` '
        '(new account) returns JWT tokens; must be called within 5 minutes of step 2\n\n'
        '## Authentication\n'
        'Wallet endpoints use JWT Bearer tokens:\n'
        '- `Authorization: Bearer <access_token>`\n'
        '- Access tokens expire in 60 minutes; refresh tokens last 7 days\n\n'
        '## Phone numbers\n'
        'Nigeria, Kenya, South Africa, Ghana, Uganda and Tanzania are supported. Numbers without a '
        'country code are treated as Nigerian (`08031234567` → `+2348031234567`).\n\n'
        '## Errors\n'
        'Failures return `{"success": false, "error": "<message>", "errorCode": "<CODE>"}`.\n'
    ),
    'VERSION': '1.0.0',
    'SERVE_INCLUDE_SCHEMA': False,
    'TAGS': [
        {'name': 'Auth: Phone OTP', 'description': 'Issue and confirm SMS codes, exchange for a session, sign up'},
        {'name': 'Wallet: Transfers', 'description': 'Instant internal transfers'},
        {'name': 'Wallet: Balances', 'description': 'Token balances'},
        {'name': 'Wallet: History', 'description': 'Sent and received transfers'},
    ],
    'COMPONENT_SPLIT_REQUEST': True,
    'SCHEMA_PATH_PREFIX': r'/api/',
    'SCHEMA_PATH_PREFIX_TRIM': False,
    'PREPROCESSING_HOOKS': ['config.spectacular_hooks.preprocess_exclude_admin'],
}

# ============ Celery ============
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', 'redis://localhost:6379/3')
CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', 'redis://localhost:6379/8')
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ALWAYS_EAGER = os.getenv('CELERY_TASK_ALWAYS_EAGER', 'False').lower() == 'true'

# Azure Redis requires SSL cert config when using rediss://
if CELERY_BROKER_URL.startswith('rediss://'):
    import ssl
    CELERY_BROKER_USE_SSL = {'ssl_cert_reqs': ssl.CERT_REQUIRED}
    CELERY_REDIS_BACKEND_USE_SSL = {'ssl_cert_reqs': ssl.CERT_REQUIRED}

# ============ CORS ============
# Public API: any origin, no cookies
CORS_ALLOW_ALL_ORIGINS = True
CORS_ALLOW_CREDENTIALS = False
CORS_ALLOW_HEADERS = [
    'authorization',
    'x-client-info',
    'apikey',
    'content-type',
]
CSRF_TRUSTED_ORIGINS = os.getenv('CSRF_TRUSTED_ORIGINS', '').split(',') if os.getenv('CSRF_TRUSTED_ORIGINS') else []

# ============ Security ============
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

# ============ Twilio SMS ============
TWILIO_ACCOUNT_SID = os.getenv('TWILIO_ACCOUNT_SID')
TWILIO_AUTH_TOKEN = os.getenv('TWILIO_AUTH_TOKEN')
TWILIO_PHONE_NUMBER = os.getenv('TWILIO_PHONE_NUMBER')

# ============ Phone OTP ============
OTP_EXPIRY_MINUTES = int(os.getenv('OTP_EXPIRY_MINUTES', '10'))
OTP_MAX_PER_HOUR = int(os.getenv('OTP_MAX_PER_HOUR', '3'))
OTP_MAX_ATTEMPTS = int(os.getenv('OTP_MAX_ATTEMPTS', '5'))
SESSION_EXCHANGE_WINDOW_MINUTES = int(os.getenv('SESSION_EXCHANGE_WINDOW_MINUTES', '5'))
SYNTHETIC_EMAIL_DOMAIN = os.getenv('SYNTHETIC_EMAIL_DOMAIN', 'finmo.app')

# ============ Transfers ============
TRANSFER_MIN_AMOUNT = os.getenv('TRANSFER_MIN_AMOUNT', '0.01')
TRANSFER_MAX_AMOUNT = os.getenv('TRANSFER_MAX_AMOUNT', '1000000')

# symbol -> on-chain decimals
SUPPORTED_TOKENS = {
    'USDC': 6,
    'USDT': 6,
    'DAI': 18,
    'MATIC': 18,
    'ETH': 18,
}

# ============ JWT ============
JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', SECRET_KEY)
JWT_ACCESS_TOKEN_LIFETIME_MINUTES = int(os.getenv('JWT_ACCESS_TOKEN_LIFETIME_MINUTES', '60'))
JWT_REFRESH_TOKEN_LIFETIME_DAYS = int(os.getenv('JWT_REFRESH_TOKEN_LIFETIME_DAYS', '7'))

# ============ Logging ============
LOG_DIR = BASE_DIR / 'logs'
LOG_DIR.mkdir(exist_ok=True)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'file': {
            'level': 'INFO',
            'class': 'logging.FileHandler',
            'filename': LOG_DIR / 'finmo.log',
            'formatter': 'verbose',
        },
        'console': {
            'level': 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console', 'file'],
        'level': os.getenv('LOG_LEVEL', 'INFO'),
    },
}
