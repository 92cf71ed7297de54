"""
Phone normalization to E.164 for the supported markets.

Accepts: 08031234567, 2348031234567, +234 803 123 4567, 8031234567
Returns: +2348031234567
"""

import re

DEFAULT_COUNTRY_CODE = '+234'

# prefix -> (country, subscriber digits)
COUNTRY_PHONE_RULES = {
    '+234': ('Nigeria', 10),
    '+254': ('Kenya', 9),
    '+27': ('South Africa', 9),
    '+233': ('Ghana', 9),
    '+256': ('Uganda', 9),
    '+255': ('Tanzania', 9),
}

_BARE_COUNTRY_PREFIXES = ('234', '254', '27', '233', '256', '255')

INVALID_COUNTRY = 'INVALID_COUNTRY'
EMPTY_NUMBER = 'EMPTY_NUMBER'
DIGIT_COUNT_MISMATCH = 'DIGIT_COUNT_MISMATCH'


def normalize_phone(raw):
    """
    Validate and normalize a user-entered phone number.

    Returns:
        dict: {'valid': True, 'normalized': '+234...'}
           or {'valid': False, 'error': str, 'error_code': str}
    """
    cleaned = re.sub(r'[^\d+]', '', raw or '')

    if not cleaned.startswith('+'):
        if cleaned.startswith('0'):
            cleaned = DEFAULT_COUNTRY_CODE + cleaned[1:]
        elif cleaned.startswith(_BARE_COUNTRY_PREFIXES):
            cleaned = '+' + cleaned
        else:
            cleaned = DEFAULT_COUNTRY_CODE + cleaned

    # 4-char prefixes (+234) before 3-char ones (+27)
    country_code = ''
    for size in (4, 3):
        if len(cleaned) >= size and cleaned[:size] in COUNTRY_PHONE_RULES:
            country_code = cleaned[:size]
            break

    if not country_code:
        return {
            'valid': False,
            'error': 'Invalid or unsupported country code',
            'error_code': INVALID_COUNTRY,
        }

    country, required = COUNTRY_PHONE_RULES[country_code]
    digits = re.sub(r'\D', '', cleaned[len(country_code):])

    if not digits:
        return {'valid': False, 'error': 'Phone number is required', 'error_code': EMPTY_NUMBER}

    if len(digits) != required:
        return {
            'valid': False,
            'error': (
                f'{country} numbers must have exactly {required} digits after '
                f'{country_code}. You provided {len(digits)}.'
            ),
            'error_code': DIGIT_COUNT_MISMATCH,
        }

    return {'valid': True, 'normalized': f'{country_code}{digits}'}


def mask_phone(phone):
    """Log-safe phone representation."""
    if not phone:
        return ''
    return f'{phone[:6]}***'

