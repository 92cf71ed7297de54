from django.test import SimpleTestCase

from accounts.phone import (
    DIGIT_COUNT_MISMATCH, EMPTY_NUMBER, INVALID_COUNTRY, mask_phone, normalize_phone,
)


class NormalizePhoneTest(SimpleTestCase):
    def test_local_nigerian_number(self):
        self.assertEqual(normalize_phone('08031234567'), {'valid': True, 'normalized': '+2348031234567'})

    def test_formatting_is_stripped(self):
        result = normalize_phone('+234 (803) 123-4567')
        self.assertTrue(result['valid'])
        self.assertEqual(result['normalized'], '+2348031234567')

    def test_bare_country_prefix_gets_plus(self):
        self.assertEqual(normalize_phone('254712345678')['normalized'], '+254712345678')
        self.assertEqual(normalize_phone('27821234567')['normalized'], '+27821234567')

    def test_no_prefix_defaults_to_nigeria(self):
        self.assertEqual(normalize_phone('8031234567')['normalized'], '+2348031234567')

    def test_each_supported_country(self):
        cases = {
            '+2348031234567': '+2348031234567',
            '+254712345678': '+254712345678',
            '+27821234567': '+27821234567',
            '+233241234567': '+233241234567',
            '+256712345678': '+256712345678',
            '+255712345678': '+255712345678',
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertEqual(normalize_phone(raw)['normalized'], expected)

    def test_wrong_digit_count(self):
        result = normalize_phone('080312345')
        self.assertFalse(result['valid'])
        self.assertEqual(result['error_code'], DIGIT_COUNT_MISMATCH)
        self.assertEqual(
            result['error'],
            'Nigeria numbers must have exactly 10 digits after +234. You provided 8.',
        )

    def test_unsupported_country(self):
        result = normalize_phone('+14155550123')
        self.assertFalse(result['valid'])
        self.assertEqual(result['error_code'], INVALID_COUNTRY)
        self.assertEqual(result['error'], 'Invalid or unsupported country code')

    def test_country_code_only(self):
        result = normalize_phone('+234')
        self.assertFalse(result['valid'])
        self.assertEqual(result['error_code'], EMPTY_NUMBER)

    def test_empty_input_is_not_valid(self):
        self.assertFalse(normalize_phone('')['valid'])
        self.assertFalse(normalize_phone(None)['valid'])

    def test_normalizing_twice_is_stable(self):
        once = normalize_phone('0803 123 4567')['normalized']
        self.assertEqual(normalize_phone(once)['normalized'], once)


class MaskPhoneTest(SimpleTestCase):
    def test_mask_keeps_prefix_only(self):
        self.assertEqual(mask_phone('+2348031234567'), '+23480***')
        self.assertEqual(mask_phone(''), '')
