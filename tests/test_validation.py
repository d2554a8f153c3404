"""
Format checks for identity, phone and bank fields.
Run from project root: python -m pytest tests/test_validation.py -v
"""
import unittest

from services.validation import (
    get_field_error,
    validate_aadhaar,
    validate_account_number,
    validate_gstin,
    validate_ifsc,
    validate_pan,
    validate_passport,
    validate_phone,
    validate_user_type_fields,
)


class TestFormatRules(unittest.TestCase):
    def test_pan_is_case_sensitive(self):
        self.assertTrue(validate_pan("ABCDE1234F"))
        self.assertFalse(validate_pan("abcde1234f"))

    def test_pan_shape(self):
        self.assertFalse(validate_pan("ABCD1234F"))
        self.assertFalse(validate_pan("ABCDE1234FG"))
        self.assertFalse(validate_pan("ABCDE12345"))

    def test_aadhaar_twelve_digits(self):
        self.assertTrue(validate_aadhaar("123456789012"))
        self.assertFalse(validate_aadhaar("12345678901"))
        self.assertFalse(validate_aadhaar("12345678901a"))

    def test_gstin_and_passport(self):
        self.assertTrue(validate_gstin("27AAPFU0939F1ZV"))
        self.assertFalse(validate_gstin("27aapfu0939f1zv"))
        self.assertTrue(validate_passport("Z1234567"))
        self.assertFalse(validate_passport("Z123"))
        self.assertFalse(validate_passport("Z1234567890123"))

    def test_phone(self):
        self.assertTrue(validate_phone("+91 9876543210"))
        self.assertTrue(validate_phone("9876543210"))
        self.assertFalse(validate_phone("phone"))
        self.assertFalse(validate_phone(""))

    def test_bank_fields(self):
        self.assertTrue(validate_account_number("123456789"))
        self.assertFalse(validate_account_number("12345678"))
        self.assertTrue(validate_ifsc("SBIN0000123"))
        self.assertFalse(validate_ifsc("SBIN1000123"))

    def test_non_string_is_invalid(self):
        self.assertFalse(validate_pan(None))


class TestFieldErrors(unittest.TestCase):
    def test_messages(self):
        self.assertEqual(get_field_error("pan_number", "ABCDE1234F"), "")
        self.assertIn("PAN", get_field_error("pan_number", "bad"))
        self.assertIn("12 digits", get_field_error("aadhar_number", "123"))
        self.assertIn("IFSC", get_field_error("ifsc_code", "x"))

    def test_unknown_field_has_no_rule(self):
        self.assertEqual(get_field_error("nickname", "anything"), "")


class TestUserTypeFields(unittest.TestCase):
    def test_individual_requires_pan_and_aadhaar(self):
        self.assertEqual(
            validate_user_type_fields("individual", {"pan_number": "ABCDE1234F", "aadhar_number": "123456789012"}),
            [],
        )
        errors = validate_user_type_fields("individual", {"pan_number": "ABCDE1234F"})
        self.assertEqual(len(errors), 1)
        self.assertIn("Aadhaar", errors[0])

    def test_foreign_numbers_rejected(self):
        errors = validate_user_type_fields("business", {"gst_number": "27AAPFU0939F1ZV", "pan_number": "ABCDE1234F"})
        self.assertEqual(errors, ["PAN number should not be provided for business user type"])

    def test_nri_needs_passport(self):
        self.assertEqual(validate_user_type_fields("NRI", {"passport_number": "Z1234567"}), [])
        self.assertTrue(validate_user_type_fields("NRI", {}))

    def test_unknown_user_type(self):
        self.assertTrue(validate_user_type_fields("trust", {}))


if __name__ == "__main__":
    unittest.main()
