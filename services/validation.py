"""
Format checks for identity, contact and bank fields.

These are syntactic only; whether a PAN/Aadhaar/GSTIN/passport actually exists is
decided by the platform's document verification endpoints. Checks are
case-sensitive and nothing is normalized here.
"""
from __future__ import annotations

import re
from typing import Any, Mapping

VALIDATION_PATTERNS: dict[str, re.Pattern[str]] = {
    "pan": re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$"),
    "aadhaar": re.compile(r"^\d{12}$"),
    "gstin": re.compile(r"^[0-9A-Z]{15}$"),
    # Passport numbers of NRI holders are foreign-issued; only the generic shape is checked.
    "passport": re.compile(r"^[A-Z0-9]{6,12}$"),
    "phone": re.compile(r"^\+?\d{1,3}[-.\s]?\d{6,10}$"),
    "account_number": re.compile(r"^\d{9,18}$"),
    "ifsc": re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$"),
}


def _matches(kind: str, value: Any) -> bool:
    return isinstance(value, str) and VALIDATION_PATTERNS[kind].fullmatch(value) is not None


def validate_pan(pan: str) -> bool:
    return _matches("pan", pan)


def validate_aadhaar(aadhaar: str) -> bool:
    return _matches("aadhaar", aadhaar)


def validate_gstin(gstin: str) -> bool:
    return _matches("gstin", gstin)


def validate_passport(passport: str) -> bool:
    return _matches("passport", passport)


def validate_phone(phone: str) -> bool:
    return _matches("phone", phone)


def validate_account_number(account_number: str) -> bool:
    return _matches("account_number", account_number)


def validate_ifsc(ifsc: str) -> bool:
    return _matches("ifsc", ifsc)


_FIELD_RULES = {
    "pan_number": (validate_pan, "Invalid PAN format (e.g., ABCDE1234F)"),
    "aadhar_number": (validate_aadhaar, "Aadhaar must be 12 digits"),
    "gst_number": (validate_gstin, "Invalid GSTIN format (15 alphanumeric characters)"),
    "passport_number": (validate_passport, "Invalid Passport format (6-12 alphanumeric characters)"),
    "phone_number": (validate_phone, "Invalid phone format (e.g., +91 9876543210)"),
    "account_number": (validate_account_number, "Account number must be 9-18 digits"),
    "ifsc_code": (validate_ifsc, "Invalid IFSC format (e.g., SBIN0000123)"),
}


def get_field_error(field: str, value: str) -> str:
    """Inline error message for a form field, or '' when valid or the field has no rule."""
    rule = _FIELD_RULES.get(field)
    if rule is None:
        return ""
    check, message = rule
    return "" if check(value) else message


_USER_TYPE_RULES: dict[str, tuple[tuple[str, Any, str], ...]] = {
    "individual": (
        ("pan_number", validate_pan, "Valid PAN number is required for individual user type"),
        ("aadhar_number", validate_aadhaar, "Valid Aadhaar number is required for individual user type"),
    ),
    "business": (
        ("gst_number", validate_gstin, "Valid GST number is required for business user type"),
    ),
    "NRI": (
        ("passport_number", validate_passport, "Valid passport number is required for NRI user type"),
    ),
}

_FIELD_LABELS = {
    "pan_number": "PAN number",
    "aadhar_number": "Aadhaar number",
    "gst_number": "GST number",
    "passport_number": "Passport number",
}


def validate_user_type_fields(user_type: str, fields: Mapping[str, Any]) -> list[str]:
    """
    Check that the identity numbers match the declared user type.
    Required numbers must be present and well-formed; numbers that belong to
    another user type must be absent.
    """
    rules = _USER_TYPE_RULES.get(user_type)
    if rules is None:
        return [f"Unknown user type {user_type!r}"]
    errors: list[str] = []
    required = set()
    for field, check, message in rules:
        required.add(field)
        value = fields.get(field)
        if not value or not check(value):
            errors.append(message)
    for field, label in _FIELD_LABELS.items():
        if field not in required and fields.get(field):
            errors.append(f"{label} should not be provided for {user_type} user type")
    return errors
