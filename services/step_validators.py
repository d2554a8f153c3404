"""
Gating predicates for the purchase flow.

Each `*_errors` function returns the human-readable reasons that block the
next transition (empty list = may advance); the boolean validators wrap them.
"""
from __future__ import annotations

from typing import Optional, Sequence

from schemas.account import IDENTITY_FIELDS
from schemas.flow import PurchaseFlowState
from services.validation import validate_phone, validate_user_type_fields
from utils.money import format_inr


def document_key(kind: str, joint_index: Optional[int] = None) -> str:
    """Key of an uploaded KYC file: 'pan' for the primary holder, 'joint1Pan' for the first joint holder."""
    if joint_index is None:
        return kind
    return f"joint{joint_index}{kind.capitalize()}"


def is_valid_payment_amount(state: PurchaseFlowState) -> bool:
    plan = state.selected_plan
    if plan is None:
        return False
    amount = state.custom_payment if state.custom_payment is not None else plan.payment_amount
    return amount >= plan.min_payment


def plan_selection_errors(state: PurchaseFlowState) -> list[str]:
    if state.selected_plan is None:
        return ["Please select an investment plan"]
    if not is_valid_payment_amount(state):
        return [f"Payment amount must be at least {format_inr(state.selected_plan.min_payment)}"]
    return []


HOLDER_FIELDS = (
    ("surname", "surname"),
    ("name", "name"),
    ("dob", "date of birth"),
    ("email", "email"),
    ("occupation", "occupation"),
    ("annual_income", "annual income"),
)


def _account_label(joint_index: Optional[int]) -> str:
    return "Primary account" if joint_index is None else f"Joint account {joint_index}"


def user_info_errors(accounts: Sequence) -> list[str]:
    errors: list[str] = []
    primaries = [a for a in accounts if a.type == "primary"]
    if len(primaries) != 1:
        errors.append("Exactly one primary account is required")

    joint_index = 0
    for account in accounts:
        idx = None
        if account.type == "joint":
            joint_index += 1
            idx = joint_index
        label = _account_label(idx)
        data = account.data

        for field, title in HOLDER_FIELDS:
            if not str(getattr(data, field) or "").strip():
                errors.append(f"{label}: {title} is required")

        if not data.phone_number:
            errors.append(f"{label}: phone number is required")
        elif not validate_phone(data.phone_number):
            errors.append(f"{label}: phone number is invalid")

        address = data.present_address
        if not address.street.strip() or not address.city.strip():
            errors.append(f"{label}: present address street and city are required")

        bank = data.account_details
        if not bank.account_number or not bank.ifsc_code:
            errors.append(f"{label}: bank account number and IFSC code are required")

        if not account.terms_accepted:
            errors.append(f"{label}: terms and conditions must be accepted")

        for message in validate_user_type_fields(data.user_type, data.identity_numbers()):
            errors.append(f"{label}: {message}")

        for kind in data.required_verifications:
            if not getattr(account.verified, kind):
                errors.append(f"{label}: {IDENTITY_FIELDS[kind].replace('_', ' ')} is not verified")
    return errors


def validate_user_info(accounts: Sequence) -> bool:
    return not user_info_errors(accounts)


def kyc_errors(state: PurchaseFlowState) -> list[str]:
    errors: list[str] = []
    if not state.kyc_accepted:
        errors.append("Please accept the KYC declaration")

    primary = state.primary_account
    if primary is None:
        errors.append("Primary account is missing")
    else:
        for kind in primary.data.required_documents:
            if state.kyc_documents.get(document_key(kind)) is None:
                errors.append(f"Primary account: {kind} document is required")

    joints = state.joint_accounts
    if joints:
        if len(state.joint_kyc_accepted) != len(joints) or not all(state.joint_kyc_accepted):
            errors.append("Every joint holder must accept the KYC declaration")
        for i, account in enumerate(joints, start=1):
            for kind in account.data.required_documents:
                if state.kyc_documents.get(document_key(kind, i)) is None:
                    errors.append(f"Joint account {i}: {kind} document is required")
    return errors


def validate_kyc(state: PurchaseFlowState) -> bool:
    return not kyc_errors(state)
