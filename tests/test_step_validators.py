"""
Gating predicates for each purchase step.
Run from project root: python -m pytest tests/test_step_validators.py -v
"""
import unittest

from schemas.account import Address, VerifiedFlags
from schemas.flow import PurchaseFlowState
from services.plan_calculator import PlanConstants, build_plan_selection
from services.step_validators import (
    document_key,
    is_valid_payment_amount,
    kyc_errors,
    plan_selection_errors,
    user_info_errors,
    validate_kyc,
    validate_user_info,
)
from tests.factories import complete_joint, complete_primary, installment_scheme, kyc_documents_for, single_scheme


def _state_with_plan(scheme, units=1, custom_payment=None):
    plan = build_plan_selection(scheme, units, PlanConstants())
    return PurchaseFlowState(project_id="P123", selected_plan=plan, selected_units=units, custom_payment=custom_payment)


class TestPaymentAmount(unittest.TestCase):
    def test_no_plan_is_invalid(self):
        state = PurchaseFlowState(project_id="P123")
        self.assertFalse(is_valid_payment_amount(state))
        self.assertEqual(plan_selection_errors(state), ["Please select an investment plan"])

    def test_boundary_equal_to_minimum(self):
        state = _state_with_plan(installment_scheme(), units=2, custom_payment=72_000)
        self.assertTrue(is_valid_payment_amount(state))
        state.custom_payment = 71_999
        self.assertFalse(is_valid_payment_amount(state))

    def test_applies_to_single_payment_plans(self):
        state = _state_with_plan(single_scheme(), custom_payment=199_999)
        self.assertFalse(is_valid_payment_amount(state))
        self.assertIn("₹2,00,000", plan_selection_errors(state)[0])

    def test_falls_back_to_plan_payment_amount(self):
        state = _state_with_plan(single_scheme())
        self.assertTrue(is_valid_payment_amount(state))
        self.assertEqual(plan_selection_errors(state), [])


class TestUserInfo(unittest.TestCase):
    def test_complete_accounts_pass(self):
        self.assertTrue(validate_user_info([complete_primary()]))
        self.assertTrue(validate_user_info([complete_primary("business"), complete_joint(1, "NRI")]))

    def test_missing_phone(self):
        primary = complete_primary()
        primary.data.phone_number = ""
        errors = user_info_errors([primary])
        self.assertEqual(errors, ["Primary account: phone number is required"])

    def test_invalid_phone(self):
        primary = complete_primary()
        primary.data.phone_number = "12"
        self.assertIn("Primary account: phone number is invalid", user_info_errors([primary]))

    def test_individual_needs_pan_verification_even_with_gst_flag(self):
        primary = complete_primary()
        primary.verified = VerifiedFlags(gst=True, aadhar=True)
        errors = user_info_errors([primary])
        self.assertEqual(len(errors), 1)
        self.assertIn("pan number is not verified", errors[0])

    def test_foreign_identity_number_rejected(self):
        primary = complete_primary("business")
        primary.data.pan_number = "ABCDE1234F"
        errors = user_info_errors([primary])
        self.assertIn("Primary account: PAN number should not be provided for business user type", errors)

    def test_joint_errors_are_labelled(self):
        joint = complete_joint(1)
        joint.terms_accepted = False
        joint.data.present_address = Address(street="", city="Pune")
        errors = user_info_errors([complete_primary(), joint])
        self.assertEqual(
            errors,
            [
                "Joint account 1: present address street and city are required",
                "Joint account 1: terms and conditions must be accepted",
            ],
        )

    def test_joint_holder_needs_address_occupation_and_income(self):
        joint = complete_joint(1)
        joint.data.present_address = Address()
        joint.data.occupation = ""
        joint.data.annual_income = ""
        self.assertFalse(validate_user_info([complete_primary(), joint]))
        self.assertEqual(
            user_info_errors([complete_primary(), joint]),
            [
                "Joint account 1: occupation is required",
                "Joint account 1: annual income is required",
                "Joint account 1: present address street and city are required",
            ],
        )

        primary = complete_primary()
        primary.data.occupation = ""
        self.assertEqual(user_info_errors([primary]), ["Primary account: occupation is required"])

    def test_primary_required(self):
        self.assertIn("Exactly one primary account is required", user_info_errors([complete_joint(1)]))


class TestKyc(unittest.TestCase):
    def _state(self, accounts, documents, accepted=True, joint_accepted=None):
        return PurchaseFlowState(
            project_id="P123",
            current_step="kyc",
            accounts=accounts,
            kyc_documents=documents,
            kyc_accepted=accepted,
            joint_kyc_accepted=joint_accepted or [],
        )

    def test_document_keys(self):
        self.assertEqual(document_key("pan"), "pan")
        self.assertEqual(document_key("pan", 1), "joint1Pan")
        self.assertEqual(document_key("passport", 2), "joint2Passport")

    def test_primary_individual(self):
        state = self._state([complete_primary()], kyc_documents_for(["individual"]))
        self.assertTrue(validate_kyc(state))

    def test_declaration_required(self):
        state = self._state([complete_primary()], kyc_documents_for(["individual"]), accepted=False)
        self.assertEqual(kyc_errors(state), ["Please accept the KYC declaration"])

    def test_missing_photo(self):
        docs = kyc_documents_for(["business"])
        del docs["photo"]
        state = self._state([complete_primary("business")], docs)
        self.assertEqual(kyc_errors(state), ["Primary account: photo document is required"])

    def test_joint_documents_use_joint_keys(self):
        docs = kyc_documents_for(["individual", "NRI"])
        self.assertIn("joint1Passport", docs)
        state = self._state([complete_primary(), complete_joint(1, "NRI")], docs, joint_accepted=[True])
        self.assertTrue(validate_kyc(state))

        del docs["joint1Photo"]
        state = self._state([complete_primary(), complete_joint(1, "NRI")], docs, joint_accepted=[True])
        self.assertEqual(kyc_errors(state), ["Joint account 1: photo document is required"])

    def test_joint_declaration_required(self):
        docs = kyc_documents_for(["individual", "individual"])
        state = self._state([complete_primary(), complete_joint(1)], docs, joint_accepted=[False])
        self.assertEqual(kyc_errors(state), ["Every joint holder must accept the KYC declaration"])


if __name__ == "__main__":
    unittest.main()
