"""Shared builders for schemes, accounts, an in-memory store and a fake platform backend."""
from __future__ import annotations

from typing import Any, Optional

import models  # noqa: F401
from database import init_db, make_engine, make_sessionmaker
from schemas.account import (
    AccountDetails,
    Address,
    JointAccount,
    JointAccountInfo,
    PrimaryAccount,
    UserInfo,
    VerifiedFlags,
)
from schemas.flow import DocumentRef
from schemas.portfolio import PaymentSchema, PortfolioItemSchema
from schemas.scheme import SchemeSchema
from services.errors import PlatformError
from services.flow_store import FlowStore


def installment_scheme(**overrides) -> SchemeSchema:
    data = {
        "id": "sch-inst",
        "project_id": "P123",
        "scheme_type": "installment",
        "scheme_name": "100 Installments",
        "area_sqft": 120,
        "booking_advance": None,
        "total_installments": 100,
        "monthly_installment_amount": 36_000,
        "rental_start_month": None,
        "monthly_rental_income": None,
    }
    data.update(overrides)
    return SchemeSchema(**data)


def single_scheme(**overrides) -> SchemeSchema:
    data = {
        "id": "sch-single",
        "project_id": "P123",
        "scheme_type": "single_payment",
        "scheme_name": "Single Payment",
        "area_sqft": 120,
        "booking_advance": 200_000,
        "rental_start_month": 6,
    }
    data.update(overrides)
    return SchemeSchema(**data)


def _identity(user_type: str) -> dict[str, str]:
    if user_type == "business":
        return {"gst_number": "27AAPFU0939F1ZV"}
    if user_type == "NRI":
        return {"passport_number": "Z1234567"}
    return {"pan_number": "ABCDE1234F", "aadhar_number": "123456789012"}


def _verified(user_type: str) -> VerifiedFlags:
    kinds = {"individual": ("pan", "aadhar"), "business": ("gst",), "NRI": ("passport",)}[user_type]
    return VerifiedFlags(**{k: True for k in kinds})


def _holder_fields(name: str, user_type: str) -> dict[str, Any]:
    return {
        "surname": "Sharma",
        "name": name,
        "dob": "1990-04-12",
        "email": f"{name.lower()}@example.com",
        "phone_number": "+91 9876543210",
        "present_address": Address(street="12 MG Road", city="Pune", state="MH", postal_code="411001"),
        "occupation": "Engineer",
        "annual_income": "1200000",
        "user_type": user_type,
        "account_details": AccountDetails(
            account_holder_name=f"{name} Sharma",
            bank_account_name="HDFC Bank",
            account_number="123456789012",
            ifsc_code="HDFC0001234",
        ),
        **_identity(user_type),
    }


def complete_primary(user_type: str = "individual", verified: bool = True) -> PrimaryAccount:
    return PrimaryAccount(
        id="primary",
        data=UserInfo(**_holder_fields("Asha", user_type)),
        terms_accepted=True,
        verified=_verified(user_type) if verified else VerifiedFlags(),
    )


def complete_joint(index: int = 1, user_type: str = "individual", verified: bool = True) -> JointAccount:
    return JointAccount(
        id=f"joint-{index}",
        data=JointAccountInfo(**_holder_fields(f"Ravi{index}", user_type)),
        terms_accepted=True,
        verified=_verified(user_type) if verified else VerifiedFlags(),
    )


def doc(name: str) -> DocumentRef:
    return DocumentRef(file_name=name, content_type="image/jpeg", size=1024)


def kyc_documents_for(user_types: list[str]) -> dict[str, DocumentRef]:
    """Documents for the primary holder (first entry) and joint holders (rest)."""
    kinds = {"individual": ("pan", "aadhar", "photo"), "business": ("gst", "photo"), "NRI": ("passport", "photo")}
    docs: dict[str, DocumentRef] = {}
    for i, user_type in enumerate(user_types):
        for kind in kinds[user_type]:
            key = kind if i == 0 else f"joint{i}{kind.capitalize()}"
            docs[key] = doc(f"{key}.jpg")
    return docs


class InMemoryStoreMixin:
    """For IsolatedAsyncioTestCase: a fresh in-memory database and FlowStore per test."""

    session_id = "sess-1"

    async def asyncSetUp(self):
        self.engine = make_engine("sqlite+aiosqlite:///:memory:")
        await init_db(self.engine)
        self.db = make_sessionmaker(self.engine)()
        self.store = FlowStore(self.db, self.session_id)

    async def asyncTearDown(self):
        await self.db.close()
        await self.engine.dispose()


class FakePlatform:
    """Records calls; `fail_on` names account types whose profile creation fails."""

    def __init__(self, fail_on: Optional[set[str]] = None, profiles: Optional[list[dict]] = None,
                 schemes: Optional[list[SchemeSchema]] = None):
        self.fail_on = fail_on or set()
        self.profiles = profiles or []
        self.schemes = schemes or []
        self.portfolio: list[PortfolioItemSchema] = []
        self.payments: dict[str, list[PaymentSchema]] = {}
        self.profile_calls: list[tuple[str, dict]] = []
        self.purchase_calls: list[dict] = []
        self.verify_calls: list[tuple[str, str]] = []
        self.verify_result = (True, "Verified")
        self.purchase_response = {
            "status": "success",
            "message": "Unit purchased",
            "purchase_id": "pu-1",
            "transaction_id": "txn-1",
        }

    async def create_user_profile(self, account, documents=None) -> str:
        self.profile_calls.append((account.id, documents or {}))
        if account.type in self.fail_on:
            raise PlatformError("Profile rejected by server", status_code=400)
        return f"prof-{account.id}"

    async def list_user_profiles(self):
        return self.profiles

    async def list_schemes(self, project_id, page=1, limit=10):
        return [s for s in self.schemes if s.project_id == project_id]

    async def create_purchased_unit(self, payload):
        self.purchase_calls.append(payload)
        return dict(self.purchase_response)

    async def verify_pan(self, pan_number, full_name):
        self.verify_calls.append(("pan", pan_number))
        return self.verify_result

    async def verify_aadhaar(self, aadhar_number, image=None):
        self.verify_calls.append(("aadhar", aadhar_number))
        return self.verify_result

    async def verify_gstin(self, gst_number):
        self.verify_calls.append(("gst", gst_number))
        return self.verify_result

    async def verify_passport(self, passport_number, full_name, dob):
        self.verify_calls.append(("passport", passport_number))
        return self.verify_result

    async def get_portfolio(self):
        return self.portfolio

    async def list_payments(self, unit_id):
        return self.payments.get(unit_id, [])
