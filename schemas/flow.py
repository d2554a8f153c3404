from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from schemas.account import Account, JointAccount, PrimaryAccount
from schemas.base import CamelModel
from schemas.scheme import PlanSelection, SchemeSchema

PurchaseStep = Literal["plan-selection", "user-info", "kyc", "payment", "confirmation"]


class DocumentRef(CamelModel):
    """Reference to an uploaded KYC file (the bytes live with the platform upload service)."""

    file_name: str
    content_type: Optional[str] = None
    size: Optional[int] = None
    upload_id: Optional[str] = None


class PurchaseFlowState(CamelModel):
    project_id: str
    current_step: PurchaseStep = "plan-selection"
    selected_scheme: Optional[SchemeSchema] = None
    selected_plan: Optional[PlanSelection] = None
    selected_units: int = Field(1, ge=1)
    accounts: list[Account] = Field(default_factory=list)
    kyc_documents: dict[str, DocumentRef] = Field(default_factory=dict)
    kyc_accepted: bool = False
    joint_kyc_accepted: list[bool] = Field(default_factory=list)
    custom_payment: Optional[float] = None
    user_profile_ids: list[str] = Field(default_factory=list)
    use_existing_profiles: bool = False
    purchase: Optional[dict[str, Any]] = None

    @model_validator(mode="after")
    def _one_primary(self) -> "PurchaseFlowState":
        if self.accounts:
            primaries = sum(1 for a in self.accounts if a.type == "primary")
            if primaries != 1:
                raise ValueError("exactly one primary account is required")
        return self

    @property
    def primary_account(self) -> Optional[PrimaryAccount]:
        return next((a for a in self.accounts if a.type == "primary"), None)

    @property
    def joint_accounts(self) -> list[JointAccount]:
        return [a for a in self.accounts if a.type == "joint"]


class SelectPlanRequest(BaseModel):
    scheme: SchemeSchema
    units: Optional[int] = Field(None, ge=1)


class UnitsChangeRequest(BaseModel):
    increment: bool


class JointAccountRequest(BaseModel):
    enabled: bool


class PaymentAmountRequest(BaseModel):
    amount: float


class AccountsUpdateRequest(CamelModel):
    accounts: list[Account]


class KycUpdateRequest(CamelModel):
    documents: Optional[dict[str, Optional[DocumentRef]]] = None
    kyc_accepted: Optional[bool] = None
    joint_kyc_accepted: Optional[list[bool]] = None


class ExistingProfilesRequest(CamelModel):
    profile_ids: list[str] = Field(..., min_length=1)


class BillingInfoRequest(CamelModel):
    billing_info: dict[str, Any] = Field(..., min_length=1)


class CompletePurchaseRequest(CamelModel):
    payment_reference: Optional[str] = None
    order_id: Optional[str] = None
