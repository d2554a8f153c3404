from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field

from schemas.base import CamelModel

UnitPaymentStatus = Literal["none", "advance_paid", "partially_paid", "fully_paid"]


class PaymentSchema(BaseModel):
    id: Optional[str] = None
    amount: float = 0
    payment_status: str = Field("pending", validation_alias=AliasChoices("payment_status", "status"))
    installment_number: Optional[int] = None
    penalty_amount: float = 0
    rebate_amount: float = 0
    payment_date: Optional[str] = None
    receipt_id: Optional[str] = None

    model_config = {"populate_by_name": True, "extra": "ignore"}


class NextInstallmentSchema(BaseModel):
    installment_number: Optional[int] = None
    due_date: Optional[str] = None
    amount: Optional[float] = None

    model_config = {"extra": "allow"}


class PortfolioItemSchema(BaseModel):
    unit_id: str
    unit_number: Optional[str] = None
    total_investment: float = 0
    user_paid: float = 0
    balance_amount: float = 0
    payment_status: UnitPaymentStatus = "none"
    unit_status: Literal["none", "active", "inactive"] = "none"
    purchase_date: Optional[str] = None
    total_area_sqft: Optional[float] = None
    monthly_rental: Optional[float] = None
    rental_start_date: Optional[str] = None
    next_installment: Optional[NextInstallmentSchema] = None
    project: Optional[dict[str, Any]] = None
    scheme: Optional[dict[str, Any]] = None

    model_config = {"extra": "ignore"}


class SipSummary(CamelModel):
    unit_id: Optional[str] = None
    total_investment: float
    total_paid: float
    total_rebates: float
    total_penalties: float
    balance: float
    progress_percent: float
    installments_paid: int
    total_installments: Optional[int] = None
    next_installment: Optional[dict[str, Any]] = None
    status: Literal["Completed", "Active", "Inactive"]


class PortfolioSummary(CamelModel):
    total_units: int
    total_invested: float
    total_paid: float
    total_balance: float


class SipRequest(BaseModel):
    unit_id: Optional[str] = None
    total_investment: float = Field(..., ge=0)
    payment_status: UnitPaymentStatus = "none"
    unit_status: Literal["none", "active", "inactive"] = "active"
    next_installment: Optional[NextInstallmentSchema] = None
    payments: list[PaymentSchema] = Field(default_factory=list)
