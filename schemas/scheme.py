from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from schemas.base import CamelModel

SchemeType = Literal["single_payment", "installment"]
PlanType = Literal["single", "installment"]


class SchemeSchema(BaseModel):
    """Investment scheme as returned by the platform backend (snake_case)."""

    id: str
    project_id: Optional[str] = None
    scheme_type: SchemeType
    scheme_name: Optional[str] = None
    area_sqft: float = Field(..., ge=0)
    base_price: Optional[float] = None
    booking_advance: Optional[float] = None
    balance_payment_days: Optional[int] = None
    total_installments: Optional[int] = None
    monthly_installment_amount: Optional[float] = None
    rental_start_month: Optional[int] = None
    monthly_rental_income: Optional[float] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    model_config = {"extra": "ignore", "frozen": True}

    @model_validator(mode="after")
    def _check_plan_fields(self) -> "SchemeSchema":
        if self.scheme_type == "installment":
            if not self.total_installments or self.total_installments <= 0:
                raise ValueError("installment scheme requires a positive total_installments")
            if not self.monthly_installment_amount or self.monthly_installment_amount <= 0:
                raise ValueError("installment scheme requires a positive monthly_installment_amount")
        elif self.booking_advance is None:
            raise ValueError("single_payment scheme requires booking_advance")
        return self

    @property
    def is_installment(self) -> bool:
        return self.scheme_type == "installment"


class PlanSelection(CamelModel):
    type: PlanType
    plan_id: str
    area: float
    total_area: float
    price: float
    monthly_amount: Optional[float] = None
    installments: Optional[int] = None
    rental_start: str
    monthly_rental: float
    units: int = Field(..., ge=1)
    min_payment: float
    payment_amount: float
    balance_after_payment: float


class QuoteRequest(BaseModel):
    scheme: SchemeSchema
    units: int = Field(1, ge=1)
