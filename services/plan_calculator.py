"""
Derives a PlanSelection from an investment scheme and a unit count.

Single payment: price is booking advance per unit.
Installment: price is installments x monthly amount per unit.
The minimum first payment is never below the configured floor.
"""
from __future__ import annotations

from dataclasses import dataclass

from config import settings
from schemas.scheme import PlanSelection, SchemeSchema


@dataclass(frozen=True)
class PlanConstants:
    min_payment_floor: float = 50_000
    installment_rental_rate: float = 0.30
    single_payment_rental_rate: float = 0.01

    @classmethod
    def from_settings(cls) -> "PlanConstants":
        return cls(
            min_payment_floor=settings.min_payment_floor,
            installment_rental_rate=settings.installment_rental_rate,
            single_payment_rental_rate=settings.single_payment_rental_rate,
        )


def base_payment_per_unit(scheme: SchemeSchema) -> float:
    if scheme.booking_advance is not None:
        return scheme.booking_advance
    if scheme.is_installment:
        return scheme.monthly_installment_amount or 0
    return 0


def min_payment(scheme: SchemeSchema, units: int, constants: PlanConstants | None = None) -> float:
    constants = constants or PlanConstants.from_settings()
    return max(base_payment_per_unit(scheme) * units, constants.min_payment_floor)


def total_price(scheme: SchemeSchema, units: int) -> float:
    if scheme.is_installment:
        return units * scheme.total_installments * scheme.monthly_installment_amount
    return units * scheme.booking_advance


def monthly_rental(scheme: SchemeSchema, units: int, constants: PlanConstants | None = None) -> float:
    constants = constants or PlanConstants.from_settings()
    if scheme.monthly_rental_income is not None:
        per_unit = scheme.monthly_rental_income
    elif scheme.is_installment:
        per_unit = scheme.monthly_installment_amount * constants.installment_rental_rate
    else:
        per_unit = scheme.booking_advance * constants.single_payment_rental_rate
    return round(units * per_unit, 2)


def rental_start_label(scheme: SchemeSchema) -> str:
    if scheme.rental_start_month:
        return f"{scheme.rental_start_month}th Month"
    return "Next month after last installment"


def build_plan_selection(
    scheme: SchemeSchema,
    units: int,
    constants: PlanConstants | None = None,
) -> PlanSelection:
    if units < 1:
        raise ValueError("units must be a positive integer")
    constants = constants or PlanConstants.from_settings()
    installment = scheme.is_installment
    price = total_price(scheme, units)
    minimum = min_payment(scheme, units, constants)
    return PlanSelection(
        type="installment" if installment else "single",
        plan_id=scheme.id,
        area=scheme.area_sqft,
        total_area=scheme.area_sqft * units,
        price=price,
        monthly_amount=scheme.monthly_installment_amount * units if installment else None,
        installments=scheme.total_installments if installment else None,
        rental_start=rental_start_label(scheme),
        monthly_rental=monthly_rental(scheme, units, constants),
        units=units,
        min_payment=minimum,
        payment_amount=minimum,
        balance_after_payment=price - minimum,
    )


def with_payment_amount(selection: PlanSelection, amount: float) -> PlanSelection:
    """Copy of the selection with a user-entered payment amount (not checked against the minimum here)."""
    return selection.model_copy(
        update={"payment_amount": amount, "balance_after_payment": selection.price - amount}
    )
