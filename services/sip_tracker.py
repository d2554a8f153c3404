"""
Installment (SIP) tracking over a purchased unit's confirmed payments.

Only completed payments count towards the paid total; rebates and penalties are
summed across every payment. The next installment is reported as the backend
sends it and is never computed here.
"""
from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence

from schemas.portfolio import (
    NextInstallmentSchema,
    PaymentSchema,
    PortfolioItemSchema,
    PortfolioSummary,
    SipSummary,
)

COMPLETED = "completed"


def _status_label(payment_status: str, unit_status: str) -> str:
    if payment_status == "fully_paid":
        return "Completed"
    if unit_status == "inactive":
        return "Inactive"
    return "Active"


def summarize_payments(
    total_investment: float,
    payments: Iterable[PaymentSchema],
    payment_status: str = "none",
    unit_status: str = "active",
    next_installment: Optional[NextInstallmentSchema] = None,
    unit_id: Optional[str] = None,
    total_installments: Optional[int] = None,
) -> SipSummary:
    payments = list(payments)
    completed = [p for p in payments if p.payment_status == COMPLETED]
    total_paid = sum(p.amount for p in completed)
    progress = round(100 * total_paid / total_investment, 2) if total_investment else 0.0
    next_due = None
    if next_installment is not None and payment_status != "fully_paid":
        next_due = next_installment.model_dump(exclude_none=True)
    return SipSummary(
        unit_id=unit_id,
        total_investment=total_investment,
        total_paid=total_paid,
        total_rebates=sum(p.rebate_amount for p in payments),
        total_penalties=sum(p.penalty_amount for p in payments),
        balance=total_investment - total_paid,
        progress_percent=progress,
        installments_paid=sum(1 for p in completed if p.installment_number is not None),
        total_installments=total_installments,
        next_installment=next_due,
        status=_status_label(payment_status, unit_status),
    )


def summarize_unit(item: PortfolioItemSchema, payments: Sequence[PaymentSchema]) -> SipSummary:
    scheme = item.scheme or {}
    return summarize_payments(
        item.total_investment,
        payments,
        payment_status=item.payment_status,
        unit_status=item.unit_status,
        next_installment=item.next_installment,
        unit_id=item.unit_id,
        total_installments=scheme.get("total_installments"),
    )


def summarize_portfolio(
    items: Sequence[PortfolioItemSchema],
    payments_by_unit: Optional[Mapping[str, Sequence[PaymentSchema]]] = None,
) -> PortfolioSummary:
    """Totals across units; when a unit's payments are given they replace its reported paid amount."""
    payments_by_unit = payments_by_unit or {}
    total_invested = 0.0
    total_paid = 0.0
    for item in items:
        total_invested += item.total_investment
        if item.unit_id in payments_by_unit:
            total_paid += summarize_unit(item, payments_by_unit[item.unit_id]).total_paid
        else:
            total_paid += item.user_paid
    return PortfolioSummary(
        total_units=len(items),
        total_invested=total_invested,
        total_paid=total_paid,
        total_balance=total_invested - total_paid,
    )
