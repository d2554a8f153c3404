import unittest

from schemas.portfolio import NextInstallmentSchema, PaymentSchema, PortfolioItemSchema
from services.sip_tracker import summarize_payments, summarize_portfolio, summarize_unit


def payment(amount, status="completed", **kw):
    return PaymentSchema(amount=amount, payment_status=status, **kw)


class TestSummarizePayments(unittest.TestCase):
    def test_only_completed_payments_count(self):
        summary = summarize_payments(1_000_000, [payment(300_000), payment(200_000, "failed")])
        self.assertEqual(summary.total_paid, 300_000)
        self.assertEqual(summary.balance, 700_000)
        self.assertEqual(summary.progress_percent, 30.0)
        self.assertEqual(summary.status, "Active")

    def test_zero_investment(self):
        summary = summarize_payments(0, [])
        self.assertEqual(summary.progress_percent, 0)
        self.assertEqual(summary.balance, 0)

    def test_rebates_penalties_and_installments(self):
        payments = [
            payment(36_000, installment_number=1, rebate_amount=500),
            payment(36_000, installment_number=2, penalty_amount=250),
            payment(36_000, "pending", installment_number=3),
        ]
        summary = summarize_payments(3_600_000, payments, total_installments=100)
        self.assertEqual(summary.installments_paid, 2)
        self.assertEqual(summary.total_rebates, 500)
        self.assertEqual(summary.total_penalties, 250)
        self.assertEqual(summary.progress_percent, 2.0)

    def test_backend_status_alias(self):
        p = PaymentSchema.model_validate({"amount": 1000, "status": "completed"})
        self.assertEqual(p.payment_status, "completed")

    def test_status_labels_and_next_installment(self):
        upcoming = NextInstallmentSchema(installment_number=4, due_date="2026-11-05", amount=36_000)
        summary = summarize_payments(100, [], payment_status="fully_paid", next_installment=upcoming)
        self.assertEqual(summary.status, "Completed")
        self.assertIsNone(summary.next_installment)

        summary = summarize_payments(100, [], unit_status="inactive", next_installment=upcoming)
        self.assertEqual(summary.status, "Inactive")
        self.assertEqual(summary.next_installment["due_date"], "2026-11-05")


class TestPortfolio(unittest.TestCase):
    def test_unit_summary_uses_scheme_installments(self):
        item = PortfolioItemSchema(
            unit_id="u-1",
            total_investment=500_000,
            payment_status="partially_paid",
            unit_status="active",
            scheme={"total_installments": 50},
        )
        summary = summarize_unit(item, [payment(100_000)])
        self.assertEqual(summary.unit_id, "u-1")
        self.assertEqual(summary.total_installments, 50)
        self.assertEqual(summary.progress_percent, 20.0)

    def test_portfolio_totals(self):
        items = [
            PortfolioItemSchema(unit_id="u-1", total_investment=500_000, user_paid=100_000),
            PortfolioItemSchema(unit_id="u-2", total_investment=200_000, user_paid=200_000),
        ]
        summary = summarize_portfolio(items, {"u-1": [payment(150_000), payment(10_000, "failed")]})
        self.assertEqual(summary.total_units, 2)
        self.assertEqual(summary.total_invested, 700_000)
        self.assertEqual(summary.total_paid, 350_000)
        self.assertEqual(summary.total_balance, 350_000)


if __name__ == "__main__":
    unittest.main()
