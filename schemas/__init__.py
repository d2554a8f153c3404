from schemas.account import (
    Account,
    AccountDetails,
    Address,
    JointAccount,
    JointAccountInfo,
    PrimaryAccount,
    UserInfo,
    VerifiedFlags,
)
from schemas.flow import DocumentRef, PurchaseFlowState
from schemas.portfolio import PaymentSchema, PortfolioItemSchema, PortfolioSummary, SipSummary
from schemas.scheme import PlanSelection, SchemeSchema

__all__ = [
    "Account",
    "AccountDetails",
    "Address",
    "JointAccount",
    "JointAccountInfo",
    "PrimaryAccount",
    "UserInfo",
    "VerifiedFlags",
    "DocumentRef",
    "PurchaseFlowState",
    "PaymentSchema",
    "PortfolioItemSchema",
    "PortfolioSummary",
    "SipSummary",
    "PlanSelection",
    "SchemeSchema",
]
