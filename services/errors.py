from __future__ import annotations

from typing import Optional


class FlowError(Exception):
    """Base class for purchase-flow errors; none of them is fatal beyond the current step."""


class StepValidationError(FlowError):
    def __init__(self, step: str, reasons: list[str]):
        self.step = step
        self.reasons = reasons
        super().__init__(f"Cannot continue from {step}: " + "; ".join(reasons))


class InvalidTransitionError(FlowError):
    def __init__(self, from_step: str, to_step: Optional[str]):
        self.from_step = from_step
        self.to_step = to_step
        super().__init__(f"Transition {from_step} -> {to_step or 'none'} is not allowed")


class PlatformError(FlowError):
    """Upstream call failed (non-2xx response or transport error)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ProfileCreationError(FlowError):
    def __init__(self, message: str, created_ids: list[str], account_id: Optional[str] = None):
        self.message = message
        self.created_ids = created_ids
        self.account_id = account_id
        super().__init__(message)


class AccountNotFoundError(FlowError):
    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")
