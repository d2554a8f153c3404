"""
Purchase flow state machine.

    plan-selection -> user-info -> kyc -> payment -> confirmation

Forward moves are gated by the step validators. Backward moves go to the
immediately preceding step only, from user-info, kyc and payment. Holders with
verified profiles on the platform may jump user-info -> payment.

The snapshot in the FlowStore is the source of truth; the storefront URL
(/purchase/{projectId}/{segment}) is a projection of current_step.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

from schemas.account import (
    IDENTITY_FIELDS,
    VerifiedFlags,
    account_from_profile,
    empty_joint_account,
    empty_primary_account,
)
from schemas.flow import DocumentRef, PurchaseFlowState
from schemas.scheme import SchemeSchema
from services.errors import (
    AccountNotFoundError,
    FlowError,
    InvalidTransitionError,
    PlatformError,
    StepValidationError,
)
from services.flow_store import FlowStore, billing_info_key
from services.plan_calculator import PlanConstants, build_plan_selection, with_payment_amount
from services.profile_pipeline import create_profiles_in_order
from services.step_validators import document_key, kyc_errors, plan_selection_errors, user_info_errors
from services.validation import get_field_error

logger = logging.getLogger(__name__)

STEPS: tuple[str, ...] = ("plan-selection", "user-info", "kyc", "payment", "confirmation")

STEP_SEGMENTS: dict[str, str] = {
    "plan-selection": "plan",
    "user-info": "user-info",
    "kyc": "kyc",
    "payment": "payment",
    "confirmation": "confirmation",
}
SEGMENT_STEPS: dict[str, str] = {segment: step for step, segment in STEP_SEGMENTS.items()}


SUCCESSFUL_PAYMENT_STATUSES = {"paid", "success", "completed"}


def purchase_errors(purchase: Optional[dict[str, Any]]) -> list[str]:
    if not purchase or not purchase.get("purchase_id"):
        return ["Payment has not been confirmed"]
    status = purchase.get("payment_status") or purchase.get("status")
    if str(status or "").lower() not in SUCCESSFUL_PAYMENT_STATUSES:
        return [purchase.get("message") or f"Payment {status or 'status unknown'}"]
    return []


def _payment_errors(state: PurchaseFlowState) -> list[str]:
    return purchase_errors(state.purchase)


Guard = Callable[[PurchaseFlowState], list[str]]

FORWARD_TRANSITIONS: dict[tuple[str, str], Guard] = {
    ("plan-selection", "user-info"): plan_selection_errors,
    ("user-info", "kyc"): lambda state: user_info_errors(state.accounts),
    ("kyc", "payment"): kyc_errors,
    ("payment", "confirmation"): _payment_errors,
}

BACKWARD_TRANSITIONS: dict[str, str] = {
    "user-info": "plan-selection",
    "kyc": "user-info",
    "payment": "kyc",
}


def step_from_segment(segment: Optional[str]) -> Optional[str]:
    if not segment:
        return None
    if segment in SEGMENT_STEPS:
        return SEGMENT_STEPS[segment]
    return segment if segment in STEP_SEGMENTS else None


def flow_url(project_id: str, step: str) -> str:
    return f"/purchase/{project_id}/{STEP_SEGMENTS[step]}"


def next_step_of(step: str) -> Optional[str]:
    return next((dst for (src, dst) in FORWARD_TRANSITIONS if src == step), None)


def reachable_step(state: PurchaseFlowState, target: str) -> str:
    """Furthest step, up to `target`, that `state` reaches from plan-selection through the forward guards."""
    step = "plan-selection"
    while step != target:
        following = next_step_of(step)
        if following is None or FORWARD_TRANSITIONS[(step, following)](state):
            break
        step = following
    return step


class PurchaseFlowController:
    """Owns one project's purchase flow for one client session."""

    def __init__(
        self,
        project_id: str,
        store: FlowStore,
        platform=None,
        constants: Optional[PlanConstants] = None,
    ):
        self.project_id = project_id
        self.store = store
        self.platform = platform
        self.constants = constants or PlanConstants.from_settings()
        self.restored = False
        self._state: Optional[PurchaseFlowState] = None

    @property
    def state(self) -> PurchaseFlowState:
        if self._state is None:
            raise FlowError("Purchase flow is not mounted")
        return self._state

    @property
    def url(self) -> str:
        return flow_url(self.project_id, self.state.current_step)

    async def mount(self, url_segment: Optional[str] = None, email: str = "") -> PurchaseFlowState:
        """
        Restore the project's snapshot, or start fresh.
        With a snapshot, the URL may only move the flow one step back (browser back button).
        A fresh flow starts at the URL step only as far as the forward guards allow.
        """
        url_step = step_from_segment(url_segment)
        snapshot = await self.store.load(self.project_id)
        if snapshot is not None:
            self.restored = True
            self._state = snapshot
            logger.debug("Restored purchase flow for project %s at %s", self.project_id, snapshot.current_step)
            if url_step and BACKWARD_TRANSITIONS.get(snapshot.current_step) == url_step:
                snapshot.current_step = url_step
        else:
            state = PurchaseFlowState(project_id=self.project_id, accounts=[empty_primary_account(email)])
            if url_step:
                state.current_step = reachable_step(state, url_step)
            self._state = state
        await self.store.set_current_project_id(self.project_id)
        await self._commit()
        return self._state

    async def navigate_to(self, url_segment: str) -> PurchaseFlowState:
        """Apply a URL change: same step is a no-op, adjacent steps go through the normal transitions."""
        current = self.state.current_step
        target = step_from_segment(url_segment)
        if target == current:
            return self.state
        if target is not None and BACKWARD_TRANSITIONS.get(current) == target:
            return await self.prev_step()
        if target is not None and next_step_of(current) == target:
            return await self.next_step()
        raise InvalidTransitionError(current, target or url_segment)

    # -- plan selection --------------------------------------------------------

    async def select_plan(self, scheme: SchemeSchema, units: Optional[int] = None) -> PurchaseFlowState:
        self._ensure_step("plan-selection")
        state = self.state
        units = units or state.selected_units
        plan = build_plan_selection(scheme, units, self.constants)
        state.selected_scheme = scheme
        state.selected_plan = plan
        state.selected_units = units
        state.custom_payment = plan.payment_amount
        await self._commit()
        return state

    async def change_units(self, increment: bool) -> PurchaseFlowState:
        self._ensure_step("plan-selection")
        state = self.state
        state.selected_units = state.selected_units + 1 if increment else max(1, state.selected_units - 1)
        if state.selected_scheme is not None:
            plan = build_plan_selection(state.selected_scheme, state.selected_units, self.constants)
            state.selected_plan = plan
            state.custom_payment = plan.payment_amount
        await self._commit()
        return state

    async def set_custom_payment(self, amount: float) -> PurchaseFlowState:
        self._ensure_step("plan-selection")
        state = self.state
        if state.selected_plan is None:
            raise StepValidationError(state.current_step, ["Please select an investment plan"])
        state.custom_payment = amount
        state.selected_plan = with_payment_amount(state.selected_plan, amount)
        await self._commit()
        return state

    def current_payment_amount(self) -> float:
        state = self.state
        if state.selected_plan is None:
            return 0
        if state.custom_payment is not None:
            return state.custom_payment
        return state.selected_plan.payment_amount

    # -- accounts and KYC ------------------------------------------------------

    async def update_accounts(self, accounts: Sequence) -> PurchaseFlowState:
        """Replace the account list. Verification flags are server-owned and survive only unchanged identity numbers."""
        self._ensure_step("user-info")
        state = self.state
        if sum(1 for a in accounts if a.type == "primary") != 1:
            raise StepValidationError(state.current_step, ["Exactly one primary account is required"])
        ids = [a.id for a in accounts]
        if len(set(ids)) != len(ids):
            raise StepValidationError(state.current_step, ["Account ids must be unique"])
        previous = {a.id: a for a in state.accounts}
        state.accounts = [self._carry_verification(previous.get(a.id), a) for a in accounts]
        await self._commit()
        return state

    async def set_joint_account(self, enabled: bool) -> PurchaseFlowState:
        """Toggle joint ownership: adds one empty joint holder, or drops every joint holder and their KYC files."""
        self._ensure_step("user-info")
        state = self.state
        if enabled:
            if not state.joint_accounts:
                state.accounts = state.accounts + [empty_joint_account(1)]
        else:
            state.accounts = [a for a in state.accounts if a.type == "primary"]
            state.kyc_documents = {k: v for k, v in state.kyc_documents.items() if not k.startswith("joint")}
        await self._commit()
        return state

    @staticmethod
    def _carry_verification(old, new):
        flags = {}
        for kind, field in IDENTITY_FIELDS.items():
            flags[kind] = bool(
                old is not None
                and old.type == new.type
                and getattr(old.verified, kind)
                and getattr(old.data, field) == getattr(new.data, field)
            )
        return new.model_copy(update={"verified": VerifiedFlags(**flags)}, deep=True)

    async def update_kyc(
        self,
        documents: Optional[dict[str, Optional[DocumentRef]]] = None,
        kyc_accepted: Optional[bool] = None,
        joint_kyc_accepted: Optional[list[bool]] = None,
    ) -> PurchaseFlowState:
        self._ensure_step("kyc")
        state = self.state
        if documents:
            merged = dict(state.kyc_documents)
            for key, ref in documents.items():
                if ref is None:
                    merged.pop(key, None)
                else:
                    merged[key] = ref
            state.kyc_documents = merged
        if kyc_accepted is not None:
            state.kyc_accepted = kyc_accepted
        if joint_kyc_accepted is not None:
            state.joint_kyc_accepted = list(joint_kyc_accepted)
        await self._commit()
        return state

    def _find_account(self, account_id: str):
        account = next((a for a in self.state.accounts if a.id == account_id), None)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def record_verification(self, account_id: str, kind: str, ok: bool) -> PurchaseFlowState:
        account = self._find_account(account_id)
        account.verified = account.verified.model_copy(update={kind: ok})
        await self._commit()
        return self.state

    async def verify_document(
        self,
        account_id: str,
        kind: str,
        image: Optional[tuple[str, bytes, str]] = None,
    ) -> tuple[bool, str]:
        """
        Run the platform check for one identity document and store the outcome.
        Malformed numbers are rejected locally; failures leave the flag unset and can be retried.
        """
        account = self._find_account(account_id)
        data = account.data
        field = IDENTITY_FIELDS[kind]
        number = getattr(data, field)
        local_error = get_field_error(field, number) if number else f"{field.replace('_', ' ')} is required"
        if local_error:
            await self.record_verification(account_id, kind, False)
            return False, local_error
        if self.platform is None:
            raise FlowError("Document verification service is not configured")
        try:
            if kind == "pan":
                ok, message = await self.platform.verify_pan(number, data.full_name)
            elif kind == "aadhar":
                ok, message = await self.platform.verify_aadhaar(number, image)
            elif kind == "gst":
                ok, message = await self.platform.verify_gstin(number)
            else:
                ok, message = await self.platform.verify_passport(number, data.full_name, data.dob)
        except PlatformError as e:
            ok, message = False, e.message
        logger.info("Verification of %s for account %s: %s", kind, account_id, "passed" if ok else "failed")
        await self.record_verification(account_id, kind, ok)
        return ok, message or ("Verified" if ok else "Verification failed")

    def documents_for(self, account) -> dict[str, Any]:
        state = self.state
        joint_index = None
        if account.type == "joint":
            joint_index = next(i for i, a in enumerate(state.joint_accounts, start=1) if a.id == account.id)
        out = {}
        for kind in account.data.required_documents:
            ref = state.kyc_documents.get(document_key(kind, joint_index))
            if ref is not None:
                out[kind] = ref.model_dump(mode="json", by_alias=True)
        return out

    # -- transitions -----------------------------------------------------------

    async def next_step(self) -> PurchaseFlowState:
        state = self.state
        current = state.current_step
        target = next_step_of(current)
        if target is None:
            raise InvalidTransitionError(current, None)
        reasons = FORWARD_TRANSITIONS[(current, target)](state)
        if reasons:
            logger.info("Blocked %s -> %s for project %s (%d reasons)", current, target, self.project_id, len(reasons))
            raise StepValidationError(current, reasons)
        if current == "kyc":
            state.user_profile_ids = await self._create_profiles()
            state.use_existing_profiles = False
        state.current_step = target
        await self._commit()
        logger.info("Project %s purchase flow moved %s -> %s", self.project_id, current, target)
        return state

    async def prev_step(self) -> PurchaseFlowState:
        state = self.state
        target = BACKWARD_TRANSITIONS.get(state.current_step)
        if target is None:
            raise InvalidTransitionError(state.current_step, None)
        state.current_step = target
        await self._commit()
        return state

    async def _create_profiles(self) -> list[str]:
        if self.platform is None:
            raise FlowError("Profile service is not configured")

        async def create(account) -> str:
            return await self.platform.create_user_profile(account, self.documents_for(account))

        return await create_profiles_in_order(self.state.accounts, create)

    async def use_existing_profiles(self, profile_ids: Sequence[str]) -> PurchaseFlowState:
        """Skip KYC re-upload for holders whose profiles the platform already has: user-info -> payment."""
        state = self.state
        if state.current_step != "user-info":
            raise InvalidTransitionError(state.current_step, "payment")
        if self.platform is None:
            raise FlowError("Profile service is not configured")
        known = {
            str(p.get("id") or p.get("user_profile_id")): p
            for p in await self.platform.list_user_profiles()
        }
        unknown = [pid for pid in profile_ids if pid not in known]
        if unknown:
            raise StepValidationError(state.current_step, [f"Unknown user profile {pid}" for pid in unknown])
        # first profile is the primary holder, the rest are joint holders in order
        state.accounts = [
            account_from_profile(known[pid], "primary", "primary") if i == 0
            else account_from_profile(known[pid], "joint", f"joint-{i}")
            for i, pid in enumerate(profile_ids)
        ]
        state.user_profile_ids = list(profile_ids)
        state.use_existing_profiles = True
        state.current_step = "payment"
        await self._commit()
        logger.info("Project %s purchase flow jumped user-info -> payment with existing profiles", self.project_id)
        return state

    async def save_billing_info(self, billing_info: dict[str, Any]) -> dict[str, Any]:
        """Keep the billing details entered on the payment step until the purchase completes."""
        self._ensure_step("payment")
        await self.store.save_billing_info(self.project_id, billing_info)
        return billing_info

    async def billing_info(self) -> Optional[dict[str, Any]]:
        return await self.store.get_billing_info(self.project_id)

    async def complete_purchase(
        self,
        payment_reference: Optional[str] = None,
        order_id: Optional[str] = None,
    ) -> PurchaseFlowState:
        """
        Record the purchased unit and finish the flow (payment -> confirmation).
        A purchase the platform reports as unpaid leaves the flow on payment.
        """
        state = self.state
        if state.current_step != "payment":
            raise InvalidTransitionError(state.current_step, "confirmation")
        if not state.user_profile_ids or state.selected_plan is None:
            raise StepValidationError(state.current_step, ["User profile and plan are required before payment"])
        if self.platform is None:
            raise FlowError("Purchase service is not configured")

        payload = {
            "project_id": self.project_id,
            "scheme_id": state.selected_plan.plan_id,
            "user_profile_id": state.user_profile_ids[0],
            "joint_profile_ids": state.user_profile_ids[1:],
            "is_joint_ownership": len(state.user_profile_ids) > 1,
            "number_of_units": state.selected_units,
            "payment_amount": self.current_payment_amount(),
            "payment_reference": payment_reference,
            "order_id": order_id,
            "billing_info": await self.billing_info(),
        }
        response = await self.platform.create_purchased_unit(payload)
        purchase = {
            "purchase_id": response.get("purchase_id"),
            "transaction_id": response.get("transaction_id"),
            "payment_status": response.get("payment_status") or response.get("status"),
            "message": response.get("message"),
        }
        reasons = purchase_errors(purchase)
        if reasons:
            logger.warning("Project %s purchase not confirmed: %s", self.project_id, purchase["payment_status"])
            raise StepValidationError("payment", reasons)
        state.purchase = purchase
        state.current_step = "confirmation"
        await self.store.clear(self.project_id)
        await self.store.remove_item(billing_info_key(self.project_id))
        logger.info("Project %s purchase completed (purchase %s)", self.project_id, purchase["purchase_id"])
        return state

    async def leave(self) -> None:
        await self.store.clear(self.project_id)
        self._state = None

    # -- internals -------------------------------------------------------------

    def _ensure_step(self, *steps: str) -> None:
        current = self.state.current_step
        if current not in steps:
            raise FlowError(f"Not allowed while on the {current} step")

    async def _commit(self) -> None:
        state = self.state
        joints = len(state.joint_accounts)
        flags = state.joint_kyc_accepted[:joints]
        state.joint_kyc_accepted = flags + [False] * (joints - len(flags))
        await self.store.save(state)
