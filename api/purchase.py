from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from api.dependencies import get_flow_store, get_platform_client
from schemas.flow import (
    AccountsUpdateRequest,
    BillingInfoRequest,
    CompletePurchaseRequest,
    ExistingProfilesRequest,
    JointAccountRequest,
    KycUpdateRequest,
    PaymentAmountRequest,
    SelectPlanRequest,
    UnitsChangeRequest,
)
from services.errors import (
    AccountNotFoundError,
    FlowError,
    PlatformError,
    ProfileCreationError,
    StepValidationError,
)
from services.flow_machine import STEP_SEGMENTS, STEPS, PurchaseFlowController
from services.flow_store import FlowStore
from services.platform_client import PlatformClient
from services.step_validators import is_valid_payment_amount, kyc_errors, user_info_errors

router = APIRouter(prefix="/api/purchase", tags=["purchase"])

VERIFIABLE_DOCUMENTS = ("pan", "aadhar", "gst", "passport")


def _flow_to_response(flow: PurchaseFlowController) -> dict[str, Any]:
    state = flow.state
    return {
        "state": state.model_dump(mode="json", by_alias=True),
        "url": flow.url,
        "step": state.current_step,
        "segment": STEP_SEGMENTS[state.current_step],
        "stepIndex": STEPS.index(state.current_step),
        "restored": flow.restored,
        "checks": {
            "validPaymentAmount": is_valid_payment_amount(state),
            "userInfoErrors": user_info_errors(state.accounts),
            "kycErrors": kyc_errors(state),
        },
    }


def _flow_http_error(e: FlowError) -> HTTPException:
    if isinstance(e, StepValidationError):
        return HTTPException(status_code=422, detail={"message": str(e), "step": e.step, "reasons": e.reasons})
    if isinstance(e, ProfileCreationError):
        return HTTPException(
            status_code=502,
            detail={"message": e.message, "createdProfileIds": e.created_ids, "accountId": e.account_id},
        )
    if isinstance(e, PlatformError):
        status = e.status_code if e.status_code and 400 <= e.status_code < 500 else 502
        return HTTPException(status_code=status, detail=e.message)
    if isinstance(e, AccountNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=409, detail=str(e))


async def _mounted(
    project_id: str,
    store: FlowStore,
    platform: Optional[PlatformClient] = None,
    url_segment: Optional[str] = None,
) -> PurchaseFlowController:
    flow = PurchaseFlowController(project_id, store, platform)
    await flow.mount(url_segment)
    return flow


@router.post("/{project_id}/mount", response_model=dict)
async def mount_flow(
    project_id: str,
    step: Optional[str] = None,
    email: str = "",
    store: FlowStore = Depends(get_flow_store),
):
    """Restore (or start) the project's purchase flow; `step` is the URL segment the storefront is on."""
    flow = PurchaseFlowController(project_id, store)
    await flow.mount(step, email=email)
    return _flow_to_response(flow)


@router.get("/current", response_model=dict)
async def current_project(store: FlowStore = Depends(get_flow_store)):
    """Project whose purchase flow this session touched last."""
    return {"projectId": await store.get_current_project_id()}


@router.get("/{project_id}", response_model=dict)
async def get_flow(project_id: str, store: FlowStore = Depends(get_flow_store)):
    return _flow_to_response(await _mounted(project_id, store))


@router.post("/{project_id}/navigate/{segment}", response_model=dict)
async def navigate(
    project_id: str,
    segment: str,
    store: FlowStore = Depends(get_flow_store),
    platform: PlatformClient = Depends(get_platform_client),
):
    flow = await _mounted(project_id, store, platform)
    try:
        await flow.navigate_to(segment)
    except FlowError as e:
        raise _flow_http_error(e) from e
    return _flow_to_response(flow)


@router.put("/{project_id}/plan", response_model=dict)
async def select_plan(project_id: str, body: SelectPlanRequest, store: FlowStore = Depends(get_flow_store)):
    flow = await _mounted(project_id, store)
    try:
        await flow.select_plan(body.scheme, body.units)
    except FlowError as e:
        raise _flow_http_error(e) from e
    return _flow_to_response(flow)


@router.post("/{project_id}/units", response_model=dict)
async def change_units(project_id: str, body: UnitsChangeRequest, store: FlowStore = Depends(get_flow_store)):
    flow = await _mounted(project_id, store)
    try:
        await flow.change_units(body.increment)
    except FlowError as e:
        raise _flow_http_error(e) from e
    return _flow_to_response(flow)


@router.put("/{project_id}/payment-amount", response_model=dict)
async def set_payment_amount(project_id: str, body: PaymentAmountRequest, store: FlowStore = Depends(get_flow_store)):
    flow = await _mounted(project_id, store)
    try:
        await flow.set_custom_payment(body.amount)
    except FlowError as e:
        raise _flow_http_error(e) from e
    return _flow_to_response(flow)


@router.put("/{project_id}/accounts", response_model=dict)
async def update_accounts(project_id: str, body: AccountsUpdateRequest, store: FlowStore = Depends(get_flow_store)):
    flow = await _mounted(project_id, store)
    try:
        await flow.update_accounts(body.accounts)
    except FlowError as e:
        raise _flow_http_error(e) from e
    return _flow_to_response(flow)


@router.put("/{project_id}/joint-account", response_model=dict)
async def set_joint_account(project_id: str, body: JointAccountRequest, store: FlowStore = Depends(get_flow_store)):
    flow = await _mounted(project_id, store)
    try:
        await flow.set_joint_account(body.enabled)
    except FlowError as e:
        raise _flow_http_error(e) from e
    return _flow_to_response(flow)


@router.put("/{project_id}/kyc", response_model=dict)
async def update_kyc(project_id: str, body: KycUpdateRequest, store: FlowStore = Depends(get_flow_store)):
    flow = await _mounted(project_id, store)
    try:
        await flow.update_kyc(body.documents, body.kyc_accepted, body.joint_kyc_accepted)
    except FlowError as e:
        raise _flow_http_error(e) from e
    return _flow_to_response(flow)


@router.post("/{project_id}/verify", response_model=dict)
async def verify_document(
    project_id: str,
    account_id: str = Form(...),
    document: str = Form(...),
    image: Optional[UploadFile] = File(None),
    store: FlowStore = Depends(get_flow_store),
    platform: PlatformClient = Depends(get_platform_client),
):
    """Verify one identity document of an account; a failed check is reported, not raised."""
    if document not in VERIFIABLE_DOCUMENTS:
        raise HTTPException(status_code=400, detail=f"document must be one of {', '.join(VERIFIABLE_DOCUMENTS)}")
    flow = await _mounted(project_id, store, platform)
    upload = None
    if image is not None:
        upload = (image.filename or "aadhar.jpg", await image.read(), image.content_type or "application/octet-stream")
    try:
        verified, message = await flow.verify_document(account_id, document, upload)
    except FlowError as e:
        raise _flow_http_error(e) from e
    return {"verified": verified, "message": message, **_flow_to_response(flow)}


@router.post("/{project_id}/next", response_model=dict)
async def next_step(
    project_id: str,
    store: FlowStore = Depends(get_flow_store),
    platform: PlatformClient = Depends(get_platform_client),
):
    flow = await _mounted(project_id, store, platform)
    try:
        await flow.next_step()
    except FlowError as e:
        raise _flow_http_error(e) from e
    return _flow_to_response(flow)


@router.post("/{project_id}/back", response_model=dict)
async def prev_step(project_id: str, store: FlowStore = Depends(get_flow_store)):
    flow = await _mounted(project_id, store)
    try:
        await flow.prev_step()
    except FlowError as e:
        raise _flow_http_error(e) from e
    return _flow_to_response(flow)


@router.post("/{project_id}/existing-profiles", response_model=dict)
async def use_existing_profiles(
    project_id: str,
    body: ExistingProfilesRequest,
    store: FlowStore = Depends(get_flow_store),
    platform: PlatformClient = Depends(get_platform_client),
):
    flow = await _mounted(project_id, store, platform)
    try:
        await flow.use_existing_profiles(body.profile_ids)
    except FlowError as e:
        raise _flow_http_error(e) from e
    return _flow_to_response(flow)


@router.put("/{project_id}/billing", response_model=dict)
async def save_billing_info(project_id: str, body: BillingInfoRequest, store: FlowStore = Depends(get_flow_store)):
    flow = await _mounted(project_id, store)
    try:
        billing = await flow.save_billing_info(body.billing_info)
    except FlowError as e:
        raise _flow_http_error(e) from e
    return {"billingInfo": billing, **_flow_to_response(flow)}


@router.get("/{project_id}/billing", response_model=dict)
async def get_billing_info(project_id: str, store: FlowStore = Depends(get_flow_store)):
    flow = await _mounted(project_id, store)
    return {"billingInfo": await flow.billing_info()}


@router.post("/{project_id}/complete", response_model=dict)
async def complete_purchase(
    project_id: str,
    body: CompletePurchaseRequest,
    store: FlowStore = Depends(get_flow_store),
    platform: PlatformClient = Depends(get_platform_client),
):
    flow = await _mounted(project_id, store, platform)
    try:
        await flow.complete_purchase(body.payment_reference, body.order_id)
    except FlowError as e:
        raise _flow_http_error(e) from e
    return _flow_to_response(flow)


@router.delete("/{project_id}", status_code=204)
async def leave_flow(project_id: str, store: FlowStore = Depends(get_flow_store)):
    await PurchaseFlowController(project_id, store).leave()
    return None


@router.delete("", response_model=dict)
async def clear_purchase_sessions(store: FlowStore = Depends(get_flow_store)):
    removed = await store.clear_purchase_and_billing()
    return {"removed": removed}
