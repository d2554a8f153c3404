from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_platform_client
from schemas.portfolio import SipRequest
from services.errors import PlatformError
from services.platform_client import PlatformClient
from services.sip_tracker import summarize_payments, summarize_portfolio, summarize_unit

router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])


@router.get("/summary", response_model=dict)
async def portfolio_summary(platform: PlatformClient = Depends(get_platform_client)):
    try:
        items = await platform.get_portfolio()
    except PlatformError as e:
        raise HTTPException(status_code=502, detail=e.message) from e
    return summarize_portfolio(items).model_dump(by_alias=True)


@router.post("/sip", response_model=dict)
async def sip_from_payments(body: SipRequest):
    summary = summarize_payments(
        body.total_investment,
        body.payments,
        payment_status=body.payment_status,
        unit_status=body.unit_status,
        next_installment=body.next_installment,
        unit_id=body.unit_id,
    )
    return summary.model_dump(by_alias=True)


@router.get("/{unit_id}/sip", response_model=dict)
async def unit_sip(unit_id: str, platform: PlatformClient = Depends(get_platform_client)):
    try:
        items = await platform.get_portfolio()
        item = next((i for i in items if i.unit_id == unit_id), None)
        if item is None:
            raise HTTPException(status_code=404, detail="Unit not found")
        payments = await platform.list_payments(unit_id)
    except PlatformError as e:
        raise HTTPException(status_code=502, detail=e.message) from e
    return summarize_unit(item, payments).model_dump(by_alias=True)
