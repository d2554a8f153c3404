from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_platform_client
from schemas.scheme import QuoteRequest
from services.errors import PlatformError
from services.plan_calculator import build_plan_selection
from services.platform_client import PlatformClient

router = APIRouter(prefix="/api", tags=["schemes"])


@router.get("/projects/{project_id}/schemes", response_model=list[dict])
async def list_project_schemes(
    project_id: str,
    page: int = 1,
    limit: int = 10,
    platform: PlatformClient = Depends(get_platform_client),
):
    try:
        schemes = await platform.list_schemes(project_id, page=page, limit=limit)
    except PlatformError as e:
        raise HTTPException(status_code=502, detail=e.message) from e
    if not schemes:
        raise HTTPException(status_code=404, detail="No investment schemes available for this project")
    return [s.model_dump() for s in schemes]


@router.post("/schemes/quote", response_model=dict)
async def quote_scheme(body: QuoteRequest):
    """Price a scheme for a unit count without touching any purchase flow."""
    plan = build_plan_selection(body.scheme, body.units)
    return plan.model_dump(mode="json", by_alias=True)
