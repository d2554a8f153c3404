from typing import AsyncIterator, Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from services.flow_store import FlowStore
from services.platform_client import PlatformClient


def get_session_id(session_id: Optional[str] = Header(None, alias=settings.session_header)) -> str:
    if not session_id:
        raise HTTPException(status_code=400, detail=f"Missing {settings.session_header} header")
    return session_id


async def get_platform_client(authorization: Optional[str] = Header(None)) -> AsyncIterator[PlatformClient]:
    async with PlatformClient(token=authorization) as client:
        yield client


def get_flow_store(
    session_id: str = Depends(get_session_id),
    db: AsyncSession = Depends(get_db),
) -> FlowStore:
    return FlowStore(db, session_id)
