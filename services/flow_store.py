"""
Per-session key/value slots holding purchase-flow snapshots.

Keys follow the storefront's session-storage names:
  purchaseState_{projectId}  snapshot of PurchaseFlowState (camelCase JSON)
  currentProjectId           last active project
  billingInfo_{projectId}    billing details captured at payment
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.session_slot import SessionSlot
from schemas.flow import PurchaseFlowState

logger = logging.getLogger(__name__)

PURCHASE_STATE_PREFIX = "purchaseState_"
BILLING_INFO_PREFIX = "billingInfo_"
CURRENT_PROJECT_KEY = "currentProjectId"


def purchase_state_key(project_id: str) -> str:
    return f"{PURCHASE_STATE_PREFIX}{project_id}"


def billing_info_key(project_id: str) -> str:
    return f"{BILLING_INFO_PREFIX}{project_id}"


class FlowStore:
    def __init__(self, db: AsyncSession, session_id: str):
        self.db = db
        self.session_id = session_id

    async def _get_slot(self, key: str) -> Optional[SessionSlot]:
        result = await self.db.execute(
            select(SessionSlot).where(SessionSlot.session_id == self.session_id, SessionSlot.key == key)
        )
        return result.scalar_one_or_none()

    async def get_item(self, key: str) -> Any:
        slot = await self._get_slot(key)
        return slot.value if slot else None

    async def set_item(self, key: str, value: Any) -> None:
        slot = await self._get_slot(key)
        if slot is None:
            self.db.add(SessionSlot(session_id=self.session_id, key=key, value=value))
        else:
            slot.value = value
        await self.db.flush()

    async def remove_item(self, key: str) -> None:
        await self.db.execute(
            delete(SessionSlot).where(SessionSlot.session_id == self.session_id, SessionSlot.key == key)
        )
        await self.db.flush()

    async def load(self, project_id: str) -> Optional[PurchaseFlowState]:
        raw = await self.get_item(purchase_state_key(project_id))
        if raw is None:
            return None
        try:
            return PurchaseFlowState.model_validate(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable snapshot for project %s: %s", project_id, e)
            return None

    async def save(self, state: PurchaseFlowState) -> None:
        await self.set_item(
            purchase_state_key(state.project_id),
            state.model_dump(mode="json", by_alias=True),
        )

    async def clear(self, project_id: str) -> None:
        await self.remove_item(purchase_state_key(project_id))
        logger.info("Cleared purchase state for project %s", project_id)

    async def get_current_project_id(self) -> Optional[str]:
        return await self.get_item(CURRENT_PROJECT_KEY)

    async def set_current_project_id(self, project_id: str) -> None:
        await self.set_item(CURRENT_PROJECT_KEY, project_id)

    async def save_billing_info(self, project_id: str, data: dict[str, Any]) -> None:
        await self.set_item(billing_info_key(project_id), data)

    async def get_billing_info(self, project_id: str) -> Optional[dict[str, Any]]:
        return await self.get_item(billing_info_key(project_id))

    async def clear_purchase_and_billing(self) -> int:
        """Delete every purchaseState_* and billingInfo_* slot of this session; returns the count."""
        result = await self.db.execute(
            delete(SessionSlot).where(
                SessionSlot.session_id == self.session_id,
                or_(
                    SessionSlot.key.startswith(PURCHASE_STATE_PREFIX, autoescape=True),
                    SessionSlot.key.startswith(BILLING_INFO_PREFIX, autoescape=True),
                ),
            )
        )
        await self.db.flush()
        return result.rowcount or 0
