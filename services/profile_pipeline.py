"""
Sequential user-profile creation for the accounts of one purchase.

Profiles are created one at a time, primary first then joint holders in order,
so each returned id is attributed to the right account. The first failure stops
the sequence; profiles already created are left in place.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Sequence

from services.errors import PlatformError, ProfileCreationError

logger = logging.getLogger(__name__)

ProfileCreator = Callable[[object], Awaitable[str]]


def ordered_accounts(accounts: Sequence) -> list:
    return [a for a in accounts if a.type == "primary"] + [a for a in accounts if a.type == "joint"]


async def create_profiles_in_order(accounts: Sequence, create_profile: ProfileCreator) -> list[str]:
    created: list[str] = []
    for account in ordered_accounts(accounts):
        logger.info("Creating %s profile for account %s", account.type, account.id)
        try:
            profile_id = await create_profile(account)
        except PlatformError as e:
            logger.warning(
                "Profile creation failed for account %s after %d created: %s",
                account.id, len(created), e.message,
            )
            raise ProfileCreationError(e.message, created_ids=list(created), account_id=account.id) from e
        if not profile_id:
            raise ProfileCreationError(
                "No user profile ID returned from server", created_ids=list(created), account_id=account.id
            )
        created.append(profile_id)
    return created
