"""Decline pending invitations older than the invitation TTL.

- Safe to re-run at any interval: a second sweep finds nothing to expire.
- Only confirmed updates are counted; a failed update is logged and skipped.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from upkeep.domain.maintenance_rules import INVITATION_SWEEP_LIMIT, INVITATION_TTL, is_expired
from upkeep.entity_store import EntityStore
from upkeep.errors import ForbiddenError
from upkeep.models.basic_authentication_models import CallerModel
from upkeep.models.dc_models import InvitationStatus
from upkeep.retry import RetryPolicy, with_rate_limit_retry


async def expire_invitations(
    store: EntityStore,
    *,
    caller: Optional[CallerModel] = None,
    now: Optional[datetime] = None,
    ttl: timedelta = INVITATION_TTL,
    limit: int = INVITATION_SWEEP_LIMIT,
    policy: Optional[RetryPolicy] = None,
) -> int:
    """Transition expired pending invitations to declined.

    Args:
        store (EntityStore): invitation store
        caller (CallerModel, optional): None for service/scheduled calls
        now (datetime, optional): reference time, defaults to the current UTC time
        ttl (timedelta): age an invitation must exceed to expire
        limit (int): most recent pending invitations examined per sweep
        policy (RetryPolicy, optional): backoff for rate-limited updates

    Raises:
        ForbiddenError: the caller is authenticated but not an admin

    Returns:
        int: number of invitations declined
    """
    if caller is not None and not caller.is_admin:
        raise ForbiddenError("Forbidden")

    now = now or datetime.now(timezone.utc)
    policy = policy or RetryPolicy.from_settings()
    pending = await store.filter(
        {"status": InvitationStatus.pending.value}, "-created_at", limit
    )

    cleaned = 0
    for invitation in pending:
        if not is_expired(invitation.created_at, now, ttl):
            continue
        try:
            await with_rate_limit_retry(
                lambda: store.update(invitation.id, {"status": InvitationStatus.declined.value}),
                policy,
            )
        except Exception as e:
            logging.error(f"Failed to decline invitation {invitation.id}: {e}")
            continue
        cleaned += 1

    logging.info(f"Invitation sweep: {len(pending)} pending, {cleaned} declined")
    return cleaned
