"""Presence reconciliation: stamp ``last_seen`` on named users.

Writes are last-write-wins, so concurrent runs racing on the same user are
harmless. Users are never created or deleted here.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional

from upkeep.domain.maintenance_rules import (
    ONLINE_SCAN_LIMIT,
    ONLINE_WINDOW,
    PRESENCE_LIST_LIMIT,
    clamp_online_limit,
    matches_search,
    normalize_usernames,
    parse_timestamp,
)
from upkeep.entity_store import EntityStore
from upkeep.errors import UserNotFoundError
from upkeep.models.dc_models import OnlineUserModel, PresenceEntryModel, PresenceReportModel
from upkeep.models.schema_models import UserSchema
from upkeep.retry import RetryPolicy, with_rate_limit_retry


def _username(user: UserSchema) -> str:
    return str(user.username or "").lower()


async def _stamp(store: EntityStore, user: UserSchema, now: datetime, policy: RetryPolicy) -> UserSchema:
    return await with_rate_limit_retry(
        lambda: store.update(user.id, {"last_seen": now}), policy
    )


async def touch_user(
    store: EntityStore,
    username: str,
    *,
    now: Optional[datetime] = None,
    limit: int = PRESENCE_LIST_LIMIT,
    policy: Optional[RetryPolicy] = None,
) -> UserSchema:
    """Set ``last_seen`` to now for the first user named ``username``.

    Raises:
        UserNotFoundError: no user among the ``limit`` most recently updated matches
    """
    now = now or datetime.now(timezone.utc)
    policy = policy or RetryPolicy.from_settings()
    target = username.lower()
    users = await store.list("-updated_at", limit)
    user = next((u for u in users if _username(u) == target), None)
    if user is None:
        raise UserNotFoundError(username)
    updated = await _stamp(store, user, now, policy)
    logging.info(f"Presence touched for {username}")
    return updated


async def touch_users(
    store: EntityStore,
    targets: Iterable[str],
    *,
    now: Optional[datetime] = None,
    limit: int = PRESENCE_LIST_LIMIT,
    sort: str = "-last_seen",
    policy: Optional[RetryPolicy] = None,
) -> PresenceReportModel:
    """Set ``last_seen`` to now for every user whose name is in ``targets``.

    Matching is case-insensitive. A matched name leaves the pending set, so
    duplicate usernames are only stamped once. Names never matched are
    reported in ``not_found``; names whose update failed in ``failed``.
    """
    now = now or datetime.now(timezone.utc)
    policy = policy or RetryPolicy.from_settings()
    pending = normalize_usernames(targets)
    report = PresenceReportModel()
    if not pending:
        return report

    users = await store.list(sort, limit)
    for user in users:
        name = _username(user)
        if name not in pending:
            continue
        pending.remove(name)
        try:
            updated = await _stamp(store, user, now, policy)
        except Exception as e:
            logging.error(f"Failed to touch presence for {name}: {e}")
            report.failed.append(name)
            continue
        report.updated.append(
            PresenceEntryModel(
                id=updated.id,
                username=updated.username or name,
                last_seen=updated.last_seen or now,
            )
        )

    report.not_found = pending
    logging.info(
        f"Presence sweep: {len(report.updated)} updated, "
        f"{len(report.not_found)} not found, {len(report.failed)} failed"
    )
    return report


async def list_online_users(
    store: EntityStore,
    *,
    now: Optional[datetime] = None,
    window: timedelta = ONLINE_WINDOW,
    limit: Any = 20,
    search: str = "",
) -> List[OnlineUserModel]:
    """Users seen within ``window`` of ``now``, most recent first."""
    now = now or datetime.now(timezone.utc)
    since = now - window
    users = await store.list("-last_seen", ONLINE_SCAN_LIMIT)
    online = []
    for user in users:
        last_seen = parse_timestamp(user.last_seen)
        if last_seen is None or last_seen < since:
            continue
        if not matches_search(str(search or ""), user.username, user.full_name):
            continue
        online.append(
            OnlineUserModel(
                id=user.id, username=user.username, full_name=user.full_name, last_seen=user.last_seen
            )
        )
    return online[:clamp_online_limit(limit)]
