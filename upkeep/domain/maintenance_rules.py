"""Maintenance rules that are independent from HTTP and DB.

Rule of thumb:
- OK: timestamp parsing, age checks, input normalisation, batching.
- Not OK: touching the entity store, FastAPI, datetime.now(), etc.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Iterator, List, Optional

INVITATION_TTL = timedelta(seconds=60)
INVITATION_SWEEP_LIMIT = 500

PRESENCE_LIST_LIMIT = 1000
PRESENCE_ADMIN_LIST_LIMIT = 2000

PARTICIPANT_BATCH_SIZE = 10

ONLINE_WINDOW = timedelta(minutes=5)
ONLINE_SCAN_LIMIT = 200
ONLINE_MAX_RESULTS = 50


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Return an aware UTC datetime, or None when ``value`` is not a timestamp.

    Naive datetimes and ISO strings without an offset are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_expired(created_at: Any, now: datetime, ttl: timedelta = INVITATION_TTL) -> bool:
    """True only when the age is strictly greater than ``ttl``."""
    created = parse_timestamp(created_at)
    if created is None:
        return False
    return parse_timestamp(now) - created > ttl


def normalize_ids(raw: Any) -> List[str]:
    """De-duplicate identifiers, dropping falsy and non-scalar values.

    Anything other than a list is treated as "no identifiers".
    """
    if not isinstance(raw, list):
        return []
    seen = {}
    for value in raw:
        if not value or isinstance(value, bool) or not isinstance(value, (str, int, float)):
            continue
        seen.setdefault(str(value), None)
    return list(seen)


def normalize_usernames(raw: Iterable[Any]) -> List[str]:
    """Lower-cased, de-duplicated usernames in first-seen order."""
    seen = {}
    for value in raw or []:
        name = str(value or "").strip().lower()
        if name:
            seen.setdefault(name, None)
    return list(seen)


def batched(items: List[Any], size: int) -> Iterator[List[Any]]:
    if size < 1:
        raise ValueError("batch size must be at least 1")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def clamp_online_limit(limit: Any, default: int = 20) -> int:
    try:
        value = int(limit) or default
    except (TypeError, ValueError):
        value = default
    return min(ONLINE_MAX_RESULTS, max(1, value))


def matches_search(search: str, *fields: Optional[str]) -> bool:
    if not search:
        return True
    haystack = " ".join(field or "" for field in fields).lower()
    return search.lower() in haystack
