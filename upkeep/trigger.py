"""Trigger a maintenance job over HTTP, e.g. from cron.

    python -m upkeep.trigger clean_expired_invitations --retries 2

The call goes through safe_invoke, so an unreachable or rate-limited server
yields the fallback result instead of a traceback.
"""

import argparse
import asyncio
import json
import logging
from typing import Optional

import httpx

from upkeep.invoker import FunctionClient, InvocationResult, safe_invoke
from upkeep.load_secrets import functions_base_url, functions_timeout
from upkeep.retry import RetryPolicy

JOBS = {
    "clean_expired_invitations": {"cleaned": 0},
    "update_user_last_seen": {"ok": False},
    "update_users_presence_now": {"ok": False, "updated": [], "notFound": []},
    "update_users_presence": {"ok": False, "updated": [], "notFound": []},
    "count_participants": {"counts": {}},
}


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Trigger a maintenance job")
    parser.add_argument("job", choices=sorted(JOBS), help="Job to trigger")
    parser.add_argument("--payload", type=str, default="{}", help="JSON request body")
    parser.add_argument("--base-url", type=str, default=functions_base_url, help="Server base URL")
    parser.add_argument("--retries", type=int, default=2, help="Attempts after the first failure")
    parser.add_argument("--retry-delay", type=float, default=0.3, help="Seconds between attempts")
    parser.add_argument("--username", type=str, help="Basic auth username")
    parser.add_argument("--password", type=str, help="Basic auth password")
    return parser


async def trigger(
    job: str,
    payload: dict,
    base_url: str = functions_base_url,
    retries: int = 2,
    retry_delay: float = 0.3,
    auth: Optional[httpx.Auth] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> InvocationResult:
    client = FunctionClient(
        base_url=base_url,
        timeout=functions_timeout,
        policy=RetryPolicy.from_settings(),
        auth=auth,
        transport=transport,
    )
    return await safe_invoke(
        job,
        payload,
        retries=retries,
        fallback_data=JOBS.get(job),
        retry_delay=retry_delay,
        invoke=client.invoke,
    )


async def main(args: argparse.Namespace) -> InvocationResult:
    try:
        payload = json.loads(args.payload)
    except json.JSONDecodeError as e:
        logging.error(f"Invalid --payload, sending empty body: {e}")
        payload = {}
    auth = None
    if args.username:
        auth = httpx.BasicAuth(args.username, args.password or "")
    result = await trigger(
        args.job, payload, args.base_url, args.retries, args.retry_delay, auth=auth
    )
    print(json.dumps({**result.as_dict(), "degraded": result.degraded}))
    return result


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = get_parser()
    asyncio.run(main(parser.parse_args()))
