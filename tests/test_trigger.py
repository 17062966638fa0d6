"""Tests for the job trigger CLI."""

import httpx
import pytest

from upkeep.main import app
from upkeep.trigger import JOBS, get_parser, trigger


def test_parser_accepts_known_jobs():
    args = get_parser().parse_args(["count_participants", "--payload", '{"ids": ["t1"]}', "--retries", "0"])
    assert args.job == "count_participants"
    assert args.retries == 0


def test_parser_rejects_unknown_job():
    with pytest.raises(SystemExit):
        get_parser().parse_args(["drop_everything"])


@pytest.mark.asyncio
async def test_trigger_reaches_the_app(client, stores):
    await stores.participants.create({"tournament_id": "t1"})

    result = await trigger(
        "count_participants",
        {"ids": ["t1"]},
        base_url="http://test",
        retries=0,
        transport=httpx.ASGITransport(app=app),
    )

    assert result.degraded is False
    assert result.data == {"counts": {"t1": 1}}


@pytest.mark.asyncio
async def test_unreachable_server_degrades_to_job_fallback():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = await trigger(
        "clean_expired_invitations",
        {},
        base_url="http://test",
        retries=1,
        retry_delay=0,
        transport=httpx.MockTransport(refuse),
    )

    assert result.degraded is True
    assert result.status == 200
    assert result.data == JOBS["clean_expired_invitations"]
