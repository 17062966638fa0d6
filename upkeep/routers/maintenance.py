import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from upkeep.authentication.basic_authentication import get_caller, require_admin, require_user
from upkeep.db import get_stores
from upkeep.domain.maintenance_rules import PRESENCE_ADMIN_LIST_LIMIT
from upkeep.entity_store import EntityStores
from upkeep.errors import UpkeepError
from upkeep.load_secrets import presence_targets, presence_user
from upkeep.models.basic_authentication_models import CallerModel
from upkeep.models.dc_models import (
    CleanedModel,
    OnlineUsersModel,
    ParticipantCountsModel,
    PresenceReportModel,
    TouchedUserModel,
)
from upkeep.services.invitation_expirer import expire_invitations
from upkeep.services.participant_counter import count_participants
from upkeep.services.presence_updater import list_online_users, touch_user, touch_users

maintenance_router = APIRouter()


async def read_json_body(request: Request) -> dict:
    """Request body as a dict; invalid or non-object JSON reads as empty."""
    try:
        body = await request.json()
    except Exception:
        return {}
    return body if isinstance(body, dict) else {}


def error_response(error: Exception, with_ok: bool = False) -> JSONResponse:
    status_code = error.status_code if isinstance(error, UpkeepError) else 500
    if status_code == 500:
        logging.exception(f"Maintenance job failed: {error}")
    content = {"error": str(error)}
    if with_ok:
        content = {"ok": False, **content}
    headers = {"WWW-Authenticate": "Basic"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


# Routes whose replies carry an ``ok`` flag, errors included.
OK_FLAG_PATHS = {"/update_user_last_seen", "/update_users_presence_now", "/update_users_presence"}


async def upkeep_error_handler(request: Request, exc: UpkeepError) -> JSONResponse:
    """Render errors raised outside a handler body, such as by auth dependencies."""
    return error_response(exc, with_ok=request.url.path in OK_FLAG_PATHS)


def report_response(report: PresenceReportModel) -> dict:
    return report.model_dump(mode="json", by_alias=True)


class InvitationAPI:
    @staticmethod
    @maintenance_router.post("/clean_expired_invitations", response_model=CleanedModel)
    async def clean_expired_invitations(
        caller: Optional[CallerModel] = Depends(get_caller),
        stores: EntityStores = Depends(get_stores),
    ):
        """Decline pending invitations older than the TTL.

        Service and anonymous calls proceed; authenticated callers must be admins.
        """
        try:
            cleaned = await expire_invitations(stores.invitations, caller=caller)
        except Exception as e:
            return error_response(e)
        return CleanedModel(cleaned=cleaned)


class PresenceAPI:
    @staticmethod
    @maintenance_router.post("/update_user_last_seen", response_model=TouchedUserModel)
    async def update_user_last_seen(stores: EntityStores = Depends(get_stores)):
        """Touch the configured presence user."""
        try:
            user = await touch_user(stores.users, presence_user)
        except Exception as e:
            return error_response(e, with_ok=True)
        return TouchedUserModel(id=user.id, username=user.username, last_seen=user.last_seen)

    @staticmethod
    @maintenance_router.post("/update_users_presence_now")
    async def update_users_presence_now(stores: EntityStores = Depends(get_stores)):
        """Touch every configured presence target."""
        try:
            report = await touch_users(stores.users, presence_targets)
        except Exception as e:
            return error_response(e, with_ok=True)
        return report_response(report)

    @staticmethod
    @maintenance_router.post("/update_users_presence")
    async def update_users_presence(
        request: Request,
        caller: CallerModel = Depends(require_admin),
        stores: EntityStores = Depends(get_stores),
    ):
        """Touch the usernames in the body, or the configured targets when none are given."""
        body = await read_json_body(request)
        usernames = body.get("usernames")
        if not isinstance(usernames, list) or not usernames:
            usernames = presence_targets
        logging.info(f"{caller.username} requested presence update for {usernames}")
        try:
            report = await touch_users(
                stores.users, usernames, limit=PRESENCE_ADMIN_LIST_LIMIT, sort="-updated_at"
            )
        except Exception as e:
            return error_response(e, with_ok=True)
        return report_response(report)

    @staticmethod
    @maintenance_router.post("/list_online_users", response_model=OnlineUsersModel)
    async def list_online(
        request: Request,
        caller: CallerModel = Depends(require_user),
        stores: EntityStores = Depends(get_stores),
    ):
        body = await read_json_body(request)
        try:
            users = await list_online_users(
                stores.users, limit=body.get("limit", 20), search=body.get("search", "")
            )
        except Exception as e:
            return error_response(e)
        return OnlineUsersModel(users=users)


class ParticipantAPI:
    @staticmethod
    @maintenance_router.post("/count_participants", response_model=ParticipantCountsModel)
    async def count_tournament_participants(
        request: Request,
        stores: EntityStores = Depends(get_stores),
    ):
        """Participant count per tournament id in ``{"ids": [...]}``."""
        body = await read_json_body(request)
        try:
            counts = await count_participants(stores.participants, body.get("ids"))
        except Exception as e:
            return error_response(e)
        return ParticipantCountsModel(counts=counts)
