import argparse
import asyncio
import logging
import secrets
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from upkeep.authentication.basic_authentication_crud import (
    CreateAuthentication,
    ReadAuthentication,
    hash_password,
)
from upkeep.db import Session, create_tables, get_stores
from upkeep.entity_store import EntityStores
from upkeep.errors import ForbiddenError, UnauthorizedError
from upkeep.models.basic_authentication_models import CallerModel

security = HTTPBasic(auto_error=False)
create_auth = CreateAuthentication()
read_auth = ReadAuthentication()


async def get_caller(
    credentials: Optional[HTTPBasicCredentials] = Depends(security),
    stores: EntityStores = Depends(get_stores),
) -> Optional[CallerModel]:
    """Resolve optional basic credentials to the calling user.

    This is a best-effort probe: missing or wrong credentials, or a failed
    user lookup, all resolve to None and the request is treated as an
    anonymous/service call.

    Args:
        credentials (HTTPBasicCredentials, optional): Defaults to Depends(security).
        stores (EntityStores): Defaults to Depends(get_stores).

    Returns:
        CallerModel | None: the authenticated caller
    """
    if credentials is None:
        return None
    try:
        user_data = await read_auth.read_user_data(stores.users, credentials.username)
    except Exception as e:
        logging.warning(f"Caller lookup failed, treating request as anonymous: {e}")
        return None
    if user_data is None or not user_data.salt or not user_data.hash_password:
        return None

    hashed_password = hash_password(credentials.password, user_data.salt)
    if not secrets.compare_digest(hashed_password, user_data.hash_password):
        logging.info(f"Invalid password for {credentials.username}")
        return None
    return CallerModel(username=user_data.username, role=user_data.role)


async def require_user(caller: Optional[CallerModel] = Depends(get_caller)) -> CallerModel:
    """Reject anonymous callers with 401."""
    if caller is None:
        raise UnauthorizedError("Unauthorized")
    return caller


async def require_admin(caller: CallerModel = Depends(require_user)) -> CallerModel:
    """Reject non-admin callers with 403."""
    if not caller.is_admin:
        raise ForbiddenError("Forbidden: Admin only")
    return caller


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a user for basic authentication")
    parser.add_argument("--username", type=str, help="Username", required=True)
    parser.add_argument("--password", type=str, help="Password", required=True)
    parser.add_argument("--role", type=str, choices=["user", "admin"], default="user", help="Role")
    return parser


async def main(user_name: str, password: str, role: str):
    await create_tables()
    stores = EntityStores.from_session(Session)
    user_data = await create_auth.create_user_data(stores.users, user_name, password, role)
    print(user_data.username, user_data.role, user_data.id)


if __name__ == "__main__":
    parser = get_parser()
    args = parser.parse_args()
    asyncio.run(main(args.username, args.password, args.role))
