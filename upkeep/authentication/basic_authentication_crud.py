import hashlib
import logging
import secrets
from typing import Optional

from upkeep.entity_store import EntityStore
from upkeep.load_secrets import pepper_data
from upkeep.models.schema_models import UserSchema


def hash_password(password: str, salt: str, pepper: str = pepper_data) -> str:
    return hashlib.sha256((password + salt + pepper).encode()).hexdigest()


class CreateAuthentication:

    @staticmethod
    async def create_user_data(
        store: EntityStore, username: str, password: str, role: str = "user"
    ) -> UserSchema:
        """Create user data to authenticate the user

        Args:
            store (EntityStore): user store
            username (str): login name, also used for presence matching
            password (str): plain password, stored salted and peppered
            role (str): "admin" or "user"
        """
        salt = secrets.token_hex(8)
        user = await store.create(
            {
                "username": username,
                "role": role,
                "hash_password": hash_password(password, salt),
                "salt": salt,
            }
        )
        logging.info(f"Created user {username} with role {role}")
        return user


class ReadAuthentication:
    @staticmethod
    async def read_user_data(store: EntityStore, username: str) -> Optional[UserSchema]:
        """Read user data to get salt and password hash

        Args:
            store (EntityStore): user store
            username (str): username of the user

        Returns:
            UserSchema: the user, or None if no user has this name
        """
        users = await store.filter({"username": username}, limit=1)
        if not users:
            logging.info(f"User not found: {username}")
            return None
        return users[0]
