"""Error types raised by the entity store and the maintenance jobs.

Routers translate these into HTTP status codes; anything else is reported
as a generic 500 with the exception message.
"""


class UpkeepError(Exception):
    """Base class for errors raised inside this package."""

    status_code = 500


class UnauthorizedError(UpkeepError):
    status_code = 401


class ForbiddenError(UpkeepError):
    status_code = 403


class UserNotFoundError(UpkeepError):
    status_code = 404

    def __init__(self, username: str):
        super().__init__(f"User not found: {username}")
        self.username = username


class EntityStoreError(UpkeepError):
    """A store call failed; ``status`` carries the remote status code if any."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class EntityNotFoundError(EntityStoreError):
    def __init__(self, entity: str, record_id):
        super().__init__(f"{entity} not found: {record_id}", status=404)
        self.record_id = record_id
