from pydantic import BaseModel, Field
from enum import Enum
from uuid import UUID
from datetime import datetime
from typing import Optional, Dict, List


class InvitationStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class CleanedModel(BaseModel):
    cleaned: int


class PresenceEntryModel(BaseModel):
    id: UUID
    username: Optional[str] = None
    last_seen: Optional[datetime] = None


class PresenceReportModel(BaseModel):
    """Outcome of a presence reconciliation over a set of usernames."""
    ok: bool = True
    updated: List[PresenceEntryModel] = Field(default_factory=list)
    not_found: List[str] = Field(default_factory=list, serialization_alias="notFound")
    failed: List[str] = Field(default_factory=list)


class TouchedUserModel(PresenceEntryModel):
    ok: bool = True


class ParticipantCountsModel(BaseModel):
    counts: Dict[str, int]


class OnlineUserModel(BaseModel):
    id: UUID
    username: Optional[str] = None
    full_name: Optional[str] = None
    last_seen: Optional[datetime] = None


class OnlineUsersModel(BaseModel):
    users: List[OnlineUserModel]
