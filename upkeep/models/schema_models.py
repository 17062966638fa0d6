from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime


class InvitationSchema(BaseModel):
    id: UUID
    status: str
    from_username: Optional[str] = None
    to_username: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserSchema(BaseModel):
    id: UUID
    username: Optional[str] = None
    full_name: Optional[str] = None
    role: str = "user"
    last_seen: Optional[datetime] = None
    hash_password: Optional[str] = None
    salt: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TournamentParticipantSchema(BaseModel):
    id: UUID
    tournament_id: str
    username: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
