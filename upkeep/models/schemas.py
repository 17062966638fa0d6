from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column
from sqlalchemy.types import String, Uuid, DateTime
from uuid6 import uuid7
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Invitation(Base):
    __tablename__ = "invitations"
    id = Column(Uuid, primary_key=True, default=uuid7)
    status = Column(String, nullable=False, default="pending", index=True)
    from_username = Column(String)
    to_username = Column(String)
    # nullable: records imported from the platform may lack a timestamp
    created_at = Column(DateTime(timezone=True), nullable=True, default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class User(Base):
    __tablename__ = "users"
    id = Column(Uuid, primary_key=True, default=uuid7)
    username = Column(String, index=True)
    full_name = Column(String)
    role = Column(String, nullable=False, default="user")
    last_seen = Column(DateTime(timezone=True), nullable=True)
    hash_password = Column(String)
    salt = Column(String)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class TournamentParticipant(Base):
    __tablename__ = "tournament_participants"
    id = Column(Uuid, primary_key=True, default=uuid7)
    tournament_id = Column(String, nullable=False, index=True)
    username = Column(String)
    created_at = Column(DateTime(timezone=True), default=utcnow)
