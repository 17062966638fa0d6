import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import asc, desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from upkeep.errors import EntityNotFoundError, EntityStoreError
from upkeep.models.schema_models import (
    InvitationSchema,
    TournamentParticipantSchema,
    UserSchema,
)
from upkeep.models.schemas import Base, Invitation, TournamentParticipant, User


class EntityStore(ABC):
    """Record-oriented collaborator holding one entity type.

    Every call is a suspension point and may fail on its own; callers
    decide whether a failure is isolated or fatal.
    """

    @abstractmethod
    async def filter(
        self, criteria: Dict[str, Any], sort: Optional[str] = None, limit: Optional[int] = None
    ) -> List[BaseModel]:
        ...

    @abstractmethod
    async def list(self, sort: Optional[str] = None, limit: Optional[int] = None) -> List[BaseModel]:
        ...

    @abstractmethod
    async def update(self, record_id: UUID, fields: Dict[str, Any]) -> BaseModel:
        ...

    @abstractmethod
    async def delete(self, record_id: UUID) -> None:
        ...

    @abstractmethod
    async def create(self, fields: Dict[str, Any]) -> BaseModel:
        ...

    async def count(self, criteria: Dict[str, Any]) -> int:
        return len(await self.filter(criteria))


class SqlEntityStore(EntityStore):
    """EntityStore backed by one SQLAlchemy table; one session per call."""

    def __init__(self, table: Type[Base], schema: Type[BaseModel], Session: async_sessionmaker):
        self.table = table
        self.schema = schema
        self.Session = Session

    @property
    def entity(self) -> str:
        return self.table.__name__

    def _column(self, name: str):
        column = getattr(self.table, name, None)
        if column is None:
            raise EntityStoreError(f"{self.entity} has no field {name!r}", status=400)
        return column

    def _order_by(self, sort: str):
        """'-created_at' sorts descending, 'created_at' ascending; NULLs always sort last."""
        if sort.startswith("-"):
            return desc(self._column(sort[1:])).nulls_last()
        return asc(self._column(sort)).nulls_last()

    def _select(self, criteria: Dict[str, Any], sort: Optional[str], limit: Optional[int]):
        stmt = select(self.table)
        for name, value in criteria.items():
            stmt = stmt.where(self._column(name) == value)
        if sort:
            stmt = stmt.order_by(self._order_by(sort))
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    async def filter(
        self, criteria: Dict[str, Any], sort: Optional[str] = None, limit: Optional[int] = None
    ) -> List[BaseModel]:
        stmt = self._select(criteria, sort, limit)
        async with self.Session() as session:
            try:
                result = await session.execute(stmt)
                return [self.schema.model_validate(row) for row in result.scalars().all()]
            except SQLAlchemyError as e:
                logging.error(f"Failed to filter {self.entity}: {e}")
                raise EntityStoreError(f"Failed to filter {self.entity}: {e}") from e

    async def list(self, sort: Optional[str] = None, limit: Optional[int] = None) -> List[BaseModel]:
        return await self.filter({}, sort, limit)

    async def count(self, criteria: Dict[str, Any]) -> int:
        stmt = select(func.count()).select_from(self.table)
        for name, value in criteria.items():
            stmt = stmt.where(self._column(name) == value)
        async with self.Session() as session:
            try:
                result = await session.execute(stmt)
                return int(result.scalar_one())
            except SQLAlchemyError as e:
                logging.error(f"Failed to count {self.entity}: {e}")
                raise EntityStoreError(f"Failed to count {self.entity}: {e}") from e

    async def update(self, record_id: UUID, fields: Dict[str, Any]) -> BaseModel:
        for name in fields:
            self._column(name)
        async with self.Session() as session:
            try:
                row = await session.get(self.table, record_id)
                if row is None:
                    raise EntityNotFoundError(self.entity, record_id)
                for name, value in fields.items():
                    setattr(row, name, value)
                await session.commit()
                await session.refresh(row)
                return self.schema.model_validate(row)
            except SQLAlchemyError as e:
                await session.rollback()
                logging.error(f"Failed to update {self.entity} {record_id}: {e}")
                raise EntityStoreError(f"Failed to update {self.entity} {record_id}: {e}") from e

    async def delete(self, record_id: UUID) -> None:
        async with self.Session() as session:
            try:
                row = await session.get(self.table, record_id)
                if row is None:
                    raise EntityNotFoundError(self.entity, record_id)
                await session.delete(row)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logging.error(f"Failed to delete {self.entity} {record_id}: {e}")
                raise EntityStoreError(f"Failed to delete {self.entity} {record_id}: {e}") from e

    async def create(self, fields: Dict[str, Any]) -> BaseModel:
        for name in fields:
            self._column(name)
        async with self.Session() as session:
            try:
                row = self.table(**fields)
                session.add(row)
                await session.commit()
                await session.refresh(row)
                return self.schema.model_validate(row)
            except SQLAlchemyError as e:
                await session.rollback()
                logging.error(f"Failed to create {self.entity}: {e}")
                raise EntityStoreError(f"Failed to create {self.entity}: {e}") from e


@dataclass
class EntityStores:
    invitations: EntityStore
    users: EntityStore
    participants: EntityStore

    @classmethod
    def from_session(cls, Session: async_sessionmaker) -> "EntityStores":
        return cls(
            invitations=SqlEntityStore(Invitation, InvitationSchema, Session),
            users=SqlEntityStore(User, UserSchema, Session),
            participants=SqlEntityStore(TournamentParticipant, TournamentParticipantSchema, Session),
        )
