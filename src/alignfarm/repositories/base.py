"""Base repository with the queries every status table needs."""

from typing import Any, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from alignfarm.db.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository:
    """Generic async repository for SQLAlchemy models.

    Methods flush but never commit; the orchestrator decides where a unit
    of work ends.
    """

    def __init__(self, session: AsyncSession, model_class: type[T]):
        self.session = session
        self.model_class = model_class

    async def create(self, **kwargs: Any) -> T:
        row = self.model_class(**kwargs)
        self.session.add(row)
        await self.session.flush()
        return row

    async def list_by_field(self, field: str, value: Any) -> list[T]:
        stmt = select(self.model_class).where(getattr(self.model_class, field) == value)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_field(self, field: str, value: Any) -> int:
        stmt = (
            select(func.count())
            .select_from(self.model_class)
            .where(getattr(self.model_class, field) == value)
        )
        return (await self.session.execute(stmt)).scalar_one()
