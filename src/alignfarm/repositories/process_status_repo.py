"""Process status (milestone) repository. Rows are only ever appended."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alignfarm.db.models.process_status import ProcessStatusRow
from alignfarm.repositories.base import BaseRepository


class ProcessStatusRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, ProcessStatusRow)

    async def append(self, status: str) -> ProcessStatusRow:
        return await self.create(status=str(status))

    async def list_events(self, limit: int | None = None) -> list[ProcessStatusRow]:
        stmt = select(ProcessStatusRow).order_by(ProcessStatusRow.id.desc())
        if limit:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(reversed(result.scalars().all()))

    async def count(self, status: str) -> int:
        return await self.count_by_field("status", str(status))
