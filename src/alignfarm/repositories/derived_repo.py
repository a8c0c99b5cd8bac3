"""Range operations over the tables mapping jobs write into."""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from alignfarm.db.models.derived import DERIVED_TABLES


class DerivedRecordRepository:
    def __init__(self, session: AsyncSession, tables=DERIVED_TABLES):
        self.session = session
        self.tables = tables

    async def delete_range(self, start: int, end: int) -> dict[str, int]:
        """Delete rows with object_xref_id in [start, end] from every table.

        Returns the number of rows removed per table.
        """
        removed: dict[str, int] = {}
        for table in self.tables:
            stmt = delete(table).where(table.object_xref_id.between(start, end))
            result = await self.session.execute(stmt)
            removed[table.__tablename__] = result.rowcount or 0
        await self.session.flush()
        return removed

    async def count_range(self, start: int, end: int) -> int:
        total = 0
        for table in self.tables:
            stmt = select(func.count()).select_from(table).where(
                table.object_xref_id.between(start, end)
            )
            result = await self.session.execute(stmt)
            total += result.scalar() or 0
        return total
