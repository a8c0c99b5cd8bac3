"""Mapping job repository."""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from alignfarm.db.models.job import MappingJobRow
from alignfarm.models.enums import JobStatus
from alignfarm.repositories.base import BaseRepository


class MappingJobRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, MappingJobRow)

    async def get(self, job_id: str, array_index: int) -> MappingJobRow | None:
        return await self.session.get(MappingJobRow, (job_id, array_index))

    async def create_submitted(
        self,
        job_id: str,
        array_index: int,
        method: str,
        command_line: str,
        map_file: str,
        out_file: str,
        err_file: str,
        root_dir: str,
    ) -> MappingJobRow:
        return await self.create(
            job_id=job_id,
            array_index=array_index,
            method=method,
            command_line=command_line,
            status=JobStatus.SUBMITTED,
            map_file=map_file,
            out_file=out_file,
            err_file=err_file,
            root_dir=root_dir,
            range_start=None,
            range_end=None,
        )

    async def list_by_status(self, *statuses: JobStatus) -> list[MappingJobRow]:
        stmt = (
            select(MappingJobRow)
            .where(MappingJobRow.status.in_([str(s) for s in statuses]))
            .order_by(MappingJobRow.job_id, MappingJobRow.array_index)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_failed(self) -> list[MappingJobRow]:
        return await self.list_by_status(JobStatus.FAILED)

    async def set_status(self, job_id: str, array_index: int, status: JobStatus) -> None:
        await self._update(job_id, array_index, status=str(status))

    async def set_affected_range(self, job_id: str, array_index: int, start: int, end: int) -> None:
        """Record the object_xref_id interval written for this job."""
        if start > end:
            raise ValueError(f"range start {start} is after end {end}")
        await self._update(job_id, array_index, range_start=start, range_end=end)

    async def clear_affected_range(self, job_id: str, array_index: int) -> None:
        await self._update(job_id, array_index, range_start=None, range_end=None)

    async def mark_resubmitted(self, job_id: str, array_index: int, new_job_id: str) -> None:
        """Point the row at its replacement farm job and flag it SUBMITTED."""
        # The identity key changes; drop any loaded copy instead of syncing it
        row = await self.get(job_id, array_index)
        if row is not None:
            self.session.expunge(row)
        await self._update(
            job_id,
            array_index,
            synchronize=False,
            job_id=new_job_id,
            status=str(JobStatus.SUBMITTED),
        )

    async def status_counts(self) -> dict[str, int]:
        stmt = (
            select(MappingJobRow.status, func.count())
            .group_by(MappingJobRow.status)
        )
        result = await self.session.execute(stmt)
        return {status: count for status, count in result.all()}

    async def _update(
        self, job_id: str, array_index: int, /, synchronize: bool = True, **values
    ) -> None:
        stmt = (
            update(MappingJobRow)
            .where(
                MappingJobRow.job_id == job_id,
                MappingJobRow.array_index == array_index,
            )
            .values(**values)
            .execution_options(synchronize_session="fetch" if synchronize else False)
        )
        await self.session.execute(stmt)
        await self.session.flush()
