"""Derive job outcomes from the files each array element leaves behind."""

import logging
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession

from alignfarm.models.enums import JobStatus
from alignfarm.repositories.job_repo import MappingJobRepository

logger = logging.getLogger(__name__)


def _outcome(map_file: Path, out_file: Path, err_file: Path) -> JobStatus | None:
    # The farm writes the out file when the element ends
    if not out_file.exists():
        return None
    if err_file.exists() and err_file.stat().st_size > 0:
        return JobStatus.FAILED
    if not map_file.exists():
        return JobStatus.FAILED
    return JobStatus.SUCCESSFUL


async def reconcile_job_status(session: AsyncSession, root_dir: Path | None = None) -> dict[str, int]:
    """Settle SUBMITTED/RUNNING jobs that have ended.

    Returns counts of the statuses assigned in this pass.
    """
    repo = MappingJobRepository(session)
    counts: dict[str, int] = {}
    pending = await repo.list_by_status(JobStatus.SUBMITTED, JobStatus.RUNNING)
    for row in pending:
        if root_dir is not None and Path(row.root_dir) != root_dir:
            continue
        status = _outcome(Path(row.map_file), Path(row.out_file), Path(row.err_file))
        if status is None:
            continue
        await repo.set_status(row.job_id, row.array_index, status)
        counts[status] = counts.get(status, 0) + 1
        if status is JobStatus.FAILED:
            logger.warning("Job %s[%d] failed, see %s", row.job_id, row.array_index, row.err_file)
    await session.commit()
    return counts
