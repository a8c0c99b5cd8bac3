"""Cleanup and resubmission of failed mapping jobs."""

import asyncio
import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncEngine

from alignfarm.errors.exceptions import MethodNotFoundError, RangeIntegrityError, SubmissionError
from alignfarm.farm.base import substitute_array_index
from alignfarm.methods.base import MappingContext, MappingMethod
from alignfarm.methods.registry import MethodRegistry
from alignfarm.models.enums import RangeState
from alignfarm.models.job import JobRecord
from alignfarm.repositories.derived_repo import DerivedRecordRepository
from alignfarm.repositories.job_repo import MappingJobRepository
from alignfarm.services.barrier import DependencyBarrier
from alignfarm.services.submitter import submit_dependency_jobs, track_method
from alignfarm.services.workspace import check_error_files, remove_job_files

logger = logging.getLogger(__name__)


@dataclass
class RecoveryReport:
    """What one recovery pass did."""

    resubmitted: list[tuple[str, int, str]] = field(default_factory=list)
    ambiguous: list[tuple[str, int]] = field(default_factory=list)
    unknown_method: list[tuple[str, int]] = field(default_factory=list)
    submission_failed: list[tuple[str, int]] = field(default_factory=list)
    records_deleted: int = 0
    job_names: list[str] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not (self.resubmitted or self.records_deleted)


class FailureRecoveryEngine:
    """Reruns FAILED jobs after removing whatever they partially wrote."""

    def __init__(
        self,
        registry: MethodRegistry,
        barrier: DependencyBarrier,
        *,
        submit_interval: float = 1.0,
    ):
        self.registry = registry
        self.barrier = barrier
        self.submit_interval = submit_interval

    async def fix_failed_jobs(
        self, context: MappingContext, engine: AsyncEngine | None = None
    ) -> RecoveryReport:
        engine = engine if engine is not None else context.engine
        session = context.session
        jobs = MappingJobRepository(session)
        derived = DerivedRecordRepository(session)
        report = RecoveryReport()
        running: list[MappingMethod] = []

        failed = [JobRecord.model_validate(row) for row in await jobs.list_failed()]
        if failed:
            logger.info("Found %d failed mapping job(s)", len(failed))

        for job in failed:
            key = (job.job_id, job.array_index)
            state = job.range_state

            if state is RangeState.PARTIAL:
                err = RangeIntegrityError(job.job_id, job.array_index, job.range_start, job.range_end)
                logger.error(err.message)
                report.ambiguous.append(key)
                continue

            if state is RangeState.COMPLETE:
                logger.info(
                    "Removing object_xref etc from %d to %d", job.range_start, job.range_end
                )
                removed = await derived.delete_range(job.range_start, job.range_end)
                report.records_deleted += sum(removed.values())
                await jobs.clear_affected_range(job.job_id, job.array_index)

            remove_job_files(job.map_file, job.out_file, job.err_file)

            try:
                method = self.registry.resolve(job.method)
            except MethodNotFoundError as exc:
                await session.commit()
                logger.warning("%s, skipping %s[%d]", exc.message, job.job_id, job.array_index)
                report.unknown_method.append(key)
                continue

            command = substitute_array_index(job.command_line, job.array_index)
            try:
                submitted = await method.resubmit(
                    command,
                    job.out_file,
                    job.err_file,
                    job.job_id,
                    job.array_index,
                    job.root_dir,
                    context,
                )
            except SubmissionError as exc:
                await session.commit()
                logger.warning(
                    "Resubmission of %s[%d] failed: %s", job.job_id, job.array_index, exc.message
                )
                report.submission_failed.append(key)
                continue

            await jobs.mark_resubmitted(job.job_id, job.array_index, submitted.job_id)
            await session.commit()

            report.resubmitted.append((job.job_id, job.array_index, submitted.job_id))
            report.job_names.append(submitted.job_name)
            track_method(running, method)

            await asyncio.sleep(self.submit_interval)

        await submit_dependency_jobs(running, context)
        if report.job_names:
            await self.barrier.wait_for(
                context.root_dir, report.job_names, session=session, engine=engine
            )
        check_error_files(context.root_dir)
        return report
