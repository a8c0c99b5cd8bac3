"""Batch submission of mapping tasks to the farm."""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from alignfarm.errors.exceptions import MethodNotFoundError, SubmissionError
from alignfarm.methods.base import MappingContext, MappingMethod, SupportsDependencyJob
from alignfarm.methods.registry import MethodRegistry
from alignfarm.models.enums import ProcessStatus
from alignfarm.models.job import MappingTask
from alignfarm.repositories.process_status_repo import ProcessStatusRepository
from alignfarm.services.barrier import DependencyBarrier
from alignfarm.services.workspace import check_error_files, ensure_root_dir, remove_stale_outputs

logger = logging.getLogger(__name__)


def track_method(running: list[MappingMethod], method: MappingMethod) -> None:
    """Remember a method once, however many of its jobs were submitted."""
    if not any(m is method for m in running):
        running.append(method)


async def submit_dependency_jobs(running: list[MappingMethod], context: MappingContext) -> None:
    """Run the post-processing hook of every method that has one."""
    for method in running:
        if not isinstance(method, SupportsDependencyJob):
            continue
        try:
            await method.submit_dependency_job(context)
        except SubmissionError as exc:
            logger.warning("Dependency job for %s was not submitted: %s", method.name, exc.message)


class JobSubmitter:
    """Submits a batch of mapping tasks and waits for the farm to finish them."""

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

    async def run_mapping(
        self,
        tasks: list[MappingTask],
        context: MappingContext,
        engine: AsyncEngine | None = None,
    ) -> int:
        """Submit every task, block until the farm is done and return the job count."""
        engine = engine if engine is not None else context.engine
        root_dir = ensure_root_dir(context.root_dir)
        remove_stale_outputs(root_dir)

        session = context.session
        job_names: list[str] = []
        running: list[MappingMethod] = []
        job_count = 0

        for task in tasks:
            try:
                method = self.registry.resolve(task.method)
            except MethodNotFoundError as exc:
                logger.warning("%s, skipping %s", exc.message, task.query_file)
                continue

            try:
                submitted = await method.submit(task.query_file, task.target_file, context)
            except SubmissionError as exc:
                await session.rollback()
                logger.warning(
                    "Submission of %s for %s failed, skipping: %s",
                    task.method, task.query_file, exc.message,
                )
                continue
            await session.commit()

            job_names.extend(job.job_name for job in submitted)
            job_count += sum(job.array_size for job in submitted)
            track_method(running, method)

            await asyncio.sleep(self.submit_interval)

        await ProcessStatusRepository(session).append(ProcessStatus.MAPPING_SUBMITTED)
        await session.commit()
        logger.info("Submitted %d mapping job(s) across %d submission(s)", job_count, len(job_names))

        await submit_dependency_jobs(running, context)
        await self.barrier.wait_for(root_dir, job_names, session=session, engine=engine)
        check_error_files(root_dir)
        return job_count
