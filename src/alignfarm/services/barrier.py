"""Blocking wait on a set of farm jobs."""

import logging
from contextlib import nullcontext
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from alignfarm.db.engine import idle_connections
from alignfarm.errors.exceptions import SubmissionError
from alignfarm.farm.base import FarmClient, build_dependency_expression
from alignfarm.models.enums import ProcessStatus
from alignfarm.repositories.process_status_repo import ProcessStatusRepository

logger = logging.getLogger(__name__)


class DependencyBarrier:
    """Suspends the orchestrator until every named job has ended.

    A no-op farm job gated on ``ended(...)`` of each name is submitted in
    interactive mode, so the submission itself only returns once the farm
    has run it.
    """

    def __init__(self, farm: FarmClient, *, queue: str = "small", local: bool = False):
        self.farm = farm
        self.queue = queue
        self.local = local

    async def wait_for(
        self,
        root_dir: Path,
        job_names: list[str],
        *,
        session: AsyncSession,
        engine: AsyncEngine | None = None,
    ) -> bool:
        """Block until ``job_names`` have ended.

        ``engine``, when given, has its connections released for the
        duration of the wait.

        Returns:
            True once the barrier is satisfied, False if the barrier job
            could not be submitted.
        """
        if self.local:
            logger.info("Farm-less mode, jobs already ran; no dependency job needed")
            await self._record_finished(session)
            return True

        expression = build_dependency_expression(job_names)
        if not expression:
            logger.info("No farm jobs to wait for")
            await self._record_finished(session)
            return True

        logger.info("Submitting dependency job waiting on %d job(s)", expression.count("ended("))
        release = idle_connections(engine, session) if engine is not None else nullcontext()
        try:
            async with release:
                job_id = await self.farm.submit(
                    "/bin/true",
                    queue=self.queue,
                    stdout_path=str(root_dir / "depend.out"),
                    stderr_path=str(root_dir / "depend.err"),
                    dependency=expression,
                    interactive=True,
                )
        except SubmissionError as exc:
            logger.warning("Job submission failed: %s %s", exc.message, exc.details or "")
            return False

        logger.info("Farm job ID for dependency job: %s", job_id)
        await self._record_finished(session)
        return True

    async def _record_finished(self, session: AsyncSession) -> None:
        await ProcessStatusRepository(session).append(ProcessStatus.MAPPING_FINISHED)
        await session.commit()
