"""Base interfaces for mapping methods."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from alignfarm.config import Settings
from alignfarm.db.engine import idle_connections
from alignfarm.farm.base import FarmClient
from alignfarm.models.job import SubmittedJob


@dataclass
class MappingContext:
    """Everything a method needs to turn an input pair into farm jobs."""

    session: AsyncSession
    farm: FarmClient
    root_dir: Path
    queue: str = "normal"
    exonerate_path: str = "exonerate"
    bytes_per_job: int = 1_000_000
    max_array_size: int = 300
    engine: AsyncEngine | None = None

    def farm_call(self):
        """Connection scope around one farm submission.

        Farms that run the job inline can keep a submission busy for hours, so
        the store connections are released for the call; otherwise a no-op.
        """
        if self.engine is not None and self.farm.runs_inline:
            return idle_connections(self.engine, self.session)
        return nullcontext()

    @classmethod
    def from_settings(
        cls,
        session: AsyncSession,
        farm: FarmClient,
        settings: Settings,
        root_dir: Path | None = None,
        engine: AsyncEngine | None = None,
    ) -> "MappingContext":
        return cls(
            session=session,
            farm=farm,
            root_dir=Path(root_dir or settings.root_dir),
            queue=settings.queue,
            exonerate_path=settings.exonerate_path,
            bytes_per_job=settings.bytes_per_job,
            max_array_size=settings.max_array_size,
            engine=engine,
        )


class MappingMethod(ABC):
    """Turns a query/target file pair into farm jobs for one alignment method."""

    name: str = "unknown"

    @abstractmethod
    async def submit(
        self, query_file: Path, target_file: Path, context: MappingContext
    ) -> list[SubmittedJob]:
        """Submit the jobs aligning ``query_file`` against ``target_file``.

        One SUBMITTED job row is inserted per array element.

        Raises:
            SubmissionError: The farm rejected the submission.
            WorkspaceError: An input file could not be read.
        """
        ...

    @abstractmethod
    async def resubmit(
        self,
        command_line: str,
        out_file: str,
        err_file: str,
        job_id: str,
        array_index: int,
        root_dir: str,
        context: MappingContext,
    ) -> SubmittedJob:
        """Resubmit a single array element of an earlier submission.

        Raises:
            SubmissionError: The farm rejected the submission.
        """
        ...


class SupportsDependencyJob(ABC):
    """Capability of methods that post-process once all their jobs are queued."""

    @abstractmethod
    async def submit_dependency_job(self, context: MappingContext) -> None:
        ...
