"""Exonerate alignment methods."""

from __future__ import annotations

import logging
import math
from pathlib import Path

from alignfarm.errors.exceptions import WorkspaceError
from alignfarm.farm.base import ARRAY_INDEX_VAR, OUTPUT_INDEX_TOKEN, substitute_array_index
from alignfarm.methods.base import MappingContext, MappingMethod
from alignfarm.models.job import SubmittedJob
from alignfarm.repositories.job_repo import MappingJobRepository
from alignfarm.services.naming import timestamped_job_name

logger = logging.getLogger(__name__)

# One line per alignment, picked up by the map file loader
RYO_FORMAT = "xref:%qi:%ti:%ei:%ql:%tl:%qab:%qae:%tab:%tae:%C:%s\\n"


class ExonerateMethod(MappingMethod):
    """Chunked exonerate run: the query file is split across a job array."""

    name = "ExonerateBasic"
    options = ""
    # Minimum percent identities applied when the map files are loaded
    query_identity_threshold = 90
    target_identity_threshold = 90

    def array_size(self, query_file: Path, context: MappingContext) -> int:
        try:
            size = query_file.stat().st_size
        except OSError as exc:
            raise WorkspaceError(f"Could not read query file {query_file}: {exc}", str(query_file)) from exc
        parts = max(1, math.ceil(size / context.bytes_per_job))
        return min(parts, context.max_array_size)

    def output_prefix(self, query_file: Path, root_dir: Path, job_name: str) -> Path:
        """Per-submission file prefix; the job name keeps two runs of one query apart."""
        return root_dir / f"{query_file.stem}_{job_name}"

    def build_command(
        self,
        query_file: Path,
        target_file: Path,
        num_jobs: int,
        map_file: str,
        context: MappingContext,
    ) -> str:
        parts = [
            context.exonerate_path,
            str(query_file),
            str(target_file),
            f"--querychunkid {ARRAY_INDEX_VAR}",
            f"--querychunktotal {num_jobs}",
            "--showvulgar false",
            "--showalignment FALSE",
            f'--ryo "{RYO_FORMAT}"',
        ]
        if self.options:
            parts.append(self.options)
        return " ".join(parts) + f" | grep '^xref' > {map_file}"

    async def submit(
        self, query_file: Path, target_file: Path, context: MappingContext
    ) -> list[SubmittedJob]:
        num_jobs = self.array_size(query_file, context)
        job_name = timestamped_job_name(self.name)
        prefix = self.output_prefix(query_file, context.root_dir, job_name)
        command = self.build_command(
            query_file, target_file, num_jobs, f"{prefix}_{ARRAY_INDEX_VAR}.map", context
        )

        async with context.farm_call():
            job_id = await context.farm.submit(
                command,
                queue=context.queue,
                stdout_path=f"{prefix}_{OUTPUT_INDEX_TOKEN}.out",
                stderr_path=f"{prefix}_{OUTPUT_INDEX_TOKEN}.err",
                job_name=job_name,
                array_size=num_jobs,
            )
        logger.info(
            "Farm job ID for %s: %s (job array with %d jobs)", self.name, job_id, num_jobs
        )
        logger.debug(
            "%s identity thresholds: query %d%%, target %d%%",
            self.name, self.query_identity_threshold, self.target_identity_threshold,
        )

        repo = MappingJobRepository(context.session)
        for index in range(1, num_jobs + 1):
            await repo.create_submitted(
                job_id=job_id,
                array_index=index,
                method=self.name,
                command_line=command,
                map_file=f"{prefix}_{index}.map",
                out_file=f"{prefix}_{index}.out",
                err_file=f"{prefix}_{index}.err",
                root_dir=str(context.root_dir),
            )
        return [SubmittedJob(job_name=job_name, job_id=job_id, array_size=num_jobs)]

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
        command = substitute_array_index(command_line, array_index)
        job_name = timestamped_job_name(self.name, array_index)
        async with context.farm_call():
            new_job_id = await context.farm.submit(
                command,
                queue=context.queue,
                stdout_path=out_file,
                stderr_path=err_file,
                job_name=job_name,
            )
        logger.info("Resubmitted %s[%d] as farm job %s", job_id, array_index, new_job_id)
        return SubmittedJob(job_name=job_name, job_id=new_job_id)


class ExonerateGappedBest1(ExonerateMethod):
    name = "ExonerateGappedBest1"
    options = "--model affine:local --subopt no --bestn 1"


class ExonerateGappedBest1_55_perc_id(ExonerateGappedBest1):
    name = "ExonerateGappedBest1_55_perc_id"
    query_identity_threshold = 55
    target_identity_threshold = 55


class ExonerateGappedBest5(ExonerateMethod):
    name = "ExonerateGappedBest5"
    options = "--model affine:local --subopt no --bestn 5"


class ExonerateUngappedBest1(ExonerateMethod):
    name = "ExonerateUngappedBest1"
    options = "--bestn 1"
