"""LSF farm client: shells out to bsub and parses its answer."""

from __future__ import annotations

import asyncio
import logging
import re

from alignfarm.errors.exceptions import SubmissionError
from alignfarm.farm.base import FarmClient, JobId

logger = logging.getLogger(__name__)

_SUBMITTED_RE = re.compile(r"Job <(\d+)> is submitted")


def parse_job_id(output: str) -> JobId | None:
    """Extract the job identifier from bsub's output, if present."""
    match = _SUBMITTED_RE.search(output)
    return JobId(match.group(1)) if match else None


class LsfFarmClient(FarmClient):
    farm_type = "lsf"

    def __init__(self, bsub_path: str = "bsub"):
        self.bsub_path = bsub_path

    def build_command(
        self,
        command: str,
        *,
        queue: str,
        stdout_path: str,
        stderr_path: str,
        job_name: str | None = None,
        array_size: int | None = None,
        dependency: str | None = None,
        interactive: bool = False,
    ) -> list[str]:
        argv = [self.bsub_path]
        if interactive:
            argv.append("-K")
        argv += ["-q", queue, "-o", stdout_path, "-e", stderr_path]
        if job_name:
            name = f"{job_name}[1-{array_size}]" if array_size else job_name
            argv += ["-J", name]
        if dependency:
            argv += ["-w", dependency]
        argv.append(command)
        return argv

    async def submit(
        self,
        command: str,
        *,
        queue: str,
        stdout_path: str,
        stderr_path: str,
        job_name: str | None = None,
        array_size: int | None = None,
        dependency: str | None = None,
        interactive: bool = False,
    ) -> JobId:
        argv = self.build_command(
            command,
            queue=queue,
            stdout_path=stdout_path,
            stderr_path=stderr_path,
            job_name=job_name,
            array_size=array_size,
            dependency=dependency,
            interactive=interactive,
        )
        logger.debug("Executing command: %s", " ".join(argv))

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            # Missing, not executable, or the exec itself failed
            raise SubmissionError(
                f"Could not run {self.bsub_path}: {exc}",
                details={"command": argv},
            ) from exc

        stdout, stderr = await proc.communicate()
        out_text = stdout.decode(errors="ignore")
        err_text = stderr.decode(errors="ignore")

        # bsub -K reports submission on either stream depending on version
        job_id = parse_job_id(out_text) or parse_job_id(err_text)
        if job_id is None:
            raise SubmissionError(
                f"Job submission failed (exit status {proc.returncode})",
                details={"command": argv, "stdout": out_text.strip(), "stderr": err_text.strip()},
            )
        if proc.returncode:
            logger.warning(
                "bsub returned %s for job %s: %s", proc.returncode, job_id, err_text.strip()
            )
        return job_id
