"""Farm-less execution: every submitted job runs to completion in-process."""

from __future__ import annotations

import asyncio
import logging
import os

from alignfarm.errors.exceptions import WorkspaceError
from alignfarm.farm.base import OUTPUT_INDEX_TOKEN, FarmClient, JobId
from alignfarm.services.naming import generate_id

logger = logging.getLogger(__name__)


class LocalFarmClient(FarmClient):
    """Runs commands through the local shell, one array element at a time.

    Jobs have already ended when ``submit`` returns, so dependency
    expressions are satisfied by construction and ignored.
    """

    farm_type = "local"
    runs_inline = True

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
        job_id = JobId(generate_id("local_"))
        indices = range(1, array_size + 1) if array_size else [0]
        for index in indices:
            await self._run_element(command, index, stdout_path, stderr_path, job_id)
        logger.info(
            "Ran %s locally as %s (%d element(s))", job_name or "job", job_id, len(indices)
        )
        return job_id

    async def _run_element(
        self, command: str, index: int, stdout_path: str, stderr_path: str, job_id: str
    ) -> None:
        out_path = stdout_path.replace(OUTPUT_INDEX_TOKEN, str(index))
        err_path = stderr_path.replace(OUTPUT_INDEX_TOKEN, str(index))
        env = {**os.environ, "LSB_JOBINDEX": str(index), "LSB_JOBID": job_id}
        try:
            with open(out_path, "wb") as out_fh, open(err_path, "wb") as err_fh:
                proc = await asyncio.create_subprocess_shell(
                    command, stdout=out_fh, stderr=err_fh, env=env
                )
                returncode = await proc.wait()
        except OSError as exc:
            raise WorkspaceError(f"Could not open job output files: {exc}", out_path) from exc
        if returncode:
            logger.warning("Local job %s[%d] exited with status %d", job_id, index, returncode)
