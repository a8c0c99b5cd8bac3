"""Abstract interface to the compute farm."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import NewType

JobId = NewType("JobId", str)

# Expanded by the farm inside a running array element
ARRAY_INDEX_VAR = "$LSB_JOBINDEX"
# Expanded by the farm in -o/-e paths of an array element
OUTPUT_INDEX_TOKEN = "%I"


class FarmClient(ABC):
    """Submits commands to an asynchronous job execution service."""

    farm_type: str = "unknown"
    # True when submit only returns once the job itself has finished
    runs_inline: bool = False

    @abstractmethod
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
        """Submit one job (or one job array) to the farm.

        Args:
            command: Shell command line; array elements see their index in
                ``$LSB_JOBINDEX``.
            queue: Farm queue name.
            stdout_path: Output file; ``%I`` expands to the array index.
            stderr_path: Error file; ``%I`` expands to the array index.
            job_name: Farm-visible job name, referenced by dependency clauses.
            array_size: Number of array elements (indices 1..N), or None for
                a plain job.
            dependency: Dependency expression gating the start of the job.
            interactive: Block until the job has finished.

        Returns:
            The identifier the farm assigned.

        Raises:
            SubmissionError: The farm did not hand back an identifier.
        """
        ...


def build_dependency_expression(job_names: list[str]) -> str:
    """Conjoin one ``ended(name)`` clause per distinct job name, in order."""
    unique = list(dict.fromkeys(name for name in job_names if name))
    return " && ".join(f"ended({name})" for name in unique)


def substitute_array_index(command_line: str, array_index: int) -> str:
    """Bake a concrete array index into a command written for an array job."""
    return command_line.replace(ARRAY_INDEX_VAR, str(array_index))
