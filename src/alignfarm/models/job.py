"""Pydantic models for mapping tasks and job records."""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from alignfarm.models.enums import JobStatus, RangeState


class MappingTask(BaseModel):
    """One (method, query, target) triple to be aligned on the farm."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: str = Field(..., min_length=1)
    query_file: Path
    target_file: Path

    @classmethod
    def parse(cls, value: str) -> "MappingTask":
        """Build a task from ``METHOD:QUERY:TARGET``."""
        parts = value.split(":")
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"expected METHOD:QUERY:TARGET, got {value!r}")
        method, query, target = parts
        return cls(method=method, query_file=Path(query), target_file=Path(target))


class SubmittedJob(BaseModel):
    """A farm submission as seen by the orchestrator."""

    model_config = ConfigDict(frozen=True)

    job_name: str
    job_id: str
    array_size: int = 1


class JobRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    job_id: str
    array_index: int
    method: str
    command_line: str
    status: JobStatus
    map_file: str
    out_file: str
    err_file: str
    root_dir: str
    range_start: int | None = None
    range_end: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def range_state(self) -> RangeState:
        return classify_range(self.range_start, self.range_end)


def classify_range(start: int | None, end: int | None) -> RangeState:
    """Classify an affected-record range.

    Zero counts as unset: record identifiers start at 1, and a loader that
    never got going leaves zeros behind rather than NULLs.
    """
    has_start = bool(start)
    has_end = bool(end)
    if has_start and has_end:
        return RangeState.COMPLETE
    if has_start or has_end:
        return RangeState.PARTIAL
    return RangeState.EMPTY
