"""String enums shared by the store, the methods and the CLI."""

from enum import StrEnum


class JobStatus(StrEnum):
    SUBMITTED = "SUBMITTED"
    RUNNING = "RUNNING"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"


class ProcessStatus(StrEnum):
    XREF_FASTA_DUMPED = "xref_fasta_dumped"
    CORE_FASTA_DUMPED = "core_fasta_dumped"
    MAPPING_SUBMITTED = "mapping_submitted"
    MAPPING_FINISHED = "mapping_finished"
    MAPPING_PROCESSED = "mapping_processed"


class RangeState(StrEnum):
    """How much of a job's affected-record range has been recorded."""

    EMPTY = "empty"
    COMPLETE = "complete"
    PARTIAL = "partial"
