"""Custom exception classes for the mapping orchestrator."""


class AlignFarmError(Exception):
    """Base exception for alignfarm."""

    def __init__(self, code: str, message: str, details=None):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class MethodNotFoundError(AlignFarmError):
    """No mapping method is registered under the requested name."""

    def __init__(self, method: str):
        super().__init__(
            "METHOD_NOT_FOUND",
            f"Mapping method '{method}' is not registered",
            details={"method": method},
        )
        self.method = method


class SubmissionError(AlignFarmError):
    """The farm did not hand back a job identifier."""

    def __init__(self, message: str, details=None):
        super().__init__("SUBMISSION_FAILED", message, details)


class RangeIntegrityError(AlignFarmError):
    """Exactly one end of a job's affected-record range is recorded."""

    def __init__(self, job_id: str, array_index: int, start: int | None, end: int | None):
        super().__init__(
            "RANGE_INTEGRITY",
            f"Could not clean up for {job_id}[{array_index}]: "
            f"affected range is incomplete (start={start}, end={end})",
            details={"job_id": job_id, "array_index": array_index, "start": start, "end": end},
        )


class WorkspaceError(AlignFarmError):
    """A required file or directory could not be read, written or created."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__("WORKSPACE_IO", message, details={"path": path} if path else None)
        self.path = path
