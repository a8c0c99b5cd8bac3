"""Identifiers for runs, local jobs and farm job names."""

import time
import uuid


def generate_id(prefix: str) -> str:
    """Random identifier such as ``run_a1b2c3d4e5f6a7b8``."""
    return f"{prefix}{uuid.uuid4().hex[:16]}"


def timestamped_job_name(method_name: str, array_index: int | None = None) -> str:
    """Farm job name derived from the clock.

    Names only differ if submissions are at least a second apart, which is
    why the submitter sleeps between tasks.
    """
    name = f"{method_name}_{int(time.time())}"
    if array_index is not None:
        name = f"{name}_{array_index}"
    return name
