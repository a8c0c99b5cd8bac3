"""Working-directory housekeeping for mapping runs."""

import logging
from pathlib import Path

from alignfarm.errors.exceptions import WorkspaceError

logger = logging.getLogger(__name__)

JOB_OUTPUT_PATTERNS = ("*.map", "*.out", "*.err")
DERIVED_DUMP_PATTERNS = ("*.txt", "*.sql")


def ensure_root_dir(root_dir: Path) -> Path:
    try:
        root_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WorkspaceError(f"Could not create output dir {root_dir}: {exc}", str(root_dir)) from exc
    return root_dir


def _remove_matching(root_dir: Path, patterns: tuple[str, ...]) -> int:
    removed = 0
    for pattern in patterns:
        for path in root_dir.glob(pattern):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                raise WorkspaceError(f"Could not delete {path}: {exc}", str(path)) from exc
            removed += 1
    return removed


def remove_stale_outputs(root_dir: Path) -> int:
    """Delete job output and derived dumps left behind by an earlier batch."""
    logger.info("Deleting out, err and map files from output dir: %s", root_dir)
    removed = _remove_matching(root_dir, JOB_OUTPUT_PATTERNS)
    logger.info("Deleting txt and sql files from output dir: %s", root_dir)
    removed += _remove_matching(root_dir, DERIVED_DUMP_PATTERNS)
    return removed


def remove_job_files(*paths: str | Path) -> None:
    """Best-effort removal of a single job's files."""
    for path in paths:
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not delete %s: %s", path, exc)


def check_error_files(root_dir: Path) -> list[Path]:
    """Warn once per non-empty ``*.err`` file in ``root_dir``."""
    flagged = []
    for err in sorted(root_dir.glob("*.err")):
        if err.is_file() and err.stat().st_size > 0:
            logger.warning(
                "Warning: %s has non-zero size; may indicate problems with the alignment run",
                err,
            )
            flagged.append(err)
    return flagged
