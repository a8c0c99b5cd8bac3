"""Shared test fixtures."""

import logging
from pathlib import Path

import pytest
import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from alignfarm.db.base import Base
# Import all models to register with Base.metadata
import alignfarm.db.models  # noqa: F401
from alignfarm.errors.exceptions import SubmissionError
from alignfarm.farm.base import FarmClient, JobId
from alignfarm.logging_config import clear_run_context
from alignfarm.methods.base import MappingContext
from alignfarm.methods.registry import default_registry
from alignfarm.services.barrier import DependencyBarrier


class FakeFarmClient(FarmClient):
    """In-memory farm: records submissions and hands out increasing ids."""

    farm_type = "fake"

    def __init__(self, reject_prefixes=(), fail_barrier=False, on_barrier=None, on_submit=None):
        self.submissions: list[dict] = []
        self.reject_prefixes = tuple(reject_prefixes)
        self.fail_barrier = fail_barrier
        self.on_barrier = on_barrier
        self.on_submit = on_submit
        self._next_id = 5000

    async def submit(
        self,
        command,
        *,
        queue,
        stdout_path,
        stderr_path,
        job_name=None,
        array_size=None,
        dependency=None,
        interactive=False,
    ):
        self.submissions.append({
            "command": command,
            "queue": queue,
            "stdout_path": stdout_path,
            "stderr_path": stderr_path,
            "job_name": job_name,
            "array_size": array_size,
            "dependency": dependency,
            "interactive": interactive,
        })
        if interactive:
            if self.on_barrier:
                self.on_barrier()
            if self.fail_barrier:
                raise SubmissionError("Job submission failed (exit status 255)")
        elif job_name and job_name.startswith(self.reject_prefixes):
            raise SubmissionError(f"Queue rejected {job_name}")
        elif self.on_submit:
            self.on_submit()
        self._next_id += 1
        return JobId(str(self._next_id))

    @property
    def barrier_jobs(self) -> list[dict]:
        return [s for s in self.submissions if s["interactive"]]

    @property
    def mapping_jobs(self) -> list[dict]:
        return [s for s in self.submissions if not s["interactive"]]


@pytest.fixture
async def db_engine(tmp_path):
    """File-backed SQLite engine; survives the pool being disposed mid-test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a test database session."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def root_dir(tmp_path) -> Path:
    path = tmp_path / "mapping"
    path.mkdir()
    return path


@pytest.fixture
def farm():
    return FakeFarmClient()


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def barrier(farm):
    return DependencyBarrier(farm, queue="small")


@pytest.fixture
def context(db_session, farm, root_dir):
    return MappingContext(session=db_session, farm=farm, root_dir=root_dir, queue="normal")


def write_fasta(path: Path, n_records: int = 2) -> Path:
    path.write_text("".join(f">{i}\nACGTACGTAC\n" for i in range(1, n_records + 1)))
    return path


@pytest.fixture
def restore_root_logger():
    """Undo configure_logging, which replaces the root handlers."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    clear_run_context()
    structlog.reset_defaults()
