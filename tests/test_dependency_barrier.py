"""Tests for the blocking dependency barrier."""

import logging

import pytest

from alignfarm.farm.base import build_dependency_expression
from alignfarm.models.enums import ProcessStatus
from alignfarm.repositories.process_status_repo import ProcessStatusRepository
from alignfarm.services.barrier import DependencyBarrier
from conftest import FakeFarmClient


def test_expression_has_one_clause_per_distinct_name():
    expr = build_dependency_expression(["job_a", "job_b", "job_a", "job_c"])
    assert expr == "ended(job_a) && ended(job_b) && ended(job_c)"
    assert expr.count("ended(job_a)") == 1


def test_expression_for_single_and_no_names():
    assert build_dependency_expression(["only"]) == "ended(only)"
    assert build_dependency_expression([]) == ""


@pytest.mark.asyncio
async def test_local_mode_returns_immediately_with_one_event(db_session, root_dir):
    farm = FakeFarmClient()
    barrier = DependencyBarrier(farm, local=True)

    assert await barrier.wait_for(root_dir, ["a", "b"], session=db_session) is True

    assert farm.submissions == []
    events = ProcessStatusRepository(db_session)
    assert await events.count(ProcessStatus.MAPPING_FINISHED) == 1


@pytest.mark.asyncio
async def test_barrier_job_is_interactive_and_gated_on_all_names(db_session, root_dir):
    farm = FakeFarmClient()
    barrier = DependencyBarrier(farm, queue="small")

    assert await barrier.wait_for(root_dir, ["m1_100", "m2_101"], session=db_session)

    assert len(farm.barrier_jobs) == 1
    job = farm.barrier_jobs[0]
    assert job["dependency"] == "ended(m1_100) && ended(m2_101)"
    assert job["queue"] == "small"
    assert job["stdout_path"] == str(root_dir / "depend.out")
    assert job["stderr_path"] == str(root_dir / "depend.err")
    assert await ProcessStatusRepository(db_session).count(ProcessStatus.MAPPING_FINISHED) == 1


@pytest.mark.asyncio
async def test_failed_barrier_submission_is_a_warning(db_session, root_dir, caplog):
    farm = FakeFarmClient(fail_barrier=True)
    barrier = DependencyBarrier(farm)

    with caplog.at_level(logging.WARNING):
        assert await barrier.wait_for(root_dir, ["m1_100"], session=db_session) is False

    assert "Job submission failed" in caplog.text
    assert await ProcessStatusRepository(db_session).count(ProcessStatus.MAPPING_FINISHED) == 0


@pytest.mark.asyncio
async def test_no_job_names_needs_no_barrier_job(db_session, root_dir):
    farm = FakeFarmClient()
    barrier = DependencyBarrier(farm)

    assert await barrier.wait_for(root_dir, [], session=db_session)

    assert farm.submissions == []
    assert await ProcessStatusRepository(db_session).count(ProcessStatus.MAPPING_FINISHED) == 1


@pytest.mark.asyncio
async def test_connections_are_released_during_the_wait(db_engine, db_session, root_dir):
    seen = {}

    def during_wait():
        seen["checked_out"] = db_engine.pool.checkedout()
        seen["in_transaction"] = db_session.in_transaction()

    farm = FakeFarmClient(on_barrier=during_wait)
    barrier = DependencyBarrier(farm)
    await ProcessStatusRepository(db_session).append("xref_fasta_dumped")

    await barrier.wait_for(root_dir, ["m1_100"], session=db_session, engine=db_engine)

    assert seen == {"checked_out": 0, "in_transaction": False}
    # Work committed before the wait survived, and the session still works
    tags = [e.status for e in await ProcessStatusRepository(db_session).list_events()]
    assert tags == ["xref_fasta_dumped", "mapping_finished"]


@pytest.mark.asyncio
async def test_connections_are_restored_after_failed_wait(db_engine, db_session, root_dir):
    farm = FakeFarmClient(fail_barrier=True)
    barrier = DependencyBarrier(farm)

    await barrier.wait_for(root_dir, ["m1_100"], session=db_session, engine=db_engine)

    await ProcessStatusRepository(db_session).append("mapping_processed")
    await db_session.commit()
    assert await ProcessStatusRepository(db_session).count("mapping_processed") == 1
