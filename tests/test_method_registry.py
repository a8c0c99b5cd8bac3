"""Tests for the method registry and the exonerate methods."""

import itertools

import pytest

from alignfarm.errors.exceptions import MethodNotFoundError, WorkspaceError
from alignfarm.methods.base import MappingContext
from alignfarm.methods.exonerate import ExonerateGappedBest1, ExonerateMethod
from alignfarm.methods.registry import MethodRegistry, default_registry
from alignfarm.models.enums import JobStatus
from alignfarm.repositories.job_repo import MappingJobRepository
from alignfarm.services.naming import generate_id, timestamped_job_name
from conftest import write_fasta


def test_default_registry_knows_builtin_methods():
    registry = default_registry()
    assert registry.names() == [
        "ExonerateGappedBest1",
        "ExonerateGappedBest1_55_perc_id",
        "ExonerateGappedBest5",
        "ExonerateUngappedBest1",
    ]
    assert isinstance(registry.resolve("ExonerateGappedBest5"), ExonerateMethod)
    assert registry.resolve("ExonerateGappedBest1_55_perc_id").query_identity_threshold == 55


def test_unknown_method_raises_typed_error():
    with pytest.raises(MethodNotFoundError) as exc_info:
        default_registry().resolve("ExonerateBogus")
    assert exc_info.value.code == "METHOD_NOT_FOUND"
    assert exc_info.value.method == "ExonerateBogus"


def test_register_under_alias():
    registry = MethodRegistry()
    method = ExonerateGappedBest1()
    registry.register(method, name="best1")
    assert "best1" in registry
    assert registry.resolve("best1") is method
    assert "ExonerateGappedBest1" not in registry


@pytest.mark.asyncio
async def test_submit_splits_query_into_array_and_records_each_element(
    tmp_path, db_session, farm, root_dir
):
    query = tmp_path / "xref_0_dna.fasta"
    query.write_text("x" * 35)
    target = write_fasta(tmp_path / "core_dna.fasta")
    context = MappingContext(
        session=db_session, farm=farm, root_dir=root_dir, queue="long", bytes_per_job=10
    )

    submitted = await ExonerateGappedBest1().submit(query, target, context)

    assert len(submitted) == 1
    assert submitted[0].array_size == 4
    assert submitted[0].job_name.startswith("ExonerateGappedBest1_")

    job = farm.mapping_jobs[0]
    assert job["array_size"] == 4
    assert job["queue"] == "long"
    prefix = f"{root_dir}/xref_0_dna_{submitted[0].job_name}"
    assert job["stdout_path"] == f"{prefix}_%I.out"
    assert "--querychunkid $LSB_JOBINDEX --querychunktotal 4" in job["command"]
    assert "--model affine:local --subopt no --bestn 1" in job["command"]
    assert f"{query} {target}" in job["command"]

    rows = await MappingJobRepository(db_session).list_by_field("job_id", submitted[0].job_id)
    assert sorted(r.array_index for r in rows) == [1, 2, 3, 4]
    second = next(r for r in rows if r.array_index == 2)
    assert second.map_file == f"{prefix}_2.map"
    assert second.err_file == f"{prefix}_2.err"
    assert second.status == "SUBMITTED"


@pytest.mark.asyncio
async def test_same_query_submitted_twice_gets_separate_output_files(
    tmp_path, db_session, farm, root_dir, monkeypatch
):
    clock = itertools.count(1700000000)
    monkeypatch.setattr("alignfarm.services.naming.time.time", lambda: next(clock))
    query = write_fasta(tmp_path / "xref_0_dna.fasta")
    context = MappingContext(session=db_session, farm=farm, root_dir=root_dir)
    method = ExonerateGappedBest1()

    await method.submit(query, write_fasta(tmp_path / "core_dna.fasta"), context)
    await method.submit(query, write_fasta(tmp_path / "other_dna.fasta"), context)

    rows = await MappingJobRepository(db_session).list_by_status(JobStatus.SUBMITTED)
    assert len(rows) == 2
    assert len({r.job_id for r in rows}) == 2
    for field in ("map_file", "out_file", "err_file"):
        assert len({getattr(r, field) for r in rows}) == 2
    assert len({s["stdout_path"] for s in farm.mapping_jobs}) == 2
    assert farm.mapping_jobs[0]["command"] != farm.mapping_jobs[1]["command"]


def test_array_size_is_capped(tmp_path, farm, root_dir):
    query = tmp_path / "big.fasta"
    query.write_text("x" * 1000)
    context = MappingContext(
        session=None, farm=farm, root_dir=root_dir, bytes_per_job=1, max_array_size=25
    )
    assert ExonerateGappedBest1().array_size(query, context) == 25


def test_missing_query_file_is_an_io_error(tmp_path, farm, root_dir):
    context = MappingContext(session=None, farm=farm, root_dir=root_dir)
    with pytest.raises(WorkspaceError):
        ExonerateGappedBest1().array_size(tmp_path / "absent.fasta", context)


@pytest.mark.asyncio
async def test_resubmit_runs_a_single_element(db_session, farm, root_dir):
    context = MappingContext(session=db_session, farm=farm, root_dir=root_dir)
    command = "exonerate q t --querychunkid $LSB_JOBINDEX > out_$LSB_JOBINDEX.map"

    job = await ExonerateGappedBest1().resubmit(
        command, "a_7.out", "a_7.err", "900", 7, str(root_dir), context
    )

    sent = farm.mapping_jobs[0]
    assert sent["command"] == "exonerate q t --querychunkid 7 > out_7.map"
    assert sent["array_size"] is None
    assert (sent["stdout_path"], sent["stderr_path"]) == ("a_7.out", "a_7.err")
    assert job.job_id != "900"
    assert job.job_name.endswith("_7")


def test_job_names_carry_method_and_index(monkeypatch):
    monkeypatch.setattr("alignfarm.services.naming.time.time", lambda: 1700000000.5)
    assert timestamped_job_name("ExonerateGappedBest1") == "ExonerateGappedBest1_1700000000"
    assert timestamped_job_name("ExonerateGappedBest1", 7) == "ExonerateGappedBest1_1700000000_7"
    assert generate_id("run_").startswith("run_")
    assert generate_id("run_") != generate_id("run_")
