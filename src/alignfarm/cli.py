"""alignfarm CLI: init-db, run, fix-failed, reconcile, status, log-event."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from alignfarm.config import Settings, settings as default_settings
from alignfarm.errors.exceptions import AlignFarmError
from alignfarm.logging_config import bind_run_context, clear_run_context, configure_logging
from alignfarm.services.naming import generate_id

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _open_store(cfg: Settings):
    """Yield (engine, session) against the configured status store."""
    from alignfarm.db.engine import create_db_engine, create_session_factory, init_db

    engine = create_db_engine(cfg.effective_database_url)
    try:
        if cfg.local_mode:
            await init_db(engine)
        async with create_session_factory(engine)() as session:
            yield engine, session
    finally:
        await engine.dispose()


def _orchestrator_parts(cfg: Settings, engine, session):
    from alignfarm.farm import build_farm_client
    from alignfarm.methods.base import MappingContext
    from alignfarm.methods.registry import default_registry
    from alignfarm.services.barrier import DependencyBarrier

    farm = build_farm_client(cfg)
    context = MappingContext.from_settings(session, farm, cfg, engine=engine)
    barrier = DependencyBarrier(farm, queue=cfg.barrier_queue, local=cfg.no_farm)
    return default_registry(), barrier, context


def _collect_tasks(args: argparse.Namespace):
    from alignfarm.models.job import MappingTask
    from alignfarm.services.sequence_source import build_mapping_tasks

    try:
        tasks = [MappingTask.parse(item) for item in args.task or []]
    except ValueError as exc:
        raise SystemExit(f"alignfarm run: {exc}") from exc
    if args.xref_dir:
        if not (args.dna_target and args.protein_target and args.method):
            raise SystemExit(
                "alignfarm run: --xref-dir needs --dna-target, --protein-target and --method"
            )
        tasks += build_mapping_tasks(
            Path(args.xref_dir), Path(args.dna_target), Path(args.protein_target), args.method
        )
    return tasks


async def cmd_init_db(args: argparse.Namespace, cfg: Settings) -> int:
    from alignfarm.db.engine import create_db_engine, init_db

    engine = create_db_engine(cfg.effective_database_url)
    try:
        await init_db(engine)
    finally:
        await engine.dispose()
    print("Status store tables created")
    return 0


async def cmd_run(args: argparse.Namespace, cfg: Settings) -> int:
    from alignfarm.services.submitter import JobSubmitter

    tasks = _collect_tasks(args)
    if not tasks:
        logger.warning("No mapping tasks given, nothing to do")
        return 0

    async with _open_store(cfg) as (engine, session):
        registry, barrier, context = _orchestrator_parts(cfg, engine, session)
        submitter = JobSubmitter(registry, barrier, submit_interval=cfg.submit_interval)
        count = await submitter.run_mapping(tasks, context)
    print(f"{count} mapping job(s) submitted from {len(tasks)} task(s)")
    return 0


async def cmd_fix_failed(args: argparse.Namespace, cfg: Settings) -> int:
    from alignfarm.services.recovery import FailureRecoveryEngine

    async with _open_store(cfg) as (engine, session):
        registry, barrier, context = _orchestrator_parts(cfg, engine, session)
        recovery = FailureRecoveryEngine(registry, barrier, submit_interval=cfg.submit_interval)
        report = await recovery.fix_failed_jobs(context)

    print(f"Resubmitted: {len(report.resubmitted)}")
    print(f"Derived records deleted: {report.records_deleted}")
    if report.ambiguous:
        print(f"Needs manual inspection (incomplete range): {len(report.ambiguous)}")
        for job_id, index in report.ambiguous:
            print(f"  {job_id}[{index}]")
    if report.unknown_method or report.submission_failed:
        print(f"Skipped: {len(report.unknown_method) + len(report.submission_failed)}")
    return 0


async def cmd_reconcile(args: argparse.Namespace, cfg: Settings) -> int:
    from alignfarm.services.accounting import reconcile_job_status

    root_dir = Path(args.root_dir) if args.root_dir else None
    async with _open_store(cfg) as (_engine, session):
        counts = await reconcile_job_status(session, root_dir)
    for status, count in sorted(counts.items()):
        print(f"{status}: {count}")
    return 0


async def cmd_status(args: argparse.Namespace, cfg: Settings) -> int:
    from alignfarm.repositories.job_repo import MappingJobRepository
    from alignfarm.repositories.process_status_repo import ProcessStatusRepository

    async with _open_store(cfg) as (_engine, session):
        counts = await MappingJobRepository(session).status_counts()
        events = await ProcessStatusRepository(session).list_events(limit=args.events)

    if args.json:
        payload = {
            "jobs": counts,
            "events": [
                {"status": e.status, "created_at": e.created_at.isoformat() if e.created_at else None}
                for e in events
            ],
        }
        print(json.dumps(payload, indent=2))
        return 0

    print("Jobs:")
    if not counts:
        print("  (none)")
    for status, count in sorted(counts.items()):
        print(f"  {status:<12} {count}")
    print("Recent events:")
    for e in events:
        stamp = e.created_at.strftime("%Y-%m-%d %H:%M:%S") if e.created_at else "?"
        print(f"  {stamp}  {e.status}")
    return 0


async def cmd_log_event(args: argparse.Namespace, cfg: Settings) -> int:
    from alignfarm.repositories.process_status_repo import ProcessStatusRepository

    async with _open_store(cfg) as (_engine, session):
        await ProcessStatusRepository(session).append(args.tag)
        await session.commit()
    return 0


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--root-dir", help="Directory holding map/out/err files")
    common.add_argument("--database-url", help="Status store URL")
    common.add_argument("--local", action="store_true", help="Use a local SQLite status store")
    common.add_argument(
        "--no-farm", action="store_true", help="Run jobs locally instead of on the farm"
    )
    common.add_argument("--log-level", help="debug/info/warning/error")
    common.add_argument("--log-file", help="Also write JSON log lines to this file")

    parser = argparse.ArgumentParser(
        prog="alignfarm",
        description="Submit, track and recover sequence-alignment jobs on a compute farm",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", parents=[common], help="Create the status store tables")
    p.set_defaults(handler=cmd_init_db)

    p = sub.add_parser("run", parents=[common], help="Submit mapping jobs and wait for them")
    p.add_argument(
        "--task", action="append", metavar="METHOD:QUERY:TARGET",
        help="One mapping task (repeatable)",
    )
    p.add_argument("--xref-dir", help="Directory with xref_<i>_dna/peptide.fasta dumps")
    p.add_argument("--dna-target", help="Target DNA fasta file")
    p.add_argument("--protein-target", help="Target protein fasta file")
    p.add_argument("--method", action="append", help="Method for the i-th dump set (repeatable)")
    p.set_defaults(handler=cmd_run)

    p = sub.add_parser("fix-failed", parents=[common], help="Clean up and resubmit failed jobs")
    p.set_defaults(handler=cmd_fix_failed)

    p = sub.add_parser("reconcile", parents=[common], help="Mark ended jobs successful or failed")
    p.set_defaults(handler=cmd_reconcile)

    p = sub.add_parser("status", parents=[common], help="Show job counts and recent events")
    p.add_argument("--events", type=int, default=20, help="Number of events to show")
    p.add_argument("--json", action="store_true", help="Output as JSON")
    p.set_defaults(handler=cmd_status)

    p = sub.add_parser("log-event", parents=[common], help="Append a process status event")
    p.add_argument("tag", help="Status tag, e.g. xref_fasta_dumped")
    p.set_defaults(handler=cmd_log_event)

    return parser


def _effective_settings(args: argparse.Namespace, base: Settings) -> Settings:
    overrides: dict = {}
    if args.root_dir:
        overrides["root_dir"] = args.root_dir
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.local:
        overrides["local_mode"] = True
    if args.no_farm:
        overrides["no_farm"] = True
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_file:
        overrides["log_file"] = args.log_file
    return base.model_copy(update=overrides)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = _effective_settings(args, default_settings)

    configure_logging(log_level=cfg.log_level, json_output=cfg.json_logs, log_file=cfg.log_file)
    bind_run_context(generate_id("run_"), args.command)
    try:
        return asyncio.run(args.handler(args, cfg))
    except AlignFarmError as exc:
        logger.error("%s: %s", exc.code, exc.message)
        print("Batch incomplete, rerun after fixing the environment", file=sys.stderr)
        return 1
    finally:
        clear_run_context()


if __name__ == "__main__":
    sys.exit(main())
