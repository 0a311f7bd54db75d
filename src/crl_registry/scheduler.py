"""
Freshness monitor for the revocation registry.

On every cron tick the monitor asks whether next_update has passed and logs
the answer. It never writes: publishing a new version stays with the
authority. SIGINT and SIGTERM stop the loop.
"""

from __future__ import annotations

import logging
import signal
import sys
from collections.abc import Callable

import structlog
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from railway import ExecutionContext, LoggingExecutionContext
from railway.result import Result

log = structlog.get_logger()

JOB_ID = "crl_registry_freshness"


def create_scheduler(
    check_fn: Callable[[], Result[bool]],
    cron: str = "*/15 * * * *",
    run_on_startup: bool = True,
) -> BlockingScheduler:
    """
    Build a BlockingScheduler with one freshness job. Call .start() to run it.

    Args:
        check_fn: returns Success(True) when the registry is past next_update.
        cron: five fields, minute hour day-of-month month day-of-week.
        run_on_startup: check once right away, before the first tick.
    """
    ctx = LoggingExecutionContext(operation="RegistryFreshnessCheck", log_level=logging.INFO)

    def job() -> None:
        _report(ctx, check_fn)

    scheduler = BlockingScheduler()
    scheduler.add_job(
        job,
        trigger=_cron_trigger(cron),
        id=JOB_ID,
        name="Revocation registry freshness check",
        replace_existing=True,
    )

    if run_on_startup:
        log.info("scheduler.startup_run", job=JOB_ID)
        job()

    _stop_on_signals(scheduler)
    return scheduler


def _cron_trigger(cron: str) -> CronTrigger:
    minute, hour, day, month, day_of_week = cron.split()
    return CronTrigger(minute=minute, hour=hour, day=day, month=month, day_of_week=day_of_week)


def _report(ctx: ExecutionContext, check_fn: Callable[[], Result[bool]]) -> None:
    ctx.execute(check_fn).either(
        lambda stale: (
            log.warning("monitor.registry_stale", message="next_update has passed; publish a new version")
            if stale
            else log.info("monitor.registry_fresh")
        ),
        lambda failure: log.error("monitor.check_failed", failure=str(failure)),
    )


def _stop_on_signals(scheduler: BlockingScheduler) -> None:
    def stop(signum: int, frame: object) -> None:
        log.info("scheduler.stopping", signal=signal.Signals(signum).name)
        scheduler.shutdown(wait=False)
        sys.exit(0)

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, stop)
