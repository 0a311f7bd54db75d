"""
crl-registry entry point.

Reads settings, sets up structlog, opens the shared PostgreSQL store and runs
the freshness monitor over it. Hosts that accept authority requests build
their mutating services with create_store and build_service from the same
settings. Concrete adapters are chosen here and nowhere else; the registry
services only see the ports.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable

import structlog
from railway import ErrorCode
from railway.result import Result

from crl_registry import __version__
from crl_registry.adapters.clock import SystemClock
from crl_registry.adapters.memory_store import InMemoryKeyValueStore
from crl_registry.adapters.repository import PsycopgKeyValueStore
from crl_registry.config import AppSettings, StorageSettings
from crl_registry.domain.ports import Authorizer, Clock, KeyValueStore
from crl_registry.queries import RegistryQueries
from crl_registry.registry import RevocationRegistryService
from crl_registry.scheduler import create_scheduler


def configure_structlog(log_level: str = "INFO") -> None:
    """Console output with ISO timestamps; events below `log_level` are dropped."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def create_store(settings: StorageSettings) -> KeyValueStore:
    """Instantiate the key/value store for the configured backend."""
    if settings.backend == "postgres":
        store = PsycopgKeyValueStore(dsn=settings.get_dsn(), table=settings.table)
        schema = store.ensure_schema()
        if schema.is_failure():
            raise RuntimeError(schema.error().full_stack_trace())
        return store
    return InMemoryKeyValueStore()


def build_service(
    settings: AppSettings,
    store: KeyValueStore,
    authorizer: Authorizer,
    clock: Clock | None = None,
) -> RevocationRegistryService:
    """
    Build a mutating registry service bound to one caller's authorizer.

    Callers that act on behalf of the authority construct one per request,
    sharing the store.
    """
    return RevocationRegistryService(
        store,
        clock or SystemClock(),
        authorizer,
        hash_fn=settings.registry.get_hash_function(),
        update_window=settings.registry.update_window,
        allow_reinitialize=settings.registry.allow_reinitialize,
    )


def freshness_check(queries: RegistryQueries, expected_issuer: str | None) -> Callable[[], Result[bool]]:
    """
    The monitor job: needs_update, once the stored registry is known to belong
    to `expected_issuer`. A registry bound to another authority is a
    CONFIGURATION_ERROR; without an expected issuer any registry is checked.
    """

    def _check() -> Result[bool]:
        if expected_issuer is None:
            return queries.needs_update()
        return (
            queries.get_issuer()
            .ensure(
                lambda stored: stored == expected_issuer,
                ErrorCode.CONFIGURATION_ERROR,
                f"Stored registry is not bound to the configured issuer {expected_issuer!r}",
            )
            .flat_map(lambda _: queries.needs_update())
        )

    return _check


def main() -> None:
    """Wire dependencies and launch the scheduled freshness monitor."""
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"crl-registry: invalid configuration: {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        log_level=settings.log_level,
        storage=settings.storage.backend,
        cron=settings.monitor.cron,
        run_on_startup=settings.run_on_startup,
    )

    if settings.storage.backend == "memory":
        # Nothing in this process writes the registry; an in-process store would stay empty.
        log.error("app.memory_backend_unsupported", message="set STORAGE__BACKEND=postgres to run the monitor")
        sys.exit(1)

    try:
        store = create_store(settings.storage)
    except Exception as e:
        log.error("app.storage_unavailable", error=str(e))
        sys.exit(1)

    queries = RegistryQueries(store, SystemClock())
    scheduler = create_scheduler(
        check_fn=freshness_check(queries, settings.registry.issuer),
        cron=settings.monitor.cron,
        run_on_startup=settings.run_on_startup,
    )

    log.info("app.scheduler_starting", cron=settings.monitor.cron, issuer=settings.registry.issuer)

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        log.info("app.stopped")
        raise
    except Exception as e:
        log.error("app.monitor_crashed", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
