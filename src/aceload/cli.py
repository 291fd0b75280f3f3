from __future__ import annotations

import logging
import signal
from typing import Optional

import typer
from sqlalchemy.exc import SQLAlchemyError

from aceload import __version__
from aceload.config import Settings, get_settings
from aceload.exceptions import AceLoadException

app = typer.Typer(add_completion=False, help="Access-control load generator")

logger = logging.getLogger("aceload")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    if verbose:
        logger.info("enabled verbose logging")


def _connection_settings(
    addr: Optional[str],
    database_url: Optional[str],
    tls_key_file: Optional[str],
    tls_cert_file: Optional[str],
    tls_ca_cert_file: Optional[str],
    verbose: Optional[bool] = None,
) -> Settings:
    overrides = {
        "ADDR": addr,
        "DATABASE_URL": database_url,
        "TLS_KEY_FILE": tls_key_file,
        "TLS_CERT_FILE": tls_cert_file,
        "TLS_CA_CERT_FILE": tls_ca_cert_file,
        "VERBOSE": verbose,
    }
    settings = get_settings()
    return settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})


def _open_store(settings: Settings):
    from aceload.database import build_database_url, create_db_engine, create_session_factory

    logger.info("Connecting to the database")
    engine = create_db_engine(build_database_url(settings))
    return engine, create_session_factory(engine)


def _fail(exc: Exception) -> None:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(1)


@app.command()
def version() -> None:
    typer.echo(__version__)


@app.command("init-schema")
def init_schema(
    addr: Optional[str] = typer.Option(None, help="Address of the cockroachdb instance"),
    database_url: Optional[str] = typer.Option(None, help="Full SQLAlchemy URL"),
    tls_key_file: Optional[str] = typer.Option(None, help="Root user TLS key, if any"),
    tls_cert_file: Optional[str] = typer.Option(None, help="Root user TLS certificate, if any"),
    tls_ca_cert_file: Optional[str] = typer.Option(None, help="CA certificate, if any"),
) -> None:
    """
    Drop and recreate the access-control tables.
    """
    from aceload.database import init_db
    from aceload.timing import TimingLog

    _configure_logging(False)
    try:
        settings = _connection_settings(
            addr, database_url, tls_key_file, tls_cert_file, tls_ca_cert_file
        )
        engine, _ = _open_store(settings)
        TimingLog().timed("Creating database and schema", lambda _: init_db(engine))
    except (AceLoadException, SQLAlchemyError) as exc:
        _fail(exc)


@app.command()
def load(
    addr: Optional[str] = typer.Option(None, help="Address of the cockroachdb instance"),
    database_url: Optional[str] = typer.Option(None, help="Full SQLAlchemy URL"),
    tls_key_file: Optional[str] = typer.Option(None, help="Root user TLS key, if any"),
    tls_cert_file: Optional[str] = typer.Option(None, help="Root user TLS certificate, if any"),
    tls_ca_cert_file: Optional[str] = typer.Option(None, help="CA certificate, if any"),
    custom: bool = typer.Option(False, help="Use the record counts given below"),
    users: int = typer.Option(0, min=0, help="Number of users (use with --custom)"),
    groups: int = typer.Option(0, min=0, help="Number of groups (use with --custom)"),
    members: int = typer.Option(0, min=0, help="Members per group (use with --custom)"),
    user_permissions: int = typer.Option(
        0, min=0, help="Permissions per user (use with --custom)"
    ),
    group_permissions: int = typer.Option(
        0, min=0, help="Permissions per group (use with --custom)"
    ),
    start: int = typer.Option(0, min=0, help="First iteration of the schedule"),
    max_iterations: Optional[int] = typer.Option(
        None, min=0, help="Stop after this many iterations (default: run until interrupted)"
    ),
    skip_schema: bool = typer.Option(False, help="Keep the existing tables"),
    verbose: Optional[bool] = typer.Option(
        None, "--verbose/--quiet", help="Print detailed timing data"
    ),
) -> None:
    """
    Load and remove a growing access-control dataset, iteration after iteration.

    Press Ctrl+C once to stop after the current iteration has been removed.
    """
    from aceload.database import init_db
    from aceload.loader import IterationDriver, RecordCount
    from aceload.timing import TimingLog

    try:
        settings = _connection_settings(
            addr, database_url, tls_key_file, tls_cert_file, tls_ca_cert_file, verbose
        )
        _configure_logging(settings.VERBOSE)
        log = TimingLog(verbose=settings.VERBOSE)
        engine, session_factory = _open_store(settings)
        if not skip_schema:
            log.timed("Creating database and schema", lambda _: init_db(engine))

        driver = IterationDriver(session_factory, log)
        if custom:
            counts = RecordCount(
                users=users,
                groups=groups,
                members=members,
                user_permissions=user_permissions,
                group_permissions=group_permissions,
            )
            log.timed("Loading data", lambda child: driver.run_with_counts(counts, child))
            return

        def _request_stop(signum, _frame) -> None:
            driver.stop()
            signal.signal(signum, signal.default_int_handler)

        previous = signal.signal(signal.SIGINT, _request_stop)
        try:
            processed = log.timed(
                "Loading data",
                lambda _: driver.run(start=start, max_iterations=max_iterations),
            )
        finally:
            signal.signal(signal.SIGINT, previous)
        typer.echo(f"Completed {processed} iterations.", err=True)
    except (AceLoadException, SQLAlchemyError) as exc:
        _fail(exc)


@app.command()
def query(
    addr: Optional[str] = typer.Option(None, help="Address of the cockroachdb instance"),
    database_url: Optional[str] = typer.Option(None, help="Full SQLAlchemy URL"),
    tls_key_file: Optional[str] = typer.Option(None, help="Root user TLS key, if any"),
    tls_cert_file: Optional[str] = typer.Option(None, help="Root user TLS certificate, if any"),
    tls_ca_cert_file: Optional[str] = typer.Option(None, help="CA certificate, if any"),
    max_queries: Optional[int] = typer.Option(
        None, min=0, help="Stop after this many attempts (default: run until interrupted)"
    ),
) -> None:
    """
    Repeatedly query the grants of a random user and log each query's latency.
    """
    from aceload.query import perform_queries
    from aceload.timing import TimingLog

    _configure_logging(False)
    try:
        settings = _connection_settings(
            addr, database_url, tls_key_file, tls_cert_file, tls_ca_cert_file
        )
        _, session_factory = _open_store(settings)
        logger.info("Querying database")
        perform_queries(session_factory, TimingLog(), max_queries=max_queries)
    except KeyboardInterrupt:
        typer.echo("Interrupted.", err=True)
        return
    except (AceLoadException, SQLAlchemyError) as exc:
        _fail(exc)
    typer.echo("Success")


def main() -> None:
    app()
