"""
Store connection, schema setup and the retrying transaction executor.

- Defaults to CockroachDB (``cockroachdb://`` dialect) built from ADDR/TLS settings
- Any SQLAlchemy URL via DATABASE_URL; in-memory SQLite is used by the tests
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, sessionmaker
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from aceload.config import Settings, get_settings
from aceload.exceptions import ConfigurationError
from aceload.models.base import Base

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLSTATE raised by serializable stores when a transaction must be replayed.
SERIALIZATION_FAILURE = "40001"


def build_database_url(settings: Optional[Settings] = None) -> str:
    """
    Resolve the store URL.

    An explicit DATABASE_URL wins. Otherwise a cockroachdb URL is derived from
    ADDR/DATABASE_NAME; a TLS key file switches to ``sslmode=verify-full`` with
    the key, certificate and CA file attached.
    """
    settings = settings or get_settings()
    if settings.DATABASE_URL:
        return settings.DATABASE_URL

    sslstr = "sslmode=disable"
    if settings.TLS_KEY_FILE:
        if not settings.TLS_CERT_FILE:
            raise ConfigurationError(
                "TLS key file given without a certificate file",
                config_key="TLS_CERT_FILE",
            )
        if not settings.TLS_CA_CERT_FILE:
            raise ConfigurationError(
                "TLS key file given without a CA certificate file",
                config_key="TLS_CA_CERT_FILE",
            )
        sslargs = [
            "sslmode=verify-full",
            f"sslrootcert={settings.TLS_CA_CERT_FILE}",
            f"sslkey={settings.TLS_KEY_FILE}",
            f"sslcert={settings.TLS_CERT_FILE}",
        ]
        sslstr = "&".join(sslargs)

    return (
        f"cockroachdb://{settings.DATABASE_USER}@{settings.ADDR}/"
        f"{settings.DATABASE_NAME}?{sslstr}"
    )


def create_db_engine(
    database_url: Optional[str] = None,
    *,
    echo: Optional[bool] = None,
    isolation_level: Optional[str] = None,
) -> Engine:
    settings = get_settings()
    url = database_url or build_database_url(settings)
    if echo is None:
        echo = settings.SQL_ECHO

    connect_args: dict = {}
    if "sqlite" in url:
        connect_args["check_same_thread"] = False

    if url.startswith("sqlite:///:memory:") or url == "sqlite://":
        from sqlalchemy.pool import StaticPool

        engine = create_engine(
            url,
            echo=echo,
            connect_args=connect_args,
            poolclass=StaticPool,
        )
    elif "sqlite" in url:
        engine = create_engine(url, echo=echo, connect_args=connect_args)
    else:
        engine = create_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            pool_recycle=3600,
            isolation_level=isolation_level or settings.ISOLATION_LEVEL,
            connect_args=connect_args,
        )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _connection_record):  # pragma: no cover
        if "sqlite" in url:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
    )


def init_db(engine: Engine, *, drop_existing: bool = True) -> None:
    """
    Create the access-control schema.

    With ``drop_existing`` every table is dropped first so each run starts from
    an empty store.
    """
    from aceload import models as _models  # noqa: F401

    if drop_existing:
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine, checkfirst=True)


def is_retryable_error(exc: BaseException) -> bool:
    """True for serialization conflicts the store expects the client to replay."""
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == SERIALIZATION_FAILURE:
        return True
    return "restart transaction" in str(orig).lower()


def _run_once(session_factory: sessionmaker, callback: Callable[[Session], T]) -> T:
    session = session_factory()
    try:
        result = callback(session)
        session.commit()
        return result
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def run_transaction(
    session_factory: sessionmaker,
    callback: Callable[[Session], T],
    *,
    max_attempts: Optional[int] = None,
    backoff: Optional[float] = None,
) -> T:
    """
    Run ``callback`` in its own transaction until it commits.

    Every attempt gets a fresh session, so reads from a conflicted attempt are
    never reused. Only serialization conflicts are retried; any other error,
    or the last conflict once attempts are exhausted, is re-raised unchanged.
    The callback must not have side effects outside the session.
    """
    settings = get_settings()
    retrying = Retrying(
        stop=stop_after_attempt(max_attempts or settings.TX_MAX_ATTEMPTS),
        wait=wait_exponential(
            multiplier=settings.TX_RETRY_BACKOFF_SECONDS if backoff is None else backoff,
            max=settings.TX_RETRY_MAX_WAIT_SECONDS,
        ),
        retry=retry_if_exception(is_retryable_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return retrying(_run_once, session_factory, callback)
