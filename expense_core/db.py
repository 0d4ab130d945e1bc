"""Database connectivity for the expense tracker.

A :class:`ConnectionProvider` hands out one SQLAlchemy connection per
operation. When the target schema is missing it creates the schema and the
``expenses`` table once, and when ``localhost`` cannot be reached it retries
once through the loopback address.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from sqlalchemy import (
    TIMESTAMP,
    CheckConstraint,
    Column,
    Date,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    create_engine,
    func,
    text,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.engine.url import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from .config import DatabaseSettings
from .exceptions import ConnectError

logger = logging.getLogger(__name__)

UNKNOWN_DATABASE_ERROR = 1049
LOCALHOST = "localhost"
LOOPBACK_ADDRESS = "127.0.0.1"

metadata = MetaData()

expenses_table = Table(
    "expenses",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("amount", Numeric(10, 2), CheckConstraint("amount > 0"), nullable=False),
    Column("description", String(120), nullable=False),
    Column("category", String(40), nullable=False),
    Column("expense_date", Date, nullable=False),
    Column("created_at", TIMESTAMP, server_default=func.current_timestamp()),
)


def is_unknown_database(exc: BaseException) -> bool:
    """True when the server rejected the connection because the schema is missing."""
    orig = getattr(exc, "orig", None)
    args = getattr(orig, "args", ())
    if args and args[0] == UNKNOWN_DATABASE_ERROR:
        return True
    return "unknown database" in str(exc).lower()


def describe_failure(exc: BaseException) -> str:
    """Render an error, its cause and any suppressed attempts on one line."""

    def label(error: BaseException) -> str:
        # Prefer the driver error over SQLAlchemy's multi-line wrapper text.
        shown = getattr(error, "orig", None) or error
        return f"{type(error).__name__}: {shown}"

    parts = [f"DB ERROR: {label(exc)}"]
    if exc.__cause__ is not None:
        parts.append(f"cause={label(exc.__cause__)}")
    suppressed = getattr(exc, "suppressed", ())
    if suppressed:
        parts.append("suppressed=" + " ".join(type(error).__name__ for error in suppressed))
    return " | ".join(parts)


class BootstrapState:
    """Remembers whether schema bootstrap already succeeded.

    Shared by every provider that should bootstrap at most once; the lock
    keeps concurrent first calls from creating the schema twice.
    """

    def __init__(self) -> None:
        self._done = False
        self._lock = threading.Lock()

    @property
    def done(self) -> bool:
        return self._done

    def run_once(self, action: Callable[[], None]) -> bool:
        """Run ``action`` unless bootstrap already happened; report whether it ran."""
        with self._lock:
            if self._done:
                return False
            action()
            self._done = True
            return True


class ConnectionProvider:
    """Opens scoped connections to the expense database."""

    def __init__(
        self,
        settings: Optional[DatabaseSettings] = None,
        *,
        bootstrap: Optional[BootstrapState] = None,
        connect: Optional[Callable[[URL], Connection]] = None,
    ) -> None:
        self._settings = settings or DatabaseSettings.from_env()
        self._url = self._settings.database_url()
        self._bootstrap = bootstrap or BootstrapState()
        self._connect = connect or self._connect_engine
        self._engines: Dict[str, Engine] = {}

    @property
    def url(self) -> URL:
        return self._url

    @property
    def target(self) -> str:
        return self._url.render_as_string(hide_password=True)

    @property
    def bootstrap_state(self) -> BootstrapState:
        return self._bootstrap

    @contextmanager
    def acquire(self) -> Iterator[Connection]:
        """Yield an open connection and close it when the block exits."""
        connection = self._open()
        try:
            yield connection
        finally:
            connection.close()

    def ping(self) -> str:
        """Round-trip ``SELECT 1`` and describe the outcome; never raises."""
        started = time.perf_counter()
        try:
            with self.acquire() as connection:
                connection.execute(text("SELECT 1")).scalar()
                target = connection.engine.url.render_as_string(hide_password=True)
        except Exception as exc:  # health check reports every failure as text
            logger.warning("Database ping failed: %s", exc)
            return describe_failure(exc)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        return f"DB OK ({target}, latency {elapsed_ms} ms)"

    def dispose(self) -> None:
        for engine in self._engines.values():
            engine.dispose()
        self._engines.clear()

    # Internal helpers -----------------------------------------------------
    def _open(self) -> Connection:
        url = self._url
        try:
            return self._connect(url)
        except SQLAlchemyError as first:
            if is_unknown_database(first) and not self._bootstrap.done:
                logger.info("Database %r does not exist; creating schema", url.database)
                try:
                    self._bootstrap.run_once(self._create_schema)
                    return self._connect(url)
                except SQLAlchemyError as exc:
                    raise ConnectError(
                        f"Unable to bootstrap database {url.database!r}",
                        target=self.target,
                        suppressed=(first,),
                    ) from exc

            if url.host == LOCALHOST:
                fallback = url.set(host=LOOPBACK_ADDRESS)
                logger.warning(
                    "Connecting via %s failed; retrying via %s", LOCALHOST, LOOPBACK_ADDRESS
                )
                try:
                    return self._connect(fallback)
                except SQLAlchemyError as exc:
                    raise ConnectError(
                        f"Unable to connect to {self.target} or via {LOOPBACK_ADDRESS}",
                        target=self.target,
                        suppressed=(first,),
                    ) from exc

            raise ConnectError(f"Unable to connect to {self.target}", target=self.target) from first

    def _create_schema(self) -> None:
        server = self._connect(self._server_url())
        try:
            self._create_database(server)
        finally:
            server.close()

        schema = self._connect(self._url)
        try:
            with schema.begin():
                metadata.create_all(schema, checkfirst=True)
        finally:
            schema.close()
        logger.info("Created database %r and table %r", self._url.database, expenses_table.name)

    def _server_url(self) -> URL:
        url = self._url
        # Same server and credentials, no schema selected.
        return URL.create(
            drivername=url.drivername,
            username=url.username,
            password=url.password,
            host=url.host,
            port=url.port,
            query=url.query,
        )

    def _create_database(self, connection: Connection) -> None:
        name = connection.dialect.identifier_preparer.quote(self._url.database)
        with connection.begin():
            connection.execute(text(f"CREATE DATABASE IF NOT EXISTS {name}"))

    def _connect_engine(self, url: URL) -> Connection:
        key = url.render_as_string(hide_password=False)
        engine = self._engines.get(key)
        if engine is None:
            engine = create_engine(url, poolclass=NullPool, connect_args=self._connect_args(url))
            self._engines[key] = engine
        return engine.connect()

    def _connect_args(self, url: URL) -> Dict[str, object]:
        settings = self._settings
        if url.get_backend_name() == "mysql":
            return {
                "connect_timeout": settings.connect_timeout,
                "read_timeout": settings.read_timeout,
                "write_timeout": settings.read_timeout,
            }
        if url.get_backend_name() == "sqlite":
            return {"timeout": settings.connect_timeout}
        return {}
