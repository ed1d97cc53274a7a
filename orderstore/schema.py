"""Schema bootstrap and startup database check.

``init_db`` creates the ``orders`` and ``order_items`` tables and their
indexes when missing and is safe to run repeatedly. It runs once per
process, before any read or write is accepted; a failure, or running past
its time budget, is fatal to startup.
"""

import time

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from . import settings
from .db import set_statement_timeout
from .deadline import Deadline
from .errors import ErrorKind, StoreError
from .logs import get_logger
from .models import Base

logger = get_logger("orderstore.schema")


def init_db(engine: Engine, timeout: float = settings.SCHEMA_INIT_TIMEOUT) -> None:
    """Ensure the order tables and indexes exist.

    Tables are created in dependency order (``orders`` before
    ``order_items``). Each table and index is checked first, so existing
    structures are left as they are. On PostgreSQL the DDL runs in a single
    transaction bounded by ``statement_timeout``.

    Args:
        engine: Engine of the target database.
        timeout: Time budget in seconds for the whole bootstrap.

    Raises:
        StoreError: With kind ``SCHEMA_INIT`` when any DDL statement fails
            or the budget is exhausted.
    """
    deadline = Deadline(timeout)
    try:
        with engine.begin() as conn:
            set_statement_timeout(conn, deadline.remaining())
            for table in Base.metadata.sorted_tables:
                deadline.check(f"create table {table.name}", ErrorKind.SCHEMA_INIT)
                table.create(conn, checkfirst=True)
                for index in sorted(table.indexes, key=lambda i: i.name):
                    index.create(conn, checkfirst=True)
            deadline.check("create schema", ErrorKind.SCHEMA_INIT)
    except StoreError as exc:
        logger.error("schema init failed", extra={"kind": exc.kind.value, "stage": exc.stage})
        raise
    except SQLAlchemyError as exc:
        logger.error("schema init failed", extra={"kind": ErrorKind.SCHEMA_INIT.value, "stage": "create schema"})
        raise StoreError(ErrorKind.SCHEMA_INIT, "create schema", str(exc)) from exc
    logger.info("database schema initialized")


def wait_for_db(engine: Engine, timeout: float = settings.DB_STARTUP_TIMEOUT, interval: float = 1.0) -> None:
    """Block until the database accepts connections.

    Args:
        engine: Engine to check.
        timeout: Seconds to keep trying.
        interval: Pause between attempts.

    Raises:
        StoreError: With kind ``CONNECTION`` once the timeout has passed.
    """
    deadline = time.monotonic() + timeout
    while True:
        try:
            with engine.connect() as conn:
                conn.execute(text("select 1"))
            return
        except SQLAlchemyError as exc:
            if time.monotonic() > deadline:
                raise StoreError(ErrorKind.CONNECTION, "connect", str(exc)) from exc
            logger.warning("database not ready, retrying")
            time.sleep(interval)
