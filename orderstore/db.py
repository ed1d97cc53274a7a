"""Engine construction.

The engine is built once by the owning process and handed to ``OrderStore``
and the schema helpers explicitly; nothing in the package keeps a global
engine.
"""

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine

from . import settings


def _enable_sqlite_foreign_keys(dbapi_conn, _record) -> None:
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


def make_engine(url: str | None = None, **kwargs) -> Engine:
    """Create a pooled SQLAlchemy engine.

    PostgreSQL (psycopg) is the production target. SQLite is accepted for
    tests and local runs; foreign keys are switched on for every SQLite
    connection so cascades and references are enforced.

    Args:
        url: Database URL. Defaults to ``settings.DATABASE_URL``.
        **kwargs: Extra keyword arguments for ``create_engine``.

    Returns:
        Engine: Engine with ``pool_pre_ping`` enabled. Bound parameters are
        kept out of exception messages since they carry card data.
    """
    url = url or settings.DATABASE_URL
    is_sqlite = url.startswith("sqlite")
    opts = {"pool_pre_ping": True, "hide_parameters": True}
    if is_sqlite:
        opts["connect_args"] = {"check_same_thread": False}
    else:
        opts["pool_size"] = settings.DB_POOL_SIZE
        opts["max_overflow"] = settings.DB_MAX_OVERFLOW
    opts.update(kwargs)

    engine = create_engine(url, **opts)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def set_statement_timeout(conn: Connection, seconds: float | None) -> None:
    """Bound every statement of the current transaction on PostgreSQL.

    The limit is transaction-local, so it disappears on commit or rollback.
    Other dialects are left untouched; the caller's deadline checks still
    apply between statements there.

    Args:
        conn: Connection with an open transaction.
        seconds: Time left, or None for no limit.
    """
    if seconds is None or conn.dialect.name != "postgresql":
        return
    ms = max(1, int(seconds * 1000))
    conn.execute(text("SELECT set_config('statement_timeout', :ms, true)"), {"ms": str(ms)})
