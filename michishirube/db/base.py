"""Database engine binding for Michishirube."""

from pathlib import Path
from typing import Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.pool import StaticPool

DEFAULT_DB_PATH = "michishirube.db"
DEFAULT_DATABASE_URL = f"sqlite:///{DEFAULT_DB_PATH}"


def _ensure_sync_driver(url: URL) -> URL:
    """Force the synchronous SQLite driver."""

    if url.drivername.startswith("sqlite+") and "aiosqlite" in url.drivername:
        url = url.set(drivername="sqlite")
    return url


def get_database_url(raw_url: Optional[str] = None) -> str:
    """Return a SQLite database URL with a guaranteed synchronous driver."""

    url = make_url(raw_url or DEFAULT_DATABASE_URL)
    if url.get_backend_name() != "sqlite":
        raise ValueError(f"unsupported database backend: {url.get_backend_name()}")
    return _ensure_sync_driver(url).render_as_string(hide_password=False)


def database_url_for_path(db_path: str) -> str:
    if db_path == ":memory:":
        return "sqlite://"
    return f"sqlite:///{db_path}"


def is_memory_url(database_url: str) -> bool:
    database = make_url(database_url).database
    return database in (None, "", ":memory:")


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    # pysqlite would otherwise issue BEGIN itself, and only before DML,
    # which leaves migration DDL outside the transaction.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def _begin(conn) -> None:
    conn.exec_driver_sql("BEGIN")


def create_store_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create the engine every repository operation runs on.

    Foreign keys are switched on for each DBAPI connection as it is opened,
    so ``ON DELETE CASCADE`` holds for every statement. In-memory databases
    share one connection through ``StaticPool``; otherwise each connection
    would see its own empty database.
    """
    url = get_database_url(database_url)

    if is_memory_url(url):
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        Path(make_url(url).database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )

    event.listen(engine, "connect", _enable_foreign_keys)
    event.listen(engine, "begin", _begin)
    return engine
