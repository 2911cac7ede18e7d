import logging
from typing import Dict, Iterator, Union

from fastapi import Request
from sqlalchemy import event, inspect
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, create_engine, Session

from .config import Settings


logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


def build_engine(url: Union[str, URL], settings: Settings) -> Engine:
    url = make_url(url)
    if url.get_backend_name() == "sqlite":
        engine = create_engine(
            url,
            echo=settings.db_echo,
            connect_args={"check_same_thread": False, "timeout": 60},
            poolclass=NullPool,  # avoid multiple pooled connections holding write locks
        )
        # SQLite only checks REFERENCES clauses when asked to, per connection
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        echo=settings.db_echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=True,
    )


def get_session(request: Request) -> Iterator[Session]:
    with Session(request.app.state.engine) as session:
        yield session


def ensure_database(url: Union[str, URL]) -> None:
    """Create the target database on the server if it is missing.

    Only MySQL needs this step; SQLite creates its file on first connect.
    """
    url = make_url(url)
    if url.get_backend_name() != "mysql" or not url.database:
        return

    # URL.set() ignores None, so the database-less URL is built from parts
    server_url = URL.create(
        url.drivername,
        username=url.username,
        password=url.password,
        host=url.host,
        port=url.port,
        query=url.query,
    )
    server = create_engine(server_url, poolclass=NullPool)
    try:
        with server.begin() as conn:
            conn.exec_driver_sql(f"CREATE DATABASE IF NOT EXISTS `{url.database}`")
    finally:
        server.dispose()
    logger.info("Database %s is ready", url.database)


def init_db(engine: Engine) -> Dict[str, str]:
    """Ensure the database and every table exist, without touching existing ones.

    Returns a mapping of table name to one of ``created``, ``exists``,
    ``failed`` or ``skipped``. Tables are visited in foreign key order, and a
    table whose parent failed is skipped rather than attempted.
    """
    from . import models  # noqa: F401  registers the tables on SQLModel.metadata

    report: Dict[str, str] = {}

    try:
        ensure_database(engine.url)
    except SQLAlchemyError:
        logger.exception("Error creating database %s", engine.url.database)
        return report

    try:
        with engine.connect():
            pass
    except SQLAlchemyError:
        logger.exception("Error connecting to database")
        return report
    logger.info("Connected to database successfully")

    failed = set()
    for table in SQLModel.metadata.sorted_tables:
        parents = {fk.column.table.name for fk in table.foreign_keys}
        blocked = sorted(parents & failed)
        if blocked:
            logger.error(
                "Skipping %s table, it depends on %s", table.name, ", ".join(blocked)
            )
            failed.add(table.name)
            report[table.name] = "skipped"
            continue

        try:
            with engine.begin() as conn:
                if inspect(conn).has_table(table.name):
                    report[table.name] = "exists"
                else:
                    table.create(conn)
                    report[table.name] = "created"
        except SQLAlchemyError:
            logger.exception("Error creating %s table", table.name)
            failed.add(table.name)
            report[table.name] = "failed"
            continue

        if report[table.name] == "created":
            logger.info("%s table created successfully", table.name)
        else:
            logger.info("%s table already exists", table.name)

    return report
