from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import settings

connect_args = {}
engine_kwargs = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}
else:
    engine_kwargs = {"pool_timeout": settings.DB_POOL_TIMEOUT_SECONDS, "pool_pre_ping": True}

engine = create_engine(
    settings.DATABASE_URL,
    echo=bool(settings.DB_ECHO),
    connect_args=connect_args,
    **engine_kwargs,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


class Base(DeclarativeBase):
    pass


def is_sqlite(bind) -> bool:
    return bind.dialect.name == "sqlite"


def install_sqlite_pragmas(target_engine) -> None:
    """WAL plus a busy timeout so a writer waiting on another writer fails instead of hanging.

    pysqlite's own BEGIN handling is switched off so ``begin_booking_transaction``
    can issue ``BEGIN IMMEDIATE`` itself.
    """

    @event.listens_for(target_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={int(settings.DB_LOCK_TIMEOUT_MS)}")
        cursor.close()

    @event.listens_for(target_engine, "begin")
    def do_begin(conn):
        mode = str(conn.get_execution_options().get("sqlite_begin") or "").strip()
        conn.exec_driver_sql(f"BEGIN {mode}".strip())


if is_sqlite(engine):
    install_sqlite_pragmas(engine)


def begin_booking_transaction(db: Session) -> None:
    """Open the write transaction a booking runs in, with the request-scoped timeout.

    SQLite takes the database write lock up front (``BEGIN IMMEDIATE``); other
    backends bound lock waits and statements with ``SET LOCAL``.
    """
    timeout_ms = max(1, int(settings.DB_LOCK_TIMEOUT_MS))
    if db.in_transaction():
        db.rollback()
    if is_sqlite(db.get_bind()):
        db.connection(execution_options={"sqlite_begin": "IMMEDIATE"})
        return
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        db.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))
        db.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
    elif dialect in {"mysql", "mariadb"}:
        db.execute(text(f"SET SESSION innodb_lock_wait_timeout = {max(1, timeout_ms // 1000)}"))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
