from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from access_engine.config import settings

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    echo=settings.DEBUG,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)

if _is_sqlite:
    # Assignment rows reference levels ON DELETE RESTRICT; SQLite ignores that unless told
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """
    FastAPI dependency yielding one session per request.

    Services commit explicitly (one commit per mutation); anything left
    uncommitted when the request ends is discarded on close.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
