from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from biketrails.core.config import settings


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """
    Turn on foreign key enforcement for every new SQLite connection.

    SQLite ignores REFERENCES clauses unless the pragma is set per connection.
    Comments rely on the store to reject dangling route/user ids and to block
    deleting a route that still has comments.
    """
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _create_engine() -> Engine:
    if settings.is_sqlite:
        # check_same_thread=False: FastAPI may run sync dependencies in a threadpool
        engine = create_engine(
            settings.DATABASE_URL,
            connect_args={"check_same_thread": False},
        )
        enable_sqlite_foreign_keys(engine)
        return engine
    return create_engine(settings.DATABASE_URL, pool_pre_ping=True)


# Create database engine - manages connection pool
engine = _create_engine()

# Create session factory - each request gets a new session
# autocommit=False: Changes require explicit commit (services commit once per request)
# autoflush=False: Entities persist through explicit statements, never through flushes
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all database models
Base = declarative_base()


def get_db():
    """
    Dependency for getting database session.

    The session is the connection handle every entity operation receives.
    It is closed after the request completes (via finally block), which also
    rolls back anything a failed request left uncommitted.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        # Always close session, even if request raises an exception
        # Prevents connection leaks
        db.close()
