from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from config import DATABASE_URL


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}  # Required for SQLite with FastAPI
    return {}


engine = create_engine(DATABASE_URL, connect_args=_connect_args(DATABASE_URL))

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """Dependency for getting database sessions in FastAPI routes."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def is_sqlite_session(db: Session) -> bool:
    """Return True when the session is bound to a SQLite database.

    Works for sessions bound to an Engine as well as to a Connection, and
    never opens a connection to find out.
    """
    bind = db.get_bind()
    return bind.dialect.name == "sqlite"


def init_db():
    """Initialize the database and create all tables."""
    # Import models here to ensure they're registered with Base
    from models import AdminConfig, ConfigSnapshot, Device  # noqa: F401

    Base.metadata.create_all(bind=engine)


def dialect_insert(db: Session, table):
    """Return an INSERT construct supporting ``on_conflict_do_update`` for the session's backend."""
    if is_sqlite_session(db):
        from sqlalchemy.dialects.sqlite import insert
    else:
        from sqlalchemy.dialects.postgresql import insert
    return insert(table)
