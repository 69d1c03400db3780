"""Local state database for the sync agent."""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def create_session_factory(database_url: str) -> sessionmaker:
    """Create the engine and tables, returning a session factory bound to it."""
    # Import models here to ensure they're registered with Base
    from client import models  # noqa: F401

    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, connect_args=connect_args)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
