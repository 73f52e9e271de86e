"""
Database connection and session management.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from contextlib import contextmanager
from typing import Iterator, Tuple


def create_session_factory(database_url: str) -> Tuple[Engine, sessionmaker]:
    """
    Create an engine and a session factory bound to it.

    Args:
        database_url: SQLAlchemy database URL

    Returns:
        (engine, session factory)
    """
    engine = create_engine(database_url)
    return engine, sessionmaker(bind=engine)


@contextmanager
def get_db_context(session_factory: sessionmaker) -> Iterator[Session]:
    """
    Context manager for database session.

    Usage:
        with get_db_context(factory) as db:
            # Use db session
            pass
    """
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(engine: Engine):
    """
    Initialize the database by creating all tables.
    """
    from wallrot.db_models import Base

    Base.metadata.create_all(bind=engine)
