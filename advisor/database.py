# advisor/database.py
"""
SQLite engine and sessions.

get_db() hands one session to a request. SqlHealthStore instead takes the
session factory itself (get_session_factory) and opens a session per
biometric read, because those reads run side by side on worker threads.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from . import config

engine = create_engine(
    config.DATABASE_URL,
    connect_args={"check_same_thread": False},
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Dependency for stores that manage their own sessions; tests override it."""
    return SessionLocal
