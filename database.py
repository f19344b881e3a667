"""
Database connection and session management
Supports PostgreSQL with SQLite fallback
"""
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from config import settings
import logging

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


def create_db_engine(database_url: str = None):
    """Create an engine for the configured database URL"""
    database_url = database_url or settings.DATABASE_URL

    if database_url.startswith("postgresql"):
        engine = create_engine(
            database_url,
            pool_pre_ping=True,  # Verify connections before using
            pool_recycle=3600,   # Recycle connections after 1 hour
            pool_size=5,
            max_overflow=10,
            echo=settings.DEBUG,
        )
        logger.info("[DB] Using PostgreSQL")
    else:
        # SQLite needs this flag since requests are served from a thread pool
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=settings.DEBUG,
        )
        logger.info(f"[DB] Using SQLite: {database_url}")

    return engine


def create_session_factory(engine):
    """Session factory bound to the given engine"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_store(request: Request):
    """Dependency to get the document store owned by the application"""
    return request.app.state.store


def init_db(engine):
    """Initialize database tables"""
    # Register the tables on the metadata
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
