"""
Database connection layer for the Quality Report settings service.
Implements SQLAlchemy engine configuration and session management.
"""

from collections.abc import Generator

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.models import Base
from app.settings import settings


def get_database_url() -> str:
    """Get database URL from centralized settings."""
    return settings.get_database_url()


def create_database_engine(database_url: str | None = None) -> Engine:
    """Create SQLAlchemy engine with proper configuration."""
    database_url = database_url or get_database_url()

    if database_url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a threadpool
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=settings.is_debug_mode(),
        )

    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_size=5,
        max_overflow=10,
        echo=settings.is_debug_mode(),
    )


# Global engine instance
engine = create_database_engine()

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Generator for FastAPI dependency injection."""
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError:
        db.rollback()
        raise
    finally:
        db.close()


def check_database_connection(db: Session) -> bool:
    """Test database connectivity for health checks."""
    try:
        return db.execute(text("SELECT 1")).scalar() == 1
    except SQLAlchemyError:
        return False


def create_all_tables(bind: Engine | None = None) -> None:
    """Create all tables. The settings store has no migrations of its own."""
    Base.metadata.create_all(bind=bind or engine)
