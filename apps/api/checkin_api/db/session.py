"""Database session management."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from checkin_api.settings import get_settings

settings = get_settings()

_database_url = settings.database_url_computed

if _database_url.startswith("sqlite"):
    engine = create_engine(_database_url, connect_args={"check_same_thread": False})
else:
    engine = create_engine(
        _database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        # Bound every statement server-side; a timed-out request must not leave queries running
        connect_args={"options": f"-c statement_timeout={settings.database_statement_timeout_ms}"},
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """Session factory for work that runs outside the request's own session."""
    return SessionLocal
