from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from typing import Generator
from sqlalchemy.orm import Session
from app.core.config import settings

_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,   # checks stale connections
    connect_args=_connect_args,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_db() -> None:
    """
    Create tables for a fresh dev database. Real deployments run Alembic instead.
    """
    from app.core.base import Base

    # Import models so they register with SQLAlchemy metadata.
    from app.models.user import User  # noqa: F401
    from app.models.job_application import JobApplication  # noqa: F401
    from app.models.log_entry import LogEntry  # noqa: F401

    Base.metadata.create_all(bind=engine)

def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
