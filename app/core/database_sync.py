"""
Blocking database access for Celery workers (psycopg2 driver).
"""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.core.database import engine_options

engine_sync = create_engine(
    settings.database_url_sync,
    **engine_options(settings.database_url_sync),
)

SyncSessionLocal = sessionmaker(bind=engine_sync, expire_on_commit=False, autoflush=False)


@contextmanager
def get_sync_db() -> Iterator[Session]:
    """Worker session, committed when the block exits cleanly."""
    with SyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        session.commit()
