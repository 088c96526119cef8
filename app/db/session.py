from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.db.config import DatabaseSettings

settings = DatabaseSettings()


class DatabaseManager:
    def __init__(self, url: str | None = None):
        url = url or settings.url
        kwargs = {"pool_pre_ping": True, "echo": settings.DB_ECHO}
        if url.startswith("sqlite"):
            # the API hands sessions to worker threads
            kwargs["connect_args"] = {"check_same_thread": False}
        else:
            kwargs["pool_recycle"] = settings.DB_POOL_RECYCLE
        self.engine = create_engine(url, **kwargs)
        self.session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )

    def create_all(self) -> None:
        from app.db.base import Base
        from app.db.models import comment, track, track_version  # noqa: F401

        Base.metadata.create_all(bind=self.engine)


db_manager = DatabaseManager()
SessionLocal = db_manager.session_factory


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
