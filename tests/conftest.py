import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.models import comment, track, track_version  # noqa: F401
from app.db.session import get_db
from app.main import app
from app.services import storage as storage_module
from app.services.storage import LocalStorage
from app.services.tracks import create_track


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def storage(tmp_path, monkeypatch):
    st = LocalStorage(str(tmp_path / "store"))
    monkeypatch.setattr(storage_module, "_storage", st)
    return st


@pytest.fixture
def client(session_factory, storage):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_track(db):
    def _make(user_id: str = "owner", **kw):
        kw.setdefault("title", "Demo")
        kw.setdefault("file_url", "local://owner/original.wav")
        return create_track(db, user_id=user_id, **kw)

    return _make
