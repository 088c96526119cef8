import os
import uuid
from pathlib import Path

from app.core.config import settings

LOCAL_SCHEME = "local://"


class LocalStorage:
    """Filesystem stand-in for the object store. file_url is `local://<key>`."""

    def __init__(self, root: str | None = None):
        self.root = Path(root or settings.STORAGE_DIR) / "uploads"
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Invalid storage key: {key}")
        return path

    def save(self, data: bytes, user_id: str, name: str, filename: str) -> str:
        ext = os.path.splitext(filename or "")[1].lower()
        key = f"{user_id}/{name}-{uuid.uuid4().hex[:8]}{ext}"
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return LOCAL_SCHEME + key

    def read(self, file_url: str) -> bytes:
        if not file_url.startswith(LOCAL_SCHEME):
            raise ValueError(f"Not a local storage url: {file_url}")
        return self._path(file_url[len(LOCAL_SCHEME):]).read_bytes()

    def delete(self, file_url: str) -> None:
        if not file_url.startswith(LOCAL_SCHEME):
            raise ValueError(f"Not a local storage url: {file_url}")
        self._path(file_url[len(LOCAL_SCHEME):]).unlink(missing_ok=True)


_storage: LocalStorage | None = None


def get_storage() -> LocalStorage:
    global _storage
    if _storage is None:
        if settings.STORAGE_BACKEND != "local":
            raise RuntimeError(f"Unsupported STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
        _storage = LocalStorage()
    return _storage
