import os
import tempfile
from contextlib import contextmanager
from typing import Iterator, Optional

from app.core.config import settings
from app.core.errors import UnsupportedAudio


def audio_suffix(filename: Optional[str]) -> str:
    """
    Lower-cased extension of an uploaded filename, validated against
    settings.ALLOWED_AUDIO_EXTENSIONS.
    """
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in settings.ALLOWED_AUDIO_EXTENSIONS:
        raise UnsupportedAudio(f"Unsupported file type: {ext or '(none)'}")
    return ext


@contextmanager
def scoped_audio_file(data: bytes, suffix: str = "") -> Iterator[str]:
    """
    Write bytes to a named temp file and yield its path.

    The file is removed on every exit path, including decoder exceptions
    raised inside the with-block.
    """
    fd, tmp_path = tempfile.mkstemp(prefix="waveform-", suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        yield tmp_path
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
