import logging
import sys

from app.core.config import settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _build_logger() -> logging.Logger:
    log = logging.getLogger("app")
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        log.addHandler(handler)
    log.setLevel(settings.LOG_LEVEL.upper())
    log.propagate = False
    return log


logger = _build_logger()
